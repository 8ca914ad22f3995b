import logging

from fastmcp import FastMCP

from restaurant_ops.chat import conversations
from restaurant_ops.models.enums import AIModel, MessageIntent
from restaurant_ops.server import get_db, resolve_restaurant_id
from restaurant_ops.tools.error_messages import NO_RESTAURANT_MESSAGE, safe_tool_wrapper

logger = logging.getLogger(__name__)


def register_chat_tools(mcp: FastMCP) -> None:
    """Register chatbot conversation logging and analytics tools."""

    @mcp.tool
    async def log_chat_exchange(
        user_message: str,
        bot_response: str,
        session_id: str | None = None,
        model_used: str | None = None,
        intent: str | None = None,
        restaurant_id: str | None = None,
    ) -> str:
        """Record one guest message and the chatbot's reply.

        Args:
            user_message: What the guest wrote.
            bot_response: What the chatbot answered.
            session_id: Conversation to append to; omit to start a new one.
            model_used: Model that produced the reply, e.g. "claude-sonnet-4".
            intent: Detected intent, e.g. "reservation", "menu_inquiry".
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            The session ID to pass with the next exchange.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        try:
            model = AIModel(model_used) if model_used else None
            parsed_intent = MessageIntent(intent) if intent else None
        except ValueError as exc:
            return f"Invalid value: {exc}"

        async def _log() -> str:
            record = await conversations.log_conversation(
                get_db(), rid, user_message, bot_response,
                session_id=session_id, model_used=model, intent=parsed_intent,
            )
            return f"Logged exchange in session {record.session_id}."

        return await safe_tool_wrapper(_log)

    @mcp.tool
    async def get_chat_session(session_id: str) -> str:
        """Show the full message history of a chat session.

        Args:
            session_id: The session to show.

        Returns:
            The conversation, oldest message first.
        """

        async def _session() -> str:
            session = await conversations.get_session(get_db(), session_id)
            if session is None:
                return f"No chat session '{session_id}'."
            lines = [f"Session {session.session_id} ({len(session.messages)} messages):"]
            for message in session.messages:
                speaker = "Guest" if message.role == "user" else "Bot"
                lines.append(f"{speaker}: {message.content}")
            return "\n".join(lines)

        return await safe_tool_wrapper(_session)

    @mcp.tool
    async def chat_analytics(restaurant_id: str | None = None) -> str:
        """Summarise chatbot usage by intent and by model.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            Conversation counts.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _analytics() -> str:
            stats = await conversations.chat_analytics(get_db(), rid)
            if not stats.total_conversations:
                return "No chat conversations recorded yet."
            lines = [f"Total conversations: {stats.total_conversations}", "By intent:"]
            for name, count in sorted(stats.by_intent.items(), key=lambda kv: -kv[1]):
                lines.append(f"  {name}: {count}")
            if stats.by_model:
                lines.append("By model:")
                for name, count in sorted(stats.by_model.items(), key=lambda kv: -kv[1]):
                    lines.append(f"  {name}: {count}")
            return "\n".join(lines)

        return await safe_tool_wrapper(_analytics)
