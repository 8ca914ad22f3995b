"""Chat exchange log: per-session history and simple analytics."""

import logging
from collections import Counter
from uuid import uuid4

from restaurant_ops.models.chat import (
    ChatAnalytics,
    ChatConversation,
    ChatMessage,
    ChatSession,
)
from restaurant_ops.models.enums import AIModel, MessageIntent, MessageRole
from restaurant_ops.storage.database import DatabaseManager

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return uuid4().hex


async def log_conversation(
    db: DatabaseManager,
    restaurant_id: str,
    user_message: str,
    bot_response: str,
    session_id: str | None = None,
    model_used: AIModel | None = None,
    intent: MessageIntent | None = None,
) -> ChatConversation:
    """Store one user message and the bot's reply.

    A new session id is generated when none is given, so the caller can
    continue the conversation with the returned record's ``session_id``.
    """
    return await db.log_conversation(
        restaurant_id=restaurant_id,
        user_message=user_message,
        bot_response=bot_response,
        session_id=session_id or new_session_id(),
        model_used=model_used,
        intent=intent,
    )


async def get_session(db: DatabaseManager, session_id: str) -> ChatSession | None:
    """Rebuild a session's message history in chronological order."""
    exchanges = await db.list_conversations(session_id=session_id)
    if not exchanges:
        return None

    messages: list[ChatMessage] = []
    for ex in exchanges:
        messages.append(
            ChatMessage(role=MessageRole.USER, content=ex.user_message, timestamp=ex.created_at)
        )
        messages.append(
            ChatMessage(
                role=MessageRole.ASSISTANT, content=ex.bot_response, timestamp=ex.created_at
            )
        )
    return ChatSession(
        session_id=session_id,
        restaurant_id=exchanges[0].restaurant_id,
        messages=messages,
        started_at=exchanges[0].created_at,
        last_message_at=exchanges[-1].created_at,
    )


async def chat_analytics(db: DatabaseManager, restaurant_id: str) -> ChatAnalytics:
    """Count a restaurant's exchanges by intent and by model.

    Exchanges without an intent are counted as ``unknown``; exchanges
    without a model are left out of ``by_model``.
    """
    exchanges = await db.list_conversations(restaurant_id=restaurant_id)
    by_intent = Counter(
        (ex.intent or MessageIntent.UNKNOWN).value for ex in exchanges
    )
    by_model = Counter(ex.model_used.value for ex in exchanges if ex.model_used)
    return ChatAnalytics(
        total_conversations=len(exchanges),
        by_intent=dict(by_intent),
        by_model=dict(by_model),
    )
