from unittest.mock import patch

import pytest
from fastmcp import Client, FastMCP

from restaurant_ops.storage.database import DatabaseManager
from restaurant_ops.tools.chat import register_chat_tools
from restaurant_ops.tools.error_messages import NO_RESTAURANT_MESSAGE
from tests.factories import make_restaurant_create


async def _call(db: DatabaseManager, tool: str, args: dict) -> str:
    test_mcp = FastMCP("test")
    register_chat_tools(test_mcp)
    with patch("restaurant_ops.tools.chat.get_db", return_value=db):
        async with Client(test_mcp) as client:
            result = await client.call_tool(tool, args)
    return str(result)


@pytest.fixture
async def restaurant_id(db: DatabaseManager) -> str:
    r = await db.create_restaurant(make_restaurant_create())
    return r.id


class TestRegisterChatTools:
    def test_registration_succeeds(self):
        test_mcp = FastMCP("test")
        register_chat_tools(test_mcp)


class TestChatTools:
    async def test_log_and_read_session(self, db, restaurant_id):
        text = await _call(db, "log_chat_exchange", {
            "restaurant_id": restaurant_id, "user_message": "Are you open Sunday?",
            "bot_response": "Sorry, we are closed on Sundays.", "session_id": "sess-1",
            "intent": "hours", "model_used": "claude-haiku-4",
        })
        assert "Logged exchange in session sess-1" in text

        text = await _call(db, "get_chat_session", {"session_id": "sess-1"})
        assert "2 messages" in text
        assert "Guest: Are you open Sunday?" in text
        assert "Bot: Sorry, we are closed on Sundays." in text

    async def test_log_generates_session(self, db, restaurant_id):
        text = await _call(db, "log_chat_exchange", {
            "restaurant_id": restaurant_id, "user_message": "hi", "bot_response": "hello",
        })
        assert "Logged exchange in session" in text
        [record] = await db.list_conversations(restaurant_id=restaurant_id)
        assert record.session_id

    async def test_invalid_intent(self, db, restaurant_id):
        text = await _call(db, "log_chat_exchange", {
            "restaurant_id": restaurant_id, "user_message": "hi", "bot_response": "hello",
            "intent": "smalltalk",
        })
        assert "Invalid value" in text

    async def test_unknown_session(self, db):
        text = await _call(db, "get_chat_session", {"session_id": "nope"})
        assert "No chat session" in text

    async def test_analytics(self, db, restaurant_id):
        for intent in ("reservation", "reservation", "menu_inquiry"):
            await db.log_conversation(restaurant_id, "q", "a", intent=intent)
        text = await _call(db, "chat_analytics", {"restaurant_id": restaurant_id})
        assert "Total conversations: 3" in text
        assert "reservation: 2" in text
        assert "menu_inquiry: 1" in text

    async def test_analytics_empty(self, db, restaurant_id):
        text = await _call(db, "chat_analytics", {"restaurant_id": restaurant_id})
        assert "No chat conversations recorded yet" in text


class TestNoRestaurant:
    async def test_log_without_restaurant(self, db):
        text = await _call(db, "log_chat_exchange", {"user_message": "hi", "bot_response": "hello"})
        assert NO_RESTAURANT_MESSAGE in text

    async def test_analytics_without_restaurant(self, db):
        assert NO_RESTAURANT_MESSAGE in await _call(db, "chat_analytics", {})
