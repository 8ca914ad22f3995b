import pytest

from restaurant_ops.chat.conversations import chat_analytics, get_session, log_conversation
from restaurant_ops.models.enums import AIModel, MessageIntent, MessageRole
from tests.factories import make_restaurant_create


@pytest.fixture
async def restaurant_id(db) -> str:
    r = await db.create_restaurant(make_restaurant_create())
    return r.id


class TestLogConversation:
    async def test_generates_session_id(self, db, restaurant_id):
        record = await log_conversation(db, restaurant_id, "hi", "hello")
        assert record.session_id

    async def test_keeps_given_session(self, db, restaurant_id):
        record = await log_conversation(db, restaurant_id, "hi", "hello", session_id="s1")
        assert record.session_id == "s1"

    async def test_stores_model_and_intent(self, db, restaurant_id):
        record = await log_conversation(
            db, restaurant_id, "table for 2?", "sure",
            model_used=AIModel.CLAUDE_SONNET_4, intent=MessageIntent.RESERVATION,
        )
        assert record.model_used == AIModel.CLAUDE_SONNET_4
        assert record.intent == MessageIntent.RESERVATION


class TestGetSession:
    async def test_rebuilds_alternating_messages(self, db, restaurant_id):
        await log_conversation(db, restaurant_id, "hi", "hello", session_id="s1")
        await log_conversation(db, restaurant_id, "menu?", "here it is", session_id="s1")
        session = await get_session(db, "s1")
        assert session is not None
        assert [(m.role, m.content) for m in session.messages] == [
            (MessageRole.USER, "hi"),
            (MessageRole.ASSISTANT, "hello"),
            (MessageRole.USER, "menu?"),
            (MessageRole.ASSISTANT, "here it is"),
        ]
        assert session.restaurant_id == restaurant_id
        assert session.started_at <= session.last_message_at

    async def test_unknown_session(self, db):
        assert await get_session(db, "nope") is None


class TestChatAnalytics:
    async def test_counts(self, db, restaurant_id):
        await log_conversation(
            db, restaurant_id, "a", "b",
            intent=MessageIntent.RESERVATION, model_used=AIModel.GPT_4,
        )
        await log_conversation(db, restaurant_id, "c", "d", intent=MessageIntent.RESERVATION)
        await log_conversation(db, restaurant_id, "e", "f")
        stats = await chat_analytics(db, restaurant_id)
        assert stats.total_conversations == 3
        assert stats.by_intent == {"reservation": 2, "unknown": 1}
        assert stats.by_model == {"gpt-4": 1}

    async def test_empty(self, db, restaurant_id):
        stats = await chat_analytics(db, restaurant_id)
        assert stats.total_conversations == 0
        assert stats.by_intent == {}
