from datetime import datetime

from pydantic import BaseModel, ConfigDict

from restaurant_ops.models.enums import AIModel, MessageIntent, MessageRole


class ChatMessage(BaseModel):
    role: MessageRole
    content: str
    timestamp: datetime | None = None


class ChatConversation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_id: str
    session_id: str | None = None
    user_message: str
    bot_response: str
    model_used: AIModel | None = None
    intent: MessageIntent | None = None
    created_at: datetime | None = None


class ChatSession(BaseModel):
    session_id: str
    restaurant_id: str
    messages: list[ChatMessage]
    started_at: datetime | None = None
    last_message_at: datetime | None = None


class ChatAnalytics(BaseModel):
    total_conversations: int = 0
    by_intent: dict[str, int] = {}
    by_model: dict[str, int] = {}
