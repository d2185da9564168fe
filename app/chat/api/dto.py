from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional

from app.chat.entity.chat import Conversation


class ChatRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: Optional[str] = None
    conversation_id: Optional[str] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reply: str
    is_guest: bool
    messages_remaining: Optional[int] = None
    conversation_id: Optional[str] = None


class MessageResponse(BaseModel):
    role: str
    content: str
    created_at: Optional[datetime] = None


class ConversationResponse(BaseModel):
    conversation_id: str
    user_id: str
    created_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    message_count: int
    title: str = "New Chat"
    date_id: Optional[str] = None

    messages: Optional[List[MessageResponse]] = None

    @classmethod
    def from_entity(cls, conversation: Conversation, include_messages: bool = False) -> "ConversationResponse":
        messages = None
        if include_messages:
            messages = [
                MessageResponse(role=m.role.value, content=m.content, created_at=m.created_at)
                for m in conversation.messages
            ]
        return cls(
            conversation_id=conversation.conversation_id,
            user_id=conversation.user_id,
            created_at=conversation.created_at,
            last_activity=conversation.last_activity,
            message_count=conversation.message_count,
            title=conversation.title or "New Chat",
            date_id=conversation.date_id,
            messages=messages,
        )

