# app/chat/entity/chat.py
"""
Models for conversations, turns and the per-request prompt context.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """A single stored message. Immutable once written."""
    role: MessageRole
    content: str
    position: int = 0
    created_at: Optional[datetime] = None


class Conversation(BaseModel):
    conversation_id: str
    user_id: str
    title: Optional[str] = None
    date_id: Optional[str] = None
    created_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    message_count: int = 0
    messages: List[ConversationTurn] = Field(default_factory=list)


class PastDateRecord(BaseModel):
    """Compact view of a rated or annotated past date."""
    label: str
    rating: Optional[int] = None
    notes: Optional[str] = None


class PromptContext(BaseModel):
    """Request-scoped bundle fed into the system prompt. Never persisted."""
    profile_lines: List[str] = Field(default_factory=list)
    past_dates: List[PastDateRecord] = Field(default_factory=list)
    history: List[ConversationTurn] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.profile_lines or self.past_dates or self.history)


def make_title(message: str, limit: int = 50) -> str:
    """Conversation title from its first user message."""
    text = message.strip()
    return text[:limit] + ("..." if len(text) > limit else "")
