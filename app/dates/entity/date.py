from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LinkedConversation(BaseModel):
    id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None


class DatePlan(BaseModel):
    """A date the user planned, optionally rated and annotated afterwards."""
    id: str
    user_id: str
    name: str
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    conversations: List[LinkedConversation] = Field(default_factory=list)

    @property
    def is_annotated(self) -> bool:
        return self.rating is not None or bool(self.notes and self.notes.strip())
