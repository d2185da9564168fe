from datetime import datetime
from pydantic import BaseModel, Field


class GuestSession(BaseModel):
    """Anonymous visitor allowance. The signed cookie is the only copy of this state."""
    token_id: str
    messages_used: int = Field(default=0, ge=0)
    issued_at: datetime
    expires_at: datetime


class GuestAuthorization(BaseModel):
    allowed: bool
    remaining: int
    session: GuestSession
