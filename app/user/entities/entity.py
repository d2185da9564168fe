from datetime import datetime
from uuid import uuid4
from typing import Optional
from pydantic import BaseModel, Field


class Entity(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class User(Entity):
    email: str
    password_hash: Optional[str] = None
    name: str = ""
    is_active: bool = True


# Recognised profile keys, in the order they are rendered into the prompt
PROFILE_FIELDS = (
    "age",
    "gender",
    "location",
    "interests",
    "dating_goals",
    "dating_style",
    "budget",
    "outdoor",
    "social",
    "dietary_restrictions",
    "additional_notes",
)


class UserProfile(BaseModel):
    """Dating preferences. Every field is optional; unset fields are left out of the prompt."""
    age: Optional[int] = Field(default=None, ge=18, le=120)
    gender: Optional[str] = None
    location: Optional[str] = None
    interests: Optional[str] = None
    dating_goals: Optional[str] = None
    dating_style: Optional[str] = None
    budget: Optional[str] = None
    outdoor: Optional[bool] = None
    social: Optional[bool] = None
    dietary_restrictions: Optional[str] = None
    additional_notes: Optional[str] = None
