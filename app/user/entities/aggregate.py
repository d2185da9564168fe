from typing import Optional

from pydantic import BaseModel

from .entity import User, UserProfile


class UserAggregate(BaseModel):
    user: User
    profile: Optional[UserProfile] = None
    events: list[str] = []
