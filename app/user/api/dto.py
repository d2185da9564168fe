from pydantic import BaseModel, Field

from app.user.entities.entity import UserProfile


class DeleteAccountDTO(BaseModel):
    """Request DTO for deleting user account"""
    password: str = Field(..., description="User's password for confirmation")


class UpdateProfileDTO(UserProfile):
    """Full replacement of the dating profile; omitted fields are cleared."""

