from typing import Any
from fastapi import HTTPException

from app.user.api.dto import DeleteAccountDTO, UpdateProfileDTO
from app.user.entities.entity import UserProfile
from app.user.service.user_service import UserService
import logging
import bcrypt


class UserHandler:
    def __init__(self, user_service: UserService, logger: logging.Logger):
        self.user_service = user_service
        self.logger = logger

    def _verify_password(self, password: str, hashed: str | None) -> bool:
        """Verify password against hashed password"""
        if not hashed:
            return False
        return bcrypt.checkpw(password.encode(), hashed.encode())

    async def delete_account(self, user_id: str, delete_data: DeleteAccountDTO) -> dict[str, Any]:
        """
        Delete user account and all related data (profile, dates, conversations, messages)
        """
        try:
            user = await self.user_service.get_user_by_id(user_id)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")

            if not self._verify_password(delete_data.password, user.user.password_hash):
                raise HTTPException(status_code=401, detail="Invalid password")

            await self.user_service.delete_user_account(user_id)

            return {
                "status": True,
                "message": "Account deleted successfully",
                "data": None
            }

        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error deleting account: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to delete account")

    async def get_user_profile(self, user_id: str) -> dict[str, Any]:
        """
        Get the user's name, email and dating profile
        """
        try:
            user = await self.user_service.get_user_profile(user_id)

            return {
                "status": True,
                "message": "User profile retrieved successfully",
                "data": {
                    "name": user.user.name,
                    "email": user.user.email,
                    "profile": (user.profile or UserProfile()).model_dump(),
                }
            }

        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error getting user profile: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to get user profile")

    async def update_user_profile(self, user_id: str, profile_data: UpdateProfileDTO) -> dict[str, Any]:
        try:
            profile = await self.user_service.update_profile(
                user_id, UserProfile(**profile_data.model_dump())
            )
            return {
                "status": True,
                "message": "Profile updated successfully",
                "data": {"profile": profile.model_dump()}
            }

        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error updating user profile: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to update user profile")
