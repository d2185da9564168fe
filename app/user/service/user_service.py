from abc import ABC, abstractmethod

from fastapi import HTTPException

from app.user.entities.aggregate import UserAggregate
from app.user.entities.entity import UserProfile
import logging


class IUserRepository(ABC):
    @abstractmethod
    async def create_user(self, email: str, password_hash: str, name: str) -> UserAggregate:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> UserAggregate | None:
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> UserAggregate | None:
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> UserProfile | None:
        pass

    @abstractmethod
    async def upsert_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and everything they own"""
        pass


class UserService:
    def __init__(self, user_repository: IUserRepository, logger: logging.Logger):
        self.user_repository = user_repository
        self.logger = logger

    async def create_user(self, email: str, password_hash: str, name: str) -> UserAggregate:
        """Create a new user"""
        existing_user = await self.get_user_by_email(email)
        if existing_user:
            raise HTTPException(status_code=400, detail="Email already registered")

        return await self.user_repository.create_user(
            email=email,
            password_hash=password_hash,
            name=name,
        )

    async def get_user_by_email(self, email: str) -> UserAggregate | None:
        """Get user by email"""
        return await self.user_repository.get_user_by_email(email)

    async def get_user_by_id(self, user_id: str) -> UserAggregate | None:
        """Get user by ID"""
        return await self.user_repository.get_user_by_id(user_id)

    async def get_user_profile(self, user_id: str) -> UserAggregate:
        user = await self.user_repository.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        user.profile = await self.user_repository.get_profile(user_id) or UserProfile()
        return user

    async def get_profile(self, user_id: str) -> UserProfile | None:
        return await self.user_repository.get_profile(user_id)

    async def update_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        """Replace the user's dating profile"""
        user = await self.user_repository.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return await self.user_repository.upsert_profile(user_id, profile)

    async def delete_user_account(self, user_id: str) -> bool:
        """Delete user account, its profile, dates, conversations and messages."""
        try:
            return await self.user_repository.delete_user(user_id)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error deleting user account: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to delete user account")
