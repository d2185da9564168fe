from fastapi import HTTPException
from sqlalchemy.future import select
from sqlalchemy import delete
from app.user.entities.aggregate import UserAggregate
from app.user.entities.entity import User as UserEntity, UserProfile, PROFILE_FIELDS
from app.user.repository.sql_schema.user import UserModel, UserProfileModel
from app.user.service.user_service import IUserRepository
from app.chat.repository.sql_schema.conversation import ConversationModel, MessageModel
from app.dates.repository.sql_schema.date import DateModel
import logging


def _to_entity(user: UserModel) -> UserEntity:
    return UserEntity(
        id=user.user_id,
        email=user.email,
        password_hash=user.password_hash,
        name=user.name or "",
        is_active=bool(user.is_active),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserRepository(IUserRepository):
    def __init__(self, db_session_factory, logger: logging.Logger):
        self.db_session_factory = db_session_factory
        self.logger = logger

    async def create_user(self, email: str, password_hash: str, name: str) -> UserAggregate:
        """Create a new user"""
        try:
            async with self.db_session_factory() as session:
                async with session.begin():
                    user = UserModel(email=email, password_hash=password_hash, name=name)
                    session.add(user)

                await session.refresh(user)
                return UserAggregate(user=_to_entity(user), events=["UserCreated"])

        except Exception as e:
            self.logger.error(f"Error creating user: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to create user")

    async def get_user_by_email(self, email: str) -> UserAggregate | None:
        try:
            async with self.db_session_factory() as session:
                result = await session.execute(select(UserModel).filter(UserModel.email == email))
                user = result.scalars().first()
                return UserAggregate(user=_to_entity(user)) if user else None

        except Exception as e:
            self.logger.error(f"Error getting user by email: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to fetch user by email")

    async def get_user_by_id(self, user_id: str) -> UserAggregate | None:
        try:
            async with self.db_session_factory() as session:
                result = await session.execute(select(UserModel).filter(UserModel.user_id == user_id))
                user = result.scalars().first()
                return UserAggregate(user=_to_entity(user)) if user else None

        except Exception as e:
            self.logger.error(f"Error getting user by ID: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to fetch user by ID")

    async def get_profile(self, user_id: str) -> UserProfile | None:
        try:
            async with self.db_session_factory() as session:
                result = await session.execute(
                    select(UserProfileModel).filter(UserProfileModel.user_id == user_id)
                )
                row = result.scalars().first()
                if not row:
                    return None
                return UserProfile(**{field: getattr(row, field) for field in PROFILE_FIELDS})

        except Exception as e:
            self.logger.error(f"Error getting profile: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to fetch profile")

    async def upsert_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        try:
            async with self.db_session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(UserProfileModel).filter(UserProfileModel.user_id == user_id)
                    )
                    row = result.scalars().first()
                    if row is None:
                        row = UserProfileModel(user_id=user_id)
                        session.add(row)
                    for field in PROFILE_FIELDS:
                        setattr(row, field, getattr(profile, field))

            self.logger.info(f"Profile updated for user {user_id}")
            return profile

        except Exception as e:
            self.logger.error(f"Error updating profile: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to update profile")

    async def delete_user(self, user_id: str) -> bool:
        try:
            async with self.db_session_factory() as session:
                async with session.begin():
                    result = await session.execute(select(UserModel).filter(UserModel.user_id == user_id))
                    user = result.scalars().first()
                    if not user:
                        raise HTTPException(status_code=404, detail="User not found")

                    conv_ids = select(ConversationModel.id).where(ConversationModel.user_id == user_id)
                    await session.execute(delete(MessageModel).where(MessageModel.conversation_id.in_(conv_ids)))
                    await session.execute(delete(ConversationModel).where(ConversationModel.user_id == user_id))
                    await session.execute(delete(DateModel).where(DateModel.user_id == user_id))
                    await session.execute(delete(UserProfileModel).where(UserProfileModel.user_id == user_id))
                    await session.delete(user)

            self.logger.info(f"Deleted user {user_id} and all related data")
            return True

        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error deleting user: {e!s}")
            raise HTTPException(status_code=500, detail="Failed to delete user")
