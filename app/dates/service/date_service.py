from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.core.errors import InvalidRequestError, NotFoundError
from app.core.logger import get_logger
from app.dates.entity.date import DatePlan

logger = get_logger("DateService")


class ConversationAlreadyLinked(Exception):
    pass


class IDateRepository(ABC):
    @abstractmethod
    async def list_dates(self, user_id: str) -> List[DatePlan]:
        """All of the user's dates, newest first, with linked conversations."""
        pass

    @abstractmethod
    async def list_annotated_dates(self, user_id: str) -> List[DatePlan]:
        """Dates carrying a rating or notes, newest first."""
        pass

    @abstractmethod
    async def create_date(self, user_id: str, name: str, conversation_id: Optional[str] = None) -> Optional[DatePlan]:
        """
        Create a date, linking conversation_id when given. Returns None if the
        conversation does not belong to user_id; raises ConversationAlreadyLinked
        if it is linked to another date.
        """
        pass

    @abstractmethod
    async def update_date(self, user_id: str, date_id: str, changes: Dict[str, Any]) -> Optional[DatePlan]:
        pass

    @abstractmethod
    async def delete_date(self, user_id: str, date_id: str) -> bool:
        """Delete a date together with its linked conversations."""
        pass


class DateService:
    def __init__(self, date_repository: IDateRepository):
        self.date_repository = date_repository

    async def list_dates(self, user_id: str) -> List[DatePlan]:
        return await self.date_repository.list_dates(user_id)

    async def list_annotated_dates(self, user_id: str) -> List[DatePlan]:
        return await self.date_repository.list_annotated_dates(user_id)

    async def create_date(self, user_id: str, name: str, conversation_id: Optional[str] = None) -> DatePlan:
        if not name or not name.strip():
            raise InvalidRequestError("Date name is required")
        try:
            date = await self.date_repository.create_date(user_id, name.strip(), conversation_id)
        except ConversationAlreadyLinked:
            raise InvalidRequestError("This conversation is already linked to a date")
        if date is None:
            raise NotFoundError("Conversation not found")
        logger.info(f"Created date {date.id} for user {user_id}")
        return date

    async def update_date(self, user_id: str, date_id: str, changes: Dict[str, Any]) -> DatePlan:
        date = await self.date_repository.update_date(user_id, date_id, changes)
        if date is None:
            raise NotFoundError("Date not found")
        return date

    async def delete_date(self, user_id: str, date_id: str) -> None:
        if not await self.date_repository.delete_date(user_id, date_id):
            raise NotFoundError("Date not found")
        logger.info(f"Deleted date {date_id} for user {user_id}")
