import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_
from sqlalchemy.future import select

from app.chat.repository.sql_schema.conversation import ConversationModel, MessageModel
from app.dates.entity.date import DatePlan, LinkedConversation
from app.dates.repository.sql_schema.date import DateModel
from app.dates.service.date_service import ConversationAlreadyLinked, IDateRepository
from pkg.db_util.postgres_conn import PostgresConnection
from pkg.log.logger import get_logger

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("rating", "notes")


def _to_entity(row: DateModel, conversations: Optional[List[ConversationModel]] = None) -> DatePlan:
    return DatePlan(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        rating=row.rating,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        conversations=[
            LinkedConversation(id=str(c.id), title=c.title, created_at=c.created_at)
            for c in conversations or []
        ],
    )


class DateRepository(IDateRepository):
    def __init__(self, postgres: PostgresConnection):
        self.postgres = postgres
        self.logger = logger

    async def _owned(self, session, user_id: str, date_id: str) -> Optional[DateModel]:
        result = await session.execute(
            select(DateModel).where(DateModel.id == date_id, DateModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_dates(self, user_id: str) -> List[DatePlan]:
        async with self.postgres.get_session() as session:
            result = await session.execute(
                select(DateModel).where(DateModel.user_id == user_id).order_by(DateModel.created_at.desc())
            )
            dates = result.scalars().all()
            if not dates:
                return []

            conv_result = await session.execute(
                select(ConversationModel).where(ConversationModel.date_id.in_([d.id for d in dates]))
            )
            by_date: Dict[str, List[ConversationModel]] = {}
            for conv in conv_result.scalars().all():
                by_date.setdefault(conv.date_id, []).append(conv)
            return [_to_entity(d, by_date.get(d.id)) for d in dates]

    async def list_annotated_dates(self, user_id: str) -> List[DatePlan]:
        async with self.postgres.get_session() as session:
            result = await session.execute(
                select(DateModel)
                .where(
                    DateModel.user_id == user_id,
                    or_(DateModel.rating.isnot(None), DateModel.notes.isnot(None)),
                )
                .order_by(DateModel.created_at.desc())
            )
            return [_to_entity(d) for d in result.scalars().all()]

    async def create_date(self, user_id: str, name: str, conversation_id: Optional[str] = None) -> Optional[DatePlan]:
        async with self.postgres.get_session() as session:
            async with session.begin():
                conv = None
                if conversation_id:
                    try:
                        conv_uuid = uuid.UUID(conversation_id)
                    except ValueError:
                        return None
                    result = await session.execute(
                        select(ConversationModel).where(
                            ConversationModel.id == conv_uuid, ConversationModel.user_id == user_id
                        )
                    )
                    conv = result.scalar_one_or_none()
                    if conv is None:
                        return None
                    if conv.date_id:
                        raise ConversationAlreadyLinked(conversation_id)

                row = DateModel(user_id=user_id, name=name)
                session.add(row)
                await session.flush()
                if conv is not None:
                    conv.date_id = row.id

            return _to_entity(row, [conv] if conv is not None else None)

    async def update_date(self, user_id: str, date_id: str, changes: Dict[str, Any]) -> Optional[DatePlan]:
        async with self.postgres.get_session() as session:
            async with session.begin():
                row = await self._owned(session, user_id, date_id)
                if row is None:
                    return None
                for field in UPDATABLE_FIELDS:
                    if field in changes:
                        setattr(row, field, changes[field])

            await session.refresh(row)
            return _to_entity(row)

    async def delete_date(self, user_id: str, date_id: str) -> bool:
        async with self.postgres.get_session() as session:
            async with session.begin():
                row = await self._owned(session, user_id, date_id)
                if row is None:
                    return False
                conv_ids = select(ConversationModel.id).where(ConversationModel.date_id == date_id)
                await session.execute(delete(MessageModel).where(MessageModel.conversation_id.in_(conv_ids)))
                await session.execute(delete(ConversationModel).where(ConversationModel.date_id == date_id))
                await session.delete(row)
            return True
