# app/chat/repository/chat_repository.py

import uuid
from typing import Optional, List
from sqlalchemy.future import select
from sqlalchemy import delete
from sqlalchemy.sql import func

from app.chat.entity.chat import Conversation, ConversationTurn, MessageRole, make_title
from app.chat.repository.sql_schema.conversation import ConversationModel, MessageModel
from app.chat.service.service import IChatRepository
from pkg.db_util.postgres_conn import PostgresConnection
from pkg.log.logger import get_logger

logger = get_logger(__name__)


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def _to_conversation(conv: ConversationModel) -> Conversation:
    return Conversation(
        conversation_id=str(conv.id),
        user_id=conv.user_id,
        title=conv.title,
        date_id=conv.date_id,
        created_at=conv.created_at,
        last_activity=conv.last_activity,
        message_count=conv.message_count or 0,
    )


class ChatRepository(IChatRepository):
    """Handles all database interactions for chat conversations and messages."""

    def __init__(self, postgres: PostgresConnection):
        self.postgres = postgres
        self.logger = logger

    async def get_conversation(
        self,
        user_id: str,
        conversation_id: str,
        include_messages: bool = True,
    ) -> Optional[Conversation]:
        conv_uuid = _parse_uuid(conversation_id)
        if conv_uuid is None:
            return None

        async with self.postgres.get_session() as session:
            result = await session.execute(
                select(ConversationModel).where(
                    ConversationModel.id == conv_uuid, ConversationModel.user_id == user_id
                )
            )
            conv = result.scalar_one_or_none()
            if not conv:
                return None

            conversation = _to_conversation(conv)
            if include_messages:
                result_msgs = await session.execute(
                    select(MessageModel)
                    .where(MessageModel.conversation_id == conv.id)
                    .order_by(MessageModel.position.asc(), MessageModel.created_at.asc())
                )
                conversation.messages = [
                    ConversationTurn(
                        role=MessageRole(m.sender_role),
                        content=m.content or "",
                        position=m.position,
                        created_at=m.created_at,
                    )
                    for m in result_msgs.scalars().all()
                ]
            return conversation

    async def list_conversations(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Conversation]:
        """Page through a user's conversations, most recently active first."""
        async with self.postgres.get_session() as session:
            result = await session.execute(
                select(ConversationModel)
                .where(ConversationModel.user_id == user_id)
                .order_by(ConversationModel.last_activity.desc(), ConversationModel.id)
                .limit(limit)
                .offset(offset)
            )
            return [_to_conversation(c) for c in result.scalars().all()]

    async def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        """Delete a conversation and all its messages."""
        conv_uuid = _parse_uuid(conversation_id)
        if conv_uuid is None:
            return False

        async with self.postgres.get_session() as session:
            async with session.begin():
                result = await session.execute(
                    select(ConversationModel.id).where(
                        ConversationModel.id == conv_uuid, ConversationModel.user_id == user_id
                    )
                )
                if result.scalar_one_or_none() is None:
                    return False
                await session.execute(delete(MessageModel).where(MessageModel.conversation_id == conv_uuid))
                await session.execute(delete(ConversationModel).where(ConversationModel.id == conv_uuid))

        self.logger.info(f"Deleted conversation {conversation_id}")
        return True

    async def append_turn(
        self,
        user_id: str,
        conversation_id: Optional[str],
        user_message: str,
        assistant_message: str,
    ) -> str:
        conv_uuid = _parse_uuid(conversation_id)

        async with self.postgres.get_session() as session:
            async with session.begin():
                conv = None
                if conv_uuid is not None:
                    result = await session.execute(
                        select(ConversationModel)
                        .where(ConversationModel.id == conv_uuid, ConversationModel.user_id == user_id)
                        .with_for_update()
                    )
                    conv = result.scalar_one_or_none()

                if conv is None:
                    conv = ConversationModel(user_id=user_id, title=make_title(user_message), message_count=0)
                    session.add(conv)
                    await session.flush()

                base = conv.message_count or 0
                session.add_all([
                    MessageModel(conversation_id=conv.id, sender_role=MessageRole.USER.value,
                                 content=user_message, position=base),
                    MessageModel(conversation_id=conv.id, sender_role=MessageRole.ASSISTANT.value,
                                 content=assistant_message, position=base + 1),
                ])
                conv.message_count = base + 2
                conv.last_activity = func.now()

            self.logger.debug(f"Appended turn to conversation {conv.id} (messages={base + 2})")
            return str(conv.id)
