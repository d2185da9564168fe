from abc import ABC, abstractmethod
from typing import Optional, List

from app.chat.entity.chat import Conversation, ConversationTurn
from app.core.errors import NotFoundError
from app.core.logger import get_logger

logger = get_logger("ConversationStore")


class IChatRepository(ABC):
    @abstractmethod
    async def get_conversation(self, user_id: str, conversation_id: str,
                               include_messages: bool = True) -> Optional[Conversation]:
        """Return the conversation only if it belongs to user_id."""
        pass

    @abstractmethod
    async def list_conversations(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Conversation]:
        """One page of the user's conversations, most recently active first."""
        pass

    @abstractmethod
    async def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        pass

    @abstractmethod
    async def append_turn(self, user_id: str, conversation_id: Optional[str],
                          user_message: str, assistant_message: str) -> str:
        """
        Persist one user/assistant exchange in a single transaction: create the
        conversation when it is missing or not owned by user_id, append both
        messages and bump last_activity/message_count. Returns the conversation id.
        """
        pass


class ConversationStore:
    """Conversation access for signed-in users."""

    def __init__(self, chat_repository: IChatRepository):
        self.chat_repository = chat_repository

    async def get_history(self, user_id: str, conversation_id: Optional[str]) -> List[ConversationTurn]:
        if not conversation_id:
            return []
        conversation = await self.chat_repository.get_conversation(user_id, conversation_id)
        if conversation is None:
            logger.debug(f"Conversation {conversation_id} not found for user {user_id}; starting fresh")
            return []
        return conversation.messages

    async def save_turn(self, user_id: str, conversation_id: Optional[str],
                        user_message: str, assistant_message: str) -> str:
        saved_id = await self.chat_repository.append_turn(
            user_id, conversation_id, user_message, assistant_message
        )
        logger.info(f"Saved turn to conversation {saved_id} for user {user_id}")
        return saved_id

    async def list_conversations(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Conversation]:
        return await self.chat_repository.list_conversations(user_id, limit=limit, offset=offset)

    async def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        conversation = await self.chat_repository.get_conversation(user_id, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        if not await self.chat_repository.delete_conversation(user_id, conversation_id):
            raise NotFoundError("Conversation not found")
