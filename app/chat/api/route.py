from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from app.auth.api.dependencies import CurrentUserDep, OptionalCurrentUserDep
from app.auth.api.dto import BaseResponse
from app.chat.api.dependencies import ContextAssemblerDep, ConversationStoreDep, OrchestratorDep
from app.chat.api.dto import ChatRequest, ConversationResponse
from app.chat.api.handler import handle_chat
from app.core.logger import get_logger
from app.guest.api.dependencies import GuestManagerDep, GuestTokenDep

chat_router = APIRouter(prefix="/chat", tags=["Chat"])
logger = get_logger("ChatRouter")


@chat_router.post("", response_class=JSONResponse)
async def chat_api(
    body: ChatRequest,
    guest_manager: GuestManagerDep,
    guest_token: GuestTokenDep,
    orchestrator: OrchestratorDep,
    context_assembler: ContextAssemblerDep,
    conversation_store: ConversationStoreDep,
    current_user: OptionalCurrentUserDep,
):
    """
    Send a message to wingMan. Works with a bearer token or a guest cookie.
    """
    return await handle_chat(
        body,
        current_user=current_user,
        guest_token=guest_token,
        guest_manager=guest_manager,
        orchestrator=orchestrator,
        context_assembler=context_assembler,
        conversation_store=conversation_store,
    )


@chat_router.get("/conversations", response_model=BaseResponse)
async def list_conversations(
    conversation_store: ConversationStoreDep,
    current_user: CurrentUserDep,
    limit: int = Query(default=20, ge=1, le=50, description="Number of items to return"),
    offset: int = Query(default=0, ge=0, description="Start offset for pagination"),
):
    """Paginated list of conversations for the authenticated user, most recent first."""
    try:
        conversations = await conversation_store.list_conversations(
            current_user["user_id"], limit=limit, offset=offset
        )
        items = [ConversationResponse.from_entity(c).model_dump(mode="json") for c in conversations]
        return BaseResponse(
            status=True,
            message="Conversations fetched successfully",
            data={
                "conversations": items,
                "limit": limit,
                "offset": offset,
                "next_offset": offset + len(items)
            }
        )
    except Exception as e:
        logger.error(f"Error listing conversations for user_id={current_user['user_id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to list conversations")


@chat_router.get("/conversations/{conversation_id}", response_model=BaseResponse)
async def get_conversation(
    conversation_id: str,
    conversation_store: ConversationStoreDep,
    current_user: CurrentUserDep,
    include_messages: bool = Query(default=True, description="Include messages in response"),
):
    """Conversation metadata and, by default, its messages in order."""
    conversation = await conversation_store.get_conversation(current_user["user_id"], conversation_id)
    return BaseResponse(
        status=True,
        message="Conversation fetched successfully",
        data=ConversationResponse.from_entity(conversation, include_messages).model_dump(mode="json"),
    )


@chat_router.delete("/conversations/{conversation_id}", response_model=BaseResponse)
async def delete_conversation(
    conversation_id: str,
    conversation_store: ConversationStoreDep,
    current_user: CurrentUserDep,
):
    """Delete a conversation and all of its messages."""
    await conversation_store.delete_conversation(current_user["user_id"], conversation_id)
    logger.info(f"Deleted conversation_id={conversation_id}")
    return BaseResponse(
        status=True,
        message="Conversation deleted successfully",
        data={"conversation_id": conversation_id}
    )
