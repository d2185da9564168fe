from typing import Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.agents.orchestrator import ChatTurnOrchestrator
from app.chat.api.dto import ChatRequest, ChatResponse
from app.chat.entity.chat import PromptContext
from app.chat.service.context_service import ContextAssembler
from app.chat.service.service import ConversationStore
from app.core.errors import InvalidRequestError, UnauthorizedError, WingmanError
from app.core.logger import get_logger
from app.guest.api.dependencies import set_guest_cookie
from app.guest.service.guest_service import GuestSessionManager

logger = get_logger("ChatHandler")


async def handle_chat(
    body: ChatRequest,
    current_user: Optional[dict],
    guest_token: Optional[str],
    guest_manager: GuestSessionManager,
    orchestrator: ChatTurnOrchestrator,
    context_assembler: ContextAssembler,
    conversation_store: ConversationStore,
) -> JSONResponse:
    """
    Run one chat turn.

    Signed-in users (valid bearer token) get their profile, past dates and
    conversation history in the prompt, and the exchange is persisted. Guests
    are quota-checked against their cookie, get no context, nothing is stored,
    and the cookie is re-issued with the incremented count.
    """
    user_id = current_user.get("user_id") if current_user else None
    if not user_id and not guest_token:
        raise UnauthorizedError()

    message = (body.message or "").strip()
    if not message:
        raise InvalidRequestError("Message is required")

    try:
        if user_id:
            history = await conversation_store.get_history(user_id, body.conversation_id)
            context = await context_assembler.assemble(user_id, history)
            reply = await orchestrator.run_turn(message, history, context)

            conversation_id = await conversation_store.save_turn(
                user_id, body.conversation_id, message, reply
            )
            payload = ChatResponse(
                reply=reply,
                is_guest=False,
                messages_remaining=None,
                conversation_id=conversation_id,
            )
            return JSONResponse(content=payload.model_dump(by_alias=True))

        authorization = guest_manager.authorize(guest_token)
        reply = await orchestrator.run_turn(message, [], PromptContext())

        session, token = guest_manager.record_usage(authorization.session)
        payload = ChatResponse(
            reply=reply,
            is_guest=True,
            messages_remaining=guest_manager.remaining(session),
            conversation_id=None,
        )
        response = JSONResponse(content=payload.model_dump(by_alias=True))
        set_guest_cookie(response, token)
        return response

    except (WingmanError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Error handling chat turn: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process message")
