from typing import Annotated

from fastapi import Depends, HTTPException, Request

from app.agents.orchestrator import ChatTurnOrchestrator
from app.chat.service.context_service import ContextAssembler
from app.chat.service.service import ConversationStore


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail=f"{name} not initialized. Check application logs."
        )
    return service


def get_orchestrator(request: Request) -> ChatTurnOrchestrator:
    return _from_state(request, "orchestrator")


def get_context_assembler(request: Request) -> ContextAssembler:
    return _from_state(request, "context_assembler")


def get_conversation_store(request: Request) -> ConversationStore:
    return _from_state(request, "conversation_store")


# Type aliases for cleaner dependency injection
OrchestratorDep = Annotated[ChatTurnOrchestrator, Depends(get_orchestrator)]
ContextAssemblerDep = Annotated[ContextAssembler, Depends(get_context_assembler)]
ConversationStoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]
