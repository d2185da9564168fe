from enum import Enum
from typing import List, Protocol, Sequence

from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models import ModelRequestParameters

from app.agents.prompt import build_system_prompt
from app.agents.tools import ToolDispatcher, ToolInvocation
from app.chat.entity.chat import ConversationTurn, MessageRole, PromptContext
from app.core.errors import NotConvergedError, UpstreamError
from app.core.logger import get_logger

logger = get_logger("ChatTurnOrchestrator")

DEFAULT_MAX_ROUND_TRIPS = 8


class TurnState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


class ModelClient(Protocol):
    async def request(
        self, messages: List[ModelMessage], parameters: ModelRequestParameters
    ) -> ModelResponse: ...


def convert_history(history: Sequence[ConversationTurn]) -> List[ModelMessage]:
    """Stored turns to pydantic_ai messages."""
    messages: List[ModelMessage] = []
    for turn in history:
        if turn.role == MessageRole.USER:
            messages.append(ModelRequest(parts=[UserPromptPart(content=turn.content)]))
        else:
            messages.append(ModelResponse(parts=[TextPart(content=turn.content)]))
    return messages


def response_text(response: ModelResponse) -> str:
    return "".join(part.content for part in response.parts if isinstance(part, TextPart))


class ChatTurnOrchestrator:
    """
    Drives one chat turn to completion.

    AWAITING_MODEL sends the conversation to the model. A response with tool
    calls moves to DISPATCHING_TOOLS, which runs the whole batch concurrently
    and feeds every result back in a single request. A response without tool
    calls is DONE. The number of model requests per turn is capped by
    ``max_round_trips``.
    """

    def __init__(
        self,
        model: ModelClient,
        dispatcher: ToolDispatcher,
        max_round_trips: int = DEFAULT_MAX_ROUND_TRIPS,
    ):
        if max_round_trips < 1:
            raise ValueError("max_round_trips must be at least 1")
        self.model = model
        self.dispatcher = dispatcher
        self.max_round_trips = max_round_trips

    def build_messages(
        self, message: str, history: Sequence[ConversationTurn], context: PromptContext
    ) -> List[ModelMessage]:
        system = ModelRequest(parts=[SystemPromptPart(content=build_system_prompt(context))])
        return [system, *convert_history(history), ModelRequest(parts=[UserPromptPart(content=message)])]

    async def _request(self, messages: List[ModelMessage]) -> ModelResponse:
        parameters = ModelRequestParameters(function_tools=list(self.dispatcher.definitions))
        try:
            return await self.model.request(messages, parameters)
        except Exception as e:
            logger.error(f"Model request failed: {e}")
            raise UpstreamError(f"Failed to get response from AI: {e}") from e

    async def run_turn(
        self, message: str, history: Sequence[ConversationTurn], context: PromptContext
    ) -> str:
        messages = self.build_messages(message, history, context)
        state = TurnState.AWAITING_MODEL
        round_trips = 0

        while True:
            response = await self._request(messages)
            round_trips += 1
            messages.append(response)

            calls = [part for part in response.parts if isinstance(part, ToolCallPart)]
            if not calls:
                state = TurnState.DONE
                logger.info(f"[Turn] {state.value} after {round_trips} round trip(s)")
                return response_text(response)

            if round_trips >= self.max_round_trips:
                logger.error(f"[Turn] still requesting tools after {round_trips} round trips")
                raise NotConvergedError(round_trips)

            state = TurnState.DISPATCHING_TOOLS
            logger.info(f"[Turn] {state.value}: {[c.tool_name for c in calls]}")
            results = await self.dispatcher.run_batch([ToolInvocation.from_part(c) for c in calls])
            messages.append(
                ModelRequest(parts=[r.to_part(c.tool_call_id) for c, r in zip(calls, results)])
            )
            state = TurnState.AWAITING_MODEL
