from typing import List, Optional

from pydantic_ai.direct import model_request
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models import Model, ModelRequestParameters, infer_model
from pydantic_ai.settings import ModelSettings


class ChatModel:
    """One model round trip: messages + tool definitions in, a ModelResponse out."""

    def __init__(self, model_name: str, max_tokens: Optional[int] = None):
        self.model_name = model_name
        self.max_tokens = max_tokens
        self._model: Optional[Model] = None

    @property
    def model(self) -> Model:
        # Provider clients read their API keys on construction; build on first use
        if self._model is None:
            self._model = infer_model(self.model_name)
        return self._model

    async def request(
        self, messages: List[ModelMessage], parameters: ModelRequestParameters
    ) -> ModelResponse:
        model_settings: Optional[ModelSettings] = None
        if self.max_tokens:
            model_settings = ModelSettings(max_tokens=self.max_tokens)
        return await model_request(
            self.model,
            messages,
            model_settings=model_settings,
            model_request_parameters=parameters,
        )
