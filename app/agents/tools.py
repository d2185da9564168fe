import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
import pydantic_core
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_ai.messages import ToolCallPart, ToolReturnPart
from pydantic_ai.tools import ToolDefinition

from app.core.errors import ToolArgumentError, UnknownToolError, UpstreamError, WingmanError
from app.core.logger import get_logger
from pkg.maps_client.client import GoogleMapsClient, MapsAPIError, TravelMode

logger = get_logger("ToolDispatcher")

MAX_VENUE_TYPES = 3


class ToolName(str, Enum):
    """The closed set of lookups the chat model may call."""
    SEARCH_VENUES = "search_venues"
    CALCULATE_DISTANCE = "calculate_distance"


class SearchVenuesArgs(BaseModel):
    query: str = Field(
        ...,
        description='What to search for (e.g., "romantic restaurants", "coffee shops", "parks")',
    )
    location: Optional[str] = Field(
        default=None,
        description='Location to search near (e.g., "San Francisco, CA" or lat,lng format)',
    )

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        return v.strip()


class CalculateDistanceArgs(BaseModel):
    origins: List[str] = Field(..., min_length=1, description="Starting locations (addresses or place names)")
    destinations: List[str] = Field(..., min_length=1, description="Destination locations (addresses or place names)")
    mode: Optional[TravelMode] = Field(default="driving", description="Mode of transportation")


TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name=ToolName.SEARCH_VENUES.value,
        description="Search for venues, restaurants, cafes, or places near a location. "
                    "Returns details like ratings, opening hours, and addresses.",
        parameters_json_schema=SearchVenuesArgs.model_json_schema(),
    ),
    ToolDefinition(
        name=ToolName.CALCULATE_DISTANCE.value,
        description="Calculate distance and travel time between locations. "
                    "Useful for planning routes and timing.",
        parameters_json_schema=CalculateDistanceArgs.model_json_schema(),
    ),
]


class ToolInvocation(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    call_id: Optional[str] = None

    @classmethod
    def from_part(cls, part: ToolCallPart) -> "ToolInvocation":
        arguments = part.args or {}
        if isinstance(arguments, str):
            try:
                arguments = pydantic_core.from_json(arguments)
            except ValueError:
                arguments = None
        # Anything but a JSON object is treated as no arguments; validation reports what is missing
        if not isinstance(arguments, dict):
            logger.warning(f"Non-object arguments for {part.tool_name}: {part.args!r}")
            arguments = {}
        return cls(name=part.tool_name, arguments=arguments, call_id=part.tool_call_id)


class ToolResult(BaseModel):
    """``{name, response: {result}}`` on success, ``{name, response: {error}}`` on failure."""
    name: str
    response: Dict[str, Any]

    @property
    def is_error(self) -> bool:
        return "error" in self.response

    def to_part(self, tool_call_id: Optional[str]) -> ToolReturnPart:
        kwargs = {"tool_name": self.name, "content": self.response}
        if tool_call_id:
            kwargs["tool_call_id"] = tool_call_id
        return ToolReturnPart(**kwargs)


class ToolDispatcher:
    """Executes the model's tool calls against the maps collaborator."""

    def __init__(self, maps_client: GoogleMapsClient):
        self.maps_client = maps_client

    @property
    def definitions(self) -> List[ToolDefinition]:
        return TOOL_DEFINITIONS

    async def execute(self, name: str, arguments: Dict[str, Any]) -> Any:
        try:
            tool = ToolName(name)
        except ValueError:
            raise UnknownToolError(name)

        try:
            if tool is ToolName.SEARCH_VENUES:
                return await self._search_venues(SearchVenuesArgs.model_validate(arguments))
            return await self._calculate_distance(CalculateDistanceArgs.model_validate(arguments))
        except ValidationError as e:
            raise ToolArgumentError(f"Invalid arguments for {name}: {e.errors(include_url=False)}")
        except (MapsAPIError, httpx.HTTPError) as e:
            raise UpstreamError(f"{name} failed: {e}")

    async def run(self, invocation: ToolInvocation) -> ToolResult:
        """Execute one call; failures come back as error payloads instead of raising."""
        logger.info(f"Dispatching tool {invocation.name} args={invocation.arguments}")
        try:
            result = await self.execute(invocation.name, invocation.arguments)
        except WingmanError as e:
            logger.warning(f"Tool {invocation.name} failed: {e.message}")
            return ToolResult(name=invocation.name, response={"error": e.message})
        except Exception as e:
            logger.error(f"Tool {invocation.name} raised unexpectedly: {e}", exc_info=True)
            return ToolResult(name=invocation.name, response={"error": f"Tool execution failed: {e}"})
        return ToolResult(name=invocation.name, response={"result": result})

    async def run_batch(self, invocations: List[ToolInvocation]) -> List[ToolResult]:
        """Run a batch concurrently; results keep the order of the calls."""
        return list(await asyncio.gather(*(self.run(inv) for inv in invocations)))

    async def _search_venues(self, args: SearchVenuesArgs) -> List[Dict[str, Any]]:
        places = await self.maps_client.search_places(args.query, args.location)
        return [
            {
                "name": p.name,
                "address": p.formatted_address,
                "rating": p.rating,
                "total_ratings": p.user_ratings_total,
                "price_level": p.price_level,
                "open_now": p.opening_hours.open_now if p.opening_hours else None,
                "types": p.types[:MAX_VENUE_TYPES],
            }
            for p in places
        ]

    async def _calculate_distance(self, args: CalculateDistanceArgs) -> List[Dict[str, Any]]:
        distances = await self.maps_client.get_distance_matrix(
            args.origins, args.destinations, args.mode or "driving"
        )
        return [
            {
                "from": d.origin,
                "to": d.destination,
                "distance": d.distance.text,
                "duration": d.duration.text,
                "distance_meters": d.distance.value,
                "duration_seconds": d.duration.value,
            }
            for d in distances
        ]
