import httpx
import pytest
from pydantic_ai.messages import ToolCallPart

from app.agents.tools import ToolDispatcher, ToolInvocation, ToolName
from app.core.errors import ToolArgumentError, UnknownToolError, UpstreamError
from tests.fakes import DISTANCE_PATH, PLACE_SEARCH_PATH, place


async def test_unknown_tool_raises(dispatcher):
    with pytest.raises(UnknownToolError) as exc:
        await dispatcher.execute("book_table", {})
    assert exc.value.message == "Unknown function: book_table"


@pytest.mark.parametrize("arguments", [{}, {"query": "   "}, {"query": 42}])
async def test_search_venues_rejects_bad_query(dispatcher, arguments):
    with pytest.raises(ToolArgumentError):
        await dispatcher.execute(ToolName.SEARCH_VENUES.value, arguments)


@pytest.mark.parametrize("arguments", [
    {"origins": [], "destinations": ["B"]},
    {"origins": ["A"], "destinations": []},
    {"origins": ["A"], "destinations": ["B"], "mode": "teleport"},
])
async def test_calculate_distance_rejects_bad_arguments(dispatcher, arguments):
    with pytest.raises(ToolArgumentError):
        await dispatcher.execute(ToolName.CALCULATE_DISTANCE.value, arguments)


async def test_maps_failure_becomes_upstream_error(dispatcher, maps_stub):
    maps_stub.set(PLACE_SEARCH_PATH, {"status": "OVER_QUERY_LIMIT", "error_message": "slow down"})
    with pytest.raises(UpstreamError):
        await dispatcher.execute("search_venues", {"query": "bars"})


async def test_maps_transport_error_becomes_upstream_error(dispatcher, maps_stub):
    maps_stub.set(DISTANCE_PATH, httpx.ConnectError("boom"))
    with pytest.raises(UpstreamError):
        await dispatcher.execute("calculate_distance", {"origins": ["A"], "destinations": ["B"]})


async def test_run_wraps_failures_as_error_results(dispatcher):
    result = await dispatcher.run(ToolInvocation(name="search_venues", arguments={"query": ""}))
    assert result.is_error
    assert result.name == "search_venues"


async def test_run_returns_result_payload(dispatcher, maps_stub):
    maps_stub.set(PLACE_SEARCH_PATH, {"status": "OK", "results": [place("Uchi")]})
    result = await dispatcher.run(ToolInvocation(name="search_venues", arguments={"query": "sushi"}))
    assert not result.is_error
    assert result.response["result"][0]["name"] == "Uchi"


@pytest.mark.parametrize("args", ["{not json", "[1, 2]", None])
def test_invocation_without_an_argument_object(args):
    part = ToolCallPart(tool_name="search_venues", args=args, tool_call_id="c1")
    invocation = ToolInvocation.from_part(part)
    assert invocation.call_id == "c1"
    assert invocation.arguments == {}


def test_invocation_parses_json_arguments():
    part = ToolCallPart(tool_name="search_venues", args='{"query": "tacos", "location": "Austin"}')
    assert ToolInvocation.from_part(part).arguments == {"query": "tacos", "location": "Austin"}


async def test_malformed_arguments_are_reported(dispatcher):
    part = ToolCallPart(tool_name="search_venues", args="{not json", tool_call_id="c1")
    result = await dispatcher.run(ToolInvocation.from_part(part))
    assert result.is_error
    assert result.response["error"].startswith("Invalid arguments for search_venues")


def test_definitions_describe_both_tools(maps_client):
    definitions = {d.name: d for d in ToolDispatcher(maps_client).definitions}
    assert set(definitions) == {"search_venues", "calculate_distance"}
    assert definitions["search_venues"].parameters_json_schema["required"] == ["query"]
    assert set(definitions["calculate_distance"].parameters_json_schema["required"]) == {"origins", "destinations"}
