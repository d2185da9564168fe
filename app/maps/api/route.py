from typing import Annotated, List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.core.errors import UpstreamError
from app.core.logger import get_logger
from app.maps.api.dto import DistanceRequestDTO, StaticMapRequestDTO
from pkg.maps_client.client import GoogleMapsClient, MapsAPIError

maps_router = APIRouter(prefix="/maps", tags=["Maps"])
logger = get_logger("MapsRouter")


def get_maps_client(request: Request) -> GoogleMapsClient:
    client = getattr(request.app.state, "maps_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Maps client not initialized")
    return client


MapsClientDep = Annotated[GoogleMapsClient, Depends(get_maps_client)]


@maps_router.get("/search")
async def search_places(
    maps_client: MapsClientDep,
    query: str = Query(..., min_length=1),
    location: Optional[str] = None,
):
    """Text search for venues, optionally near a location."""
    try:
        places = await maps_client.search_places(query, location)
    except (MapsAPIError, httpx.HTTPError) as e:
        logger.error(f"Places search error: {e}")
        raise UpstreamError("Failed to search places")
    return {"places": [p.model_dump() for p in places]}


@maps_router.get("/places/{place_id}")
async def place_details(place_id: str, maps_client: MapsClientDep):
    try:
        place = await maps_client.get_place_details(place_id)
    except (MapsAPIError, httpx.HTTPError) as e:
        logger.error(f"Place details error for {place_id}: {e}")
        raise UpstreamError("Failed to fetch place details")
    return {"place": place.model_dump()}


@maps_router.post("/distance")
async def calculate_distance(body: DistanceRequestDTO, maps_client: MapsClientDep):
    """Distance and travel time for every origin/destination pair."""
    try:
        results = await maps_client.get_distance_matrix(
            body.origins, body.destinations, body.mode or "driving"
        )
    except (MapsAPIError, httpx.HTTPError) as e:
        logger.error(f"Distance matrix error: {e}")
        raise UpstreamError("Failed to calculate distances")
    return {"results": [r.model_dump() for r in results]}


@maps_router.get("/directions")
async def directions_url(
    origin: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    waypoints: Optional[List[str]] = Query(default=None),
):
    """Google Maps link for a route through the given stops."""
    return {"url": GoogleMapsClient.get_directions_url(origin, destination, waypoints)}


@maps_router.post("/static-map")
async def static_map_url(body: StaticMapRequestDTO, maps_client: MapsClientDep):
    """Image URL of a map with a pin for each location."""
    try:
        url = maps_client.get_static_map_url(body.locations, body.width, body.height)
    except MapsAPIError as e:
        logger.error(f"Static map error: {e}")
        raise UpstreamError("Failed to build map")
    return {"url": url}
