import re
from typing import List, Literal, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict

from pkg.log.logger import get_logger

TravelMode = Literal["driving", "walking", "transit", "bicycling"]

_LAT_LNG_RE = re.compile(r"^\s*-?\d+(\.\d+)?\s*,\s*-?\d+(\.\d+)?\s*$")


class MapsAPIError(Exception):
    """Raised when the Maps web service answers with a non-OK status."""

    def __init__(self, status: str, message: str = ""):
        self.status = status
        super().__init__(f"Maps API error: {status}" + (f" - {message}" if message else ""))


class OpeningHours(BaseModel):
    model_config = ConfigDict(extra="ignore")

    open_now: Optional[bool] = None
    weekday_text: Optional[List[str]] = None


class PlaceDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    place_id: str = ""
    name: str = ""
    formatted_address: str = ""
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    opening_hours: Optional[OpeningHours] = None
    types: List[str] = []
    website: Optional[str] = None
    formatted_phone_number: Optional[str] = None


class TextValue(BaseModel):
    text: str
    value: int


class DistanceResult(BaseModel):
    origin: str
    destination: str
    distance: TextValue
    duration: TextValue
    status: str = "OK"


class MapMarker(BaseModel):
    lat: float
    lng: float
    label: Optional[str] = None


class GoogleMapsClient:
    """Thin async client for the Places Text Search, Place Details and Distance Matrix APIs."""

    BASE_URL = "https://maps.googleapis.com/maps/api"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        search_radius_meters: int = 5000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.search_radius_meters = search_radius_meters
        self._transport = transport
        self.logger = get_logger("GoogleMapsClient")

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    async def _get(self, path: str, params: dict) -> dict:
        if not self.api_key:
            raise MapsAPIError("REQUEST_DENIED", "Google Maps API key not configured")

        params = {**params, "key": self.api_key}
        async with httpx.AsyncClient(
            base_url=self.BASE_URL, timeout=self.timeout, transport=self._transport
        ) as client:
            res = await client.get(path, params=params)
            res.raise_for_status()
            return res.json()

    async def search_places(self, query: str, location: Optional[str] = None) -> List[PlaceDetails]:
        """
        Text search for places.

        A "lat,lng" location biases results with a radius; a free-text location
        (e.g. "Austin, TX") is folded into the query, since the API only accepts
        coordinates for the location parameter.
        """
        params = {"query": query}
        if location:
            if _LAT_LNG_RE.match(location):
                params["location"] = location.replace(" ", "")
                params["radius"] = str(self.search_radius_meters)
            else:
                params["query"] = f"{query} in {location}"

        data = await self._get("/place/textsearch/json", params)
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise MapsAPIError(status or "UNKNOWN", data.get("error_message", ""))

        results = [PlaceDetails.model_validate(r) for r in data.get("results") or []]
        self.logger.debug(f"Place search '{params['query']}' returned {len(results)} results")
        return results

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        data = await self._get(
            "/place/details/json",
            {
                "place_id": place_id,
                "fields": "place_id,name,formatted_address,rating,user_ratings_total,"
                          "price_level,opening_hours,types,website,formatted_phone_number",
            },
        )
        if data.get("status") != "OK":
            raise MapsAPIError(data.get("status") or "UNKNOWN", data.get("error_message", ""))
        return PlaceDetails.model_validate(data.get("result") or {})

    async def get_distance_matrix(
        self,
        origins: List[str],
        destinations: List[str],
        mode: TravelMode = "driving",
    ) -> List[DistanceResult]:
        """
        Distances for every origin/destination pair the API reports.

        Elements whose status is not OK (e.g. NOT_FOUND, ZERO_RESULTS) carry no
        distance and are skipped.
        """
        data = await self._get(
            "/distancematrix/json",
            {"origins": "|".join(origins), "destinations": "|".join(destinations), "mode": mode},
        )
        if data.get("status") != "OK":
            raise MapsAPIError(data.get("status") or "UNKNOWN", data.get("error_message", ""))

        results: List[DistanceResult] = []
        for i, row in enumerate(data.get("rows") or []):
            for j, element in enumerate(row.get("elements") or []):
                if element.get("status") != "OK" or i >= len(origins) or j >= len(destinations):
                    continue
                results.append(
                    DistanceResult(
                        origin=origins[i],
                        destination=destinations[j],
                        distance=element["distance"],
                        duration=element["duration"],
                        status=element["status"],
                    )
                )
        return results

    @staticmethod
    def get_directions_url(origin: str, destination: str, waypoints: Optional[List[str]] = None) -> str:
        params = {"api": "1", "origin": origin, "destination": destination}
        if waypoints:
            params["waypoints"] = "|".join(waypoints)
        return f"https://www.google.com/maps/dir/?{urlencode(params)}"

    def get_static_map_url(self, markers: List[MapMarker], width: int = 600, height: int = 400) -> str:
        """Static map image with one pin per marker; unlabeled pins are lettered A, B, C..."""
        if not self.api_key:
            raise MapsAPIError("REQUEST_DENIED", "Google Maps API key not configured")

        params = [
            ("markers", f"label:{m.label or chr(ord('A') + i)}|{m.lat},{m.lng}")
            for i, m in enumerate(markers)
        ]
        params += [("size", f"{width}x{height}"), ("key", self.api_key)]
        return f"{self.BASE_URL}/staticmap?{urlencode(params)}"
