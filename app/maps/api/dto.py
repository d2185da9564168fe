from typing import List, Optional

from pydantic import BaseModel, Field

from pkg.maps_client.client import MapMarker, TravelMode


class DistanceRequestDTO(BaseModel):
    origins: List[str] = Field(..., min_length=1)
    destinations: List[str] = Field(..., min_length=1)
    mode: Optional[TravelMode] = "driving"


class StaticMapRequestDTO(BaseModel):
    locations: List[MapMarker] = Field(..., min_length=1)
    width: int = Field(default=600, ge=1, le=640)
    height: int = Field(default=400, ge=1, le=640)
