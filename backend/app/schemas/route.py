# backend/app/schemas/route.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from typing import Optional

from .commons import CamelModel, RouteStatus


class RouteStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    stop_id: int
    location: Optional[str] = None  # opaque to the sequencer
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def point(self) -> Optional[tuple[float, float]]:
        # (lon, lat)
        if self.latitude is None or self.longitude is None:
            return None
        return (self.longitude, self.latitude)


class TripEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_distance_km: Optional[float] = None
    estimated_travel_time_min: Optional[int] = None
    fuel_estimate_l: Optional[float] = None
    optimization_score: Optional[float] = None


class RouteSequence(BaseModel):
    """Ordered stops for one crew on one date. Trip fields stay None until estimated."""
    model_config = ConfigDict(frozen=True)

    crew_id: int
    route_date: date
    ordered_stop_ids: tuple[int, ...]
    start_location: str
    end_location: str
    status: RouteStatus = "planned"
    total_distance: Optional[float] = None
    estimated_travel_time: Optional[int] = None
    fuel_estimate: Optional[float] = None
    optimization_score: Optional[float] = None

    @model_validator(mode="after")
    def _unique_stops(self):
        if not self.ordered_stop_ids:
            raise ValueError("ordered_stop_ids must not be empty")
        if len(set(self.ordered_stop_ids)) != len(self.ordered_stop_ids):
            raise ValueError("ordered_stop_ids must not contain duplicates")
        return self


class RouteOptimizeIn(CamelModel):
    crew_id: int
    work_order_ids: list[int]
    route_date: date
    start_location: str = Field(min_length=1)
    end_location: Optional[str] = None
    route_name: Optional[str] = None


class RouteStatusUpdate(CamelModel):
    status: RouteStatus


class RouteOut(CamelModel):
    id: int
    route_name: str
    crew_id: int
    route_date: date
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    work_order_sequence: list[int]
    total_distance: Optional[float] = None
    estimated_time: Optional[int] = None
    fuel_estimate: Optional[float] = None
    optimization_score: Optional[float] = None
    status: RouteStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
