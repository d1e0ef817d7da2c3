# backend/app/services/routing/sequencer.py
"""
Route sequencing for crew day plans.

`sequence_route` turns an unordered set of work-order stops into a
RouteSequence. Ordering is delegated to a RouteOptimizer and trip metrics
to an optional TripEstimator; both are pure in-process computations.
"""
from __future__ import annotations

import logging
from datetime import date
from math import radians, sin, cos, asin, sqrt
from typing import Iterable, Optional, Protocol, Sequence, Union

from app.errors import DuplicateStopError, EmptyStopSetError, InvalidSequenceError
from app.schemas.route import RouteSequence, RouteStop, TripEstimate

logger = logging.getLogger(__name__)


def haversine_km(lon1, lat1, lon2, lat2) -> float:
    R = 6371.0
    dlon, dlat = radians(lon2 - lon1), radians(lat2 - lat1)
    a = sin(dlat/2)**2 + cos(radians(lat1))*cos(radians(lat2))*sin(dlon/2)**2
    return 2 * R * asin(sqrt(a))


def path_length_km(stops: Sequence[RouteStop]) -> Optional[float]:
    """Sum of leg distances; None if any stop has no coordinates."""
    points = [s.point for s in stops]
    if any(p is None for p in points):
        return None
    return sum(
        haversine_km(a[0], a[1], b[0], b[1]) for a, b in zip(points, points[1:])
    )


class RouteOptimizer(Protocol):
    def order(self, stops: Sequence[RouteStop]) -> list[RouteStop]: ...


class IdentityOptimizer:
    """Keeps the caller's order."""

    def order(self, stops: Sequence[RouteStop]) -> list[RouteStop]:
        return list(stops)


class NearestNeighborOptimizer:
    """
    Greedy nearest-neighbour tour starting at the first stop.
    Stops without coordinates keep their input order at the end of the tour.
    Ties go to the stop that came first in the input.
    """

    def order(self, stops: Sequence[RouteStop]) -> list[RouteStop]:
        located = [s for s in stops if s.point is not None]
        unlocated = [s for s in stops if s.point is None]
        if not located:
            return list(stops)

        tour = [located[0]]
        remaining = located[1:]
        while remaining:
            lon, lat = tour[-1].point
            nearest = min(
                range(len(remaining)),
                key=lambda i: (haversine_km(lon, lat, *remaining[i].point), i),
            )
            tour.append(remaining.pop(nearest))
        return tour + unlocated


OPTIMIZERS = {
    "identity": IdentityOptimizer,
    "nearest_neighbor": NearestNeighborOptimizer,
}


def get_optimizer(name: str) -> RouteOptimizer:
    try:
        return OPTIMIZERS[name]()
    except KeyError:
        raise ValueError(f"unknown route optimizer: {name!r}") from None


class TripEstimator(Protocol):
    def estimate(
        self,
        original: Sequence[RouteStop],
        ordered: Sequence[RouteStop],
    ) -> TripEstimate: ...


class HaversineTripEstimator:
    """
    Straight-line distance between consecutive stops. Start/end locations are
    free text and not geocoded, so they do not contribute.
    optimization_score = 100 * (1 - ordered/original distance), in [0, 100].
    """

    def __init__(self, avg_speed_kmh: float = 40.0, fuel_l_per_100km: float = 12.0):
        self.avg_speed_kmh = avg_speed_kmh
        self.fuel_l_per_100km = fuel_l_per_100km

    def estimate(self, original, ordered) -> TripEstimate:
        distance = path_length_km(ordered)
        if distance is None:
            return TripEstimate()
        baseline = path_length_km(original) or 0.0
        score = 0.0
        if baseline > 0:
            score = max(0.0, min(100.0, 100.0 * (1 - distance / baseline)))
        return TripEstimate(
            total_distance_km=round(distance, 2),
            estimated_travel_time_min=round(distance / self.avg_speed_kmh * 60),
            fuel_estimate_l=round(distance * self.fuel_l_per_100km / 100, 2),
            optimization_score=round(score, 1),
        )


def _as_stops(stops: Iterable[Union[RouteStop, int]]) -> list[RouteStop]:
    return [s if isinstance(s, RouteStop) else RouteStop(stop_id=s) for s in stops]


def sequence_route(
    crew_id: int,
    route_date: date,
    stops: Iterable[Union[RouteStop, int]],
    start_location: str,
    end_location: Optional[str] = None,
    optimizer: Optional[RouteOptimizer] = None,
    estimator: Optional[TripEstimator] = None,
) -> RouteSequence:
    """
    Order `stops` for one crew and date. The result is always `planned`;
    trip fields stay None unless an estimator is given.

    Raises EmptyStopSetError for no stops, DuplicateStopError for repeated
    ids and InvalidSequenceError when the optimizer drops, adds or repeats stops.
    """
    stop_list = _as_stops(stops)
    if not stop_list:
        raise EmptyStopSetError(f"route for crew {crew_id} on {route_date} has no stops")

    ids = [s.stop_id for s in stop_list]
    if len(set(ids)) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise DuplicateStopError("duplicate stop ids", details=",".join(map(str, dupes)))

    optimizer = optimizer or IdentityOptimizer()
    ordered = list(optimizer.order(stop_list))
    ordered_ids = [s.stop_id for s in ordered]
    if len(ordered_ids) != len(ids) or set(ordered_ids) != set(ids):
        raise InvalidSequenceError(
            f"{type(optimizer).__name__} did not return a permutation of its input",
            details=f"in={ids} out={ordered_ids}",
        )

    trip = estimator.estimate(stop_list, ordered) if estimator else TripEstimate()

    logger.debug(f"Sequenced {len(ordered_ids)} stops for crew {crew_id} on {route_date}")
    return RouteSequence(
        crew_id=crew_id,
        route_date=route_date,
        ordered_stop_ids=tuple(ordered_ids),
        start_location=start_location,
        end_location=end_location or start_location,
        total_distance=trip.total_distance_km,
        estimated_travel_time=trip.estimated_travel_time_min,
        fuel_estimate=trip.fuel_estimate_l,
        optimization_score=trip.optimization_score,
    )
