# backend/app/api/routers/routes.py
from fastapi import APIRouter, Depends, HTTPException
from datetime import date as Date
import logging

from app.api.deps import get_route_optimizer, get_storage
from app.errors import InvalidStatusTransitionError, RouteSequencingError
from app.models.route import Route
from app.schemas.route import RouteOptimizeIn, RouteOut, RouteStatusUpdate, RouteStop
from app.services.routing.lifecycle import advance_status
from app.services.routing.sequencer import HaversineTripEstimator, RouteOptimizer, sequence_route
from app.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _route_out(r: Route) -> RouteOut:
    return RouteOut(
        id=r.id,
        route_name=r.route_name,
        crew_id=r.crew_id,
        route_date=r.route_date,
        start_location=r.start_location,
        end_location=r.end_location,
        work_order_sequence=list(r.work_order_sequence or []),
        total_distance=r.total_distance,
        estimated_time=r.estimated_time,
        fuel_estimate=r.fuel_estimate,
        optimization_score=r.optimization_score,
        status=r.status,
        notes=r.notes,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


@router.post("/optimize", status_code=201)
def optimize_route(
    payload: RouteOptimizeIn,
    storage: Storage = Depends(get_storage),
    optimizer: RouteOptimizer = Depends(get_route_optimizer),
) -> RouteOut:
    # 1) only pending work orders can be routed
    orders = storage.get_work_orders(payload.work_order_ids)
    missing = [i for i in payload.work_order_ids if i not in orders]
    if missing:
        raise HTTPException(status_code=404, detail=f"work orders not found: {missing}")
    not_pending = [i for i in payload.work_order_ids if orders[i].status != "pending"]
    if not_pending:
        raise HTTPException(status_code=400, detail=f"work orders not pending: {not_pending}")

    # 2) sequence
    stops = [
        RouteStop(
            stop_id=i,
            location=orders[i].location,
            latitude=orders[i].latitude,
            longitude=orders[i].longitude,
        )
        for i in payload.work_order_ids
    ]
    try:
        seq = sequence_route(
            payload.crew_id,
            payload.route_date,
            stops,
            payload.start_location,
            payload.end_location,
            optimizer=optimizer,
            estimator=HaversineTripEstimator(),
        )
    except RouteSequencingError as e:
        raise HTTPException(status_code=400, detail=e.message)

    # 3) persist
    route = storage.create_route({
        "route_name": payload.route_name or f"Ruta cuadrilla {seq.crew_id} - {seq.route_date.isoformat()}",
        "crew_id": seq.crew_id,
        "route_date": seq.route_date,
        "start_location": seq.start_location,
        "end_location": seq.end_location,
        "work_order_sequence": list(seq.ordered_stop_ids),
        "total_distance": seq.total_distance,
        "estimated_time": seq.estimated_travel_time,
        "fuel_estimate": seq.fuel_estimate,
        "optimization_score": seq.optimization_score,
        "status": seq.status,
    })
    logger.info(f"Route {route.id} planned for crew {route.crew_id} on {route.route_date}: {route.work_order_sequence}")
    return _route_out(route)


@router.get("")
@router.get("/")
def list_routes(
    crew_id: int | None = None,
    route_date: Date | None = None,
    storage: Storage = Depends(get_storage),
) -> list[RouteOut]:
    return [_route_out(r) for r in storage.list_routes(crew_id=crew_id, route_date=route_date)]


@router.get("/{route_id}")
def get_route(route_id: int, storage: Storage = Depends(get_storage)) -> RouteOut:
    r = storage.get_route(route_id)
    if not r:
        raise HTTPException(status_code=404, detail="route not found")
    return _route_out(r)


@router.patch("/{route_id}/status")
def update_route_status(
    route_id: int,
    payload: RouteStatusUpdate,
    storage: Storage = Depends(get_storage),
) -> RouteOut:
    r = storage.get_route(route_id)
    if not r:
        raise HTTPException(status_code=404, detail="route not found")
    try:
        status = advance_status(r.status, payload.status)
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return _route_out(storage.update_route_status(r, status))
