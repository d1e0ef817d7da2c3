# backend/app/services/storage.py
"""
Persistence for the photo and route endpoints.
The watermark and routing services never import this module.
"""
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.route import Route
from app.models.work_order import WorkOrder
from app.models.work_order_photo import WorkOrderPhoto


class Storage:
    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def get_work_order(self, work_order_id: int) -> Optional[WorkOrder]:
        return self.db.get(WorkOrder, work_order_id)

    def get_work_orders(self, ids: Iterable[int]) -> dict[int, WorkOrder]:
        ids = list(ids)
        if not ids:
            return {}
        rows = self.db.query(WorkOrder).filter(WorkOrder.id.in_(ids)).all()
        return {w.id: w for w in rows}

    def create_work_order_photo(self, record: dict) -> WorkOrderPhoto:
        obj = WorkOrderPhoto(**record)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def list_work_order_photos(self, work_order_id: int) -> list[WorkOrderPhoto]:
        return (
            self.db.query(WorkOrderPhoto)
            .filter(WorkOrderPhoto.work_order_id == work_order_id)
            .order_by(WorkOrderPhoto.id.asc())
            .all()
        )

    def create_route(self, record: dict) -> Route:
        obj = Route(**record)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def get_route(self, route_id: int) -> Optional[Route]:
        return self.db.get(Route, route_id)

    def list_routes(self, crew_id: Optional[int] = None, route_date: Optional[date] = None) -> list[Route]:
        q = self.db.query(Route)
        if crew_id is not None:
            q = q.filter(Route.crew_id == crew_id)
        if route_date is not None:
            q = q.filter(Route.route_date == route_date)
        return q.order_by(Route.route_date.desc(), Route.id.desc()).all()

    def update_route_status(self, route: Route, status: str) -> Route:
        route.status = status
        self.db.add(route)
        self.db.commit()
        self.db.refresh(route)
        return route
