# backend/app/api/deps.py
from fastapi import Depends
from pathlib import Path
from sqlalchemy.orm import Session

from app.config import UPLOAD_DIR, ROUTE_OPTIMIZER
from app.db import get_db
from app.services.routing.sequencer import RouteOptimizer, get_optimizer
from app.services.storage import Storage


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def get_upload_dir() -> Path:
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    return UPLOAD_DIR


def get_route_optimizer() -> RouteOptimizer:
    return get_optimizer(ROUTE_OPTIMIZER)
