"""
Pytest fixtures: isolated SQLite session, dependency-overridden API client
and Pillow-generated photos.
"""
import io
import os
import tempfile

# keep app.config away from the real data directory
_tmp = tempfile.mkdtemp(prefix="prosecu-test-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_tmp}/test.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_tmp, "uploads"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_upload_dir
from app.db import get_db, init_db
from app.main import app
from app.models.work_order import WorkOrder


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def upload_dir(tmp_path):
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture
def client(db_session, upload_dir):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_upload_dir] = lambda: upload_dir
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_image(tmp_path):
    """Write a solid-colour image to tmp_path and return its path."""
    def _make(name="site.jpg", size=(800, 600), color=(255, 255, 255), **save_kwargs):
        path = tmp_path / name
        Image.new("RGB", size, color=color).save(path, **save_kwargs)
        return path
    return _make


@pytest.fixture
def jpeg_bytes():
    def _bytes(size=(640, 480), color=(200, 200, 200)):
        buf = io.BytesIO()
        Image.new("RGB", size, color=color).save(buf, format="JPEG")
        return buf.getvalue()
    return _bytes


@pytest.fixture
def make_work_order(db_session):
    counter = {"n": 0}

    def _make(status="pending", latitude=None, longitude=None, location=None):
        counter["n"] += 1
        wo = WorkOrder(
            order_number=f"WO-2025-{counter['n']:03d}",
            title=f"Mantenimiento transformador {counter['n']}",
            status=status,
            location=location,
            latitude=latitude,
            longitude=longitude,
        )
        db_session.add(wo)
        db_session.commit()
        db_session.refresh(wo)
        return wo
    return _make
