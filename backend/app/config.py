# backend/app/config.py
from pathlib import Path
import os

# Use /app/data inside the container, otherwise <repo root>/data
_container_data = Path("/app/data")
if _container_data.exists():
    DATA_DIR = _container_data
else:
    # backend/app/config.py → ../.. = <repo root>
    DATA_DIR = Path(__file__).resolve().parents[2] / "data"

DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DATA_DIR / 'app.db'}"
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR") or (DATA_DIR / "uploads"))

COMPANY_NAME = os.getenv("COMPANY_NAME", "GC Electric")
WATERMARK_TZ = os.getenv("WATERMARK_TZ", "America/Mexico_City")

# identity | nearest_neighbor
ROUTE_OPTIMIZER = os.getenv("ROUTE_OPTIMIZER", "identity")
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
