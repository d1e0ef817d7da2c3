from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from app.api.routers import work_orders, routes
from app.config import LOG_LEVEL, UPLOAD_DIR
from app.db import init_db

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="PROSECU Field Ops API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}


# create the schema on first start
@app.on_event("startup")
def on_startup():
    init_db()

app.include_router(work_orders.router, prefix="/work-orders", tags=["work-orders"])
app.include_router(routes.router,      prefix="/routes",      tags=["routes"])

# serve watermarked and archived photos
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")
