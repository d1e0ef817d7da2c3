# backend/app/schemas/photo.py
from pydantic import BaseModel, ConfigDict, model_validator
from pathlib import Path
from datetime import datetime
from typing import Optional

from .commons import CamelModel, PhotoCategory

TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M"  # es-MX style: 10/02/2025, 14:35


class PhotoLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_reference: str
    actor_name: str
    taken_at: datetime
    company: str

    def lines(self) -> list[str]:
        return [
            f"{self.company} - Job: {self.job_reference}",
            f"{self.actor_name} - {self.taken_at.strftime(TIMESTAMP_FORMAT)}",
        ]

    @property
    def text(self) -> str:
        return "\n".join(self.lines())


class PhotoAsset(BaseModel):
    """Result of watermarking one uploaded photo: three distinct files on disk."""
    model_config = ConfigDict(frozen=True)

    source_path: Path
    original_path: Path
    watermarked_path: Path
    label: PhotoLabel
    category: PhotoCategory
    width: int
    height: int

    @model_validator(mode="after")
    def _paths_distinct(self):
        paths = {self.source_path, self.original_path, self.watermarked_path}
        if len(paths) != 3:
            raise ValueError("source, original and watermarked paths must be distinct")
        return self


class PhotoOut(CamelModel):
    id: int
    work_order_id: int
    file_path: str
    original_file_path: Optional[str] = None
    file_name: str
    photo_type: str
    description: str = ""
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    has_watermark: bool
    watermark_text: Optional[str] = None
    taken_by: Optional[str] = None
    created_at: datetime


class PhotoUploadError(CamelModel):
    file_name: str
    error: str


class PhotoUploadOut(CamelModel):
    uploaded: int
    total: int
    photos: list[PhotoOut]
    errors: list[PhotoUploadError] = []
