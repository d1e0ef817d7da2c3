# backend/app/models/work_order_photo.py
from datetime import datetime
from sqlalchemy import Integer, Column, ForeignKey, String, DateTime, Float, Boolean, Text
from .base import Base

class WorkOrderPhoto(Base):
    __tablename__ = "work_order_photos"
    id = Column(Integer, primary_key=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False)
    file_path = Column(String(255), nullable=False)  # watermarked copy
    original_file_path = Column(String(255), nullable=True)
    file_name = Column(String(255), nullable=False)
    photo_type = Column(String(20), default="general")
    description = Column(String(255), default="")
    gps_latitude = Column(Float, nullable=True)
    gps_longitude = Column(Float, nullable=True)
    has_watermark = Column(Boolean, default=False)
    watermark_text = Column(Text, nullable=True)
    taken_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
