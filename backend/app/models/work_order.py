# backend/app/models/work_order.py
from sqlalchemy import Integer, String, Column, DateTime, Float
from .base import Base

class WorkOrder(Base):
    __tablename__ = "work_orders"
    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    priority = Column(String(50), default="medium")
    status = Column(String(50), default="pending")  # pending|in_progress|completed|cancelled
    location = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # crews are managed elsewhere in PROSECU; plain id here
    assigned_crew_id = Column(Integer, nullable=True)
    scheduled_date = Column(DateTime, nullable=True)
