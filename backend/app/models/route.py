# backend/app/models/route.py
from datetime import datetime
from sqlalchemy import Integer, String, Column, Date, DateTime, Float, JSON
from .base import Base

class Route(Base):
    __tablename__ = "routes"
    id = Column(Integer, primary_key=True)
    route_name = Column(String(100), nullable=False)
    crew_id = Column(Integer, nullable=False)
    route_date = Column(Date, nullable=False)
    start_location = Column(String(255), nullable=True)
    end_location = Column(String(255), nullable=True)
    work_order_sequence = Column(JSON, nullable=False)  # [work_order_id, ...] in visiting order
    total_distance = Column(Float, nullable=True)  # km
    estimated_time = Column(Integer, nullable=True)  # minutes
    fuel_estimate = Column(Float, nullable=True)  # litres
    optimization_score = Column(Float, nullable=True)
    status = Column(String(50), nullable=False, default="planned")  # planned|active|completed|cancelled
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
