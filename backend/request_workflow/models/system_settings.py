"""Persisted overrides for the scheduling policy (single row)."""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from request_workflow.database import Base


class SystemSettings(Base):
    __tablename__ = "system_settings"

    settings_id = Column(Integer, primary_key=True, default=1)
    values = Column(JSON, nullable=False, default=dict)
    updated_by = Column(String(36), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
