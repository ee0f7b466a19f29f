"""User ORM model backing the user and coverage directories."""
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from request_workflow.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(100), nullable=False)
    role_label = Column(String(50), nullable=False, default="")  # display only, never branched on
    authority = Column(Integer, nullable=False, default=20)
    capabilities = Column(JSON, nullable=False, default=list)
    coverage_location_ids = Column(JSON, nullable=False, default=list)
    organization_id = Column(String(36), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
