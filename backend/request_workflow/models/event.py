"""Event ORM model. One Event per request, mutated only by the workflow engine."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from request_workflow.database import Base


class EventStatus(str, enum.Enum):
    pending = "Pending"
    completed = "Completed"
    rejected = "Rejected"
    cancelled = "Cancelled"


class EventCategory(str, enum.Enum):
    blood_drive = "BloodDrive"
    training = "Training"
    advocacy = "Advocacy"


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(SAEnum(EventCategory), nullable=False)
    location_id = Column(String(36), nullable=True, index=True)
    organization_id = Column(String(36), nullable=True)
    coordinator_id = Column(String(36), nullable=True, index=True)
    # Wall-clock times in the configured local timezone
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)
    target_donation = Column(Integer, nullable=True)
    staff = Column(JSON, nullable=False, default=list)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.pending)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
