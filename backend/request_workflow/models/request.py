"""EventRequest ORM model: the review lifecycle record for one Event."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship
from request_workflow.database import Base
from request_workflow.domain.states import RequestStatus


class EventRequest(Base):
    __tablename__ = "event_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, unique=True)
    request_type = Column(String(50), nullable=False, default="eventRequest")
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending_review, index=True)

    # Actor snapshots: {id, role, authority, name} (+ auto_assigned for the reviewer)
    requester_id = Column(String(36), nullable=False, index=True)
    requester = Column(JSON, nullable=False)
    reviewer_id = Column(String(36), nullable=True, index=True)
    reviewer = Column(JSON, nullable=True)

    coordinator_id = Column(String(36), nullable=True, index=True)
    location_id = Column(String(36), nullable=True)
    organization_id = Column(String(36), nullable=True)
    category = Column(String(30), nullable=False)

    reschedule_proposal = Column(JSON, nullable=True)
    creator_confirmation = Column(JSON, nullable=True)
    final_resolution = Column(JSON, nullable=True)
    decision_summary = Column(Text, nullable=True)

    revision_number = Column(Integer, nullable=False, default=1)
    revision_supersedes = Column(JSON, nullable=False, default=list)

    expires_at = Column(DateTime, nullable=True, index=True)
    confirmation_due_at = Column(DateTime, nullable=True)
    confirmation_reminded_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    # Every UPDATE is guarded by "WHERE version = <loaded version>"
    __mapper_args__ = {"version_id_col": version}

    event = relationship("Event", lazy="joined")
    status_history = relationship(
        "RequestStatusEntry",
        back_populates="request",
        cascade="all",
        order_by="RequestStatusEntry.entry_id",
    )
    decision_history = relationship(
        "RequestDecisionEntry",
        back_populates="request",
        cascade="all",
        order_by="RequestDecisionEntry.entry_id",
    )
