"""Append-only status and decision history for event requests.

Rows are written once. ORM listeners reject any UPDATE, and a DELETE is only
accepted when the owning request is deleted in the same flush (an explicit
purge of a cancelled or rejected request).
"""
import logging
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, ForeignKey, Enum as SAEnum, event
from sqlalchemy.orm import Session, relationship
from request_workflow.database import Base
from request_workflow.domain.states import RequestStatus
from request_workflow.errors import AuditImmutabilityError

logger = logging.getLogger(__name__)


class RequestStatusEntry(Base):
    __tablename__ = "request_status_history"

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("event_requests.request_id"), nullable=False, index=True)
    status = Column(SAEnum(RequestStatus), nullable=False)
    actor = Column(JSON, nullable=False)
    note = Column(Text, nullable=True)
    changed_at = Column(DateTime, nullable=False)

    request = relationship("EventRequest", back_populates="status_history")


class RequestDecisionEntry(Base):
    __tablename__ = "request_decision_history"

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("event_requests.request_id"), nullable=False, index=True)
    decision_type = Column(String(30), nullable=False)
    actor = Column(JSON, nullable=False)
    actor_authority = Column(Integer, nullable=False)
    requester_authority = Column(Integer, nullable=False)
    permission_used = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    result_status = Column(SAEnum(RequestStatus), nullable=False)
    payload = Column(JSON, nullable=True)
    decided_at = Column(DateTime, nullable=False)

    request = relationship("EventRequest", back_populates="decision_history")


_AUDIT_MODELS = (RequestStatusEntry, RequestDecisionEntry)


def _reject_update(mapper, connection, target):
    logger.error("Blocked update of %s %s", type(target).__name__, target.entry_id)
    raise AuditImmutabilityError(
        "Request history entries cannot be modified",
        {"entity": type(target).__name__, "entry_id": target.entry_id},
    )


@event.listens_for(Session, "before_flush")
def _reject_orphan_delete(session, flush_context, instances):
    """History rows may only disappear together with their request."""
    deleted = set(session.deleted)
    for obj in deleted:
        if not isinstance(obj, _AUDIT_MODELS):
            continue
        with session.no_autoflush:
            owner = obj.request
        if owner is None or owner not in deleted:
            logger.error("Blocked delete of %s %s", type(obj).__name__, obj.entry_id)
            raise AuditImmutabilityError(
                "Request history entries cannot be deleted outside a request purge",
                {"entity": type(obj).__name__, "entry_id": obj.entry_id},
            )


for _model in _AUDIT_MODELS:
    event.listen(_model, "before_update", _reject_update)
