"""Periodic maintenance: expire unreviewed requests, remind overdue responders.

Each request is handled in its own transaction. A failure on one record is
logged and the sweep moves on; running a sweep twice is harmless.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from request_workflow.domain.states import AWAITING_RESPONSE_STATUSES, RequestStatus
from request_workflow.models.request import EventRequest
from request_workflow.services.notifications import NotificationIntent
from request_workflow.services.workflow_engine import WorkflowEngine

logger = logging.getLogger(__name__)


def expire_stale_requests(engine: WorkflowEngine, now: Optional[datetime] = None) -> list[str]:
    """Move every overdue PENDING_REVIEW request to EXPIRED. Returns their ids."""
    now = now or engine.clock.now()
    due = [
        row.request_id for row in engine.db.query(EventRequest.request_id).filter(
            EventRequest.status == RequestStatus.pending_review,
            EventRequest.expires_at <= now,
        ).order_by(EventRequest.expires_at).all()
    ]
    expired = []
    for request_id in due:
        try:
            if engine.expire_request(request_id, now):
                expired.append(request_id)
        except Exception:
            engine.db.rollback()
            logger.exception("Could not expire request %s", request_id)
    if due:
        logger.info("Expiry sweep: %d due, %d expired", len(due), len(expired))
    return expired


def remind_overdue_confirmations(engine: WorkflowEngine, now: Optional[datetime] = None) -> list[NotificationIntent]:
    """Send one reminder per request whose response window has lapsed."""
    now = now or engine.clock.now()
    overdue = [
        row.request_id for row in engine.db.query(EventRequest.request_id).filter(
            EventRequest.status.in_(list(AWAITING_RESPONSE_STATUSES)),
            EventRequest.confirmation_due_at <= now,
            EventRequest.confirmation_reminded_at.is_(None),
        ).order_by(EventRequest.confirmation_due_at).all()
    ]
    reminders = []
    for request_id in overdue:
        try:
            intent = engine.remind_confirmation(request_id, now)
        except Exception:
            engine.db.rollback()
            logger.exception("Could not send confirmation reminder for request %s", request_id)
            continue
        if intent is not None:
            reminders.append(intent)
    if overdue:
        logger.info("Confirmation sweep: %d overdue, %d reminded", len(overdue), len(reminders))
    return reminders


def run_sweeps(session_factory: Callable[[], Session]) -> dict[str, int]:
    db = session_factory()
    try:
        engine = WorkflowEngine.for_session(db)
        expired = expire_stale_requests(engine)
        reminders = remind_overdue_confirmations(engine)
        return {"expired": len(expired), "reminded": len(reminders)}
    finally:
        db.close()


async def sweep_forever(session_factory: Callable[[], Session], interval_seconds: int) -> None:
    """Background loop started with the application."""
    logger.info("Starting request sweeps every %ds", interval_seconds)
    while True:
        try:
            await asyncio.to_thread(run_sweeps, session_factory)
        except Exception:
            logger.exception("Request sweep failed")
        await asyncio.sleep(interval_seconds)
