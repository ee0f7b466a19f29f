"""Append-only audit trail for event requests."""
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from request_workflow.domain.clock import Clock
from request_workflow.domain.snapshots import ActorSnapshot, RescheduleProposal
from request_workflow.domain.states import Action, RequestStatus
from request_workflow.models.request import EventRequest
from request_workflow.models.request_history import RequestDecisionEntry, RequestStatusEntry

logger = logging.getLogger(__name__)

_DECISION_VERBS = {
    Action.accept: "accepted",
    Action.reject: "rejected",
    Action.reschedule: "proposed a reschedule for",
    Action.confirm: "confirmed",
    Action.decline: "declined",
    Action.cancel: "cancelled",
    Action.revise: "revised",
    Action.expire: "expired",
}


def describe_decision(
    actor: ActorSnapshot,
    action: Action,
    title: str,
    note: Optional[str] = None,
    proposal: Optional[RescheduleProposal] = None,
) -> str:
    """Human-readable one-liner for the latest decision on a request."""
    verb = _DECISION_VERBS.get(action, action.value)
    summary = f"{actor.name or 'Reviewer'} {verb} “{title or 'this event'}”."
    if proposal is not None:
        summary += (
            f" New schedule: {proposal.proposed_date:%a, %b %d, %Y}"
            f" {proposal.proposed_start_time:%H:%M}-{proposal.proposed_end_time:%H:%M}."
        )
    if note:
        summary += f" Note: {note}"
    return summary


class AuditTrail:
    """Writes status and decision entries onto a request's history."""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def record_status(
        self,
        request: EventRequest,
        status: RequestStatus,
        actor: ActorSnapshot,
        note: Optional[str] = None,
    ) -> RequestStatusEntry:
        entry = RequestStatusEntry(
            status=status,
            actor=actor.to_dict(),
            note=note,
            changed_at=self.clock.now(),
        )
        request.status_history.append(entry)
        return entry

    def record_decision(
        self,
        request: EventRequest,
        decision_type: str,
        actor: ActorSnapshot,
        result_status: RequestStatus,
        notes: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
        permission_used: Optional[str] = None,
    ) -> RequestDecisionEntry:
        entry = RequestDecisionEntry(
            decision_type=decision_type,
            actor=actor.to_dict(),
            actor_authority=actor.authority,
            requester_authority=int(request.requester.get("authority", 0)),
            permission_used=permission_used,
            notes=notes,
            result_status=result_status,
            payload=payload,
            decided_at=self.clock.now(),
        )
        request.decision_history.append(entry)
        logger.debug(
            "Recorded %s on request %s by %s (authority %d)",
            decision_type, request.request_id, actor.id, actor.authority,
        )
        return entry
