"""Request lifecycle transitions and their guards."""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from request_workflow.domain.states import Action, Outcome, RequestStatus, TERMINAL_STATUSES
from request_workflow.errors import InvalidTransitionError, UnauthorizedError, ValidationError

S = RequestStatus
A = Action

# (state, action) -> statuses entered, in order. The last one is the new status.
TRANSITIONS: dict[tuple[RequestStatus, Action], tuple[RequestStatus, ...]] = {
    (S.pending_review, A.accept): (S.review_accepted,),
    (S.pending_review, A.reject): (S.review_rejected,),
    (S.pending_review, A.reschedule): (S.review_rescheduled,),
    (S.pending_review, A.cancel): (S.cancelled,),
    (S.pending_review, A.expire): (S.expired,),

    (S.review_accepted, A.confirm): (S.creator_confirmed, S.completed),
    (S.review_accepted, A.decline): (S.creator_declined, S.completed),
    (S.review_accepted, A.revise): (S.pending_review,),

    (S.review_rejected, A.decline): (S.creator_declined, S.completed),
    (S.review_rejected, A.revise): (S.pending_review,),

    (S.review_rescheduled, A.confirm): (S.creator_confirmed, S.completed),
    (S.review_rescheduled, A.accept): (S.review_accepted,),
    (S.review_rescheduled, A.reject): (S.review_rejected,),
    (S.review_rescheduled, A.reschedule): (S.review_rescheduled,),
    (S.review_rescheduled, A.cancel): (S.cancelled,),
    (S.review_rescheduled, A.revise): (S.pending_review,),

    (S.completed, A.cancel): (S.cancelled,),
}

# Declining a reschedule proposal depends on the configured policy
_RESCHEDULE_DECLINE = {
    "reject": (S.creator_declined, S.rejected),
    "rereview": (S.creator_declined, S.pending_review),
}

# Actions that touch the request without moving it
STATIONARY_ACTIONS = frozenset({A.edit, A.manage_staff})

NOTE_REQUIRED = frozenset({A.reject, A.reschedule})

PURGEABLE_STATUSES = frozenset({S.cancelled, S.rejected})

# Responses that a reschedule proposer may not give to their own proposal
_PROPOSAL_RESPONSES = frozenset({A.accept, A.reject, A.confirm, A.decline})


@dataclass(frozen=True)
class Transition:
    action: Action
    from_status: RequestStatus
    path: tuple[RequestStatus, ...]
    outcome: Optional[Outcome] = None

    @property
    def to_status(self) -> RequestStatus:
        return self.path[-1] if self.path else self.from_status

    @property
    def is_terminal(self) -> bool:
        return self.to_status in TERMINAL_STATUSES


def _outcome_for(action: Action, to_status: RequestStatus) -> Optional[Outcome]:
    if to_status == S.completed:
        return Outcome.approved if action == A.confirm else Outcome.rejected
    if to_status == S.rejected:
        return Outcome.rejected
    if to_status == S.cancelled:
        return Outcome.cancelled
    if to_status == S.expired:
        return Outcome.expired
    return None


def parse_time(value: Any, field: str) -> time:
    if isinstance(value, time):
        return value
    if not value:
        raise ValidationError(f"{field} is required for a reschedule", {"field": field})
    try:
        return datetime.strptime(str(value), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field} must use HH:MM format", {"field": field, "value": value})


def parse_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field} is required for a reschedule", {"field": field})
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field} is not a valid date", {"field": field, "value": value})


def validate_reschedule(payload: dict[str, Any], today: date) -> tuple[date, time, time]:
    """Check a reschedule payload and return ``(date, start, end)``."""
    proposed_date = parse_date(payload.get("proposed_date"), "proposed_date")
    start = parse_time(payload.get("proposed_start_time"), "proposed_start_time")
    end = parse_time(payload.get("proposed_end_time"), "proposed_end_time")
    if proposed_date < today:
        raise ValidationError(
            "Proposed date cannot be in the past",
            {"proposed_date": proposed_date.isoformat(), "today": today.isoformat()},
        )
    if start >= end:
        raise ValidationError("Proposed start time must be before the end time")
    return proposed_date, start, end


class RequestStateMachine:
    """Transition table plus guard checks for a single request."""

    def __init__(self, reschedule_decline_policy: str = "reject"):
        if reschedule_decline_policy not in _RESCHEDULE_DECLINE:
            raise ValueError(f"Unknown reschedule decline policy: {reschedule_decline_policy}")
        self.reschedule_decline_policy = reschedule_decline_policy

    def can_transition(self, state: RequestStatus, action: Action) -> bool:
        if action == A.delete:
            return state in PURGEABLE_STATUSES
        if action in STATIONARY_ACTIONS:
            return True
        if state == S.review_rescheduled and action == A.decline:
            return True
        return (state, action) in TRANSITIONS

    def transition(self, state: RequestStatus, action: Action) -> Transition:
        """Resolve the transition for ``action`` or raise InvalidTransitionError."""
        if action in STATIONARY_ACTIONS:
            return Transition(action=action, from_status=state, path=())
        if state == S.review_rescheduled and action == A.decline:
            path = _RESCHEDULE_DECLINE[self.reschedule_decline_policy]
        else:
            path = TRANSITIONS.get((state, action))
        if path is None:
            raise InvalidTransitionError(state.value, action.value)
        return Transition(
            action=action,
            from_status=state,
            path=path,
            outcome=_outcome_for(action, path[-1]),
        )

    def check_guards(
        self,
        state: RequestStatus,
        action: Action,
        payload: dict[str, Any],
        *,
        is_reschedule_proposer: bool = False,
        is_system: bool = False,
    ) -> None:
        """Raise if the guard conditions for ``action`` are not met.

        Reschedule proposal contents are checked separately by
        ``validate_reschedule`` because that needs the local date.
        """
        if action == A.expire and not is_system:
            raise UnauthorizedError("Only the expiry sweep may expire a request")
        if action in NOTE_REQUIRED and not (payload.get("note") or "").strip():
            raise ValidationError(f"A note is required to {action.value} a request", {"field": "note"})
        if (
            state == S.review_rescheduled
            and action in _PROPOSAL_RESPONSES
            and is_reschedule_proposer
        ):
            raise UnauthorizedError("The proposer of a reschedule cannot respond to their own proposal")

    def check_purge(self, state: RequestStatus) -> None:
        if state not in PURGEABLE_STATUSES:
            raise InvalidTransitionError(state.value, A.delete.value)
