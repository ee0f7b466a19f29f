"""Authority-gated action computation.

``compute_allowed_actions`` is a pure function of the request state and the
actor's standing relative to the request. It never looks at role names, only
at numeric authority and capabilities, and it fails closed: anything not
explicitly granted leaves the actor with ``view`` only.
"""
from dataclasses import dataclass

from request_workflow.domain.states import (
    Action,
    RequestStatus,
    CAP_REVIEW,
    CAP_RESCHEDULE,
    TERMINAL_STATUSES,
    is_bottom_tier,
)

_REVIEWABLE = frozenset({RequestStatus.pending_review, RequestStatus.review_rescheduled})
_CONFIRMABLE = frozenset({RequestStatus.review_accepted, RequestStatus.review_rescheduled})
_DECLINABLE = frozenset({
    RequestStatus.review_accepted,
    RequestStatus.review_rejected,
    RequestStatus.review_rescheduled,
})
_CANCELLABLE = frozenset({
    RequestStatus.pending_review,
    RequestStatus.review_rescheduled,
    RequestStatus.completed,
})
_DELETABLE = frozenset({RequestStatus.cancelled, RequestStatus.rejected})

_REQUIRED_CAPABILITY = {
    Action.accept: CAP_REVIEW,
    Action.reject: CAP_REVIEW,
    Action.reschedule: CAP_RESCHEDULE,
}


@dataclass(frozen=True)
class ActionContext:
    state: RequestStatus
    capabilities: frozenset[str]
    actor_authority: int
    requester_authority: int
    is_requester: bool
    is_reviewer: bool
    is_top_authority: bool
    is_reschedule_proposer: bool = False


def _reviewer_actions(ctx: ActionContext) -> set[Action]:
    if ctx.state not in _REVIEWABLE or ctx.is_requester:
        return set()
    if not (ctx.is_reviewer or ctx.is_top_authority):
        return set()
    if ctx.state == RequestStatus.review_rescheduled and ctx.is_reschedule_proposer:
        return set()
    if ctx.actor_authority < ctx.requester_authority and not ctx.is_top_authority:
        return set()
    return {
        action for action, capability in _REQUIRED_CAPABILITY.items()
        if capability in ctx.capabilities
    }


def _requester_actions(ctx: ActionContext) -> set[Action]:
    if not ctx.is_requester:
        return set()
    allowed = set()
    own_proposal = ctx.state == RequestStatus.review_rescheduled and ctx.is_reschedule_proposer
    if ctx.state in _CONFIRMABLE and not own_proposal:
        allowed.add(Action.confirm)
    if ctx.state in _DECLINABLE and not own_proposal:
        allowed.add(Action.decline)
    if ctx.state == RequestStatus.review_rescheduled and not own_proposal:
        allowed.add(Action.reschedule)
    if ctx.state not in TERMINAL_STATUSES and ctx.state != RequestStatus.pending_review:
        allowed.add(Action.revise)
    return allowed


def compute_allowed_actions(ctx: ActionContext) -> frozenset[Action]:
    """Return the set of actions ``ctx`` permits. Always contains ``view``."""
    allowed = {Action.view}

    # No self-review: a requester waiting on review can only look
    if ctx.is_requester and ctx.state == RequestStatus.pending_review:
        return frozenset(allowed)

    allowed |= _reviewer_actions(ctx)
    allowed |= _requester_actions(ctx)

    if (ctx.is_top_authority or ctx.is_reviewer) and ctx.state in _CANCELLABLE:
        if not (ctx.state == RequestStatus.completed and is_bottom_tier(ctx.actor_authority)):
            allowed.add(Action.cancel)

    if ctx.is_top_authority and ctx.state in _DELETABLE:
        allowed.add(Action.delete)

    if ctx.is_requester or ctx.is_top_authority:
        allowed.add(Action.edit)
        allowed.add(Action.manage_staff)

    return frozenset(allowed)
