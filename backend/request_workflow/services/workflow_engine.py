"""Workflow engine: the single entry point for every request mutation.

Responsibilities:
- Creation: scheduling validation, reviewer assignment, initial audit entry
- Action gating: authority/capability gate, transition table legality, guards
- Applying transitions to the request and its Event
- Append-only audit trail for every status change and decision
- Optimistic locking via the request's version column
- Notification intents, dispatched after commit on a best-effort basis
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Union

import pytz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from request_workflow.config import Settings, settings
from request_workflow.domain.clock import Clock, SystemClock
from request_workflow.domain.permissions import ActionContext, compute_allowed_actions
from request_workflow.domain.snapshots import SYSTEM_SNAPSHOT, ActorSnapshot, RescheduleProposal
from request_workflow.domain.state_machine import RequestStateMachine, Transition, validate_reschedule
from request_workflow.domain.states import (
    CAP_CREATE,
    CAP_RESCHEDULE,
    CAP_REVIEW,
    AWAITING_RESPONSE_STATUSES,
    Action,
    Outcome,
    RequestStatus,
    REVIEWER_ACTIONS,
    is_bottom_tier,
    is_top_authority,
)
from request_workflow.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from request_workflow.models.event import Event, EventCategory, EventStatus
from request_workflow.models.request import EventRequest
from request_workflow.services.audit_trail import AuditTrail, describe_decision
from request_workflow.services.directory import (
    CapabilityContext,
    CoverageDirectory,
    SqlCoverageDirectory,
    SqlUserDirectory,
    UserDirectory,
)
from request_workflow.services.notifications import (
    LoggingNotifier,
    NotificationIntent,
    Notifier,
    dispatch_safely,
)
from request_workflow.services.reviewer_assignment import ReviewerAssignment
from request_workflow.services.scheduling_validator import (
    ScheduleCandidate,
    SchedulingValidator,
    ValidationResult,
)
from request_workflow.services.settings_service import SchedulingPolicy, get_policy

logger = logging.getLogger(__name__)

EXPIRED_REASON = "Reviewer did not respond in time"

# Event fields a requester (or top authority) may change through edit/revise
EDITABLE_EVENT_FIELDS = ("title", "description", "start_date", "end_date", "location_id", "target_donation")

_CAPABILITY_FOR = {
    Action.accept: CAP_REVIEW,
    Action.reject: CAP_REVIEW,
}


@dataclass
class ActionResult:
    request: EventRequest
    event: Event
    notifications: list[NotificationIntent] = field(default_factory=list)
    validation: Optional[ValidationResult] = None


def _clean_note(payload: dict[str, Any]) -> Optional[str]:
    note = (payload.get("note") or "").strip()
    return note or None


def _coerce_action(action: Union[str, Action]) -> Action:
    try:
        return Action(action)
    except ValueError:
        raise ValidationError(f"Unknown action '{action}'", {"action": str(action)})


class WorkflowEngine:
    """Request lifecycle engine bound to one database session.

    Usage:
        engine = WorkflowEngine.for_session(db)
        result = engine.process_action(actor_id, request_id, "accept", {"note": "ok"})
    """

    def __init__(
        self,
        db: Session,
        users: UserDirectory,
        coverage: CoverageDirectory,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
        policy: Optional[SchedulingPolicy] = None,
        config: Settings = settings,
    ):
        self.db = db
        self.users = users
        self.coverage = coverage
        self.clock = clock or SystemClock()
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.config = config
        self._policy = policy
        self.state_machine = RequestStateMachine(config.RESCHEDULE_DECLINE_POLICY)
        self.assigner = ReviewerAssignment(users, coverage)
        self.audit = AuditTrail(db, self.clock)

    @classmethod
    def for_session(cls, db: Session, **kwargs) -> "WorkflowEngine":
        """Engine wired to the SQL-backed directories."""
        return cls(db, SqlUserDirectory(db), SqlCoverageDirectory(db), **kwargs)

    @property
    def policy(self) -> SchedulingPolicy:
        if self._policy is None:
            self._policy = get_policy(self.db)
        return self._policy

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _local_naive(self, value: Any, field_name: str) -> datetime:
        """Parse a datetime and express it as local wall-clock time."""
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                raise ValidationError(f"{field_name} is not a valid datetime", {"field": field_name})
        if not isinstance(value, datetime):
            raise ValidationError(f"{field_name} is not a valid datetime", {"field": field_name})
        if value.tzinfo is not None:
            value = value.astimezone(pytz.timezone(self.config.TIMEZONE)).replace(tzinfo=None)
        return value

    def _actor(self, actor_id: str) -> ActorSnapshot:
        snapshot = self.users.snapshot(actor_id)
        if not self.users.is_active(actor_id):
            raise UnauthorizedError(f"User {actor_id} is inactive")
        return snapshot

    def _load(self, request_id: str) -> EventRequest:
        request = self.db.query(EventRequest).filter(EventRequest.request_id == request_id).first()
        if not request:
            raise NotFoundError("Request", request_id)
        if request.event is None:
            raise NotFoundError("Event", request.event_id)
        return request

    def _proposer_id(self, request: EventRequest) -> Optional[str]:
        proposal = request.reschedule_proposal
        if not proposal:
            return None
        return proposal.get("proposed_by", {}).get("id")

    def _context(self, request: EventRequest, actor: ActorSnapshot) -> ActionContext:
        scope = CapabilityContext(location_id=request.location_id, organization_id=request.organization_id)
        return ActionContext(
            state=request.status,
            capabilities=frozenset(self.users.get_capabilities(actor.id, scope)),
            actor_authority=actor.authority,
            requester_authority=int(request.requester.get("authority", 0)),
            is_requester=actor.id == request.requester_id,
            is_reviewer=actor.id == request.reviewer_id,
            is_top_authority=is_top_authority(actor.authority),
            is_reschedule_proposer=actor.id == self._proposer_id(request),
        )

    def _intents(
        self,
        request: EventRequest,
        event: Event,
        decision_type: str,
        exclude_id: Optional[str],
        note: Optional[str] = None,
    ) -> list[NotificationIntent]:
        """One intent per party on the request, except whoever acted."""
        proposed_date = None
        if request.reschedule_proposal:
            proposed_date = request.reschedule_proposal.get("proposed_date")
        parties = [("requester", request.requester_id), ("reviewer", request.reviewer_id)]
        intents = []
        for role, user_id in parties:
            if not user_id or user_id == exclude_id:
                continue
            intents.append(NotificationIntent(
                recipient_role=role,
                recipient_id=user_id,
                request_id=request.request_id,
                event_id=event.event_id,
                decision_type=decision_type,
                note=note,
                proposed_date=proposed_date,
            ))
        return intents

    def _commit(self, request_id: str) -> None:
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning("Concurrent modification of request %s", request_id)
            raise ConflictError(
                "The request was modified concurrently. Reload and retry.",
                details={"request_id": request_id},
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to persist changes to request %s", request_id)
            raise

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _validator(self) -> SchedulingValidator:
        return SchedulingValidator(self.db, self.policy, self.clock, self.config.TIMEZONE)

    def validate_schedule(
        self,
        actor_id: str,
        payload: dict[str, Any],
        exclude_request_id: Optional[str] = None,
    ) -> ValidationResult:
        """Dry-run the scheduling checks for a prospective request."""
        actor = self._actor(actor_id)
        if not payload.get("start_date"):
            raise ValidationError("start_date is required", {"field": "start_date"})
        start = self._local_naive(payload["start_date"], "start_date")
        end = self._local_naive(payload["end_date"], "end_date") if payload.get("end_date") else None
        candidate = ScheduleCandidate(
            start_date=start,
            end_date=end,
            requester_id=actor.id,
            requester_authority=actor.authority,
            category=str(payload.get("category") or ""),
            location_id=payload.get("location_id"),
            coordinator_id=payload.get("coordinator_id") or (None if is_bottom_tier(actor.authority) else actor.id),
            target_donation=payload.get("target_donation"),
            exclude_request_id=exclude_request_id,
        )
        return self._validator().validate(candidate)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_request(self, requester_id: str, payload: dict[str, Any]) -> ActionResult:
        """Validate, assign a reviewer and persist a new PENDING_REVIEW request."""
        requester = self._actor(requester_id)
        location_id = payload.get("location_id")
        organization_id = payload.get("organization_id")
        scope = CapabilityContext(location_id=location_id, organization_id=organization_id)
        if CAP_CREATE not in self.users.get_capabilities(requester_id, scope):
            raise UnauthorizedError(f"User {requester_id} may not submit event requests")

        title = (payload.get("title") or "").strip()
        if not title:
            raise ValidationError("title is required", {"field": "title"})
        try:
            category = EventCategory(payload.get("category"))
        except ValueError:
            raise ValidationError(
                f"Unknown category '{payload.get('category')}'",
                {"field": "category", "allowed": [c.value for c in EventCategory]},
            )
        if not payload.get("start_date"):
            raise ValidationError("start_date is required", {"field": "start_date"})
        start = self._local_naive(payload["start_date"], "start_date")
        end = self._local_naive(payload["end_date"], "end_date") if payload.get("end_date") else None

        hint_id = payload.get("coordinator_id")
        booked_coordinator = hint_id or (None if is_bottom_tier(requester.authority) else requester.id)

        validation = self._validator().validate(ScheduleCandidate(
            start_date=start,
            end_date=end,
            requester_id=requester.id,
            requester_authority=requester.authority,
            category=category.value,
            location_id=location_id,
            coordinator_id=booked_coordinator,
            target_donation=payload.get("target_donation"),
        ))
        if not validation.is_valid:
            raise ConflictError(
                "Scheduling conflict",
                errors=validation.errors,
                warnings=validation.warnings,
                details={"checks": validation.to_dict()["checks"]},
            )
        end = validation.normalized_end_date or start

        assignment = self.assigner.assign(
            requester_id=requester.id,
            hint_id=hint_id,
            location_id=location_id,
            organization_id=organization_id,
            request_type=payload.get("request_type"),
        )

        now = self.clock.now()
        event = Event(
            event_id=str(uuid.uuid4()),
            title=title,
            description=payload.get("description"),
            category=category,
            location_id=location_id,
            organization_id=organization_id,
            coordinator_id=booked_coordinator or assignment.reviewer.id,
            start_date=start,
            end_date=end,
            target_donation=payload.get("target_donation"),
            staff=[],
            status=EventStatus.pending,
        )
        request = EventRequest(
            request_id=str(uuid.uuid4()),
            event_id=event.event_id,
            request_type=payload.get("request_type") or "eventRequest",
            status=RequestStatus.pending_review,
            requester_id=requester.id,
            requester=requester.to_dict(),
            reviewer_id=assignment.reviewer.id,
            reviewer=assignment.reviewer_record(),
            coordinator_id=event.coordinator_id,
            location_id=location_id,
            organization_id=organization_id,
            category=category.value,
            revision_number=1,
            revision_supersedes=[],
            expires_at=now + timedelta(hours=self.config.REVIEW_EXPIRY_HOURS),
            created_at=now,
            updated_at=now,
        )
        request.event = event
        self.db.add(event)
        self.db.add(request)
        self.audit.record_status(request, RequestStatus.pending_review, requester, note="Request submitted")

        self._commit(request.request_id)
        logger.info(
            "Created request %s for event '%s' by %s, reviewer %s (%s)",
            request.request_id, title, requester.id, assignment.reviewer.id, assignment.strategy,
        )

        intents = self._intents(request, event, "submitted", exclude_id=requester.id)
        dispatch_safely(self.notifier, intents)
        return ActionResult(request=request, event=event, notifications=intents, validation=validation)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def compute_allowed_actions(self, actor_id: str, request_id: str) -> frozenset[Action]:
        request = self._load(request_id)
        actor = self.users.snapshot(actor_id)
        if not self.users.is_active(actor_id):
            return frozenset({Action.view})
        return compute_allowed_actions(self._context(request, actor))

    def process_action(
        self,
        actor_id: str,
        request_id: str,
        action: Union[str, Action],
        payload: Optional[dict[str, Any]] = None,
        expected_version: Optional[int] = None,
    ) -> ActionResult:
        """Gate, apply and persist one action on a request.

        Checks run in order: the authority gate, transition table legality,
        then guard conditions. Nothing is written unless all of them pass.
        """
        action = _coerce_action(action)
        payload = dict(payload or {})
        if action == Action.view:
            raise ValidationError("view does not change a request")

        request = self._load(request_id)
        event = request.event
        if expected_version is not None and request.version != expected_version:
            raise ConflictError(
                f"Version mismatch: expected {expected_version}, found {request.version}. Reload and retry.",
                details={"request_id": request_id, "version": request.version},
            )

        actor = self._actor(actor_id)
        state = request.status
        ctx = self._context(request, actor)
        allowed = compute_allowed_actions(ctx)
        if action not in allowed:
            raise UnauthorizedError(
                f"User {actor_id} may not {action.value} this request",
                {"allowed_actions": sorted(a.value for a in allowed)},
            )
        if not self.state_machine.can_transition(state, action):
            self.state_machine.transition(state, action)  # raises InvalidTransitionError

        if action == Action.delete:
            self.state_machine.check_purge(state)
            return self._purge(request, event, actor)

        self.state_machine.check_guards(
            state, action, payload, is_reschedule_proposer=ctx.is_reschedule_proposer,
        )
        transition = self.state_machine.transition(state, action)
        permission = self._permission_used(action, ctx)

        try:
            validation = self._apply(request, event, actor, transition, payload, permission)
        except Exception:
            self.db.rollback()
            raise
        self._commit(request_id)
        logger.info(
            "Request %s: %s by %s (%s -> %s)",
            request_id, action.value, actor.id, state.value, request.status.value,
        )

        intents = self._intents(request, event, action.value, exclude_id=actor.id, note=_clean_note(payload))
        dispatch_safely(self.notifier, intents)
        return ActionResult(request=request, event=event, notifications=intents, validation=validation)

    def cancel_request(self, actor_id: str, request_id: str, note: Optional[str] = None) -> ActionResult:
        return self.process_action(actor_id, request_id, Action.cancel, {"note": note})

    def delete_request(self, actor_id: str, request_id: str) -> ActionResult:
        return self.process_action(actor_id, request_id, Action.delete)

    def _permission_used(self, action: Action, ctx: ActionContext) -> str:
        if action in _CAPABILITY_FOR:
            return _CAPABILITY_FOR[action]
        if action == Action.reschedule and not ctx.is_requester:
            return CAP_RESCHEDULE
        if ctx.is_requester:
            return "requester"
        if ctx.is_top_authority:
            return "top-authority"
        return "reviewer"

    # ------------------------------------------------------------------
    # Applying transitions
    # ------------------------------------------------------------------

    def _apply(
        self,
        request: EventRequest,
        event: Event,
        actor: ActorSnapshot,
        transition: Transition,
        payload: dict[str, Any],
        permission: str,
    ) -> Optional[ValidationResult]:
        action = transition.action
        note = _clean_note(payload)
        now = self.clock.now()
        validation = None
        decision_payload: Optional[dict[str, Any]] = None

        if action in (Action.edit, Action.revise):
            changes, validation = self._apply_event_changes(request, event, actor, payload)
            decision_payload = {"changes": changes} if changes else None
        elif action == Action.manage_staff:
            decision_payload = self._apply_staff(event, payload)

        proposal = None
        if action == Action.reschedule:
            proposed_date, start, end = validate_reschedule(
                payload, self.clock.local_today(self.config.TIMEZONE),
            )
            proposal = RescheduleProposal(
                proposed_date=proposed_date,
                proposed_start_time=start,
                proposed_end_time=end,
                proposed_by=actor,
                notes=note or "",
                original_date=event.start_date,
                proposed_at=now,
            )
            request.reschedule_proposal = proposal.to_dict()
            decision_payload = proposal.to_dict()

        if action in REVIEWER_ACTIONS:
            request.confirmation_due_at = now + timedelta(hours=self.config.CONFIRMATION_WINDOW_HOURS)
            request.confirmation_reminded_at = None
            if action == Action.reject:
                request.reschedule_proposal = None

        if action in (Action.confirm, Action.decline):
            request.creator_confirmation = {
                "action": action.value,
                "notes": note,
                "actor": actor.to_dict(),
                "timestamp": now.isoformat(),
            }
            if action == Action.confirm and request.reschedule_proposal:
                self._apply_proposal(event, RescheduleProposal.from_dict(request.reschedule_proposal))

        if action == Action.revise:
            supersedes = list(request.revision_supersedes or [])
            supersedes.append(f"{transition.from_status.value}:{request.revision_number}")
            request.revision_supersedes = supersedes
            request.revision_number = request.revision_number + 1
            request.creator_confirmation = None

        for status in transition.path:
            self.audit.record_status(request, status, actor, note)
        request.status = transition.to_status

        if transition.to_status == RequestStatus.pending_review and transition.path:
            # Fresh review round
            request.reschedule_proposal = None
            request.confirmation_due_at = None
            request.confirmation_reminded_at = None
            request.final_resolution = None
            request.expires_at = now + timedelta(hours=self.config.REVIEW_EXPIRY_HOURS)

        if transition.is_terminal:
            self._finalize(request, transition, actor, note, now)

        event.status = self._event_status_after(transition, event.status)

        self.audit.record_decision(
            request,
            decision_type=action.value,
            actor=actor,
            result_status=request.status,
            notes=note,
            payload=decision_payload,
            permission_used=permission,
        )
        if transition.path:
            request.decision_summary = describe_decision(actor, action, event.title, note, proposal)
        request.updated_at = now
        return validation

    def _finalize(
        self,
        request: EventRequest,
        transition: Transition,
        actor: ActorSnapshot,
        note: Optional[str],
        now: datetime,
    ) -> None:
        outcome = transition.outcome or Outcome.rejected
        reason = note
        if outcome == Outcome.expired:
            reason = EXPIRED_REASON
        elif not reason:
            reason = f"{transition.action.value} by {actor.name or actor.id}"
        request.final_resolution = {
            "outcome": outcome.value,
            "completed_at": now.isoformat(),
            "reason": reason,
        }
        request.reschedule_proposal = None
        request.confirmation_due_at = None

    def _event_status_after(self, transition: Transition, current: EventStatus) -> EventStatus:
        action = transition.action
        if action in (Action.reject, Action.cancel):
            return EventStatus.rejected
        if action in (Action.reschedule, Action.revise):
            return EventStatus.pending
        if action == Action.expire:
            return EventStatus.cancelled
        if transition.outcome == Outcome.approved:
            return EventStatus.completed
        if transition.outcome == Outcome.rejected:
            return EventStatus.rejected
        if transition.to_status == RequestStatus.pending_review and transition.path:
            return EventStatus.pending
        return current

    def _apply_proposal(self, event: Event, proposal: RescheduleProposal) -> None:
        event.start_date = datetime.combine(proposal.proposed_date, proposal.proposed_start_time)
        event.end_date = datetime.combine(proposal.proposed_date, proposal.proposed_end_time)
        logger.info("Event %s moved to %s", event.event_id, event.start_date.isoformat())

    def _apply_event_changes(
        self,
        request: EventRequest,
        event: Event,
        actor: ActorSnapshot,
        payload: dict[str, Any],
    ) -> tuple[dict[str, Any], Optional[ValidationResult]]:
        """Apply editable Event fields from ``payload``; re-validate a new date."""
        updates = {k: payload[k] for k in EDITABLE_EVENT_FIELDS if k in payload}
        if "title" in updates and not (updates["title"] or "").strip():
            raise ValidationError("title cannot be empty", {"field": "title"})
        for key in ("start_date", "end_date"):
            if updates.get(key) is not None:
                updates[key] = self._local_naive(updates[key], key)
            elif key in updates:
                raise ValidationError(f"{key} cannot be cleared", {"field": key})

        validation = None
        if {"start_date", "location_id", "target_donation"} & updates.keys():
            validation = self._validator().validate(ScheduleCandidate(
                start_date=updates.get("start_date", event.start_date),
                end_date=updates.get("end_date", event.end_date),
                requester_id=request.requester_id,
                requester_authority=int(request.requester.get("authority", 0)),
                actor_authority=actor.authority,
                category=event.category.value,
                location_id=updates.get("location_id", event.location_id),
                coordinator_id=request.coordinator_id,
                target_donation=updates.get("target_donation", event.target_donation),
                exclude_request_id=request.request_id,
            ))
            if not validation.is_valid:
                raise ConflictError("Scheduling conflict", errors=validation.errors, warnings=validation.warnings)
            if validation.normalized_end_date is not None:
                updates["end_date"] = validation.normalized_end_date
        elif updates.get("end_date") is not None and updates["end_date"] < event.start_date:
            raise ValidationError("end_date cannot be before start_date", {"field": "end_date"})

        changes = {}
        for key, value in updates.items():
            before = getattr(event, key)
            if before == value:
                continue
            setattr(event, key, value)
            changes[key] = {
                "from": before.isoformat() if isinstance(before, datetime) else before,
                "to": value.isoformat() if isinstance(value, datetime) else value,
            }
        if "location_id" in changes:
            request.location_id = event.location_id
        return changes, validation

    def _apply_staff(self, event: Event, payload: dict[str, Any]) -> dict[str, Any]:
        staff = payload.get("staff")
        if not isinstance(staff, list):
            raise ValidationError("staff must be a list", {"field": "staff"})
        cleaned = []
        for member in staff:
            if not isinstance(member, dict) or not (member.get("name") or "").strip():
                raise ValidationError("Each staff member needs a name", {"field": "staff"})
            cleaned.append({"name": member["name"].strip(), "role": (member.get("role") or "").strip()})
        before = list(event.staff or [])
        event.staff = cleaned
        return {"staff": {"from": before, "to": cleaned}}

    def _purge(self, request: EventRequest, event: Event, actor: ActorSnapshot) -> ActionResult:
        intents = self._intents(request, event, Action.delete.value, exclude_id=actor.id)
        request_id = request.request_id
        self.db.delete(request)
        self.db.delete(event)
        self._commit(request_id)
        logger.info("Request %s and event %s deleted by %s", request_id, event.event_id, actor.id)
        dispatch_safely(self.notifier, intents)
        return ActionResult(request=request, event=event, notifications=intents)

    # ------------------------------------------------------------------
    # Sweep steps (one request, one transaction)
    # ------------------------------------------------------------------

    def expire_request(self, request_id: str, now: Optional[datetime] = None) -> bool:
        """Expire one overdue PENDING_REVIEW request. False if nothing to do."""
        now = now or self.clock.now()
        request = self._load(request_id)
        if request.status != RequestStatus.pending_review:
            return False
        if request.expires_at is None or request.expires_at > now:
            return False
        event = request.event
        self.state_machine.check_guards(request.status, Action.expire, {}, is_system=True)
        transition = self.state_machine.transition(request.status, Action.expire)
        self._apply(request, event, SYSTEM_SNAPSHOT, transition, {"note": EXPIRED_REASON}, "system")
        self._commit(request_id)
        logger.info("Request %s expired (was due %s)", request_id, request.expires_at)
        dispatch_safely(self.notifier, self._intents(request, event, Action.expire.value, None, EXPIRED_REASON))
        return True

    def expected_responder(self, request: EventRequest) -> Optional[str]:
        """Who has to act next on a request awaiting a response."""
        if request.status not in AWAITING_RESPONSE_STATUSES:
            return None
        if request.status == RequestStatus.review_rescheduled:
            proposer = self._proposer_id(request)
            return request.reviewer_id if proposer == request.requester_id else request.requester_id
        return request.requester_id

    def remind_confirmation(self, request_id: str, now: Optional[datetime] = None) -> Optional[NotificationIntent]:
        """Emit one reminder for an overdue response. Never changes status."""
        now = now or self.clock.now()
        request = self._load(request_id)
        responder = self.expected_responder(request)
        if responder is None or request.confirmation_reminded_at is not None:
            return None
        if request.confirmation_due_at is None or request.confirmation_due_at > now:
            return None
        request.confirmation_reminded_at = now
        self._commit(request_id)
        intent = NotificationIntent(
            recipient_role="requester" if responder == request.requester_id else "reviewer",
            recipient_id=responder,
            request_id=request.request_id,
            event_id=request.event_id,
            decision_type="confirmation-reminder",
            proposed_date=(request.reschedule_proposal or {}).get("proposed_date"),
        )
        dispatch_safely(self.notifier, [intent])
        return intent
