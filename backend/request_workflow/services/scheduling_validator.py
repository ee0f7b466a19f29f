"""Scheduling conflict checks run before a request is created or re-dated.

Each check yields a pass, fail or warning. Failures make the schedule
invalid; warnings are surfaced to the caller but do not block.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from request_workflow.domain.clock import Clock
from request_workflow.domain.states import (
    NON_OCCUPYING_STATUSES,
    RequestStatus,
    is_bottom_tier,
    is_top_authority,
)
from request_workflow.models.event import Event, EventCategory, EventStatus
from request_workflow.models.request import EventRequest
from request_workflow.services.settings_service import SchedulingPolicy

logger = logging.getLogger(__name__)

_WEEKEND = (5, 6)
_INACTIVE_EVENT_STATUSES = (EventStatus.rejected, EventStatus.cancelled)


class CheckOutcome(str, enum.Enum):
    passed = "pass"
    failed = "fail"
    warning = "warning"


@dataclass(frozen=True)
class CheckResult:
    name: str
    outcome: CheckOutcome
    message: str = ""


@dataclass
class ValidationResult:
    checks: list[CheckResult] = field(default_factory=list)
    normalized_end_date: Optional[datetime] = None

    @property
    def errors(self) -> list[str]:
        return [c.message for c in self.checks if c.outcome == CheckOutcome.failed]

    @property
    def warnings(self) -> list[str]:
        return [c.message for c in self.checks if c.outcome == CheckOutcome.warning]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "checks": [
                {"name": c.name, "outcome": c.outcome.value, "message": c.message}
                for c in self.checks
            ],
        }


@dataclass(frozen=True)
class ScheduleCandidate:
    """The slice of a request the validator needs."""

    start_date: datetime
    requester_id: str
    requester_authority: int
    category: str
    end_date: Optional[datetime] = None
    location_id: Optional[str] = None
    coordinator_id: Optional[str] = None
    target_donation: Optional[int] = None
    exclude_request_id: Optional[str] = None
    actor_authority: Optional[int] = None

    @property
    def day(self) -> date:
        return self.start_date.date()


class SchedulingValidator:
    def __init__(self, db: Session, policy: SchedulingPolicy, clock: Clock, tz_name: str):
        self.db = db
        self.policy = policy
        self.clock = clock
        self.tz_name = tz_name

    def validate(self, candidate: ScheduleCandidate) -> ValidationResult:
        result = ValidationResult()
        self._normalize_end(candidate, result)

        acting = candidate.actor_authority if candidate.actor_authority is not None else candidate.requester_authority
        if is_top_authority(acting):
            result.checks.append(CheckResult("authority_bypass", CheckOutcome.passed,
                                             "Top-authority actor bypasses scheduling checks"))
            return result

        today = self.clock.local_today(self.tz_name)
        result.checks.append(self._check_advance_booking(candidate.day, today))
        result.checks.append(self._check_weekend(candidate.day))
        result.checks.append(self._check_blocked(candidate.day))
        result.checks.append(self._check_pending_limit(candidate))

        occupying = self._occupying_on(candidate.day, candidate.exclude_request_id)
        result.checks.append(self._check_overlap(candidate, occupying))
        result.checks.append(self._check_double_booking(candidate, occupying))
        result.checks.append(self._check_blood_bags(candidate, occupying))
        result.checks.append(self._check_daily_cap(occupying))

        if not result.is_valid:
            logger.info(
                "Schedule for %s on %s rejected: %s",
                candidate.requester_id, candidate.day, "; ".join(result.errors),
            )
        return result

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _normalize_end(self, candidate: ScheduleCandidate, result: ValidationResult) -> None:
        end = candidate.end_date
        if end is None or end >= candidate.start_date:
            result.normalized_end_date = end
            return
        normalized = datetime.combine(candidate.day, end.time())
        if normalized < candidate.start_date:
            normalized = candidate.start_date
        result.normalized_end_date = normalized
        result.checks.append(CheckResult("date_range", CheckOutcome.warning,
                                         "End date was before the start date and was moved to the start day"))

    def _check_advance_booking(self, day: date, today: date) -> CheckResult:
        if day < today:
            return CheckResult("advance_booking", CheckOutcome.failed, "Event date cannot be in the past")
        limit = today + timedelta(days=self.policy.advance_booking_days)
        if day > limit:
            return CheckResult(
                "advance_booking", CheckOutcome.failed,
                f"Events can only be booked up to {self.policy.advance_booking_days} days in advance",
            )
        return CheckResult("advance_booking", CheckOutcome.passed)

    def _check_weekend(self, day: date) -> CheckResult:
        weekday = day.weekday()
        if weekday not in _WEEKEND:
            return CheckResult("weekend", CheckOutcome.passed)
        if weekday in self.policy.blocked_weekdays:
            return CheckResult("weekend", CheckOutcome.failed, f"{day:%A} is blocked for events")
        if not self.policy.allow_weekend_events:
            return CheckResult("weekend", CheckOutcome.warning,
                               "Weekend events require special approval")
        return CheckResult("weekend", CheckOutcome.passed)

    def _check_blocked(self, day: date) -> CheckResult:
        if day.isoformat() in self.policy.blocked_dates:
            return CheckResult("blocked_dates", CheckOutcome.failed, f"{day.isoformat()} is a blocked date")
        if day.weekday() in self.policy.blocked_weekdays and day.weekday() not in _WEEKEND:
            return CheckResult("blocked_dates", CheckOutcome.failed, f"{day:%A} is blocked for events")
        return CheckResult("blocked_dates", CheckOutcome.passed)

    def _owner_filter(self, candidate: ScheduleCandidate):
        """Bottom-tier requesters are counted on their own; others by coordinator."""
        if is_bottom_tier(candidate.requester_authority) or not candidate.coordinator_id:
            return EventRequest.requester_id == candidate.requester_id
        return EventRequest.coordinator_id == candidate.coordinator_id

    def _check_pending_limit(self, candidate: ScheduleCandidate) -> CheckResult:
        query = self.db.query(func.count(EventRequest.request_id)).filter(
            EventRequest.status == RequestStatus.pending_review,
            self._owner_filter(candidate),
        )
        if candidate.exclude_request_id:
            query = query.filter(EventRequest.request_id != candidate.exclude_request_id)
        pending = query.scalar() or 0
        if pending >= self.policy.max_pending_requests:
            return CheckResult(
                "pending_limit", CheckOutcome.failed,
                f"Pending request limit reached ({pending}/{self.policy.max_pending_requests})",
            )
        return CheckResult("pending_limit", CheckOutcome.passed)

    def _occupying_on(self, day: date, exclude_request_id: Optional[str]) -> list[EventRequest]:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        query = (
            self.db.query(EventRequest)
            .join(Event, EventRequest.event_id == Event.event_id)
            .filter(
                EventRequest.status.notin_(list(NON_OCCUPYING_STATUSES)),
                Event.status.notin_(list(_INACTIVE_EVENT_STATUSES)),
                Event.start_date >= start,
                Event.start_date < end,
            )
        )
        if exclude_request_id:
            query = query.filter(EventRequest.request_id != exclude_request_id)
        return query.all()

    def _check_overlap(self, candidate: ScheduleCandidate, occupying: list[EventRequest]) -> CheckResult:
        if not self.policy.prevent_overlapping_requests:
            return CheckResult("overlap", CheckOutcome.passed)
        if is_bottom_tier(candidate.requester_authority) or not candidate.coordinator_id:
            clashes = [r for r in occupying if r.requester_id == candidate.requester_id]
        else:
            clashes = [r for r in occupying if r.coordinator_id == candidate.coordinator_id]
        if clashes:
            return CheckResult(
                "overlap", CheckOutcome.failed,
                f"An event request already exists on {candidate.day.isoformat()} "
                f"(request {clashes[0].request_id})",
            )
        return CheckResult("overlap", CheckOutcome.passed)

    def _check_double_booking(self, candidate: ScheduleCandidate, occupying: list[EventRequest]) -> CheckResult:
        if not self.policy.prevent_double_booking or not candidate.location_id:
            return CheckResult("double_booking", CheckOutcome.passed)
        clashes = [r for r in occupying if r.event.location_id == candidate.location_id]
        if clashes:
            return CheckResult(
                "double_booking", CheckOutcome.failed,
                f"Location is already booked on {candidate.day.isoformat()} ({clashes[0].event.title})",
            )
        return CheckResult("double_booking", CheckOutcome.passed)

    def _check_blood_bags(self, candidate: ScheduleCandidate, occupying: list[EventRequest]) -> CheckResult:
        if candidate.category != EventCategory.blood_drive.value:
            return CheckResult("blood_bag_capacity", CheckOutcome.passed)
        booked = sum(
            r.event.target_donation or 0 for r in occupying
            if r.event.category == EventCategory.blood_drive
        )
        requested = candidate.target_donation or 0
        if booked + requested > self.policy.max_blood_bags_per_day:
            return CheckResult(
                "blood_bag_capacity", CheckOutcome.failed,
                f"Blood bag limit exceeded: {booked} already booked, {requested} requested, "
                f"limit {self.policy.max_blood_bags_per_day}",
            )
        return CheckResult("blood_bag_capacity", CheckOutcome.passed)

    def _check_daily_cap(self, occupying: list[EventRequest]) -> CheckResult:
        if len(occupying) >= self.policy.max_events_per_day:
            return CheckResult(
                "daily_event_cap", CheckOutcome.failed,
                f"Daily event limit reached ({self.policy.max_events_per_day})",
            )
        return CheckResult("daily_event_cap", CheckOutcome.passed)
