"""Scheduling policy: configuration defaults overlaid by persisted overrides."""
import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

from sqlalchemy.orm import Session

from request_workflow.config import Settings, settings
from request_workflow.domain.states import is_top_authority
from request_workflow.errors import UnauthorizedError, ValidationError
from request_workflow.models.system_settings import SystemSettings
from request_workflow.services.directory import UserDirectory

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


@dataclass(frozen=True)
class SchedulingPolicy:
    max_events_per_day: int = 3
    max_blood_bags_per_day: int = 200
    allow_weekend_events: bool = False
    advance_booking_days: int = 30
    max_pending_requests: int = 1
    prevent_overlapping_requests: bool = True
    prevent_double_booking: bool = True
    blocked_weekdays: tuple[int, ...] = ()
    blocked_dates: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "SchedulingPolicy":
        return cls(
            max_events_per_day=cfg.MAX_EVENTS_PER_DAY,
            max_blood_bags_per_day=cfg.MAX_BLOOD_BAGS_PER_DAY,
            allow_weekend_events=cfg.ALLOW_WEEKEND_EVENTS,
            advance_booking_days=cfg.ADVANCE_BOOKING_DAYS,
            max_pending_requests=cfg.MAX_PENDING_REQUESTS,
            prevent_overlapping_requests=cfg.PREVENT_OVERLAPPING_REQUESTS,
            prevent_double_booking=cfg.PREVENT_DOUBLE_BOOKING,
            blocked_weekdays=tuple(cfg.BLOCKED_WEEKDAYS),
            blocked_dates=tuple(cfg.BLOCKED_DATES),
        )

    def with_overrides(self, values: dict[str, Any]) -> "SchedulingPolicy":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(f"Unknown scheduling settings: {', '.join(unknown)}", {"fields": unknown})
        cleaned = dict(values)
        for key in ("blocked_weekdays", "blocked_dates"):
            if key in cleaned:
                cleaned[key] = tuple(cleaned[key] or ())
        if any(d < 0 or d > 6 for d in cleaned.get("blocked_weekdays", ())):
            raise ValidationError("blocked_weekdays must be between 0 (Monday) and 6 (Sunday)")
        return replace(self, **cleaned)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["blocked_weekdays"] = list(self.blocked_weekdays)
        data["blocked_dates"] = list(self.blocked_dates)
        return data


def get_policy(db: Session) -> SchedulingPolicy:
    """Effective policy: config defaults plus any stored overrides."""
    base = SchedulingPolicy.from_settings()
    row = db.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None or not row.values:
        return base
    return base.with_overrides(row.values)


def update_policy(
    db: Session,
    users: UserDirectory,
    actor_id: str,
    changes: dict[str, Any],
) -> SchedulingPolicy:
    """Persist policy overrides. Top-authority actors only."""
    if not is_top_authority(users.get_authority(actor_id)):
        raise UnauthorizedError("Only top-authority users may change scheduling settings")

    # Validate before touching the stored row
    policy = get_policy(db).with_overrides(changes)

    row = db.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None:
        row = SystemSettings(settings_id=SETTINGS_ROW_ID, values={})
        db.add(row)
    effective = policy.to_dict()
    merged = dict(row.values or {})
    merged.update({key: effective[key] for key in changes})
    row.values = merged
    row.updated_by = actor_id
    db.commit()
    logger.info("Scheduling settings updated by %s: %s", actor_id, sorted(changes))
    return policy
