"""Tests for scheduling conflict validation."""
from datetime import datetime

import pytest

from request_workflow.services.scheduling_validator import (
    CheckOutcome,
    ScheduleCandidate,
    SchedulingValidator,
)
from request_workflow.services.settings_service import SchedulingPolicy
from tests.conftest import LOCATION, OTHER_LOCATION, request_payload

TZ = "Asia/Manila"


def _candidate(cast, **overrides):
    values = dict(
        start_date=datetime(2026, 3, 4, 9, 0),
        end_date=datetime(2026, 3, 4, 12, 0),
        requester_id=cast.stakeholder,
        requester_authority=30,
        category="BloodDrive",
        location_id=LOCATION,
        target_donation=50,
    )
    values.update(overrides)
    return ScheduleCandidate(**values)


def _validator(db, clock, **policy):
    base = dict(max_pending_requests=5)
    base.update(policy)
    return SchedulingValidator(db, SchedulingPolicy(**base), clock, TZ)


def _outcome(result, name):
    return next(c.outcome for c in result.checks if c.name == name)


class TestCalendarRules:
    def test_clean_schedule_passes(self, db, cast, clock):
        result = _validator(db, clock).validate(_candidate(cast))
        assert result.is_valid
        assert result.errors == []
        assert {c.name for c in result.checks} >= {
            "advance_booking", "weekend", "blocked_dates", "pending_limit",
            "overlap", "double_booking", "blood_bag_capacity", "daily_event_cap",
        }

    def test_past_date(self, db, cast, clock):
        result = _validator(db, clock).validate(_candidate(cast, start_date=datetime(2026, 3, 1, 9), end_date=None))
        assert not result.is_valid
        assert _outcome(result, "advance_booking") == CheckOutcome.failed

    def test_beyond_advance_window(self, db, cast, clock):
        validator = _validator(db, clock)
        assert validator.validate(_candidate(cast, start_date=datetime(2026, 4, 1, 9), end_date=None)).is_valid
        result = validator.validate(_candidate(cast, start_date=datetime(2026, 4, 2, 9), end_date=None))
        assert _outcome(result, "advance_booking") == CheckOutcome.failed

    def test_weekend_is_a_warning(self, db, cast, clock):
        result = _validator(db, clock).validate(_candidate(cast, start_date=datetime(2026, 3, 7, 9), end_date=None))
        assert result.is_valid
        assert _outcome(result, "weekend") == CheckOutcome.warning
        assert result.warnings

    def test_weekend_allowed(self, db, cast, clock):
        result = _validator(db, clock, allow_weekend_events=True).validate(
            _candidate(cast, start_date=datetime(2026, 3, 7, 9), end_date=None),
        )
        assert _outcome(result, "weekend") == CheckOutcome.passed

    def test_blocked_weekend_day_is_blocking(self, db, cast, clock):
        result = _validator(db, clock, blocked_weekdays=(5,)).validate(
            _candidate(cast, start_date=datetime(2026, 3, 7, 9), end_date=None),
        )
        assert not result.is_valid
        assert _outcome(result, "weekend") == CheckOutcome.failed

    def test_blocked_weekday_and_date(self, db, cast, clock):
        by_weekday = _validator(db, clock, blocked_weekdays=(2,)).validate(_candidate(cast))
        assert _outcome(by_weekday, "blocked_dates") == CheckOutcome.failed
        by_date = _validator(db, clock, blocked_dates=("2026-03-04",)).validate(_candidate(cast))
        assert _outcome(by_date, "blocked_dates") == CheckOutcome.failed

    def test_end_before_start_is_normalized(self, db, cast, clock):
        result = _validator(db, clock).validate(_candidate(cast, end_date=datetime(2026, 3, 3, 11, 0)))
        assert result.is_valid
        assert result.normalized_end_date == datetime(2026, 3, 4, 11, 0)
        assert _outcome(result, "date_range") == CheckOutcome.warning

    def test_top_authority_bypasses_everything(self, db, cast, clock):
        result = _validator(db, clock).validate(_candidate(
            cast, requester_id=cast.admin, requester_authority=100,
            start_date=datetime(2026, 1, 1, 9), end_date=None,
        ))
        assert result.is_valid
        assert [c.name for c in result.checks] == ["authority_bypass"]


class TestBookings:
    """Checks that look at requests already on the calendar."""

    def test_overlap_for_same_requester(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder, request_payload(location_id=OTHER_LOCATION))
        result = _validator(db, clock).validate(_candidate(cast))
        assert not result.is_valid
        assert _outcome(result, "overlap") == CheckOutcome.failed

    def test_rejected_request_frees_the_day(self, db, cast, clock, engine):
        created = engine.create_request(cast.stakeholder, request_payload(location_id=OTHER_LOCATION))
        engine.process_action(cast.admin, created.request.request_id, "reject", {"note": "No staff"})
        result = _validator(db, clock).validate(_candidate(cast))
        assert _outcome(result, "overlap") == CheckOutcome.passed

    def test_editing_request_ignores_itself(self, db, cast, clock, engine):
        created = engine.create_request(cast.stakeholder, request_payload())
        result = _validator(db, clock).validate(_candidate(cast, exclude_request_id=created.request.request_id))
        assert result.is_valid

    def test_coordinator_overlap_counted_by_coordinator(self, db, cast, clock, engine):
        engine.create_request(cast.coordinator, request_payload(location_id=OTHER_LOCATION))
        result = _validator(db, clock).validate(_candidate(
            cast, requester_id=cast.ops, requester_authority=80, coordinator_id=cast.coordinator,
        ))
        assert _outcome(result, "overlap") == CheckOutcome.failed

    def test_pending_limit(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder, request_payload(day="2026-03-05"))
        result = _validator(db, clock, max_pending_requests=1).validate(_candidate(cast))
        assert _outcome(result, "pending_limit") == CheckOutcome.failed

    def test_double_booking_same_location(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder_b, request_payload())
        result = _validator(db, clock).validate(_candidate(cast))
        assert _outcome(result, "overlap") == CheckOutcome.passed
        assert _outcome(result, "double_booking") == CheckOutcome.failed

    def test_double_booking_can_be_disabled(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder_b, request_payload())
        result = _validator(db, clock, prevent_double_booking=False).validate(_candidate(cast))
        assert result.is_valid

    @pytest.mark.parametrize("requested,valid", [(40, True), (41, False)])
    def test_blood_bag_capacity(self, db, cast, clock, engine, requested, valid):
        engine.create_request(cast.stakeholder_b, request_payload(location_id=OTHER_LOCATION, target_donation=60))
        result = _validator(db, clock, max_blood_bags_per_day=100).validate(
            _candidate(cast, target_donation=requested),
        )
        assert result.is_valid is valid

    def test_training_ignores_blood_bag_capacity(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder_b, request_payload(location_id=OTHER_LOCATION, target_donation=200))
        result = _validator(db, clock).validate(_candidate(cast, category="Training", target_donation=None))
        assert _outcome(result, "blood_bag_capacity") == CheckOutcome.passed

    def test_daily_event_cap(self, db, cast, clock, engine):
        engine.create_request(cast.stakeholder_b, request_payload(location_id=OTHER_LOCATION))
        engine.create_request(cast.coordinator, request_payload(location_id="loc-east", category="Training"))
        result = _validator(db, clock, max_events_per_day=2).validate(_candidate(cast, location_id="loc-west"))
        assert _outcome(result, "daily_event_cap") == CheckOutcome.failed
