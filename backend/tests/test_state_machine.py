"""Tests for the request state machine: transition table and guards."""
from datetime import date, time

import pytest

from request_workflow.domain.state_machine import TRANSITIONS, RequestStateMachine, validate_reschedule
from request_workflow.domain.states import Action, Outcome, RequestStatus, TERMINAL_STATUSES, TRANSIENT_STATUSES
from request_workflow.errors import InvalidTransitionError, UnauthorizedError, ValidationError

S = RequestStatus
A = Action


@pytest.fixture
def machine():
    return RequestStateMachine()


class TestTransitions:
    """Happy-path transitions and the statuses they pass through."""

    @pytest.mark.parametrize("action,expected", [
        (A.accept, S.review_accepted),
        (A.reject, S.review_rejected),
        (A.reschedule, S.review_rescheduled),
        (A.cancel, S.cancelled),
        (A.expire, S.expired),
    ])
    def test_from_pending_review(self, machine, action, expected):
        assert machine.transition(S.pending_review, action).to_status == expected

    def test_confirm_records_creator_confirmed_then_completed(self, machine):
        t = machine.transition(S.review_accepted, A.confirm)
        assert t.path == (S.creator_confirmed, S.completed)
        assert t.outcome == Outcome.approved
        assert t.is_terminal

    def test_decline_after_rejection_completes_as_rejected(self, machine):
        t = machine.transition(S.review_rejected, A.decline)
        assert t.path == (S.creator_declined, S.completed)
        assert t.outcome == Outcome.rejected

    def test_revise_returns_to_pending_review(self, machine):
        for state in (S.review_accepted, S.review_rejected, S.review_rescheduled):
            assert machine.transition(state, A.revise).to_status == S.pending_review

    def test_edit_does_not_move_the_request(self, machine):
        t = machine.transition(S.completed, A.edit)
        assert t.path == ()
        assert t.to_status == S.completed

    def test_cancel_completed(self, machine):
        t = machine.transition(S.completed, A.cancel)
        assert t.to_status == S.cancelled
        assert t.outcome == Outcome.cancelled

    def test_transient_statuses_never_stick(self):
        for path in TRANSITIONS.values():
            assert path[-1] not in TRANSIENT_STATUSES


class TestRescheduleDeclinePolicy:
    def test_default_policy_rejects(self, machine):
        t = machine.transition(S.review_rescheduled, A.decline)
        assert t.path == (S.creator_declined, S.rejected)
        assert t.outcome == Outcome.rejected

    def test_rereview_policy_returns_to_pending(self):
        t = RequestStateMachine("rereview").transition(S.review_rescheduled, A.decline)
        assert t.to_status == S.pending_review
        assert t.outcome is None

    def test_unknown_policy_is_rejected(self):
        with pytest.raises(ValueError):
            RequestStateMachine("shrug")


class TestIllegalTransitions:
    @pytest.mark.parametrize("state", sorted(TERMINAL_STATUSES - {S.completed}, key=lambda s: s.value))
    def test_no_review_from_terminal_states(self, machine, state):
        with pytest.raises(InvalidTransitionError) as exc:
            machine.transition(state, A.accept)
        assert exc.value.kind == "invalid_transition"

    def test_confirm_not_allowed_from_pending(self, machine):
        assert not machine.can_transition(S.pending_review, A.confirm)
        with pytest.raises(InvalidTransitionError):
            machine.transition(S.pending_review, A.confirm)

    def test_expire_only_from_pending(self, machine):
        with pytest.raises(InvalidTransitionError):
            machine.transition(S.review_accepted, A.expire)
        with pytest.raises(InvalidTransitionError):
            machine.transition(S.expired, A.expire)

    def test_purge_only_cancelled_or_rejected(self, machine):
        machine.check_purge(S.cancelled)
        machine.check_purge(S.rejected)
        assert machine.can_transition(S.rejected, A.delete)
        with pytest.raises(InvalidTransitionError):
            machine.check_purge(S.completed)


class TestGuards:
    def test_reject_requires_note(self, machine):
        with pytest.raises(ValidationError):
            machine.check_guards(S.pending_review, A.reject, {"note": "   "})
        machine.check_guards(S.pending_review, A.reject, {"note": "Venue unavailable"})

    def test_reschedule_requires_note(self, machine):
        with pytest.raises(ValidationError):
            machine.check_guards(S.pending_review, A.reschedule, {})

    def test_proposer_cannot_answer_own_proposal(self, machine):
        for action in (A.accept, A.reject, A.confirm, A.decline):
            with pytest.raises(UnauthorizedError):
                machine.check_guards(S.review_rescheduled, action, {"note": "x"}, is_reschedule_proposer=True)

    def test_expire_requires_system(self, machine):
        with pytest.raises(UnauthorizedError):
            machine.check_guards(S.pending_review, A.expire, {})
        machine.check_guards(S.pending_review, A.expire, {}, is_system=True)


class TestRescheduleProposal:
    TODAY = date(2026, 3, 2)

    def test_valid_proposal(self):
        result = validate_reschedule({
            "proposed_date": "2026-03-05",
            "proposed_start_time": "08:00",
            "proposed_end_time": "11:30",
        }, self.TODAY)
        assert result == (date(2026, 3, 5), time(8, 0), time(11, 30))

    def test_today_is_allowed(self):
        proposed, _, _ = validate_reschedule({
            "proposed_date": "2026-03-02",
            "proposed_start_time": "13:00",
            "proposed_end_time": "14:00",
        }, self.TODAY)
        assert proposed == self.TODAY

    def test_past_date_rejected(self):
        with pytest.raises(ValidationError):
            validate_reschedule({
                "proposed_date": "2026-03-01",
                "proposed_start_time": "08:00",
                "proposed_end_time": "09:00",
            }, self.TODAY)

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            validate_reschedule({
                "proposed_date": "2026-03-05",
                "proposed_start_time": "10:00",
                "proposed_end_time": "10:00",
            }, self.TODAY)

    def test_times_required(self):
        with pytest.raises(ValidationError):
            validate_reschedule({"proposed_date": "2026-03-05", "proposed_start_time": "10:00"}, self.TODAY)

    def test_bad_time_format(self):
        with pytest.raises(ValidationError):
            validate_reschedule({
                "proposed_date": "2026-03-05",
                "proposed_start_time": "10am",
                "proposed_end_time": "11:00",
            }, self.TODAY)
