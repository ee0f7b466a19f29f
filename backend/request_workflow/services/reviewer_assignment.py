"""Reviewer assignment for new requests.

Assignment is deterministic: among eligible candidates the one with the
lowest sufficient authority wins, ties broken by the lowest user id. Top
authority actors are the fallback when nobody in the coverage area can
review.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from request_workflow.domain.snapshots import ActorSnapshot
from request_workflow.domain.states import CAP_REVIEW, CAP_RESCHEDULE, is_top_authority
from request_workflow.errors import NoReviewerAvailableError, ValidationError
from request_workflow.services.directory import CapabilityContext, CoverageDirectory, UserDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentRule:
    required_capabilities: frozenset[str]
    allow_top_fallback: bool = True


ASSIGNMENT_RULES: dict[str, AssignmentRule] = {
    "eventRequest": AssignmentRule(frozenset({CAP_REVIEW})),
    "bloodBagRequest": AssignmentRule(frozenset({CAP_REVIEW, CAP_RESCHEDULE})),
    "default": AssignmentRule(frozenset({CAP_REVIEW})),
}


@dataclass(frozen=True)
class Assignment:
    reviewer: ActorSnapshot
    auto_assigned: bool
    strategy: str  # "hint", "coverage" or "fallback"

    def reviewer_record(self) -> dict:
        record = self.reviewer.to_dict()
        record["auto_assigned"] = self.auto_assigned
        record["strategy"] = self.strategy
        return record


class ReviewerAssignment:
    """Pick the reviewer for a new request.

    Usage:
        assigner = ReviewerAssignment(users, coverage)
        assignment = assigner.assign(requester_id, hint_id, location_id, org_id)
    """

    def __init__(self, users: UserDirectory, coverage: CoverageDirectory):
        self.users = users
        self.coverage = coverage

    def rule_for(self, request_type: Optional[str]) -> AssignmentRule:
        return ASSIGNMENT_RULES.get(request_type or "default", ASSIGNMENT_RULES["default"])

    def is_eligible(
        self,
        candidate_id: str,
        requester_id: str,
        requester_authority: int,
        context: CapabilityContext,
        rule: AssignmentRule,
    ) -> bool:
        if candidate_id == requester_id:
            return False
        if not self.users.is_active(candidate_id):
            return False
        authority = self.users.get_authority(candidate_id)
        if authority < requester_authority and not is_top_authority(authority):
            return False
        held = self.users.get_capabilities(candidate_id, context)
        return rule.required_capabilities <= held

    def _pick(self, candidate_ids: list[str]) -> str:
        return min(candidate_ids, key=lambda uid: (self.users.get_authority(uid), uid))

    def assign(
        self,
        requester_id: str,
        hint_id: Optional[str] = None,
        location_id: Optional[str] = None,
        organization_id: Optional[str] = None,
        request_type: Optional[str] = None,
    ) -> Assignment:
        requester_authority = self.users.get_authority(requester_id)
        context = CapabilityContext(location_id=location_id, organization_id=organization_id)
        rule = self.rule_for(request_type)

        if is_top_authority(requester_authority) and not hint_id:
            raise ValidationError(
                "Top-authority requesters must name the reviewer explicitly",
                {"field": "coordinator_id"},
            )

        if hint_id:
            if not self.is_eligible(hint_id, requester_id, requester_authority, context, rule):
                raise ValidationError(
                    f"User {hint_id} cannot review this request",
                    {"field": "coordinator_id", "reviewer_id": hint_id},
                )
            logger.info("Assigned hinted reviewer %s for requester %s", hint_id, requester_id)
            return Assignment(self.users.snapshot(hint_id), auto_assigned=False, strategy="hint")

        candidates = [
            uid for uid in self.coverage.match(location_id, organization_id)
            if self.is_eligible(uid, requester_id, requester_authority, context, rule)
        ]
        if candidates:
            chosen = self._pick(candidates)
            logger.info(
                "Auto-assigned reviewer %s for requester %s from %d candidates",
                chosen, requester_id, len(candidates),
            )
            return Assignment(self.users.snapshot(chosen), auto_assigned=True, strategy="coverage")

        if rule.allow_top_fallback:
            fallback = [
                uid for uid in self.coverage.top_authority_ids()
                if self.is_eligible(uid, requester_id, requester_authority, context, rule)
            ]
            if fallback:
                chosen = self._pick(fallback)
                logger.warning(
                    "No covering reviewer for location=%s org=%s; falling back to %s",
                    location_id, organization_id, chosen,
                )
                return Assignment(self.users.snapshot(chosen), auto_assigned=True, strategy="fallback")

        raise NoReviewerAvailableError(
            "No eligible reviewer is available for this request",
            {"location_id": location_id, "organization_id": organization_id},
        )
