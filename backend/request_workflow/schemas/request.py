"""Pydantic schemas for event requests and their actions."""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from request_workflow.schemas.event import EventOut, StaffMember


class RequestCreate(BaseModel):
    requester_id: str
    title: str
    category: str
    start_date: datetime
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    location_id: Optional[str] = None
    organization_id: Optional[str] = None
    coordinator_id: Optional[str] = None  # reviewer hint, required for top-authority requesters
    target_donation: Optional[int] = Field(None, ge=0)
    request_type: Optional[str] = None


class ScheduleCheckRequest(BaseModel):
    actor_user_id: str
    start_date: datetime
    end_date: Optional[datetime] = None
    category: str = ""
    location_id: Optional[str] = None
    coordinator_id: Optional[str] = None
    target_donation: Optional[int] = Field(None, ge=0)
    exclude_request_id: Optional[str] = None


class ActionRequest(BaseModel):
    actor_user_id: str
    action: str
    note: Optional[str] = None
    expected_version: Optional[int] = None
    # reschedule
    proposed_date: Optional[date] = None
    proposed_start_time: Optional[str] = None
    proposed_end_time: Optional[str] = None
    # edit / revise
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location_id: Optional[str] = None
    target_donation: Optional[int] = Field(None, ge=0)
    # manage-staff
    staff: Optional[list[StaffMember]] = None


class CancelRequest(BaseModel):
    actor_user_id: str
    note: Optional[str] = None


class StatusEntryOut(BaseModel):
    status: str
    actor: dict[str, Any]
    note: Optional[str] = None
    changed_at: datetime

    model_config = {"from_attributes": True}


class DecisionEntryOut(BaseModel):
    decision_type: str
    actor: dict[str, Any]
    actor_authority: int
    requester_authority: int
    permission_used: Optional[str] = None
    notes: Optional[str] = None
    result_status: str
    payload: Optional[dict[str, Any]] = None
    decided_at: datetime

    model_config = {"from_attributes": True}


class RequestOut(BaseModel):
    request_id: str
    event_id: str
    request_type: str
    status: str
    requester: dict[str, Any]
    reviewer: Optional[dict[str, Any]] = None
    coordinator_id: Optional[str] = None
    location_id: Optional[str] = None
    organization_id: Optional[str] = None
    category: str
    reschedule_proposal: Optional[dict[str, Any]] = None
    creator_confirmation: Optional[dict[str, Any]] = None
    final_resolution: Optional[dict[str, Any]] = None
    decision_summary: Optional[str] = None
    revision_number: int
    revision_supersedes: list[str] = []
    expires_at: Optional[datetime] = None
    confirmation_due_at: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: datetime
    event: EventOut
    status_history: list[StatusEntryOut] = []
    decision_history: list[DecisionEntryOut] = []

    model_config = {"from_attributes": True}


class NotificationOut(BaseModel):
    request_id: str
    event_id: str
    recipient_role: str
    recipient_id: str
    decision_type: str
    note: Optional[str] = None
    proposed_date: Optional[str] = None


class ActionResultOut(BaseModel):
    request: RequestOut
    notifications: list[NotificationOut] = []
    warnings: list[str] = []


class AllowedActionsOut(BaseModel):
    request_id: str
    actor_user_id: str
    actions: list[str]


class CheckOut(BaseModel):
    name: str
    outcome: str
    message: str = ""


class ScheduleCheckOut(BaseModel):
    is_valid: bool
    errors: list[str] = []
    warnings: list[str] = []
    checks: list[CheckOut] = []


class SweepOut(BaseModel):
    expired: list[str] = []
    reminded: int = 0
