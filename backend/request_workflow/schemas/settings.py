"""Pydantic schemas for the scheduling policy."""
from typing import Optional
from pydantic import BaseModel, Field


class SchedulingPolicyOut(BaseModel):
    max_events_per_day: int
    max_blood_bags_per_day: int
    allow_weekend_events: bool
    advance_booking_days: int
    max_pending_requests: int
    prevent_overlapping_requests: bool
    prevent_double_booking: bool
    blocked_weekdays: list[int]
    blocked_dates: list[str]


class SchedulingPolicyUpdate(BaseModel):
    actor_user_id: str
    max_events_per_day: Optional[int] = Field(None, ge=0)
    max_blood_bags_per_day: Optional[int] = Field(None, ge=0)
    allow_weekend_events: Optional[bool] = None
    advance_booking_days: Optional[int] = Field(None, ge=0)
    max_pending_requests: Optional[int] = Field(None, ge=0)
    prevent_overlapping_requests: Optional[bool] = None
    prevent_double_booking: Optional[bool] = None
    blocked_weekdays: Optional[list[int]] = None
    blocked_dates: Optional[list[str]] = None
