"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class StaffMember(BaseModel):
    name: str
    role: str = ""


class EventOut(BaseModel):
    event_id: str
    title: str
    description: Optional[str] = None
    category: str
    location_id: Optional[str] = None
    organization_id: Optional[str] = None
    coordinator_id: Optional[str] = None
    start_date: datetime
    end_date: datetime
    target_donation: Optional[int] = None
    staff: list[StaffMember] = []
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
