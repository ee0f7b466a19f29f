"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    display_name: str
    role_label: str = ""
    authority: int = Field(20, ge=0, le=100)
    capabilities: list[str] = []
    coverage_location_ids: list[str] = []
    organization_id: Optional[str] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    role_label: Optional[str] = None
    authority: Optional[int] = Field(None, ge=0, le=100)
    capabilities: Optional[list[str]] = None
    coverage_location_ids: Optional[list[str]] = None
    organization_id: Optional[str] = None
    is_active: Optional[bool] = None


class UserOut(BaseModel):
    user_id: str
    display_name: str
    role_label: str
    authority: int
    capabilities: list[str] = []
    coverage_location_ids: list[str] = []
    organization_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
