"""Scheduling policy API routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from request_workflow.database import get_db
from request_workflow.schemas.settings import SchedulingPolicyOut, SchedulingPolicyUpdate
from request_workflow.services import settings_service
from request_workflow.services.directory import SqlUserDirectory

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/scheduling", response_model=SchedulingPolicyOut)
def get_scheduling_policy(db: Session = Depends(get_db)):
    """Effective scheduling policy (config defaults plus stored overrides)."""
    return settings_service.get_policy(db).to_dict()


@router.put("/scheduling", response_model=SchedulingPolicyOut)
def update_scheduling_policy(payload: SchedulingPolicyUpdate, db: Session = Depends(get_db)):
    """Change scheduling limits. Top-authority users only."""
    changes = payload.model_dump(exclude_unset=True, exclude={"actor_user_id"})
    policy = settings_service.update_policy(db, SqlUserDirectory(db), payload.actor_user_id, changes)
    return policy.to_dict()
