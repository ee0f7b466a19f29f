"""User directory API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from request_workflow.database import get_db
from request_workflow.domain.states import ALL_CAPABILITIES
from request_workflow.models.user import User
from request_workflow.schemas.user import UserCreate, UserUpdate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_capabilities(capabilities: Optional[list[str]]) -> None:
    unknown = sorted(set(capabilities or []) - ALL_CAPABILITIES)
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown capabilities: {', '.join(unknown)}")


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user with an authority level, capabilities and coverage."""
    _check_capabilities(payload.capabilities)
    user = User(**payload.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s, authority %d)", user.user_id, user.display_name, user.authority)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(
    location_id: Optional[str] = Query(None, description="Only users covering this location"),
    db: Session = Depends(get_db),
):
    """List users, optionally restricted to a coverage location."""
    users = db.query(User).order_by(User.display_name).all()
    if location_id:
        users = [u for u in users if location_id in (u.coverage_location_ids or [])]
    return users


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    """Update authority, capabilities or coverage (partial update)."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    updates = payload.model_dump(exclude_unset=True)
    _check_capabilities(updates.get("capabilities"))
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user_id)
    return user
