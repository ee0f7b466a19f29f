"""Event read API. Events change only through request actions."""
import logging
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from request_workflow.database import get_db
from request_workflow.models.event import Event, EventStatus
from request_workflow.schemas.event import EventOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[EventOut])
def list_events(
    location_id: Optional[str] = Query(None),
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    """List events with optional filters."""
    query = db.query(Event)
    if location_id:
        query = query.filter(Event.location_id == location_id)
    if start_after:
        query = query.filter(Event.start_date >= start_after)
    if start_before:
        query = query.filter(Event.start_date <= start_before)
    if status_filter:
        query = query.filter(Event.status == status_filter)
    return query.order_by(Event.start_date).all()


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event
