"""Event request API routes: a thin layer over the workflow engine."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from request_workflow.database import get_db
from request_workflow.domain.states import RequestStatus, is_top_authority
from request_workflow.errors import UnauthorizedError
from request_workflow.models.request import EventRequest
from request_workflow.schemas.request import (
    ActionRequest,
    ActionResultOut,
    AllowedActionsOut,
    CancelRequest,
    RequestCreate,
    RequestOut,
    ScheduleCheckOut,
    ScheduleCheckRequest,
    SweepOut,
)
from request_workflow.services import sweeps
from request_workflow.services.workflow_engine import ActionResult, WorkflowEngine

logger = logging.getLogger(__name__)
router = APIRouter()


def get_engine(db: Session = Depends(get_db)) -> WorkflowEngine:
    return WorkflowEngine.for_session(db)


def _result_out(result: ActionResult) -> ActionResultOut:
    return ActionResultOut(
        request=RequestOut.model_validate(result.request),
        notifications=[n.to_dict() for n in result.notifications],
        warnings=result.validation.warnings if result.validation else [],
    )


@router.post("/", response_model=ActionResultOut, status_code=status.HTTP_201_CREATED)
def create_request(payload: RequestCreate, engine: WorkflowEngine = Depends(get_engine)):
    """Submit a new event request; a reviewer is assigned automatically."""
    result = engine.create_request(payload.requester_id, payload.model_dump(exclude={"requester_id"}))
    return _result_out(result)


@router.get("/", response_model=list[RequestOut])
def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    requester_id: Optional[str] = Query(None),
    reviewer_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List requests with optional filters, newest first."""
    query = db.query(EventRequest)
    if status_filter:
        query = query.filter(EventRequest.status == status_filter)
    if requester_id:
        query = query.filter(EventRequest.requester_id == requester_id)
    if reviewer_id:
        query = query.filter(EventRequest.reviewer_id == reviewer_id)
    return query.order_by(EventRequest.created_at.desc()).all()


@router.post("/validate", response_model=ScheduleCheckOut)
def validate_schedule(payload: ScheduleCheckRequest, engine: WorkflowEngine = Depends(get_engine)):
    """Dry-run the scheduling checks without creating anything."""
    result = engine.validate_schedule(
        payload.actor_user_id,
        payload.model_dump(exclude={"actor_user_id", "exclude_request_id"}),
        exclude_request_id=payload.exclude_request_id,
    )
    return result.to_dict()


@router.post("/maintenance/sweep", response_model=SweepOut)
def run_sweep(
    actor_user_id: str = Query(..., description="Top-authority user triggering the sweep"),
    engine: WorkflowEngine = Depends(get_engine),
):
    """Expire overdue requests and send confirmation reminders now."""
    if not is_top_authority(engine.users.get_authority(actor_user_id)):
        raise UnauthorizedError("Only top-authority users may run maintenance sweeps")
    expired = sweeps.expire_stale_requests(engine)
    reminders = sweeps.remind_overdue_confirmations(engine)
    return SweepOut(expired=expired, reminded=len(reminders))


@router.get("/{request_id}", response_model=RequestOut)
def get_request(request_id: str, db: Session = Depends(get_db)):
    """Fetch a single request with its event and full history."""
    request = db.query(EventRequest).filter(EventRequest.request_id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    return request


@router.get("/{request_id}/allowed-actions", response_model=AllowedActionsOut)
def allowed_actions(
    request_id: str,
    actor_user_id: str = Query(..., description="ID of the user asking"),
    engine: WorkflowEngine = Depends(get_engine),
):
    actions = engine.compute_allowed_actions(actor_user_id, request_id)
    return AllowedActionsOut(
        request_id=request_id,
        actor_user_id=actor_user_id,
        actions=sorted(a.value for a in actions),
    )


@router.post("/{request_id}/actions", response_model=ActionResultOut)
def process_action(request_id: str, payload: ActionRequest, engine: WorkflowEngine = Depends(get_engine)):
    """Apply a review, response or maintenance action to a request."""
    if payload.action == "delete":
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Use DELETE /api/requests/{request_id} to delete a request",
        )
    body = payload.model_dump(exclude_unset=True, exclude={"actor_user_id", "action", "expected_version"})
    result = engine.process_action(
        payload.actor_user_id,
        request_id,
        payload.action,
        body,
        expected_version=payload.expected_version,
    )
    return _result_out(result)


@router.post("/{request_id}/cancel", response_model=ActionResultOut)
def cancel_request(request_id: str, payload: CancelRequest, engine: WorkflowEngine = Depends(get_engine)):
    return _result_out(engine.cancel_request(payload.actor_user_id, request_id, payload.note))


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: str,
    actor_user_id: str = Query(..., description="Top-authority user deleting the request"),
    engine: WorkflowEngine = Depends(get_engine),
):
    """Permanently delete a cancelled or rejected request and its event."""
    engine.delete_request(actor_user_id, request_id)
    return None
