"""Typed errors raised by the workflow engine.

Every error carries a stable ``kind`` so callers (and the HTTP layer) can
branch on the failure class without parsing messages.
"""
from typing import Any, Optional


class WorkflowError(Exception):
    """Base class for all request workflow failures."""

    kind = "workflow_error"
    http_status = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationError(WorkflowError):
    """Malformed input or a failed guard (missing note, bad proposal)."""

    kind = "validation"
    http_status = 422


class UnauthorizedError(WorkflowError):
    """The actor is not permitted to perform the action."""

    kind = "unauthorized"
    http_status = 403


class InvalidTransitionError(WorkflowError):
    """The action is not legal from the request's current state."""

    kind = "invalid_transition"
    http_status = 409

    def __init__(self, state: str, action: str):
        super().__init__(
            f"Action '{action}' is not allowed while the request is '{state}'",
            {"state": state, "action": action},
        )
        self.state = state
        self.action = action


class NotFoundError(WorkflowError):
    kind = "not_found"
    http_status = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": str(entity_id)})


class ConflictError(WorkflowError):
    """Scheduling conflict or a concurrent modification of the same request."""

    kind = "conflict"
    http_status = 409

    def __init__(
        self,
        message: str,
        errors: Optional[list[str]] = None,
        warnings: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        payload = dict(details or {})
        if errors is not None:
            payload["errors"] = errors
        if warnings is not None:
            payload["warnings"] = warnings
        super().__init__(message, payload)
        self.errors = errors or []
        self.warnings = warnings or []


class NoReviewerAvailableError(WorkflowError):
    kind = "no_reviewer_available"
    http_status = 409


class AuditImmutabilityError(WorkflowError):
    """An attempt to rewrite or drop audit history outside a purge."""

    kind = "audit_immutable"
    http_status = 500
