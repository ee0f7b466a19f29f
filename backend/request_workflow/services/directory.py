"""User and coverage directories consulted by the workflow engine.

The engine depends only on the ``UserDirectory`` and ``CoverageDirectory``
protocols; the SQLAlchemy-backed implementations below read the ``users``
table.
"""
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from request_workflow.domain.snapshots import ActorSnapshot
from request_workflow.domain.states import (
    ALL_CAPABILITIES,
    SCOPED_CAPABILITIES,
    TOP_AUTHORITY,
    AuthorityTier,
    is_top_authority,
)
from request_workflow.errors import NotFoundError
from request_workflow.models.user import User


def tier_label(authority: int) -> str:
    """Display label for users without a role label, e.g. ``"Operational Admin"``."""
    return AuthorityTier.of(authority).name.replace("_", " ").title()


@dataclass(frozen=True)
class CapabilityContext:
    """Where a capability is being exercised."""

    location_id: Optional[str] = None
    organization_id: Optional[str] = None


class UserDirectory(Protocol):
    def get_authority(self, user_id: str) -> int: ...

    def get_capabilities(self, user_id: str, context: Optional[CapabilityContext] = None) -> frozenset[str]: ...

    def snapshot(self, user_id: str) -> ActorSnapshot: ...

    def is_active(self, user_id: str) -> bool: ...


class CoverageDirectory(Protocol):
    def match(self, location_id: Optional[str], organization_id: Optional[str]) -> list[str]: ...

    def top_authority_ids(self) -> list[str]: ...


def covers(user: User, context: CapabilityContext) -> bool:
    if context.location_id and context.location_id in (user.coverage_location_ids or []):
        return True
    return bool(context.organization_id and user.organization_id == context.organization_id)


class SqlUserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_authority(self, user_id: str) -> int:
        return self._load(user_id).authority

    def get_capabilities(self, user_id: str, context: Optional[CapabilityContext] = None) -> frozenset[str]:
        """Capabilities ``user_id`` holds in ``context``.

        Top-authority users hold everything. Review and reschedule are only
        held inside the user's coverage area when a context is given.
        """
        user = self._load(user_id)
        if not user.is_active:
            return frozenset()
        if is_top_authority(user.authority):
            return ALL_CAPABILITIES
        held = frozenset(user.capabilities or [])
        if context is not None and not covers(user, context):
            held = held - SCOPED_CAPABILITIES
        return held

    def snapshot(self, user_id: str) -> ActorSnapshot:
        user = self._load(user_id)
        return ActorSnapshot(
            id=user.user_id,
            role=user.role_label or tier_label(user.authority),
            authority=user.authority,
            name=user.display_name,
        )

    def is_active(self, user_id: str) -> bool:
        return self._load(user_id).is_active


class SqlCoverageDirectory:
    def __init__(self, db: Session):
        self.db = db

    def match(self, location_id: Optional[str], organization_id: Optional[str]) -> list[str]:
        """Active users whose coverage includes the location or organization."""
        context = CapabilityContext(location_id=location_id, organization_id=organization_id)
        users = self.db.query(User).filter(User.is_active.is_(True)).order_by(User.user_id).all()
        return [u.user_id for u in users if covers(u, context)]

    def top_authority_ids(self) -> list[str]:
        users = (
            self.db.query(User)
            .filter(User.is_active.is_(True), User.authority >= int(TOP_AUTHORITY))
            .order_by(User.user_id)
            .all()
        )
        return [u.user_id for u in users]
