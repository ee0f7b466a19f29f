"""Immutable views of actors and reschedule proposals."""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from request_workflow.domain.states import SYSTEM_ACTOR_ID


@dataclass(frozen=True)
class ActorSnapshot:
    """Who acted and with what authority, captured at the moment of acting."""

    id: str
    role: str
    authority: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActorSnapshot":
        return cls(
            id=data["id"],
            role=data.get("role", ""),
            authority=int(data.get("authority", 0)),
            name=data.get("name", ""),
        )


SYSTEM_SNAPSHOT = ActorSnapshot(id=SYSTEM_ACTOR_ID, role="system", authority=0, name="System")


@dataclass(frozen=True)
class RescheduleProposal:
    proposed_date: date
    proposed_start_time: time
    proposed_end_time: time
    proposed_by: ActorSnapshot
    notes: str
    original_date: Optional[datetime]
    proposed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposed_date": self.proposed_date.isoformat(),
            "proposed_start_time": self.proposed_start_time.strftime("%H:%M"),
            "proposed_end_time": self.proposed_end_time.strftime("%H:%M"),
            "proposed_by": self.proposed_by.to_dict(),
            "notes": self.notes,
            "original_date": self.original_date.isoformat() if self.original_date else None,
            "proposed_at": self.proposed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RescheduleProposal":
        original = data.get("original_date")
        return cls(
            proposed_date=date.fromisoformat(data["proposed_date"]),
            proposed_start_time=time.fromisoformat(data["proposed_start_time"]),
            proposed_end_time=time.fromisoformat(data["proposed_end_time"]),
            proposed_by=ActorSnapshot.from_dict(data["proposed_by"]),
            notes=data.get("notes", ""),
            original_date=datetime.fromisoformat(original) if original else None,
            proposed_at=datetime.fromisoformat(data["proposed_at"]),
        )
