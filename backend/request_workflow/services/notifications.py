"""Notification intents emitted by the workflow engine.

The engine only decides *who* should hear about a transition. Delivery is
the notifier's job and is best-effort: a failing notifier is logged and never
undoes a committed transition.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationIntent:
    recipient_role: str  # "requester" or "reviewer"
    recipient_id: str
    request_id: str
    event_id: str
    decision_type: str
    note: Optional[str] = None
    proposed_date: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Notifier(Protocol):
    def dispatch(self, intents: list[NotificationIntent]) -> None: ...


class LoggingNotifier:
    """Default notifier: writes each intent to the application log."""

    def dispatch(self, intents: list[NotificationIntent]) -> None:
        for intent in intents:
            logger.info(
                "Notify %s %s: %s on request %s",
                intent.recipient_role, intent.recipient_id, intent.decision_type, intent.request_id,
            )


class CollectingNotifier:
    """Keeps every dispatched intent in memory."""

    def __init__(self):
        self.sent: list[NotificationIntent] = []

    def dispatch(self, intents: list[NotificationIntent]) -> None:
        self.sent.extend(intents)


def dispatch_safely(notifier: Optional[Notifier], intents: list[NotificationIntent]) -> None:
    if notifier is None or not intents:
        return
    try:
        notifier.dispatch(intents)
    except Exception:
        logger.exception(
            "Notification dispatch failed for request %s (%d intents)",
            intents[0].request_id, len(intents),
        )
