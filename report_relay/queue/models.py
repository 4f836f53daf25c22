"""Queue data models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union


class Purpose(str, Enum):
    """What a queued item will be published as.

    Declaration order is the publish worker's priority order.
    """

    NEW_MESSAGE = "new_messages"
    RESPONSE_UPDATE = "response_updates"
    STATUS_UPDATE = "status_updates"
    PERIODIC_REPORT = "statistics_updates"


PRIORITY = tuple(Purpose)


@dataclass
class QueueItem:
    """Represents an item in a channel queue."""

    channel: str
    purpose: Purpose
    key: str  # Storage file name, sortable
    payload: Union[Dict[str, Any], str]  # Entity dict, or pre-rendered report text
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_entity(cls, channel: str, purpose: Purpose, entity: Dict[str, Any]):
        """Factory for an entity payload keyed by zero-padded id."""
        return cls(
            channel=channel,
            purpose=purpose,
            key=f"message-{sortable_id(entity['id'])}.json",
            payload=entity,
        )

    @classmethod
    def for_report(cls, channel: str, text: str, day: str):
        """Factory for a pre-rendered periodic report keyed by ISO date."""
        return cls(
            channel=channel,
            purpose=Purpose.PERIODIC_REPORT,
            key=f"stats-{day}.txt",
            payload=text,
        )

    @property
    def is_text(self) -> bool:
        return self.key.endswith(".txt")


def sortable_id(value) -> str:
    """Zero-pad numeric ids so lexicographic order matches numeric order."""
    text = str(value)
    if text.isdigit():
        return text.zfill(12)
    return text
