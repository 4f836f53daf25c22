"""Publish backend interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

from report_relay.render import TextLimits


class PublishBackend(ABC):
    """A microblog a channel publishes to."""

    name: str
    limits: TextLimits

    @abstractmethod
    def upload(self, media: bytes, mime_type: str = "") -> str:
        """Upload an image and return the backend's media reference."""

    @abstractmethod
    def publish(
        self,
        text: str,
        media_ids: Sequence[str] = (),
        reply_to: Optional[str] = None,
        location: Optional[Tuple[float, float]] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        """Publish a status. Returns `(receipt_id, raw_response)`."""
