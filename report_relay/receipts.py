"""Append-only publish receipts, used to thread follow-up posts."""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from report_relay.logging_conf import logger
from report_relay.storage import Storage

RECEIPTS_DIR = "receipts"
REPORTS_ENTRY = "weekly-stats"


@dataclass
class Receipt:
    """Backend acknowledgement of one published status."""

    entity_id: Any
    channel: str
    receipt_id: str
    raw: Dict[str, Any] = field(default_factory=dict)
    published_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Receipt":
        return cls(
            entity_id=data.get("entity_id"),
            channel=data.get("channel", ""),
            receipt_id=str(data["receipt_id"]),
            raw=data.get("raw") or {},
            published_at=data.get("published_at", ""),
        )


class ReceiptStore:
    """One JSON list of receipts per report id, per channel."""

    def __init__(self, storage: Storage, channel: str):
        self.storage = storage
        self.channel = channel

    def prepare(self) -> None:
        self.storage.ensure_dir(f"{RECEIPTS_DIR}/{self.channel}")

    def append(self, entity_id, receipt: Receipt) -> None:
        key = self._key(entity_id)
        receipts = self.storage.read_json(key, default=[])
        receipts.append(asdict(receipt))
        self.storage.write_json(key, receipts)
        logger.debug(f"Recorded {self.channel} receipt {receipt.receipt_id} for {entity_id}")

    def receipts(self, entity_id) -> List[Receipt]:
        return [Receipt.from_dict(data) for data in self.storage.read_json(self._key(entity_id), default=[])]

    def last_receipt(self, entity_id) -> Optional[Receipt]:
        receipts = self.receipts(entity_id)
        return receipts.pop() if receipts else None

    def _key(self, entity_id) -> str:
        if entity_id == REPORTS_ENTRY:
            return f"{RECEIPTS_DIR}/{self.channel}/{REPORTS_ENTRY}.json"
        return f"{RECEIPTS_DIR}/{self.channel}/receipts-{entity_id}.json"
