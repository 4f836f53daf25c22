"""Bounded per-channel queues, one file per item."""
import json
import re
from typing import Optional

from report_relay.logging_conf import logger
from report_relay.queue.models import Purpose, QueueItem
from report_relay.storage import Storage

QUEUES_DIR = "queues"
ITEM_PREFIXES = ("message-", "stats-")


class ChannelQueue:
    """A bounded queue per (channel, purpose) pair.

    Enqueue never blocks: a full queue drops the item and logs a warning.
    Items are consumed in lexicographic order of their file name.
    """

    def __init__(self, storage: Storage, max_size: int):
        self.storage = storage
        self.max_size = max_size

    def prepare(self, channel: str) -> None:
        for purpose in Purpose:
            self.storage.ensure_dir(self._dir(channel, purpose))

    def enqueue(self, channel: str, purpose: Purpose, item: QueueItem) -> bool:
        """Store the item unless queueing is disabled or the queue is full."""
        if self.max_size <= 0:
            logger.debug(f"Queueing disabled, not queueing {item.key} for {channel}")
            return False

        occupancy = self.occupancy(channel, purpose)
        if occupancy >= self.max_size:
            logger.warning(
                f"Didn't queue {purpose.value} item {item.key}. {channel} queue is full!",
                extra={"channel": channel, "purpose": purpose.value, "occupancy": occupancy},
            )
            return False

        key = f"{self._dir(channel, purpose)}/{self._safe_name(item.key)}"
        if item.is_text:
            self.storage.write_text(key, item.payload)
        else:
            self.storage.write_json(key, item.payload)
        logger.info(f"Saving {item.key} into {purpose.value} {channel} queue")
        return True

    def peek_oldest(self, channel: str, purpose: Purpose) -> Optional[QueueItem]:
        keys = self._keys(channel, purpose)
        if not keys:
            return None

        key = keys[0]
        name = key.rpartition("/")[2]
        try:
            if name.endswith(".txt"):
                payload = self.storage.read_text(key)
            else:
                payload = self.storage.read_json(key)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read queue item {key}: {e}", exc_info=True)
            raise
        return QueueItem(
            channel=channel, purpose=purpose, key=name, payload=payload,
            enqueued_at=self.storage.modified_at(key),
        )

    def remove(self, channel: str, purpose: Purpose, item: QueueItem) -> None:
        logger.info(f'Removing item "{item.key}" from {purpose.value} {channel} queue')
        self.storage.delete(f"{self._dir(channel, purpose)}/{item.key}")

    def occupancy(self, channel: str, purpose: Purpose) -> int:
        return len(self._keys(channel, purpose))

    def _keys(self, channel: str, purpose: Purpose):
        directory = self._dir(channel, purpose)
        keys = []
        for prefix in ITEM_PREFIXES:
            keys.extend(self.storage.list_by_prefix(f"{directory}/{prefix}"))
        keys.sort()
        return keys

    def _dir(self, channel: str, purpose: Purpose) -> str:
        return f"{QUEUES_DIR}/{channel}/{purpose.value}"

    def _safe_name(self, value: str) -> str:
        """Make a safe filename from a key."""
        return re.sub(r"[^A-Za-z0-9._-]", "_", value)[:200]
