"""Archival of reports that left the source or went stale."""
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Sequence, Set

from dateutil.relativedelta import relativedelta

from report_relay.baseline import detail_key
from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.storage import Storage

IMAGES_DIR = "images"


def retention_threshold(now: datetime, months: int = 6) -> datetime:
    """End of the ISO week that lies `months` before `now`."""
    past = now - relativedelta(months=months)
    sunday = past.date() + timedelta(days=6 - past.weekday())
    return datetime.combine(sunday, time.max, tzinfo=past.tzinfo or timezone.utc)


class ArchivalPolicy:
    """Moves detail records and images from active storage into the archive.

    Each artifact moves on its own: a failed image move does not undo or stop
    the record move, and one report's failure does not stop the next.
    """

    def __init__(self, active: Storage, archive: Storage, retention_months: int = 6):
        self.active = active
        self.archive_storage = archive
        self.retention_months = retention_months

    def candidates(self, baseline: Sequence[Entity], current: Sequence[Entity], now: datetime):
        threshold = retention_threshold(now, self.retention_months)
        current_ids = {entity.id for entity in current}
        return [
            entity for entity in baseline
            if entity.id not in current_ids or entity.last_updated < threshold
        ]

    def archive(self, baseline: Sequence[Entity], current: Sequence[Entity], now: Optional[datetime] = None) -> Set:
        now = now or datetime.now(timezone.utc)
        moved = set()
        image_keys = self.active.list_by_prefix(f"{IMAGES_DIR}/")

        for entity in self.candidates(baseline, current, now):
            prefix = f"{IMAGES_DIR}/{entity.id}-"
            for key in (k for k in image_keys if k.startswith(prefix)):
                if self._move(key, entity):
                    moved.add(entity.id)

            key = detail_key(entity.id)
            if self.active.exists(key) and self._move(key, entity):
                moved.add(entity.id)

        logger.info(f"Archiving old messages finished. Archived {len(moved)} message(s).")
        return moved

    def _move(self, key: str, entity: Entity) -> bool:
        try:
            self.active.move(key, self.archive_storage)
            logger.debug(f"Archived {key}")
            return True
        except OSError as e:
            logger.error(f'Failed to archive "{key}" of message "{entity.id}": {e}', exc_info=True)
            return False
