"""One sync run: fetch, detect, dispatch, queue, archive."""
from datetime import datetime, timezone
from typing import Callable, List, Optional

from report_relay.archival import IMAGES_DIR, ArchivalPolicy
from report_relay.baseline import BaselineStore
from report_relay.config import TenantConfig
from report_relay.detector import ChangeSet, detect
from report_relay.dispatcher import StaggeredDispatcher
from report_relay.errors import TransportError
from report_relay.geo import entity_location
from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.queue.channel_queue import ChannelQueue
from report_relay.queue.models import Purpose, QueueItem
from report_relay.record_store import RecordStore
from report_relay.source_client import SourceClient
from report_relay.storage import Storage


class SyncRun:
    """Brings the tenant's local state in line with the source and fills the queues."""

    def __init__(
        self,
        tenant: TenantConfig,
        source: SourceClient,
        storage: Storage,
        dispatcher: StaggeredDispatcher,
        archival: Optional[ArchivalPolicy] = None,
        record_store: Optional[RecordStore] = None,
        image_mirror: Optional[Storage] = None,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self.tenant = tenant
        self.source = source
        self.storage = storage
        self.baseline = BaselineStore(storage)
        self.queue = ChannelQueue(storage, tenant.max_queue_size)
        self.dispatcher = dispatcher
        self.archival = archival
        self.record_store = record_store
        self.image_mirror = image_mirror
        self.alert = alert

    def prepare(self) -> None:
        """Create the tenant's directories and ledger on first run."""
        self.baseline.prepare()
        self.storage.ensure_dir(IMAGES_DIR)
        for channel in self.tenant.channels:
            self.queue.prepare(channel)

    def run(self, now: Optional[datetime] = None) -> ChangeSet:
        logger.info("Run started.")
        self.prepare()

        # Nothing to compare against without a search result; let it propagate
        current = self.fetch_current()

        baseline = self.baseline.load_all()
        changes = detect(current, baseline, lookup=self.baseline.detail)

        self.process_new(changes.new)
        self.process_updates(changes.updated)

        if self.tenant.archive_old_messages and self.archival:
            self.archival.archive(self.baseline.load_all(), current, now=now or datetime.now(timezone.utc))

        logger.info("Run finished.")
        return changes

    def fetch_current(self) -> List[Entity]:
        try:
            return self.source.search(self.tenant.limit_messages_fetch)
        except TransportError as e:
            self._report(f"Fetching data failed: {e}")
            raise

    def process_new(self, entities: List[Entity]) -> None:
        if not entities:
            logger.info("No new messages to process.")
            return

        self._report(f"Found new messages: {len(entities)}", level="info")
        self.baseline.append(entities)
        self.dispatcher.dispatch(entities, self.process_new_message, sort_key="created_date", label="new message")
        logger.info("Processing new messages finished.")

    def process_updates(self, updated) -> None:
        logger.info("Checking for message updates")
        olds = {new.id: old for old, new in updated}

        def handle(entity: Entity, should_publish: bool):
            self.process_message_update(olds[entity.id], entity, should_publish)

        self.dispatcher.dispatch(
            [new for _, new in updated], handle, sort_key="last_updated", label="message update"
        )
        logger.info("Processing message updates finished.")

    def process_new_message(self, entity: Entity, should_publish: bool = True) -> None:
        details = self.source.detail(entity.id)
        self._store(details)

        if details.image:
            image = self.source.fetch_media(details.image.id)
            logger.info(f'Saving image of message "{details.id}" to file')
            key = f"{IMAGES_DIR}/{details.image_filename}"
            self.storage.write(key, image)
            if self.image_mirror:
                logger.info(f'Saving image of message "{details.id}" to S3')
                self.image_mirror.write(key, image)

        if not should_publish:
            logger.info(f'Not queueing message "{details.id}", publish limit for this run reached')
            return

        self._enqueue(Purpose.NEW_MESSAGE, details)
        if details.responses:
            self._enqueue(Purpose.RESPONSE_UPDATE, details)

    def process_message_update(self, old: Entity, entity: Entity, should_publish: bool = True) -> None:
        details = self.source.detail(entity.id)
        self._store(details)

        if not should_publish:
            return

        if len(details.responses) > len(old.responses):
            count = len(details.responses) - len(old.responses)
            logger.info(f'{count} new response(s) in message "{details.id}"')
            self._enqueue(Purpose.RESPONSE_UPDATE, details)

        if old.status is not None and details.status != old.status:
            logger.info(f'Status of message "{details.id}" changed from {old.status} to {details.status}')
            self._enqueue(Purpose.STATUS_UPDATE, details)

    def _store(self, details: Entity) -> None:
        self.baseline.save_detail(details)
        if self.record_store:
            self.record_store.upsert(details, self.tenant.key, entity_location(details))

    def _enqueue(self, purpose: Purpose, details: Entity) -> None:
        for channel in self.tenant.channels:
            self.queue.enqueue(channel, purpose, QueueItem.for_entity(channel, purpose, details.to_dict()))

    def _report(self, text: str, level: str = "error") -> None:
        getattr(logger, level)(text)
        if self.alert:
            self.alert(text)
