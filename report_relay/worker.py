"""Publish worker: pops one queued item for a channel and publishes it."""
from typing import Callable, Optional

from report_relay.archival import IMAGES_DIR
from report_relay.backends.base import PublishBackend
from report_relay.config import TenantConfig
from report_relay.geo import entity_location
from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.queue.channel_queue import ChannelQueue
from report_relay.queue.models import PRIORITY, Purpose, QueueItem
from report_relay.receipts import REPORTS_ENTRY, Receipt, ReceiptStore
from report_relay import render
from report_relay.storage import Storage


class PublishWorker:
    """Publishes at most one item per invocation.

    Queues are checked in priority order (new messages, response updates,
    status updates, periodic reports); the first non-empty one is served.
    An item is removed after its attempt whether or not publishing succeeded.
    """

    def __init__(
        self,
        tenant: TenantConfig,
        channel: str,
        backend: PublishBackend,
        storage: Storage,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self.tenant = tenant
        self.channel = channel
        self.backend = backend
        self.storage = storage
        self.queue = ChannelQueue(storage, tenant.max_queue_size)
        self.receipts = ReceiptStore(storage, channel)
        self.alert = alert

    def run_once(self) -> Optional[QueueItem]:
        self.receipts.prepare()
        for purpose in PRIORITY:
            item = self.queue.peek_oldest(self.channel, purpose)
            if item is None:
                continue

            logger.info(f"Found {purpose.value} item to publish on {self.channel}: {item.key}")
            try:
                self.process(item)
            except Exception as e:
                text = f"Publishing {item.key} to {self.channel} failed: {e}"
                logger.error(text, exc_info=True)
                if self.alert:
                    self.alert(text)

            self.queue.remove(self.channel, purpose, item)
            return item

        logger.info(f"Nothing to publish on {self.channel}")
        return None

    def process(self, item: QueueItem) -> Optional[Receipt]:
        if item.purpose == Purpose.PERIODIC_REPORT:
            return self.publish_report(item.payload)

        entity = Entity.from_dict(item.payload)
        if item.purpose == Purpose.NEW_MESSAGE:
            return self.publish_new_message(entity)
        if item.purpose == Purpose.RESPONSE_UPDATE:
            return self.publish_follow_up(entity, render.response_update_text(entity, self.backend.limits))
        return self.publish_follow_up(entity, render.status_update_text(entity))

    def publish_new_message(self, entity: Entity) -> Receipt:
        media_ids = []
        image = self._load_image(entity)
        if image is not None:
            media_ids.append(self.backend.upload(image, entity.image.mime_type))

        text = render.new_message_text(
            entity,
            self.tenant.detail_url(entity.id),
            self.backend.limits,
            with_image=bool(media_ids),
            image_credit=self.tenant.image_credit,
        )
        receipt_id, raw = self.backend.publish(text, media_ids=media_ids, location=entity_location(entity))
        return self._record(entity.id, receipt_id, raw)

    def publish_follow_up(self, entity: Entity, text: Optional[str]) -> Optional[Receipt]:
        """Reply to the last post about this report; never post a follow-up unthreaded."""
        if not text:
            logger.warning(f'Nothing to publish for message "{entity.id}"')
            return None

        parent = self.receipts.last_receipt(entity.id)
        if parent is None:
            logger.warning(
                f'Didn\'t send update for message "{entity.id}" on {self.channel}, '
                f"because origin post couldn't be found."
            )
            return None

        receipt_id, raw = self.backend.publish(text, reply_to=parent.receipt_id, location=entity_location(entity))
        return self._record(entity.id, receipt_id, raw)

    def publish_report(self, text: str) -> Receipt:
        receipt_id, raw = self.backend.publish(text)
        return self._record(REPORTS_ENTRY, receipt_id, raw)

    def _record(self, entity_id, receipt_id: str, raw) -> Receipt:
        receipt = Receipt(entity_id=entity_id, channel=self.channel, receipt_id=receipt_id, raw=raw)
        self.receipts.append(entity_id, receipt)
        return receipt

    def _load_image(self, entity: Entity) -> Optional[bytes]:
        if not entity.image:
            return None
        key = f"{IMAGES_DIR}/{entity.image_filename}"
        if not self.storage.exists(key):
            logger.warning(f'Image of message "{entity.id}" not found at {key}')
            return None
        logger.info(f'Loading image of message "{entity.id}"')
        return self.storage.read(key)
