"""Baseline of every report seen so far."""
from typing import Iterable, List, Optional

from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.storage import Storage

MESSAGES_DIR = "messages"
LEDGER_KEY = f"{MESSAGES_DIR}/all-messages.json"


def detail_key(entity_id) -> str:
    return f"{MESSAGES_DIR}/message-{entity_id}.json"


class BaselineStore:
    """Ledger of all known reports plus one detail record per active report.

    The ledger (`all-messages.json`) only ever grows. Detail records are
    replaced on update and relocated by archival.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    def prepare(self) -> None:
        if not self.storage.exists(LEDGER_KEY):
            logger.info("Creating messages file.")
            self.storage.write_json(LEDGER_KEY, [])

    def load_all(self) -> List[Entity]:
        return [Entity.from_dict(data) for data in self.storage.read_json(LEDGER_KEY, default=[])]

    def known_ids(self) -> set:
        return {data["id"] for data in self.storage.read_json(LEDGER_KEY, default=[])}

    def append(self, entities: Iterable[Entity]) -> List[Entity]:
        """Add entities not yet in the ledger. Returns the ones actually added."""
        records = self.storage.read_json(LEDGER_KEY, default=[])
        seen = {data["id"] for data in records}
        added = []
        for entity in entities:
            if entity.id in seen:
                continue
            records.append(entity.to_dict())
            seen.add(entity.id)
            added.append(entity)
        if added:
            self.storage.write_json(LEDGER_KEY, records)
        return added

    def detail(self, entity_id) -> Optional[Entity]:
        data = self.storage.read_json(detail_key(entity_id))
        return Entity.from_dict(data) if data is not None else None

    def has_detail(self, entity_id) -> bool:
        return self.storage.exists(detail_key(entity_id))

    def save_detail(self, entity: Entity) -> None:
        logger.info(f'Saving details for message "{entity.id}" to file')
        self.storage.write_json(detail_key(entity.id), entity.to_dict())
