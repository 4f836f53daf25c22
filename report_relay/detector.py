"""Change detection between a fresh fetch and the baseline."""
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from report_relay.models import Entity


@dataclass
class ChangeSet:
    new: List[Entity] = field(default_factory=list)
    updated: List[Tuple[Entity, Entity]] = field(default_factory=list)  # (old, new)
    unmatched: List[Entity] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.new and not self.updated


def detect(
    current: Sequence[Entity],
    baseline: Sequence[Entity],
    lookup: Optional[Callable[[object], Optional[Entity]]] = None,
) -> ChangeSet:
    """Partition `current` against `baseline`.

    `lookup(id)` returns the stored detail record used as the "old" side of an
    update; without it the baseline entry is used. Only a strictly newer
    `lastUpdated` counts as an update.
    """
    known = {entity.id: entity for entity in baseline}
    if lookup is None:
        lookup = known.get

    changes = ChangeSet()
    current_ids = set()
    for entity in current:
        current_ids.add(entity.id)
        if entity.id not in known:
            changes.new.append(entity)
            continue
        old = lookup(entity.id)
        if old is not None and entity.last_updated > old.last_updated:
            changes.updated.append((old, entity))

    changes.unmatched = [entity for entity in baseline if entity.id not in current_ids]
    return changes
