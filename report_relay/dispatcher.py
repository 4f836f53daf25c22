"""Staggered, failure-isolated dispatch of per-report tasks."""
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.scheduler import Scheduler

Handler = Callable[[Entity, bool], None]


@dataclass
class DispatchReport:
    started: List[object] = field(default_factory=list)
    failed: List[object] = field(default_factory=list)
    drained: bool = False


class StaggeredDispatcher:
    """Starts one handler per entity, `per_item_delay` seconds apart, oldest first."""

    def __init__(
        self,
        scheduler: Scheduler,
        per_item_delay: float,
        max_per_run: int = 0,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self.scheduler = scheduler
        self.per_item_delay = per_item_delay
        self.max_per_run = max_per_run
        self.alert = alert

    def order(self, items: Sequence[Entity], sort_key: str = "created_date") -> List[Entity]:
        """Newest first, then reversed: the oldest pending item comes first."""
        ordered = sorted(items, key=lambda e: getattr(e, sort_key), reverse=True)
        ordered.reverse()
        return ordered

    def dispatch(
        self,
        items: Sequence[Entity],
        handler: Handler,
        sort_key: str = "created_date",
        on_drained: Optional[Callable[[], None]] = None,
        label: str = "message",
    ) -> DispatchReport:
        report = DispatchReport()
        ordered = self.order(items, sort_key)

        self.scheduler.start()
        for index, entity in enumerate(ordered):
            should_publish = self.max_per_run <= 0 or index < self.max_per_run
            self.scheduler.schedule(
                self._guarded(handler, entity, should_publish, report, label),
                index * self.per_item_delay,
            )

        def drained():
            report.drained = True
            if on_drained:
                on_drained()

        self.scheduler.schedule(drained, len(ordered) * self.per_item_delay)
        self.scheduler.run()
        return report

    def _guarded(self, handler: Handler, entity: Entity, should_publish: bool, report: DispatchReport, label: str):
        def task():
            report.started.append(entity.id)
            try:
                handler(entity, should_publish)
            except Exception as e:
                report.failed.append(entity.id)
                text = f"Processing {label} {entity.id} failed: {e}"
                logger.error(text, exc_info=True)
                if self.alert:
                    self.alert(text)
        return task
