"""Single-threaded cooperative scheduler for time-shifted tasks."""
import sched
import time
from typing import Callable


class Scheduler:
    """Runs tasks at offsets from a common start on the calling thread.

    Tasks start in offset order (ties in scheduling order). A task that runs
    past the next task's offset delays that start; it never reorders it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sleep: Callable[[float], None] = time.sleep):
        self.clock = clock
        self._scheduler = sched.scheduler(clock, sleep)
        self._start = None

    def start(self) -> float:
        self._start = self.clock()
        return self._start

    def schedule(self, task: Callable[[], None], at_offset: float) -> None:
        if self._start is None:
            self.start()
        self._scheduler.enterabs(self._start + max(0.0, at_offset), 0, task)

    def run(self) -> None:
        """Block until every scheduled task has run."""
        self._scheduler.run()
        self._start = None
