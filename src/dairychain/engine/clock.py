"""Logical clock: tick counter with delayed callbacks.

Stage pipelines suspend between phases by scheduling the next phase on the
clock instead of sleeping, so a whole supply-chain run can be stepped
deterministically in tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledCall:
    """A callback waiting for its tick."""

    due_tick: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    label: str = field(default="", compare=False)


class LogicalClock:
    """Discrete tick source driving every timed phase of the simulation."""

    def __init__(self, start_tick: int = 0) -> None:
        self.tick = start_tick
        self._queue: list[ScheduledCall] = []
        self._seq = itertools.count()

    def schedule(
        self,
        delay_ticks: int,
        callback: Callable[[], None],
        label: str = "",
    ) -> ScheduledCall:
        """Run ``callback`` once ``delay_ticks`` ticks have elapsed.

        Calls due on the same tick run in the order they were scheduled.

        Raises:
            ValueError: If delay_ticks is negative.
        """
        if delay_ticks < 0:
            raise ValueError(f"delay_ticks must be >= 0, got {delay_ticks}")
        call = ScheduledCall(
            due_tick=self.tick + delay_ticks,
            seq=next(self._seq),
            callback=callback,
            label=label,
        )
        heapq.heappush(self._queue, call)
        return call

    def advance(self) -> int:
        """Move one tick forward and fire every call now due.

        Callbacks may schedule further calls; zero-delay calls scheduled from
        a callback fire within the same advance.

        Returns:
            Number of callbacks fired.
        """
        self.tick += 1
        fired = 0
        while self._queue and self._queue[0].due_tick <= self.tick:
            call = heapq.heappop(self._queue)
            logger.debug("Firing %s at tick %d", call.label or "callback", self.tick)
            call.callback()
            fired += 1
        return fired

    @property
    def pending(self) -> int:
        return len(self._queue)

    def next_due(self) -> int | None:
        return self._queue[0].due_tick if self._queue else None
