"""Stage base class and the context every stage is wired with."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dairychain.model.aggregate import AggregateState
from dairychain.model.batch import SYSTEM_SOURCE_ID
from dairychain.policy.inspection import spot_check

if TYPE_CHECKING:
    from dairychain.config import SimulationConfig
    from dairychain.engine.bus import EventBus
    from dairychain.engine.clock import LogicalClock
    from dairychain.engine.transport import TransportManager
    from dairychain.model.batch import Batch
    from dairychain.model.transport import Position


@dataclass
class StageContext:
    """Shared services handed to every stage of one supply chain."""

    config: SimulationConfig
    bus: EventBus
    clock: LogicalClock
    transports: TransportManager
    rng: random.Random = field(default_factory=random.Random)


class Stage:
    """A physical node of the supply chain.

    A stage reads its inbound channel (if it has one) once per tick via
    ``step()`` and hands each delivery to ``receive()``. Deliveries that
    arrive while the stage is busy wait in ``backlog`` in arrival order.
    """

    role = "stage"
    idle_state: str = "IDLE"

    def __init__(
        self,
        stage_id: str,
        name: str,
        position: Position,
        context: StageContext,
        inbound_channel: str | None = None,
        outbound_channel: str | None = None,
        destination: Position | None = None,
    ) -> None:
        self.id = stage_id
        self.name = name
        self.position = position
        self.context = context
        self.inbound_channel = inbound_channel
        self.outbound_channel = outbound_channel
        self.destination = destination

        self.state: str = self.idle_state
        self.aggregate = AggregateState()
        self.backlog: deque[Any] = deque()
        self.spot_checks = 0

    # Convenience accessors

    @property
    def config(self) -> SimulationConfig:
        return self.context.config

    @property
    def bus(self) -> EventBus:
        return self.context.bus

    @property
    def clock(self) -> LogicalClock:
        return self.context.clock

    @property
    def busy(self) -> bool:
        return self.state != self.idle_state

    # Tick handling

    def step(self) -> None:
        """Consume at most one message from the inbound channel."""
        if self.inbound_channel is None:
            return
        message = self.bus.poll(self.inbound_channel)
        if message is not None:
            self.receive(message.payload)

    def receive(self, payload: Any) -> None:
        """Handle one delivery from the inbound channel."""
        raise NotImplementedError(f"{type(self).__name__} does not accept deliveries")

    def notify_inspection_opportunity(self) -> Batch:
        """Answer an external inspection trigger.

        The default is a spot check by the stage's inspection robot: a random
        reading reported to observers. It does not enter the delivery flow.
        """
        batch = spot_check(SYSTEM_SOURCE_ID, self.context.rng)
        self.spot_checks += 1
        self.bus.report_inspection(batch)
        self._log(f"SPOT_CHECK: {self.name} quality={batch.quality:g} status={batch.status}")
        return batch

    # Helpers

    def _set_state(self, state: str) -> None:
        self.state = state

    def _drain_backlog(self) -> None:
        """Start the next waiting delivery, if the stage is free."""
        if self.backlog and not self.busy:
            self.receive(self.backlog.popleft())

    def _log(self, message: str, level: int = logging.INFO) -> None:
        """Write to the module log and to the observers' activity log."""
        logging.getLogger(type(self).__module__).log(
            level, message, extra={"stage": self.id, "tick": self.clock.tick}
        )
        self.bus.log_entry(message)

    def describe(self) -> dict[str, Any]:
        """Summary used by the console runner and the REST API."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "position": list(self.position),
            "state": str(self.state),
            "aggregate": self.aggregate.to_dict(),
            "backlog": len(self.backlog),
            "spot_checks": self.spot_checks,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, state={self.state})"
