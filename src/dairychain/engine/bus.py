"""Event bus: per-channel delivery queues plus observer fan-out.

Channels carry deliveries between stages. Each channel is a FIFO queue, so
two carriers arriving on the same tick cannot overwrite each other. A
receiving stage polls its channel once per tick and takes at most one
message.

Observer notifications (inspection results, status snapshots, log entries,
animation cues) fan out to every subscribed observer. A failing observer is
logged and skipped.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict, deque
from dataclasses import asdict, dataclass, is_dataclass
from typing import TYPE_CHECKING, Any

from dairychain.errors import ChannelFull

if TYPE_CHECKING:
    from dairychain.engine.observers import SupplyChainObserver
    from dairychain.model.batch import Batch
    from dairychain.model.stats import ProcessingStats
    from dairychain.model.transport import Position

logger = logging.getLogger(__name__)

# Delivery channels, named after the hand-off they carry
FARM_TO_COLLECTION = "farm->collection"
COLLECTION_TO_PROCESSING = "collection->processing"
PROCESSING_TO_DISTRIBUTION = "processing->distribution"
DISTRIBUTION_TO_RETAIL = "distribution->retail"

CHANNELS = (
    FARM_TO_COLLECTION,
    COLLECTION_TO_PROCESSING,
    PROCESSING_TO_DISTRIBUTION,
    DISTRIBUTION_TO_RETAIL,
)


@dataclass(frozen=True)
class BusMessage:
    """A delivery waiting on a channel."""

    id: int
    channel: str
    payload: Any
    sender: str = ""
    tick: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        elif is_dataclass(payload):
            payload = asdict(payload)
        return {
            "id": self.id,
            "channel": self.channel,
            "sender": self.sender,
            "tick": self.tick,
            "payload": payload,
        }


class EventBus:
    """In-process bus connecting the stages of one supply chain."""

    def __init__(self, capacity: int = 0, log_size: int = 500) -> None:
        """Initialize the bus.

        Args:
            capacity: Maximum pending messages per channel; 0 means unbounded.
            log_size: Number of published messages kept in the message log.
        """
        self.capacity = capacity
        self._channels: dict[str, deque[BusMessage]] = defaultdict(deque)
        self._observers: list[SupplyChainObserver] = []
        self.message_log: deque[dict[str, Any]] = deque(maxlen=log_size)
        self._ids = itertools.count(1)
        self.total_messages = 0

    # Channels

    def publish(self, channel: str, payload: Any, sender: str = "", tick: int = 0) -> BusMessage:
        """Append a delivery to a channel.

        Raises:
            ChannelFull: If the channel is bounded and already at capacity.
        """
        queue = self._channels[channel]
        if self.capacity and len(queue) >= self.capacity:
            raise ChannelFull(channel, self.capacity)

        message = BusMessage(
            id=next(self._ids),
            channel=channel,
            payload=payload,
            sender=sender,
            tick=tick,
        )
        queue.append(message)
        self.total_messages += 1
        self.message_log.append(message.to_dict())
        logger.debug("Published message %d on %s from %s", message.id, channel, sender)
        return message

    def poll(self, channel: str) -> BusMessage | None:
        """Remove and return the oldest message on a channel, if any."""
        queue = self._channels.get(channel)
        if not queue:
            return None
        return queue.popleft()

    def pending(self, channel: str | None = None) -> int:
        """Messages waiting on one channel, or on all channels."""
        if channel is not None:
            return len(self._channels.get(channel, ()))
        return sum(len(q) for q in self._channels.values())

    def get_message_log(self, n: int = 20) -> list[dict[str, Any]]:
        """Most recent published messages, oldest first."""
        return list(self.message_log)[-n:]

    # Observers

    def subscribe(self, observer: SupplyChainObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: SupplyChainObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observers(self) -> list[SupplyChainObserver]:
        return list(self._observers)

    def report_inspection(self, batch: Batch) -> None:
        self._notify("on_inspection", batch)

    def report_status(self, stats: ProcessingStats) -> None:
        self._notify("on_status_update", stats)

    def log_entry(self, message: str | dict[str, Any]) -> None:
        self._notify("on_log_entry", message)

    def transport_animation(
        self,
        carrier_id: str,
        path: list[Position],
        duration_ticks: int,
    ) -> None:
        self._notify("trigger_transport_animation", carrier_id, path, duration_ticks)

    def phase_animation(self, agent_id: str, phase_name: str, duration_ticks: int) -> None:
        self._notify("trigger_phase_animation", agent_id, phase_name, duration_ticks)

    def _notify(self, hook: str, *args: Any) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, hook)(*args)
            except Exception:
                # Observers are fire-and-forget
                logger.exception(
                    "Observer %s failed in %s. Continuing.",
                    type(observer).__name__,
                    hook,
                )
