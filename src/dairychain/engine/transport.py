"""Transport manager: moves carriers between stages one tick at a time."""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict, deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from dairychain.errors import ChannelFull
from dairychain.model.transport import Position, TransportLink

if TYPE_CHECKING:
    from dairychain.engine.bus import EventBus
    from dairychain.engine.clock import LogicalClock

logger = logging.getLogger(__name__)


class TransportManager:
    """Runs every transport link of a supply chain.

    Each carrier drives at most one link at a time. A trip requested while
    the carrier is on the road waits in that carrier's queue and starts as
    soon as the current trip completes.
    """

    def __init__(self, bus: EventBus, clock: LogicalClock) -> None:
        self.bus = bus
        self.clock = clock
        self.active: dict[str, TransportLink] = {}
        self.queued: dict[str, deque[TransportLink]] = defaultdict(deque)
        self.completed = 0
        self._ids = itertools.count(1)

    def start(
        self,
        carrier_id: str,
        origin: Position,
        destination: Position,
        channel: str,
        payload: Any,
        duration_ticks: int,
        on_arrive: Callable[[Any], None] | None = None,
    ) -> TransportLink:
        """Send ``payload`` from origin to destination on ``carrier_id``.

        Returns:
            The created link, active or queued behind the carrier's current trip.
        """
        link = TransportLink(
            id=f"{carrier_id}#{next(self._ids)}",
            carrier_id=carrier_id,
            origin=origin,
            destination=destination,
            channel=channel,
            duration_ticks=duration_ticks,
            payload=payload,
            on_arrive=on_arrive,
        )

        if carrier_id in self.active:
            self.queued[carrier_id].append(link)
            logger.warning(
                "Carrier %s is on the road; queued trip %s to %s (%d waiting)",
                carrier_id,
                link.id,
                channel,
                len(self.queued[carrier_id]),
            )
        else:
            self._activate(link)
        return link

    def advance(self) -> None:
        """Move every active carrier one tick along its link."""
        for link in list(self.active.values()):
            if not link.arrived:
                link.elapsed_ticks += 1
            if link.arrived:
                self._complete(link)

    def is_busy(self, carrier_id: str) -> bool:
        return carrier_id in self.active

    def in_transit(self) -> int:
        """Active plus queued trips."""
        return len(self.active) + sum(len(q) for q in self.queued.values())

    def _activate(self, link: TransportLink) -> None:
        link.started_tick = self.clock.tick
        self.active[link.carrier_id] = link
        self.bus.transport_animation(link.carrier_id, link.path, link.duration_ticks)
        logger.info(
            "Carrier %s departed for %s (%d ticks)",
            link.carrier_id,
            link.channel,
            link.duration_ticks,
        )

    def _complete(self, link: TransportLink) -> None:
        try:
            self.bus.publish(link.channel, link.payload, sender=link.carrier_id, tick=self.clock.tick)
        except ChannelFull:
            # Stay parked at the destination and retry on the next tick
            logger.warning(
                "Channel %s full; carrier %s waiting at destination",
                link.channel,
                link.carrier_id,
            )
            return

        del self.active[link.carrier_id]
        self.completed += 1
        logger.info("Carrier %s arrived on %s", link.carrier_id, link.channel)

        if link.on_arrive is not None:
            link.on_arrive(link.payload)

        waiting = self.queued.get(link.carrier_id)
        if waiting:
            self._activate(waiting.popleft())
