"""Tests for the transport manager."""

from __future__ import annotations

import pytest

from dairychain.engine.bus import EventBus
from dairychain.engine.clock import LogicalClock
from dairychain.engine.observers import RecordingObserver
from dairychain.engine.transport import TransportManager

ORIGIN = (0.0, 0.0, 0.0)
DEST = (10.0, 0.0, 0.0)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def manager(bus: EventBus) -> TransportManager:
    return TransportManager(bus, LogicalClock())


def _send(manager: TransportManager, payload, carrier: str = "truck", ticks: int = 2, **kwargs):
    return manager.start(
        carrier_id=carrier,
        origin=ORIGIN,
        destination=DEST,
        channel="a->b",
        payload=payload,
        duration_ticks=ticks,
        **kwargs,
    )


class TestTransportManager:
    """Tests for TransportManager."""

    def test_publishes_on_arrival(self, manager: TransportManager, bus: EventBus) -> None:
        """The payload reaches the channel only after the trip duration."""
        _send(manager, "milk", ticks=2)
        assert manager.is_busy("truck")

        manager.advance()
        assert bus.pending("a->b") == 0

        manager.advance()
        message = bus.poll("a->b")
        assert message.payload == "milk"
        assert message.sender == "truck"
        assert not manager.is_busy("truck")
        assert manager.completed == 1

    def test_start_emits_transport_animation(self, manager: TransportManager, bus: EventBus) -> None:
        recorder = RecordingObserver()
        bus.subscribe(recorder)
        _send(manager, "milk", ticks=5)
        assert list(recorder.transport_animations) == [("truck", [ORIGIN, DEST], 5)]

    def test_busy_carrier_queues_trip(self, manager: TransportManager, bus: EventBus) -> None:
        """A second request for the same carrier waits for the first trip."""
        _send(manager, "first", ticks=1)
        second = _send(manager, "second", ticks=1)
        assert manager.in_transit() == 2
        assert second.elapsed_ticks == 0

        manager.advance()
        assert bus.poll("a->b").payload == "first"
        assert manager.active["truck"] is second

        manager.advance()
        assert bus.poll("a->b").payload == "second"
        assert manager.in_transit() == 0

    def test_carriers_move_independently(self, manager: TransportManager, bus: EventBus) -> None:
        """Different carriers arriving together both land on the channel."""
        _send(manager, "a", carrier="farm-1-can", ticks=1)
        _send(manager, "b", carrier="farm-2-can", ticks=1)
        manager.advance()
        assert bus.pending("a->b") == 2

    def test_on_arrive_callback(self, manager: TransportManager) -> None:
        arrived: list[str] = []
        _send(manager, "milk", ticks=1, on_arrive=arrived.append)
        manager.advance()
        assert arrived == ["milk"]

    def test_full_channel_parks_carrier(self) -> None:
        """On a full channel the carrier waits and retries on the next tick."""
        bus = EventBus(capacity=1)
        manager = TransportManager(bus, LogicalClock())
        bus.publish("a->b", "blocking")

        _send(manager, "milk", ticks=1)
        manager.advance()
        assert manager.is_busy("truck")
        assert bus.pending("a->b") == 1

        assert bus.poll("a->b").payload == "blocking"
        manager.advance()
        assert bus.poll("a->b").payload == "milk"
        assert not manager.is_busy("truck")

    def test_started_tick_recorded(self, bus: EventBus) -> None:
        clock = LogicalClock(start_tick=40)
        manager = TransportManager(bus, clock)
        link = _send(manager, "milk")
        assert link.started_tick == 40
        assert link.id.startswith("truck#")
