"""Simulation engine: logical clock, event bus, transports and the tick driver."""

from dairychain.engine.bus import (
    CHANNELS,
    COLLECTION_TO_PROCESSING,
    DISTRIBUTION_TO_RETAIL,
    FARM_TO_COLLECTION,
    PROCESSING_TO_DISTRIBUTION,
    BusMessage,
    EventBus,
)
from dairychain.engine.clock import LogicalClock, ScheduledCall
from dairychain.engine.observers import RecordingObserver, SupplyChainObserver
from dairychain.engine.simulation import run_ticks, run_until_idle, tick_chain
from dairychain.engine.transport import TransportManager

__all__ = [
    "CHANNELS",
    "COLLECTION_TO_PROCESSING",
    "DISTRIBUTION_TO_RETAIL",
    "FARM_TO_COLLECTION",
    "PROCESSING_TO_DISTRIBUTION",
    "BusMessage",
    "EventBus",
    "LogicalClock",
    "RecordingObserver",
    "ScheduledCall",
    "SupplyChainObserver",
    "TransportManager",
    "run_ticks",
    "run_until_idle",
    "tick_chain",
]
