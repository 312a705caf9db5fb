"""Domain model: Batch, Delivery, AggregateState, ProcessingStats, TransportLink, SupplyChain."""

from dairychain.model.aggregate import AggregateState
from dairychain.model.batch import (
    COLLECTION_SOURCE_ID,
    SYSTEM_SOURCE_ID,
    Batch,
    BatchStatus,
    BatchSummary,
    Delivery,
    capture_time,
)
from dairychain.model.chain import SupplyChain
from dairychain.model.stats import ProcessingStats
from dairychain.model.transport import Position, TransportLink

__all__ = [
    "COLLECTION_SOURCE_ID",
    "SYSTEM_SOURCE_ID",
    "AggregateState",
    "Batch",
    "BatchStatus",
    "BatchSummary",
    "Delivery",
    "Position",
    "ProcessingStats",
    "SupplyChain",
    "TransportLink",
    "capture_time",
]
