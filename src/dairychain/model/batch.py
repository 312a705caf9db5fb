"""Batch value type: a quantity of milk with its quality reading and provenance."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dairychain.model.stats import ProcessingStats

# Source id conventions
COLLECTION_SOURCE_ID = 0  # combined batch formed at the collection point
SYSTEM_SOURCE_ID = -1  # plant reports and other system-originated batches


class BatchStatus(StrEnum):
    """Inspection outcome for a batch."""

    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


def capture_time() -> str:
    """Human-readable capture time, e.g. '14:05:09'."""
    return datetime.now().strftime("%H:%M:%S")


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate figures attached to combined or processed batches."""

    total_quantity: float
    farmer_count: int | None = None
    average_quality: float | None = None
    bottle_count: int | None = None
    process_stats: ProcessingStats | None = None


@dataclass(frozen=True)
class Batch:
    """An immutable quantity of milk.

    A new Batch is produced at every aggregation or transformation step;
    existing batches are never modified.
    """

    source_id: int  # farmer id, 0 for collection summaries, -1 for system reports
    quantity: float  # litres
    quality: float  # SNF quality index, roughly 0-30
    status: BatchStatus = BatchStatus.ACCEPTED
    timestamp: str = ""
    summary: BatchSummary | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Batch quantity must be >= 0, got {self.quantity}")
        if not self.timestamp:
            object.__setattr__(self, "timestamp", capture_time())

    @property
    def accepted(self) -> bool:
        return self.status == BatchStatus.ACCEPTED

    def to_dict(self) -> dict:
        """Plain-dict form for JSON responses and log entries."""
        data = {
            "source_id": self.source_id,
            "quantity": self.quantity,
            "quality": self.quality,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        if self.summary is not None:
            summary: dict = {"total_quantity": self.summary.total_quantity}
            if self.summary.farmer_count is not None:
                summary["farmer_count"] = self.summary.farmer_count
            if self.summary.average_quality is not None:
                summary["average_quality"] = self.summary.average_quality
            if self.summary.bottle_count is not None:
                summary["bottle_count"] = self.summary.bottle_count
            if self.summary.process_stats is not None:
                summary["process_stats"] = self.summary.process_stats.to_dict()
            data["summary"] = summary
        return data


@dataclass(frozen=True)
class Delivery:
    """Payload carried by a transport link: litres and their mean quality."""

    quantity: float
    quality: float

    def to_batch(self, source_id: int = SYSTEM_SOURCE_ID) -> Batch:
        return Batch(source_id=source_id, quantity=self.quantity, quality=self.quality)
