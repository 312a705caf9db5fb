"""Processing plant statistics reported after every pipeline phase."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace


@dataclass
class ProcessingStats:
    """Plant counters and the report of the current (or last) delivery.

    The truck counters and ``total_bottles_packed`` accumulate over the
    plant's lifetime. The remaining fields describe one delivery and are
    cleared when the next delivery starts inspection.
    """

    # Lifetime counters
    trucks_received: int = 0
    accepted_trucks: int = 0
    rejected_trucks: int = 0
    total_bottles_packed: int = 0
    deliveries_dispatched: int = 0

    # Current delivery
    total_milk_qty: float = 0.0
    avg_quality: float = 0.0
    processing_start_time: str = ""
    processing_end_time: str = ""
    production_start_time: str = ""
    production_end_time: str = ""
    bottles_packed: int = 0
    final_quality: float = 0.0
    is_dispatched: bool = False

    def begin_delivery(self) -> None:
        """Clear the per-delivery report fields."""
        self.total_milk_qty = 0.0
        self.avg_quality = 0.0
        self.processing_start_time = ""
        self.processing_end_time = ""
        self.production_start_time = ""
        self.production_end_time = ""
        self.bottles_packed = 0
        self.final_quality = 0.0
        self.is_dispatched = False

    def snapshot(self) -> ProcessingStats:
        """Detached copy safe to hand to observers."""
        return replace(self)

    def to_dict(self) -> dict:
        return asdict(self)
