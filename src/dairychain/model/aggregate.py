"""Running aggregate owned by the collecting stages."""

from __future__ import annotations

from dataclasses import dataclass

from dairychain.policy.inspection import running_mean

EMPTY = "EMPTY"
COLLECTING = "COLLECTING"


@dataclass
class AggregateState:
    """Totals of everything a stage has accepted since its last hand-off.

    ``average_quality`` is the unweighted mean of the quality readings: every
    accepted delivery counts once regardless of its litres.
    """

    total_quantity: float = 0.0
    count: int = 0
    average_quality: float = 0.0
    status: str = EMPTY

    def add(self, quantity: float, quality: float) -> None:
        """Fold one accepted reading into the aggregate."""
        self.average_quality = running_mean(self.average_quality, self.count, quality)
        self.total_quantity += quantity
        self.count += 1
        self.status = COLLECTING

    def reset(self) -> None:
        self.total_quantity = 0.0
        self.count = 0
        self.average_quality = 0.0
        self.status = EMPTY

    def to_dict(self) -> dict:
        return {
            "total_quantity": self.total_quantity,
            "count": self.count,
            "average_quality": self.average_quality,
            "status": self.status,
        }
