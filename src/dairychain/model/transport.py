"""TransportLink dataclass: a timed, one-shot delivery between two stages."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

Position = tuple[float, float, float]


@dataclass
class TransportLink:
    """A carrier moving a payload from one stage to another.

    The link completes once ``elapsed_ticks`` reaches ``duration_ticks``; the
    payload is then published on ``channel`` and ``on_arrive`` is invoked.
    """

    id: str
    carrier_id: str  # truck, milk can, van...
    origin: Position
    destination: Position
    channel: str  # bus channel of the receiving stage
    duration_ticks: int
    payload: Any = None

    on_arrive: Callable[[Any], None] | None = field(default=None, repr=False)

    # Transit progress
    elapsed_ticks: int = 0
    started_tick: int = 0

    def __post_init__(self) -> None:
        if self.duration_ticks < 1:
            raise ValueError(f"duration_ticks must be >= 1, got {self.duration_ticks}")

    @property
    def progress(self) -> float:
        """0.0 at the origin, 1.0 at the destination."""
        return min(1.0, self.elapsed_ticks / self.duration_ticks)

    @property
    def arrived(self) -> bool:
        return self.elapsed_ticks >= self.duration_ticks

    @property
    def path(self) -> list[Position]:
        return [self.origin, self.destination]
