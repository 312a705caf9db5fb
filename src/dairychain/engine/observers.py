"""Observer hooks through which the core reports to the UI and renderer.

The core never waits on an observer: every hook is fire-and-forget and the
return value is ignored.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dairychain.model.batch import Batch
    from dairychain.model.stats import ProcessingStats
    from dairychain.model.transport import Position


class SupplyChainObserver:
    """Base observer; override the hooks you care about."""

    # UI layer
    def on_inspection(self, batch: Batch) -> None:
        """An inspection result or stage summary is available."""

    def on_status_update(self, stats: ProcessingStats) -> None:
        """The processing plant finished a phase."""

    def on_log_entry(self, message: str | dict[str, Any]) -> None:
        """A stage wrote to the activity log."""

    # Renderer
    def trigger_transport_animation(
        self,
        carrier_id: str,
        path: list[Position],
        duration_ticks: int,
    ) -> None:
        """A carrier started moving along ``path``."""

    def trigger_phase_animation(self, agent_id: str, phase_name: str, duration_ticks: int) -> None:
        """A stage started a timed phase."""


class RecordingObserver(SupplyChainObserver):
    """Keeps the most recent notifications of every kind.

    Used by the console runner, the REST server's log endpoint and tests.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self.inspections: deque[Batch] = deque(maxlen=max_entries)
        self.status_updates: deque[ProcessingStats] = deque(maxlen=max_entries)
        self.log_entries: deque[str | dict[str, Any]] = deque(maxlen=max_entries)
        self.transport_animations: deque[tuple[str, list[Position], int]] = deque(
            maxlen=max_entries
        )
        self.phase_animations: deque[tuple[str, str, int]] = deque(maxlen=max_entries)

    def on_inspection(self, batch: Batch) -> None:
        self.inspections.append(batch)

    def on_status_update(self, stats: ProcessingStats) -> None:
        self.status_updates.append(stats)

    def on_log_entry(self, message: str | dict[str, Any]) -> None:
        self.log_entries.append(message)

    def trigger_transport_animation(
        self,
        carrier_id: str,
        path: list[Position],
        duration_ticks: int,
    ) -> None:
        self.transport_animations.append((carrier_id, path, duration_ticks))

    def trigger_phase_animation(self, agent_id: str, phase_name: str, duration_ticks: int) -> None:
        self.phase_animations.append((agent_id, phase_name, duration_ticks))

    def clear(self) -> None:
        self.inspections.clear()
        self.status_updates.clear()
        self.log_entries.clear()
        self.transport_animations.clear()
        self.phase_animations.clear()
