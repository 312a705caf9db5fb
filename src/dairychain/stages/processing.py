"""Processing plant: inspect, process, produce and dispatch each truck load.

Each delivery runs through a fixed sequence of phases. Timed phases suspend
on the logical clock and resume from a scheduled callback, so one delivery
is in flight at a time and later trucks wait in the backlog.

    WAITING
      → INSPECTING            (inspect_ticks)
      → INSPECTION_COMPLETED
      → PROCESSING_STARTED    (process_ticks)
      → PROCESSING_COMPLETED
      → PRODUCTION_STARTED    (bottle_ticks per bottle)
      → PRODUCTION_COMPLETED
      → DISPATCHING           (dispatch_ticks)
      → DISPATCHED_TO_DISTRIBUTION
    WAITING

A truck failing the quality threshold goes from INSPECTING straight back to
WAITING without touching the totals.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

from dairychain.errors import StageBusy
from dairychain.model.batch import (
    SYSTEM_SOURCE_ID,
    Batch,
    BatchStatus,
    BatchSummary,
    Delivery,
    capture_time,
)
from dairychain.model.stats import ProcessingStats
from dairychain.policy.inspection import is_accepted
from dairychain.stages.base import Stage

if TYPE_CHECKING:
    from dairychain.model.transport import Position
    from dairychain.stages.base import StageContext

logger = logging.getLogger(__name__)


class PlantState(StrEnum):
    """Pipeline states of the processing plant."""

    WAITING = "WAITING"
    INSPECTING = "INSPECTING"
    INSPECTION_COMPLETED = "INSPECTION_COMPLETED"
    PROCESSING_STARTED = "PROCESSING_STARTED"
    PROCESSING_COMPLETED = "PROCESSING_COMPLETED"
    PRODUCTION_STARTED = "PRODUCTION_STARTED"
    PRODUCTION_COMPLETED = "PRODUCTION_COMPLETED"
    DISPATCHING = "DISPATCHING"
    DISPATCHED_TO_DISTRIBUTION = "DISPATCHED_TO_DISTRIBUTION"


PIPELINE_ORDER = (
    PlantState.WAITING,
    PlantState.INSPECTING,
    PlantState.INSPECTION_COMPLETED,
    PlantState.PROCESSING_STARTED,
    PlantState.PROCESSING_COMPLETED,
    PlantState.PRODUCTION_STARTED,
    PlantState.PRODUCTION_COMPLETED,
    PlantState.DISPATCHING,
    PlantState.DISPATCHED_TO_DISTRIBUTION,
)


class ProcessingPlant(Stage):
    """Five-phase pipeline executed once per incoming truck."""

    role = "processing"
    idle_state = PlantState.WAITING

    def __init__(
        self,
        position: Position,
        context: StageContext,
        inbound_channel: str,
        outbound_channel: str,
        destination: Position,
    ) -> None:
        super().__init__(
            stage_id="processing",
            name="Processing Plant",
            position=position,
            context=context,
            inbound_channel=inbound_channel,
            outbound_channel=outbound_channel,
            destination=destination,
        )
        self.carrier_id = "plant-truck"
        self.stats = ProcessingStats()
        self.state_history: list[PlantState] = []
        self._current: Delivery | None = None
        self._bottles_remaining = 0

    # Intake

    def receive(self, delivery: Delivery) -> None:
        """Start the pipeline, or queue the truck if one is already in flight."""
        if self.busy:
            self.backlog.append(delivery)
            self._log(
                f"Truck with {delivery.quantity:g}L queued; plant is {self.state} "
                f"({len(self.backlog)} waiting)",
                level=logging.WARNING,
            )
            return
        self.inspect(delivery.quantity, delivery.quality)

    def inspect(self, quantity: float, quality: float) -> None:
        """Begin inspecting a truck load.

        Raises:
            StageBusy: If another delivery is still in the pipeline.
        """
        if self.busy:
            raise StageBusy(self.id, str(self.state))

        self._current = Delivery(quantity=quantity, quality=quality)
        self.stats.begin_delivery()
        self.stats.trucks_received += 1
        self._log(
            f"Truck #{self.stats.trucks_received} arrived: {quantity:g}L at quality {quality:g}"
        )
        self._transition(PlantState.INSPECTING, quantity=quantity, quality=quality)
        self._run_phase("inspection", self.config.inspect_ticks, self._finish_inspection)

    def _finish_inspection(self) -> None:
        delivery = self._current
        threshold = self.config.quality_threshold
        if self.config.enforce_quality_threshold and not is_accepted(delivery.quality, threshold):
            self.stats.rejected_trucks += 1
            self.bus.report_inspection(
                Batch(
                    source_id=SYSTEM_SOURCE_ID,
                    quantity=delivery.quantity,
                    quality=delivery.quality,
                    status=BatchStatus.REJECTED,
                )
            )
            self.bus.report_status(self.stats.snapshot())
            self._log(
                f"QualityRejected: quality {delivery.quality:g} below threshold {threshold:g}; "
                f"truck of {delivery.quantity:g}L turned away",
                level=logging.WARNING,
            )
            self._finish_delivery()
            return

        self.stats.accepted_trucks += 1
        self.aggregate.add(delivery.quantity, delivery.quality)
        self.stats.total_milk_qty = self.aggregate.total_quantity
        self.stats.avg_quality = self.aggregate.average_quality
        self._transition(PlantState.INSPECTION_COMPLETED)
        self.process_batch()

    # Processing

    def process_batch(self) -> None:
        """Run the fixed-duration processing phase."""
        self.stats.processing_start_time = capture_time()
        self._transition(PlantState.PROCESSING_STARTED)
        self._run_phase("processing", self.config.process_ticks, self._finish_processing)

    def _finish_processing(self) -> None:
        self.stats.processing_end_time = capture_time()
        self._transition(PlantState.PROCESSING_COMPLETED)
        self.manage_production()

    # Production

    def manage_production(self, quantity: float | None = None) -> None:
        """Bottle the processed milk, one bottle per whole litre.

        Args:
            quantity: Litres to bottle; defaults to the accepted total.
        """
        if quantity is None:
            quantity = self.stats.total_milk_qty
        bottle_count = math.floor(quantity)

        self.stats.production_start_time = capture_time()
        self._bottles_remaining = bottle_count
        self._transition(PlantState.PRODUCTION_STARTED)
        self.bus.phase_animation(self.id, "production", bottle_count * self.config.bottle_ticks)

        if bottle_count == 0:
            self._finish_production()
        else:
            self.clock.schedule(self.config.bottle_ticks, self._pack_bottle, label="pack_bottle")

    def _pack_bottle(self) -> None:
        self.stats.bottles_packed += 1
        self.stats.total_bottles_packed += 1
        self._bottles_remaining -= 1
        if self._bottles_remaining > 0:
            self.clock.schedule(self.config.bottle_ticks, self._pack_bottle, label="pack_bottle")
        else:
            self._finish_production()

    def _finish_production(self) -> None:
        self.stats.production_end_time = capture_time()
        self.stats.final_quality = self.stats.avg_quality * self.config.final_quality_factor
        self._log(
            f"Production complete: {self.stats.bottles_packed} bottles, "
            f"final quality {self.stats.final_quality:.2f}"
        )
        self._transition(PlantState.PRODUCTION_COMPLETED)
        self.dispatch()

    # Dispatch

    def dispatch(self) -> None:
        """Load the dispatch truck and send it to the distributor."""
        self._transition(PlantState.DISPATCHING)
        self._run_phase("dispatch", self.config.dispatch_ticks, self._finish_dispatch)

    def _finish_dispatch(self) -> None:
        self.stats.is_dispatched = True
        self.stats.deliveries_dispatched += 1
        payload = Delivery(quantity=self.stats.total_milk_qty, quality=self.stats.avg_quality)
        self.context.transports.start(
            carrier_id=self.carrier_id,
            origin=self.position,
            destination=self.destination,
            channel=self.outbound_channel,
            payload=payload,
            duration_ticks=self.config.transport_ticks,
        )
        self.aggregate.reset()
        self._transition(PlantState.DISPATCHED_TO_DISTRIBUTION)
        self._finish_delivery()

    # Helpers

    def _run_phase(self, phase: str, ticks: int, then: Callable[[], None]) -> None:
        self.bus.phase_animation(self.id, phase, ticks)
        self.clock.schedule(ticks, then, label=f"{self.id}:{phase}")

    def _transition(
        self,
        state: PlantState,
        quantity: float | None = None,
        quality: float | None = None,
    ) -> None:
        """Enter ``state`` and publish a status snapshot."""
        self._set_state(state)
        self.state_history.append(state)
        logger.debug("Plant entered %s", state, extra={"stage": self.id, "tick": self.clock.tick})

        snapshot = self.stats.snapshot()
        self.bus.report_inspection(
            Batch(
                source_id=SYSTEM_SOURCE_ID,
                quantity=snapshot.total_milk_qty if quantity is None else quantity,
                quality=snapshot.avg_quality if quality is None else quality,
                status=BatchStatus.ACCEPTED,
                summary=BatchSummary(
                    total_quantity=snapshot.total_milk_qty if quantity is None else quantity,
                    bottle_count=snapshot.bottles_packed,
                    process_stats=snapshot,
                ),
            )
        )
        self.bus.report_status(snapshot)
        self.bus.log_entry(f"STATUS: {state}")

    def _finish_delivery(self) -> None:
        self._current = None
        self._set_state(PlantState.WAITING)
        self.state_history.append(PlantState.WAITING)
        self._drain_backlog()

    def describe(self) -> dict:
        info = super().describe()
        info["stats"] = self.stats.to_dict()
        return info
