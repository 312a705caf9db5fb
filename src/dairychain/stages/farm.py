"""Farm: an independent milk producer that delivers one batch per trigger."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dairychain.policy.inspection import random_batch
from dairychain.stages.base import Stage

if TYPE_CHECKING:
    from dairychain.model.batch import Batch
    from dairychain.model.transport import Position
    from dairychain.stages.base import StageContext


class Farm(Stage):
    """One of the farms feeding the collection point.

    Farms keep no aggregate. Every delivery trigger produces a fresh batch,
    tested at the farm gate, and sends it by milk can to the collection
    point, rejected batches included.
    """

    role = "farm"

    def __init__(
        self,
        index: int,
        position: Position,
        context: StageContext,
        outbound_channel: str,
        destination: Position,
    ) -> None:
        super().__init__(
            stage_id=f"farm-{index + 1}",
            name=f"Farmer {index + 1}",
            position=position,
            context=context,
            outbound_channel=outbound_channel,
            destination=destination,
        )
        self.farmer_id = index + 1
        self.carrier_id = f"farm-{index + 1}-can"
        self.batches_sent = 0

    def deliver(self) -> Batch:
        """Produce a random batch and send it to the collection point."""
        cfg = self.config
        batch = random_batch(
            self.farmer_id,
            self.context.rng,
            min_quantity=cfg.min_quantity,
            max_quantity=cfg.max_quantity,
            min_quality=cfg.min_quality,
            max_quality=cfg.max_quality,
            accept_probability=cfg.accept_probability,
        )
        return self.deliver_batch(batch)

    def deliver_batch(self, batch: Batch) -> Batch:
        """Send a given batch to the collection point."""
        self.bus.report_inspection(batch)
        self._log(
            f"{self.name} sent {batch.quantity:g}L at quality {batch.quality:g} ({batch.status})"
        )
        self.context.transports.start(
            carrier_id=self.carrier_id,
            origin=self.position,
            destination=self.destination,
            channel=self.outbound_channel,
            payload=batch,
            duration_ticks=self.config.farm_delivery_ticks,
        )
        self.batches_sent += 1
        return batch

    def notify_inspection_opportunity(self) -> Batch:
        """A farm answers a trigger with a delivery."""
        return self.deliver()

    def describe(self) -> dict:
        info = super().describe()
        info["batches_sent"] = self.batches_sent
        return info
