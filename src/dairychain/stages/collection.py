"""Collection point: combines a quota of farm batches into one truck load."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from dairychain.model.batch import (
    COLLECTION_SOURCE_ID,
    Batch,
    BatchStatus,
    BatchSummary,
    Delivery,
)
from dairychain.stages.base import Stage

if TYPE_CHECKING:
    from dairychain.model.transport import Position
    from dairychain.stages.base import StageContext


class CollectionState(StrEnum):
    COLLECTING = "COLLECTING"
    DISPATCHING = "DISPATCHING"


class CollectionPoint(Stage):
    """Barrier aggregation over accepted farm batches.

    Once ``farmer_quota`` accepted batches have been collected, the combined
    batch is reported, a truck takes it to the processing plant and the
    aggregate starts over. Rejected farm batches never reach the aggregate.

    The barrier never times out: with fewer than ``farmer_quota`` accepted
    batches the aggregate simply waits.
    """

    role = "collection"
    idle_state = CollectionState.COLLECTING

    def __init__(
        self,
        position: Position,
        context: StageContext,
        inbound_channel: str,
        outbound_channel: str,
        destination: Position,
    ) -> None:
        super().__init__(
            stage_id="collection",
            name="Collection Point",
            position=position,
            context=context,
            inbound_channel=inbound_channel,
            outbound_channel=outbound_channel,
            destination=destination,
        )
        self.carrier_id = "collection-truck"
        self.rejected_count = 0
        self.batches_forwarded = 0

    @property
    def farmer_quota(self) -> int:
        return self.config.farmer_quota

    def receive(self, batch: Batch) -> None:
        """Fold an accepted farm batch into the aggregate."""
        if batch.status != BatchStatus.ACCEPTED:
            self.rejected_count += 1
            self._log(
                f"DROPPED_REJECTED_FARM_DELIVERY: farmer {batch.source_id} "
                f"{batch.quantity:g}L at quality {batch.quality:g}",
                level=logging.WARNING,
            )
            return

        self.aggregate.add(batch.quantity, batch.quality)
        self._log(
            f"Collected {batch.quantity:g}L from farmer {batch.source_id} "
            f"({self.aggregate.count}/{self.farmer_quota}, "
            f"total {self.aggregate.total_quantity:g}L)"
        )

        if self.aggregate.count == self.farmer_quota:
            self._forward()

    def _forward(self) -> None:
        """Report the combined batch, send it to the plant and start over."""
        self._set_state(CollectionState.DISPATCHING)
        total = self.aggregate.total_quantity
        average = self.aggregate.average_quality

        self.bus.report_inspection(
            Batch(
                source_id=COLLECTION_SOURCE_ID,
                quantity=total,
                quality=average,
                status=BatchStatus.ACCEPTED,
                summary=BatchSummary(
                    total_quantity=total,
                    farmer_count=self.aggregate.count,
                    average_quality=average,
                ),
            )
        )
        self._log(
            f"Collection complete: {total:g}L from {self.aggregate.count} farmers, "
            f"average quality {average:.2f}; truck departing"
        )

        # Payload is captured before the aggregate is cleared
        self.context.transports.start(
            carrier_id=self.carrier_id,
            origin=self.position,
            destination=self.destination,
            channel=self.outbound_channel,
            payload=Delivery(quantity=total, quality=average),
            duration_ticks=self.config.transport_ticks,
        )
        self.batches_forwarded += 1
        self.aggregate.reset()
        self._set_state(CollectionState.COLLECTING)

    def describe(self) -> dict:
        info = super().describe()
        info.update(
            farmer_quota=self.farmer_quota,
            rejected_count=self.rejected_count,
            batches_forwarded=self.batches_forwarded,
        )
        return info
