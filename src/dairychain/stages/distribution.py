"""Downstream stages: distributor, retailer and customer."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from dairychain.model.batch import Delivery, capture_time
from dairychain.stages.base import Stage

if TYPE_CHECKING:
    from dairychain.model.transport import Position
    from dairychain.stages.base import StageContext


class DistributorState(StrEnum):
    IDLE = "IDLE"
    INSPECTING_MILK_QUALITY = "INSPECTING_MILK_QUALITY"
    DISPATCHED_TO_RETAILER = "DISPATCHED_TO_RETAILER"


class RetailerState(StrEnum):
    IDLE = "IDLE"
    RECEIVED_MILK_FROM_DISTRIBUTOR = "RECEIVED_MILK_FROM_DISTRIBUTOR"
    ACCEPTED_MILK_FROM_DISTRIBUTOR = "ACCEPTED_MILK_FROM_DISTRIBUTOR"


class Distributor(Stage):
    """Holds each plant dispatch for a fixed delay, then forwards it to the retailer.

    Handles one delivery at a time, so its aggregate always equals the
    delivery being held.
    """

    role = "distributor"
    idle_state = DistributorState.IDLE

    def __init__(
        self,
        position: Position,
        context: StageContext,
        inbound_channel: str,
        outbound_channel: str,
        destination: Position,
    ) -> None:
        super().__init__(
            stage_id="distributor",
            name="Distributor",
            position=position,
            context=context,
            inbound_channel=inbound_channel,
            outbound_channel=outbound_channel,
            destination=destination,
        )
        self.carrier_id = "distributor-van"
        self.deliveries_forwarded = 0

    def receive(self, delivery: Delivery) -> None:
        if self.busy:
            self.backlog.append(delivery)
            self._log(f"Delivery of {delivery.quantity:g}L queued at distributor")
            return

        self.aggregate.add(delivery.quantity, delivery.quality)
        self._set_state(DistributorState.INSPECTING_MILK_QUALITY)
        self._log("AGENT ACTIVATED: Distributor")
        self._log(f"STATUS: {self.state}")
        self.bus.report_inspection(delivery.to_batch())

        delay = self.config.distributor_delay_ticks
        self.bus.phase_animation(self.id, "inspection", delay)
        self.clock.schedule(delay, self._dispatch, label="distributor:dispatch")

    def _dispatch(self) -> None:
        payload = Delivery(
            quantity=self.aggregate.total_quantity,
            quality=self.aggregate.average_quality,
        )
        self._set_state(DistributorState.DISPATCHED_TO_RETAILER)
        self._log(f"STATUS: {self.state} ({payload.quantity:g}L)")
        self.context.transports.start(
            carrier_id=self.carrier_id,
            origin=self.position,
            destination=self.destination,
            channel=self.outbound_channel,
            payload=payload,
            duration_ticks=self.config.transport_ticks,
        )
        self.deliveries_forwarded += 1
        self.aggregate.reset()
        self._set_state(DistributorState.IDLE)
        self._drain_backlog()

    def describe(self) -> dict:
        info = super().describe()
        info["deliveries_forwarded"] = self.deliveries_forwarded
        return info


class Retailer(Stage):
    """Terminal stage of the delivery flow: accepts everything it receives."""

    role = "retailer"
    idle_state = RetailerState.IDLE

    def __init__(self, position: Position, context: StageContext, inbound_channel: str) -> None:
        super().__init__(
            stage_id="retailer",
            name="Retailer",
            position=position,
            context=context,
            inbound_channel=inbound_channel,
        )
        self.deliveries_received = 0
        self.total_received = 0.0

    @property
    def busy(self) -> bool:
        # Acceptance is immediate; the retailer never holds a delivery back
        return False

    def receive(self, delivery: Delivery) -> None:
        self._log("AGENT ACTIVATED: Retailer")
        self._set_state(RetailerState.RECEIVED_MILK_FROM_DISTRIBUTOR)
        self._log(f"STATUS: {self.state}")

        self.bus.report_inspection(delivery.to_batch())
        self.deliveries_received += 1
        self.total_received += delivery.quantity
        self._log(
            f"Retailer Status: Total Bottles received: {delivery.quantity:g}L\n"
            f"Received at: {capture_time()}"
        )

        self._set_state(RetailerState.ACCEPTED_MILK_FROM_DISTRIBUTOR)
        self._log(f"STATUS: {self.state}")

    def describe(self) -> dict:
        info = super().describe()
        info.update(
            deliveries_received=self.deliveries_received,
            total_received=self.total_received,
        )
        return info


class Customer(Stage):
    """Passive endpoint. Not part of the delivery flow; answers spot checks only."""

    role = "customer"

    def __init__(self, position: Position, context: StageContext) -> None:
        super().__init__(
            stage_id="customer",
            name="Customer",
            position=position,
            context=context,
        )
