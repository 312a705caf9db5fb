"""Tests for farms and the downstream stages."""

from __future__ import annotations

import pytest

from dairychain.engine.bus import (
    DISTRIBUTION_TO_RETAIL,
    FARM_TO_COLLECTION,
    PROCESSING_TO_DISTRIBUTION,
)
from dairychain.engine.observers import RecordingObserver
from dairychain.model.batch import Batch, BatchStatus, Delivery
from dairychain.stages import (
    Customer,
    Distributor,
    DistributorState,
    Farm,
    Retailer,
    RetailerState,
)
from dairychain.stages.base import StageContext


@pytest.fixture
def farm(context: StageContext) -> Farm:
    return Farm(
        index=0,
        position=(-20.0, 0.0, -6.0),
        context=context,
        outbound_channel=FARM_TO_COLLECTION,
        destination=(-8.0, 0.0, 0.0),
    )


@pytest.fixture
def distributor(context: StageContext) -> Distributor:
    return Distributor(
        position=(15.0, 0.0, 0.0),
        context=context,
        inbound_channel=PROCESSING_TO_DISTRIBUTION,
        outbound_channel=DISTRIBUTION_TO_RETAIL,
        destination=(22.0, 0.0, 0.0),
    )


@pytest.fixture
def retailer(context: StageContext) -> Retailer:
    return Retailer(
        position=(22.0, 0.0, 0.0),
        context=context,
        inbound_channel=DISTRIBUTION_TO_RETAIL,
    )


class TestFarm:
    """Tests for Farm deliveries."""

    def test_identity(self, farm: Farm) -> None:
        assert farm.id == "farm-1"
        assert farm.name == "Farmer 1"
        assert farm.farmer_id == 1
        assert farm.carrier_id == "farm-1-can"

    def test_deliver_batch_starts_milk_can(
        self,
        farm: Farm,
        context: StageContext,
        recorder: RecordingObserver,
    ) -> None:
        batch = Batch(source_id=1, quantity=20.0, quality=28.0)
        farm.deliver_batch(batch)

        link = context.transports.active["farm-1-can"]
        assert link.payload is batch
        assert link.channel == FARM_TO_COLLECTION
        assert link.duration_ticks == context.config.farm_delivery_ticks
        assert farm.batches_sent == 1
        assert recorder.inspections[-1] is batch

    def test_rejected_batches_are_still_sent(self, farm: Farm, context: StageContext) -> None:
        """The collection point, not the farm, drops rejected batches."""
        farm.deliver_batch(
            Batch(source_id=1, quantity=20.0, quality=28.0, status=BatchStatus.REJECTED)
        )
        assert context.transports.in_transit() == 1

    def test_deliver_generates_batch(self, farm: Farm) -> None:
        batch = farm.deliver()
        assert batch.source_id == 1
        assert 10 <= batch.quantity < 40
        assert 25 <= batch.quality < 30

    def test_inspection_trigger_delivers(self, farm: Farm, context: StageContext) -> None:
        """A farm answers an inspection trigger with a delivery."""
        batch = farm.notify_inspection_opportunity()
        assert context.transports.active["farm-1-can"].payload is batch
        assert farm.spot_checks == 0

    def test_farm_has_no_inbound_channel(self, farm: Farm) -> None:
        assert farm.inbound_channel is None
        farm.step()


class TestDistributor:
    """Tests for the Distributor."""

    def test_holds_then_forwards(
        self,
        distributor: Distributor,
        context: StageContext,
        recorder: RecordingObserver,
    ) -> None:
        distributor.receive(Delivery(quantity=60.0, quality=28.0))
        assert distributor.state == DistributorState.INSPECTING_MILK_QUALITY
        assert distributor.aggregate.total_quantity == 60.0
        assert "AGENT ACTIVATED: Distributor" in recorder.log_entries
        assert context.transports.in_transit() == 0

        context.clock.advance()

        link = context.transports.active["distributor-van"]
        assert link.payload == Delivery(quantity=60.0, quality=28.0)
        assert link.channel == DISTRIBUTION_TO_RETAIL
        assert distributor.deliveries_forwarded == 1
        assert distributor.state == DistributorState.IDLE
        assert distributor.aggregate.count == 0
        assert "STATUS: DISPATCHED_TO_RETAILER (60L)" in recorder.log_entries

    def test_reports_received_delivery(
        self,
        distributor: Distributor,
        recorder: RecordingObserver,
    ) -> None:
        distributor.receive(Delivery(quantity=60.0, quality=28.0))
        batch = recorder.inspections[-1]
        assert batch.quantity == 60.0
        assert batch.quality == 28.0

    def test_queues_while_holding(self, distributor: Distributor, context: StageContext) -> None:
        """Deliveries are forwarded one at a time, never merged."""
        distributor.receive(Delivery(quantity=60.0, quality=28.0))
        distributor.receive(Delivery(quantity=45.0, quality=26.0))
        assert len(distributor.backlog) == 1

        context.clock.advance()
        assert distributor.state == DistributorState.INSPECTING_MILK_QUALITY
        assert distributor.aggregate.total_quantity == 45.0

        context.clock.advance()
        assert distributor.deliveries_forwarded == 2
        queued = context.transports.queued["distributor-van"][0]
        assert queued.payload == Delivery(quantity=45.0, quality=26.0)


class TestRetailer:
    """Tests for the Retailer."""

    def test_accepts_delivery(
        self,
        retailer: Retailer,
        recorder: RecordingObserver,
    ) -> None:
        retailer.receive(Delivery(quantity=60.0, quality=28.0))

        assert retailer.state == RetailerState.ACCEPTED_MILK_FROM_DISTRIBUTOR
        assert retailer.deliveries_received == 1
        assert retailer.total_received == 60.0
        assert retailer.busy is False

        entries = list(recorder.log_entries)
        assert entries[0] == "AGENT ACTIVATED: Retailer"
        assert entries[1] == "STATUS: RECEIVED_MILK_FROM_DISTRIBUTOR"
        assert entries[2].startswith("Retailer Status: Total Bottles received: 60L\nReceived at: ")
        assert entries[3] == "STATUS: ACCEPTED_MILK_FROM_DISTRIBUTOR"

    def test_accumulates_across_deliveries(self, retailer: Retailer) -> None:
        retailer.receive(Delivery(quantity=60.0, quality=28.0))
        retailer.receive(Delivery(quantity=30.0, quality=27.0))
        assert retailer.total_received == 90.0
        assert retailer.describe()["deliveries_received"] == 2

    def test_step_reads_channel(self, retailer: Retailer, context: StageContext) -> None:
        context.bus.publish(DISTRIBUTION_TO_RETAIL, Delivery(quantity=12.0, quality=26.0))
        retailer.step()
        assert retailer.total_received == 12.0


class TestCustomer:
    """Tests for the passive Customer endpoint."""

    def test_spot_check_only(self, context: StageContext, recorder: RecordingObserver) -> None:
        customer = Customer(position=(28.0, 0.0, 0.0), context=context)
        batch = customer.notify_inspection_opportunity()
        assert customer.spot_checks == 1
        assert recorder.inspections[-1] is batch
        assert context.transports.in_transit() == 0

    def test_does_not_accept_deliveries(self, context: StageContext) -> None:
        customer = Customer(position=(28.0, 0.0, 0.0), context=context)
        with pytest.raises(NotImplementedError):
            customer.receive(Delivery(quantity=1.0, quality=25.0))
