"""End-to-end tests for the reference dairy scenario."""

from __future__ import annotations

import pytest

from dairychain.config import get_simulation_config
from dairychain.engine import FARM_TO_COLLECTION, run_ticks, run_until_idle, tick_chain
from dairychain.engine.observers import RecordingObserver
from dairychain.errors import UnknownStage
from dairychain.model.batch import Batch, BatchStatus
from dairychain.model.chain import SupplyChain
from dairychain.scenario import create_supply_chain, farm_position
from dairychain.scenario.__main__ import main
from dairychain.stages import PlantState


def _deliver_fixed(chain: SupplyChain, quantity: float, quality: float) -> None:
    for farm in chain.farms:
        farm.deliver_batch(Batch(source_id=farm.farmer_id, quantity=quantity, quality=quality))


class TestCreateSupplyChain:
    """Tests for the scenario factory."""

    def test_stage_order(self, chain: SupplyChain) -> None:
        assert list(chain.stages) == [
            "farm-1",
            "farm-2",
            "farm-3",
            "collection",
            "processing",
            "distributor",
            "retailer",
            "customer",
        ]

    def test_starts_idle_at_tick_zero(self, chain: SupplyChain) -> None:
        assert chain.tick == 0
        assert chain.is_idle()

    def test_farm_count_from_config(self, make_config) -> None:
        chain = create_supply_chain(make_config(farm_count=5))
        assert len(chain.farms) == 5
        assert chain.farms[-1].id == "farm-5"

    def test_farm_positions_centred(self) -> None:
        assert farm_position(0, 3) == (-20.0, 0.0, -6.0)
        assert farm_position(1, 3) == (-20.0, 0.0, 0.0)
        assert farm_position(2, 3) == (-20.0, 0.0, 6.0)

    def test_observers_subscribed(self, chain: SupplyChain, recorder: RecordingObserver) -> None:
        assert chain.bus.observers == [recorder]

    def test_seeded_chains_are_reproducible(self, make_config) -> None:
        first = create_supply_chain(make_config(seed=11))
        second = create_supply_chain(make_config(seed=11))
        a = [farm.deliver() for farm in first.farms]
        b = [farm.deliver() for farm in second.farms]
        assert [(x.quantity, x.quality, x.status) for x in a] == [
            (x.quantity, x.quality, x.status) for x in b
        ]


class TestEndToEnd:
    """Full deliveries through every stage."""

    def test_three_farms_to_retail(self, chain: SupplyChain, recorder: RecordingObserver) -> None:
        """Three 20L batches at quality 28 reach the retailer as 60L."""
        _deliver_fixed(chain, 20.0, 28.0)
        run_until_idle(chain)

        assert chain.collection_point.batches_forwarded == 1
        stats = chain.processing_plant.stats
        assert stats.accepted_trucks == 1
        assert stats.bottles_packed == 60
        assert stats.final_quality == pytest.approx(30.8)
        assert stats.is_dispatched is True
        assert chain.distributor.deliveries_forwarded == 1
        assert chain.retailer.deliveries_received == 1
        assert chain.retailer.total_received == 60.0
        assert chain.retailer.state == "ACCEPTED_MILK_FROM_DISTRIBUTOR"

        carriers = [carrier for carrier, _, _ in recorder.transport_animations]
        assert carriers == [
            "farm-1-can",
            "farm-2-can",
            "farm-3-can",
            "collection-truck",
            "plant-truck",
            "distributor-van",
        ]

    def test_low_quality_load_stops_at_plant(self, chain: SupplyChain) -> None:
        """Farm-accepted milk averaging 24 is rejected by the plant."""
        _deliver_fixed(chain, 20.0, 24.0)
        run_until_idle(chain)

        plant = chain.processing_plant
        assert plant.stats.rejected_trucks == 1
        assert plant.state_history == [PlantState.INSPECTING, PlantState.WAITING]
        assert chain.distributor.deliveries_forwarded == 0
        assert chain.retailer.total_received == 0.0

    def test_rejected_farm_batch_holds_collection(self, chain: SupplyChain) -> None:
        """With one rejected batch the quota is not met and nothing moves on."""
        farms = chain.farms
        farms[0].deliver_batch(Batch(source_id=1, quantity=20.0, quality=28.0))
        farms[1].deliver_batch(
            Batch(source_id=2, quantity=20.0, quality=28.0, status=BatchStatus.REJECTED)
        )
        farms[2].deliver_batch(Batch(source_id=3, quantity=20.0, quality=28.0))
        run_until_idle(chain)

        assert chain.collection_point.rejected_count == 1
        assert chain.collection_point.aggregate.count == 2
        assert chain.processing_plant.stats.trucks_received == 0

    def test_message_not_read_on_publish_tick(self, chain: SupplyChain) -> None:
        """Arrivals published during a tick are consumed on the next one."""
        _deliver_fixed(chain, 20.0, 28.0)
        tick_chain(chain)
        assert chain.bus.pending(FARM_TO_COLLECTION) == 3
        assert chain.collection_point.aggregate.count == 0

        tick_chain(chain)
        assert chain.bus.pending(FARM_TO_COLLECTION) == 2
        assert chain.collection_point.aggregate.count == 1

    def test_overlapping_loads_are_all_delivered(self, chain: SupplyChain) -> None:
        """Loads sent back to back queue rather than overwrite each other."""
        for _ in range(4):
            _deliver_fixed(chain, 20.0, 28.0)
        run_until_idle(chain)

        assert chain.processing_plant.stats.trucks_received == 4
        assert chain.retailer.deliveries_received == 4
        assert chain.retailer.total_received == 240.0

    def test_random_run_conserves_milk(self, make_config) -> None:
        """Every accepted litre is bottled and reaches the retailer."""
        chain = create_supply_chain(make_config(seed=2024))
        for _ in range(6):
            for farm in chain.farms:
                farm.deliver()
            run_ticks(chain, 5)
        run_until_idle(chain)

        collection = chain.collection_point
        stats = chain.processing_plant.stats
        assert collection.batches_forwarded == stats.trucks_received
        # Generated quality never falls below the threshold
        assert stats.rejected_trucks == 0
        assert stats.deliveries_dispatched == chain.retailer.deliveries_received
        assert stats.total_bottles_packed == chain.retailer.total_received

    def test_run_until_idle_bound(self, chain: SupplyChain) -> None:
        _deliver_fixed(chain, 20.0, 28.0)
        with pytest.raises(RuntimeError, match="still busy"):
            run_until_idle(chain, max_ticks=3)


class TestInspectionTrigger:
    """Tests for SupplyChain.notify_inspection_opportunity."""

    def test_farm_trigger_delivers(self, chain: SupplyChain) -> None:
        batch = chain.notify_inspection_opportunity("farm-2")
        assert batch.source_id == 2
        assert chain.farms[1].batches_sent == 1
        assert chain.transports.is_busy("farm-2-can")

    def test_other_stages_spot_check(self, chain: SupplyChain) -> None:
        for stage_id in ("collection", "processing", "distributor", "retailer", "customer"):
            batch = chain.notify_inspection_opportunity(stage_id)
            assert batch.source_id == -1
            assert chain.get_stage(stage_id).spot_checks == 1
        assert chain.is_idle()

    def test_unknown_stage(self, chain: SupplyChain) -> None:
        with pytest.raises(UnknownStage) as exc_info:
            chain.notify_inspection_opportunity("dairy-queen")
        assert exc_info.value.stage_id == "dairy-queen"


class TestConsoleRunner:
    """Tests for python -m dairychain.scenario."""

    def test_runs_and_prints_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        get_simulation_config.cache_clear()
        try:
            assert main(["--ticks", "50", "--deliver-every", "10", "--summary-interval", "25"]) == 0
        finally:
            get_simulation_config.cache_clear()
        out = capsys.readouterr().out
        assert "Starting dairy supply chain for 50 ticks" in out
        assert "Tick     25" in out
        assert "Simulation complete. Final tick: 50" in out
