"""SupplyChain dataclass: container holding every stage and shared service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dairychain.errors import UnknownStage

if TYPE_CHECKING:
    from dairychain.config import SimulationConfig
    from dairychain.engine.bus import EventBus
    from dairychain.engine.clock import LogicalClock
    from dairychain.engine.transport import TransportManager
    from dairychain.model.batch import Batch
    from dairychain.stages import (
        CollectionPoint,
        Customer,
        Distributor,
        Farm,
        ProcessingPlant,
        Retailer,
        Stage,
    )


@dataclass
class SupplyChain:
    """The source of truth for one simulation run.

    Stages are created once and live as long as the chain.
    """

    config: SimulationConfig
    bus: EventBus
    clock: LogicalClock
    transports: TransportManager

    farms: list[Farm] = field(default_factory=list)
    collection_point: CollectionPoint | None = None
    processing_plant: ProcessingPlant | None = None
    distributor: Distributor | None = None
    retailer: Retailer | None = None
    customer: Customer | None = None

    @property
    def tick(self) -> int:
        return self.clock.tick

    @property
    def stages(self) -> dict[str, Stage]:
        """All stages keyed by id, in flow order."""
        ordered: list[Stage] = [*self.farms]
        for stage in (
            self.collection_point,
            self.processing_plant,
            self.distributor,
            self.retailer,
            self.customer,
        ):
            if stage is not None:
                ordered.append(stage)
        return {stage.id: stage for stage in ordered}

    def get_stage(self, stage_id: str) -> Stage:
        """Look up a stage by id.

        Raises:
            UnknownStage: If no stage has that id.
        """
        stage = self.stages.get(stage_id)
        if stage is None:
            raise UnknownStage(stage_id)
        return stage

    def notify_inspection_opportunity(self, stage_id: str) -> Batch:
        """Inbound trigger from the interaction layer.

        A farm responds with a delivery into the chain; every other stage
        responds with a spot check that is only reported.
        """
        return self.get_stage(stage_id).notify_inspection_opportunity()

    def is_idle(self) -> bool:
        """True when nothing is moving, waiting or scheduled."""
        if self.transports.in_transit() or self.bus.pending() or self.clock.pending:
            return False
        return not any(stage.busy or stage.backlog for stage in self.stages.values())
