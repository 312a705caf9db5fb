"""The reference dairy scenario: three farms feeding a single chain.

Farms → Collection Point → Processing Plant → Distributor → Retailer,
with a Customer endpoint beside the retailer.
"""

from __future__ import annotations

import random
from collections.abc import Iterable

from dairychain.config import SimulationConfig, get_simulation_config
from dairychain.engine.bus import (
    COLLECTION_TO_PROCESSING,
    DISTRIBUTION_TO_RETAIL,
    FARM_TO_COLLECTION,
    PROCESSING_TO_DISTRIBUTION,
    EventBus,
)
from dairychain.engine.clock import LogicalClock
from dairychain.engine.observers import SupplyChainObserver
from dairychain.engine.transport import TransportManager
from dairychain.model.chain import SupplyChain
from dairychain.model.transport import Position
from dairychain.stages import (
    CollectionPoint,
    Customer,
    Distributor,
    Farm,
    ProcessingPlant,
    Retailer,
    StageContext,
)

# Scene layout along the x axis; positions identify stages, logic ignores them
COLLECTION_POSITION: Position = (-8.0, 0.0, 0.0)
PROCESSING_POSITION: Position = (0.0, 0.0, 0.0)
DISTRIBUTOR_POSITION: Position = (15.0, 0.0, 0.0)
RETAILER_POSITION: Position = (22.0, 0.0, 0.0)
CUSTOMER_POSITION: Position = (28.0, 0.0, 0.0)
FARM_X = -20.0
FARM_SPACING = 6.0


def farm_position(index: int, farm_count: int) -> Position:
    """Spread farms evenly along z, centred on the collection point."""
    offset = (index - (farm_count - 1) / 2) * FARM_SPACING
    return (FARM_X, 0.0, offset)


def create_context(
    config: SimulationConfig,
    rng: random.Random | None = None,
) -> StageContext:
    """Build the shared services for one chain."""
    bus = EventBus(capacity=config.channel_capacity, log_size=config.log_history_size)
    clock = LogicalClock()
    transports = TransportManager(bus, clock)
    if rng is None:
        rng = random.Random(config.seed)
    return StageContext(config=config, bus=bus, clock=clock, transports=transports, rng=rng)


def create_supply_chain(
    config: SimulationConfig | None = None,
    observers: Iterable[SupplyChainObserver] = (),
    rng: random.Random | None = None,
) -> SupplyChain:
    """Create the reference scenario.

    Args:
        config: Simulation settings; the cached environment config when None.
        observers: Observers subscribed to the bus before any stage runs.
        rng: Random generator for farm batches and spot checks; seeded from
             ``config.seed`` when None.

    Returns:
        SupplyChain: A fully wired chain at tick 0.
    """
    if config is None:
        config = get_simulation_config()
    context = create_context(config, rng)
    for observer in observers:
        context.bus.subscribe(observer)

    farms = [
        Farm(
            index=i,
            position=farm_position(i, config.farm_count),
            context=context,
            outbound_channel=FARM_TO_COLLECTION,
            destination=COLLECTION_POSITION,
        )
        for i in range(config.farm_count)
    ]

    return SupplyChain(
        config=config,
        bus=context.bus,
        clock=context.clock,
        transports=context.transports,
        farms=farms,
        collection_point=CollectionPoint(
            position=COLLECTION_POSITION,
            context=context,
            inbound_channel=FARM_TO_COLLECTION,
            outbound_channel=COLLECTION_TO_PROCESSING,
            destination=PROCESSING_POSITION,
        ),
        processing_plant=ProcessingPlant(
            position=PROCESSING_POSITION,
            context=context,
            inbound_channel=COLLECTION_TO_PROCESSING,
            outbound_channel=PROCESSING_TO_DISTRIBUTION,
            destination=DISTRIBUTOR_POSITION,
        ),
        distributor=Distributor(
            position=DISTRIBUTOR_POSITION,
            context=context,
            inbound_channel=PROCESSING_TO_DISTRIBUTION,
            outbound_channel=DISTRIBUTION_TO_RETAIL,
            destination=RETAILER_POSITION,
        ),
        retailer=Retailer(
            position=RETAILER_POSITION,
            context=context,
            inbound_channel=DISTRIBUTION_TO_RETAIL,
        ),
        customer=Customer(position=CUSTOMER_POSITION, context=context),
    )
