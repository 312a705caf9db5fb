"""Supply-chain tick driver: executes one simulation tick."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dairychain.model.chain import SupplyChain

logger = logging.getLogger(__name__)

DEFAULT_MAX_TICKS = 100_000


def tick_chain(chain: SupplyChain) -> None:
    """Execute one simulation tick.

    Tick sequence:
    1. Every stage polls its inbound channel and takes at most one delivery
    2. Advance all carriers; arrivals publish onto the destination channel
    3. Advance the logical clock, firing phase timers that are now due

    Deliveries published in step 2 are consumed on the following tick, so a
    message is never written and read within the same tick.

    Args:
        chain: The supply chain to advance

    Side effects:
        - Mutates stage state, aggregates and backlogs
        - Mutates bus channels and the transport manager
        - Increments chain.clock.tick
    """
    # 1. Stages consume deliveries
    for stage in chain.stages.values():
        stage.step()

    # 2. Carriers move; arrivals are published
    chain.transports.advance()

    # 3. Timed phases resume
    chain.clock.advance()

    if chain.tick % 100 == 0:
        logger.debug(
            "Simulation tick %d: in_transit=%d, pending=%d, timers=%d",
            chain.tick,
            chain.transports.in_transit(),
            chain.bus.pending(),
            chain.clock.pending,
        )


def run_ticks(chain: SupplyChain, ticks: int) -> None:
    """Advance the chain a fixed number of ticks."""
    for _ in range(ticks):
        tick_chain(chain)


def run_until_idle(chain: SupplyChain, max_ticks: int = DEFAULT_MAX_TICKS) -> int:
    """Tick until nothing is moving, waiting or scheduled.

    Args:
        chain: The supply chain to advance.
        max_ticks: Safety bound on the number of ticks.

    Returns:
        Number of ticks executed.

    Raises:
        RuntimeError: If the chain is still busy after max_ticks.
    """
    ticks = 0
    while not chain.is_idle():
        if ticks >= max_ticks:
            raise RuntimeError(f"Supply chain still busy after {max_ticks} ticks")
        tick_chain(chain)
        ticks += 1
    return ticks
