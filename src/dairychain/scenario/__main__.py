"""Console runner for the reference dairy scenario.

Usage:
    python -m dairychain.scenario
    python -m dairychain.scenario --ticks 5000 --deliver-every 200
"""

from __future__ import annotations

import argparse
import sys

from dairychain.config import get_simulation_config
from dairychain.engine import tick_chain
from dairychain.logging_config import configure_logging
from dairychain.model.chain import SupplyChain
from dairychain.scenario import create_supply_chain


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run the dairy supply-chain simulation headlessly.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=20000,
        help="Number of simulation ticks to run",
    )
    parser.add_argument(
        "--deliver-every",
        type=int,
        default=1500,
        help="Trigger a delivery from every farm each N ticks (0 disables)",
    )
    parser.add_argument(
        "--summary-interval",
        type=int,
        default=1000,
        help="Print state summary every N ticks",
    )
    return parser.parse_args(argv)


def print_state_summary(chain: SupplyChain) -> None:
    """Print one line per summary interval."""
    plant = chain.processing_plant
    collection = chain.collection_point
    print(
        f"Tick {chain.tick:6d} | "
        f"Collected {collection.aggregate.count}/{collection.farmer_quota} | "
        f"Plant {plant.state:<26s} | "
        f"Bottles {plant.stats.total_bottles_packed:5d} | "
        f"In transit {chain.transports.in_transit():2d} | "
        f"Retail {chain.retailer.total_received:8.1f}L"
    )


def main(argv: list[str] | None = None) -> int:
    """Run the dairy scenario."""
    args = parse_args(argv)

    configure_logging()

    chain = create_supply_chain(get_simulation_config())

    print(f"Starting dairy supply chain for {args.ticks} ticks...")
    print("=" * 100)
    print_state_summary(chain)

    for _ in range(args.ticks):
        if args.deliver_every and chain.tick % args.deliver_every == 0:
            for farm in chain.farms:
                farm.deliver()

        tick_chain(chain)

        if chain.tick % args.summary_interval == 0:
            print_state_summary(chain)

    print("=" * 100)
    print(f"Simulation complete. Final tick: {chain.tick}")

    stats = chain.processing_plant.stats
    print(
        f"Trucks received: {stats.trucks_received} "
        f"(accepted {stats.accepted_trucks}, rejected {stats.rejected_trucks})"
    )
    print(f"Bottles packed: {stats.total_bottles_packed}")
    print(f"Farm batches dropped at collection: {chain.collection_point.rejected_count}")
    print(f"Litres received at retail: {chain.retailer.total_received:g}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
