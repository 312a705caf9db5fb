"""Simulation settings loaded from environment variables and .env files.

Durations are expressed in logical ticks. The defaults match a 30 tick/second
render loop: a truck trip of 120 ticks takes four seconds on screen.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class SimulationConfig(BaseSettings):
    """Configuration for the dairy supply-chain simulation.

    Environment Variables (prefix DAIRY_):
        DAIRY_FARM_COUNT: Number of independent farms (default: 3)
        DAIRY_FARMER_QUOTA: Accepted farm batches per collection run (default: 3)
        DAIRY_QUALITY_THRESHOLD: Minimum SNF quality accepted by the plant (default: 25)
        DAIRY_ENFORCE_QUALITY_THRESHOLD: Reject trucks below threshold (default: true)
        DAIRY_ACCEPT_PROBABILITY: Chance a farm batch passes the farm test (default: 0.8)
        DAIRY_TRANSPORT_TICKS: Truck trip duration (default: 120)
        DAIRY_CHANNEL_CAPACITY: Bound on each bus channel, 0 for unbounded (default: 0)
        DAIRY_SEED: Seed for the random batch generator (default: unseeded)

    Example:
        >>> config = SimulationConfig()  # Loads from environment
        >>> config = SimulationConfig(inspect_ticks=1, process_ticks=1)
    """

    model_config = SettingsConfigDict(
        env_prefix="DAIRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Network shape
    farm_count: int = Field(default=3, ge=1, le=50, description="Number of farms")
    farmer_quota: int = Field(
        default=3,
        ge=1,
        description="Accepted farm batches combined into one collection truck",
    )

    # Inspection policy
    quality_threshold: float = Field(
        default=25.0,
        ge=0.0,
        description="Minimum quality index accepted at the processing plant",
    )
    enforce_quality_threshold: bool = Field(
        default=True,
        description="When false the plant accepts every truck",
    )
    accept_probability: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Probability that a generated farm batch is ACCEPTED",
    )

    # Random batch ranges (upper bounds exclusive)
    min_quantity: int = Field(default=10, ge=0, description="Minimum litres per farm batch")
    max_quantity: int = Field(default=40, ge=1, description="Exclusive litre upper bound")
    min_quality: int = Field(default=25, ge=0, description="Minimum generated quality")
    max_quality: int = Field(default=30, ge=1, description="Exclusive quality upper bound")

    final_quality_factor: float = Field(
        default=1.1,
        gt=0.0,
        description="Quality uplift applied after production",
    )

    # Phase and transport durations, in ticks
    farm_delivery_ticks: int = Field(default=60, ge=1, description="Farm to collection trip")
    transport_ticks: int = Field(default=120, ge=1, description="Truck trip between stages")
    inspect_ticks: int = Field(default=60, ge=1, description="Plant inspection phase")
    process_ticks: int = Field(default=90, ge=1, description="Plant processing phase")
    bottle_ticks: int = Field(default=45, ge=1, description="Packing time per bottle")
    dispatch_ticks: int = Field(default=60, ge=1, description="Plant dispatch phase")
    distributor_delay_ticks: int = Field(
        default=60,
        ge=1,
        description="Distributor hold time before sending to the retailer",
    )

    # Bus and observer settings
    channel_capacity: int = Field(
        default=0,
        ge=0,
        description="Maximum pending messages per channel (0 = unbounded)",
    )
    log_history_size: int = Field(
        default=500,
        ge=1,
        description="Number of bus messages kept in the message log",
    )

    seed: int | None = Field(default=None, description="Random seed for reproducible runs")

    @model_validator(mode="after")
    def check_ranges(self) -> SimulationConfig:
        """Ensure the random generation ranges are non-empty."""
        if self.min_quantity >= self.max_quantity:
            raise ValueError("min_quantity must be below max_quantity")
        if self.min_quality >= self.max_quality:
            raise ValueError("min_quality must be below max_quality")
        return self

    def __repr__(self) -> str:
        return (
            f"SimulationConfig("
            f"farms={self.farm_count}, "
            f"quota={self.farmer_quota}, "
            f"threshold={self.quality_threshold}"
            f"{'' if self.enforce_quality_threshold else ' (not enforced)'}, "
            f"transport={self.transport_ticks}t, "
            f"capacity={self.channel_capacity or 'unbounded'}, "
            f"seed={self.seed}"
            f")"
        )


@lru_cache
def get_simulation_config() -> SimulationConfig:
    """Get cached simulation configuration singleton.

    To reload configuration, call get_simulation_config.cache_clear() first.
    """
    config = SimulationConfig()
    logger.info("Loaded simulation configuration: %s", config)
    return config
