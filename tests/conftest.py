"""Shared fixtures for the dairychain test suite."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import pytest

from dairychain.config import SimulationConfig
from dairychain.engine.observers import RecordingObserver
from dairychain.model.chain import SupplyChain
from dairychain.scenario import create_context, create_supply_chain
from dairychain.stages.base import StageContext

FAST_TICKS = {
    "farm_delivery_ticks": 1,
    "transport_ticks": 1,
    "inspect_ticks": 1,
    "process_ticks": 1,
    "bottle_ticks": 1,
    "dispatch_ticks": 1,
    "distributor_delay_ticks": 1,
}


@pytest.fixture
def make_config() -> Callable[..., SimulationConfig]:
    """Factory for fast configs with selected overrides."""

    def _make(**overrides: Any) -> SimulationConfig:
        return SimulationConfig(**{"seed": 7, **FAST_TICKS, **overrides})

    return _make


@pytest.fixture
def fast_config(make_config: Callable[..., SimulationConfig]) -> SimulationConfig:
    """Config with every phase and trip lasting a single tick."""
    return make_config()


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def context(fast_config: SimulationConfig, recorder: RecordingObserver) -> StageContext:
    """Shared services with a recorder subscribed."""
    ctx = create_context(fast_config)
    ctx.bus.subscribe(recorder)
    return ctx


@pytest.fixture
def chain(fast_config: SimulationConfig, recorder: RecordingObserver) -> SupplyChain:
    """Reference chain on the fast config."""
    return create_supply_chain(fast_config, observers=[recorder])


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo configure_logging() so caplog sees dairychain records."""
    yield
    package_logger = logging.getLogger("dairychain")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
