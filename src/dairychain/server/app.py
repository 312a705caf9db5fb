"""FastAPI server exposing the supply-chain simulation.

Provides:
- REST API for chain state, stage details, plant statistics and the activity log
- POST /api/stages/{stage_id}/inspect: the inbound inspection trigger
- Play/pause/speed/reset/tick controls for the background simulation thread
"""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from dairychain.config import get_simulation_config
from dairychain.engine.observers import RecordingObserver
from dairychain.engine.simulation import tick_chain
from dairychain.errors import UnknownStage
from dairychain.scenario import create_supply_chain

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from dairychain.model.chain import SupplyChain

logger = logging.getLogger(__name__)

TARGET_TPS = 30.0  # base ticks per second, matching the render loop
LOG_BUFFER_SIZE = 500


class SimulationState:
    """Thread-safe simulation state manager.

    The core is single-threaded; every tick and every external trigger runs
    under one lock so the background thread and request handlers never
    interleave inside a stage.
    """

    def __init__(self) -> None:
        """Initialize simulation state with default values."""
        self._recorder = RecordingObserver(max_entries=LOG_BUFFER_SIZE)
        self._chain = self._build_chain()
        self._running = False
        self._speed = 1.0
        self._paused = True  # Start paused
        self._lock = threading.Lock()
        self._stop_event = threading.Event()

    def _build_chain(self) -> SupplyChain:
        self._recorder.clear()
        return create_supply_chain(get_simulation_config(), observers=[self._recorder])

    @property
    def chain(self) -> SupplyChain:
        with self._lock:
            return self._chain

    @property
    def recorder(self) -> RecordingObserver:
        return self._recorder

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        with self._lock:
            self._paused = value

    @property
    def speed(self) -> float:
        with self._lock:
            return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        """Set simulation speed (clamped to 0.1-10.0)."""
        with self._lock:
            self._speed = max(0.1, min(10.0, value))

    def tick(self, count: int = 1) -> None:
        """Execute ``count`` simulation ticks."""
        with self._lock:
            for _ in range(count):
                tick_chain(self._chain)

    def inspect(self, stage_id: str) -> dict[str, Any]:
        """Deliver an inspection opportunity to a stage.

        Raises:
            UnknownStage: If stage_id is not part of the chain.
        """
        with self._lock:
            batch = self._chain.notify_inspection_opportunity(stage_id)
            return batch.to_dict()

    def describe(self, fn: Callable[[SupplyChain], Any]) -> Any:
        """Run a read-only function against the chain under the lock."""
        with self._lock:
            return fn(self._chain)

    def reset(self) -> None:
        """Rebuild the chain at tick 0."""
        with self._lock:
            self._chain = self._build_chain()

    def start(self) -> None:
        """Start the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._simulation_loop, daemon=True)
        self._thread.start()
        logger.info("Simulation thread started")

    def stop(self) -> None:
        """Stop the background simulation thread."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if hasattr(self, "_thread"):
            self._thread.join(timeout=2.0)
        logger.info("Simulation thread stopped")

    def _simulation_loop(self) -> None:
        while self._running and not self._stop_event.is_set():
            if not self.paused:
                self.tick()
            effective_speed = self.speed if not self.paused else 1.0
            self._stop_event.wait(timeout=1.0 / (TARGET_TPS * effective_speed))


# Global simulation state
_sim_state: SimulationState | None = None


def get_sim_state() -> SimulationState:
    """Get or create the global simulation state."""
    global _sim_state
    if _sim_state is None:
        _sim_state = SimulationState()
    return _sim_state


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager: start/stop simulation thread."""
    sim = get_sim_state()
    sim.start()
    yield
    sim.stop()


app = FastAPI(
    title="dairychain",
    description="Dairy supply-chain stage simulation",
    version="0.1.0",
    lifespan=lifespan,
)


# Pydantic models for REST responses


class ChainStateResponse(BaseModel):
    """Response model for the chain summary."""

    tick: int = Field(description="Current simulation tick")
    speed: float = Field(description="Simulation speed multiplier")
    paused: bool = Field(description="Whether the simulation is paused")
    stage_count: int = Field(description="Number of stages")
    in_transit: int = Field(description="Active and queued transport trips")
    pending_messages: int = Field(description="Deliveries waiting on bus channels")
    idle: bool = Field(description="True when nothing is moving or scheduled")


class StageResponse(BaseModel):
    """Response model for one stage."""

    id: str = Field(description="Stage ID")
    name: str = Field(description="Display name")
    role: str = Field(description="Stage role")
    state: str = Field(description="Current state machine state")
    position: list[float] = Field(description="Scene coordinate")
    aggregate: dict[str, Any] = Field(description="Running aggregate since last hand-off")
    backlog: int = Field(description="Deliveries waiting for the stage")
    details: dict[str, Any] = Field(default_factory=dict, description="Role-specific fields")


class InspectionResponse(BaseModel):
    """Batch produced by an inspection trigger."""

    stage_id: str = Field(description="Stage that was triggered")
    batch: dict[str, Any] = Field(description="Resulting batch")


class ControlCommandResponse(BaseModel):
    """Response for control commands."""

    success: bool = Field(description="Whether command succeeded")
    message: str = Field(description="Status message")


_STAGE_BASE_FIELDS = {"id", "name", "role", "state", "position", "aggregate", "backlog"}


def _stage_response(info: dict[str, Any]) -> StageResponse:
    return StageResponse(
        **{k: info[k] for k in _STAGE_BASE_FIELDS},
        details={k: v for k, v in info.items() if k not in _STAGE_BASE_FIELDS},
    )


# REST endpoints


@app.get("/api/chain", response_model=ChainStateResponse, tags=["chain"])
async def get_chain() -> ChainStateResponse:
    """Get current chain summary."""
    sim = get_sim_state()
    return sim.describe(
        lambda chain: ChainStateResponse(
            tick=chain.tick,
            speed=sim._speed,
            paused=sim._paused,
            stage_count=len(chain.stages),
            in_transit=chain.transports.in_transit(),
            pending_messages=chain.bus.pending(),
            idle=chain.is_idle(),
        )
    )


@app.get("/api/stages", response_model=list[StageResponse], tags=["stages"])
async def get_stages() -> list[StageResponse]:
    """Get every stage in flow order."""
    sim = get_sim_state()
    infos = sim.describe(lambda chain: [s.describe() for s in chain.stages.values()])
    return [_stage_response(info) for info in infos]


@app.get("/api/stages/{stage_id}", response_model=StageResponse, tags=["stages"])
async def get_stage(stage_id: str) -> StageResponse:
    """Get a specific stage by ID."""
    sim = get_sim_state()
    try:
        info = sim.describe(lambda chain: chain.get_stage(stage_id).describe())
    except UnknownStage as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stage '{stage_id}' not found",
        ) from e
    return _stage_response(info)


@app.post("/api/stages/{stage_id}/inspect", response_model=InspectionResponse, tags=["stages"])
async def inspect_stage(stage_id: str) -> InspectionResponse:
    """Inbound trigger: farms deliver, other stages run a spot check."""
    sim = get_sim_state()
    try:
        batch = sim.inspect(stage_id)
    except UnknownStage as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stage '{stage_id}' not found",
        ) from e
    return InspectionResponse(stage_id=stage_id, batch=batch)


@app.get("/api/processing/stats", tags=["stages"])
async def get_processing_stats() -> dict[str, Any]:
    """Processing plant statistics."""
    sim = get_sim_state()
    return sim.describe(lambda chain: chain.processing_plant.stats.to_dict())


@app.get("/api/log", tags=["chain"])
async def get_log(limit: int = 50) -> dict[str, Any]:
    """Recent activity log entries and bus messages."""
    sim = get_sim_state()
    limit = max(1, min(limit, LOG_BUFFER_SIZE))
    entries = list(sim.recorder.log_entries)[-limit:]
    messages = sim.describe(lambda chain: chain.bus.get_message_log(limit))
    return {"entries": entries, "messages": messages}


@app.post("/api/chain/tick", response_model=ControlCommandResponse, tags=["chain"])
async def step_chain(count: int = 1) -> ControlCommandResponse:
    """Advance the simulation by ``count`` ticks (1-10000)."""
    if not 1 <= count <= 10000:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="count must be between 1 and 10000",
        )
    sim = get_sim_state()
    sim.tick(count)
    return ControlCommandResponse(success=True, message=f"Advanced {count} ticks")


@app.post("/api/chain/reset", response_model=ControlCommandResponse, tags=["chain"])
async def reset_chain() -> ControlCommandResponse:
    """Reset the chain to its initial state."""
    sim = get_sim_state()
    sim.reset()
    logger.info("Supply chain reset to initial state")
    return ControlCommandResponse(success=True, message="Supply chain reset")


@app.post("/api/chain/pause", response_model=ControlCommandResponse, tags=["chain"])
async def pause_simulation() -> ControlCommandResponse:
    """Pause the simulation."""
    sim = get_sim_state()
    sim.paused = True
    return ControlCommandResponse(success=True, message="Simulation paused")


@app.post("/api/chain/play", response_model=ControlCommandResponse, tags=["chain"])
async def play_simulation() -> ControlCommandResponse:
    """Resume the simulation."""
    sim = get_sim_state()
    sim.paused = False
    return ControlCommandResponse(success=True, message="Simulation playing")


@app.post("/api/chain/speed", response_model=ControlCommandResponse, tags=["chain"])
async def set_speed(speed: float = 1.0) -> ControlCommandResponse:
    """Set simulation speed multiplier (0.1-10.0)."""
    sim = get_sim_state()
    sim.speed = speed
    return ControlCommandResponse(success=True, message=f"Speed set to {sim.speed}")


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
