"""Exceptions raised by the supply-chain core."""


class DairyChainError(Exception):
    """Base class for supply-chain simulation errors."""


class StageBusy(DairyChainError):
    """A stage was asked to start a pipeline while one is still in flight."""

    def __init__(self, stage_id: str, state: str) -> None:
        self.stage_id = stage_id
        self.state = state
        super().__init__(f"Stage '{stage_id}' is busy (state={state})")


class ChannelFull(DairyChainError):
    """A bounded bus channel already holds its maximum number of messages."""

    def __init__(self, channel: str, capacity: int) -> None:
        self.channel = channel
        self.capacity = capacity
        super().__init__(f"Channel '{channel}' is full (capacity={capacity})")


class UnknownStage(DairyChainError):
    """No stage is registered under the requested id."""

    def __init__(self, stage_id: str) -> None:
        self.stage_id = stage_id
        super().__init__(f"Unknown stage: {stage_id}")
