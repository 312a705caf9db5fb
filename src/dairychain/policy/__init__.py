"""Inspection policy functions."""

from dairychain.policy.inspection import (
    DEFAULT_QUALITY_THRESHOLD,
    is_accepted,
    random_batch,
    running_mean,
    spot_check,
)

__all__ = [
    "DEFAULT_QUALITY_THRESHOLD",
    "is_accepted",
    "random_batch",
    "running_mean",
    "spot_check",
]
