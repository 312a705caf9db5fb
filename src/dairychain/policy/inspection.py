"""Inspection policy: quality aggregation and accept/reject decisions.

All functions here are pure apart from the random generator they are handed.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dairychain.model.batch import Batch

DEFAULT_QUALITY_THRESHOLD = 25.0


def running_mean(prev_mean: float, prev_count: int, new_value: float) -> float:
    """Fold one more value into an arithmetic mean.

    Args:
        prev_mean: Mean of the values seen so far.
        prev_count: How many values ``prev_mean`` covers.
        new_value: The value to add.

    Returns:
        Mean of all ``prev_count + 1`` values.

    Raises:
        ValueError: If prev_count is negative.
    """
    if prev_count < 0:
        raise ValueError(f"prev_count must be >= 0, got {prev_count}")
    count = prev_count + 1
    return (prev_mean * prev_count + new_value) / count


def is_accepted(quality: float, threshold: float = DEFAULT_QUALITY_THRESHOLD) -> bool:
    """A reading passes when it is at or above the threshold."""
    return quality >= threshold


def random_batch(
    source_id: int,
    rng: random.Random | None = None,
    *,
    min_quantity: int = 10,
    max_quantity: int = 40,
    min_quality: int = 25,
    max_quality: int = 30,
    accept_probability: float = 0.8,
) -> Batch:
    """Generate a farm batch the way a field test would report it.

    Quantity and quality are whole numbers drawn from the half-open ranges
    [min_quantity, max_quantity) and [min_quality, max_quality).

    Args:
        source_id: Farmer id stamped on the batch.
        rng: Random generator; the module-level generator when None.
        accept_probability: Chance that the batch is ACCEPTED.

    Returns:
        A new Batch.
    """
    from dairychain.model.batch import Batch, BatchStatus

    rng = rng or random.Random()
    quantity = float(rng.randrange(min_quantity, max_quantity))
    quality = float(rng.randrange(min_quality, max_quality))
    status = BatchStatus.ACCEPTED if rng.random() < accept_probability else BatchStatus.REJECTED
    return Batch(source_id=source_id, quantity=quantity, quality=quality, status=status)


def spot_check(source_id: int, rng: random.Random | None = None) -> Batch:
    """Random reading taken by a stage's inspection robot."""
    return random_batch(source_id, rng)
