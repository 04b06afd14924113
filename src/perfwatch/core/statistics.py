"""Aggregate statistics over recorded samples."""

from collections.abc import Sequence

from perfwatch.core.models import Sample, Statistics, is_number


def compute_statistics(samples: Sequence[Sample]) -> Statistics:
    """Compute count, total, average, min and max of sample values.

    Non-numeric values are left out of the arithmetic. When no value is
    numeric, ``count`` is the raw number of samples and every other field
    is zero.

    Args:
        samples: Samples to aggregate, in any order.

    Returns:
        Statistics; all zeros for an empty sequence.
    """
    if not samples:
        return Statistics()

    values = [s.value for s in samples if is_number(s.value)]
    if not values:
        return Statistics(count=len(samples))

    total = sum(values)
    return Statistics(
        count=len(values),
        average=total / len(values),
        min=min(values),
        max=max(values),
        total=total,
    )
