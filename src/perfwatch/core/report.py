"""Report snapshot assembly."""

from collections.abc import Sequence

from perfwatch.core.models import Report, Sample, is_number

TIMING_MARKERS = ("timing", "duration")
ERROR_PREFIX = "error"


def is_timing_metric(name: str) -> bool:
    """Return True if the metric name marks a response-time measurement."""
    return any(marker in name for marker in TIMING_MARKERS)


def build_report(
    samples: Sequence[Sample],
    latest_memory: Sample | None,
    cache_hit_rate: float,
    active_alerts: int,
    started_at: int,
    now: int,
) -> Report:
    """Combine stored samples and counters into a Report.

    Args:
        samples: Every stored sample.
        latest_memory: The newest memory sample, if any.
        cache_hit_rate: Current cache hit rate in percent.
        active_alerts: Number of active alerts.
        started_at: Uptime baseline, Unix milliseconds.
        now: Current time, Unix milliseconds.
    """
    timing_values = [
        s.value for s in samples if is_timing_metric(s.name) and is_number(s.value)
    ]
    error_count = sum(1 for s in samples if s.name.startswith(ERROR_PREFIX))

    memory_usage = 0
    if latest_memory is not None:
        memory_usage = latest_memory.metadata.get("used", 0)

    return Report(
        uptime=now - started_at,
        total_metrics=len(samples),
        average_response_time=(
            sum(timing_values) / len(timing_values) if timing_values else 0
        ),
        memory_usage=memory_usage,
        cache_hit_rate=cache_hit_rate,
        error_rate=error_count / len(samples) * 100 if samples else 0,
        active_alerts=active_alerts,
        last_updated=now,
    )
