"""Bounded in-memory metric store.

Samples are kept per metric name in fixed-size ring buffers. When a
buffer is full the oldest sample is evicted to make room for the newest,
so memory use is bounded by ``max_metrics`` per name regardless of
recording volume. Age-based pruning is done separately by ``sweep``.
"""

from collections import deque
from collections.abc import Iterator

from perfwatch.core.models import MetricPayload, RecordOutcome, Sample


class MetricStore:
    """Mapping from metric name to a bounded, chronological series.

    Args:
        max_metrics: Maximum number of samples kept per metric name.
    """

    def __init__(self, max_metrics: int) -> None:
        self._max_metrics = max_metrics
        self._series: dict[str, deque[Sample]] = {}

    def __len__(self) -> int:
        return sum(len(series) for series in self._series.values())

    def __contains__(self, name: object) -> bool:
        return name in self._series

    def names(self) -> list[str]:
        """Return the names of all series currently stored."""
        return list(self._series)

    def record(self, name: str, payload: MetricPayload, now: int) -> RecordOutcome:
        """Append a sample built from ``payload`` to the series for ``name``.

        The sample timestamp is taken from the payload when set, otherwise
        ``now``. Failures are returned in the outcome instead of raised.
        """
        try:
            sample = Sample(
                name=name,
                value=payload.sample_value(),
                timestamp=now if payload.timestamp is None else payload.timestamp,
                metadata=payload.to_metadata(),
                kind=payload.kind,
            )
            series = self._series.get(name)
            if series is None:
                series = deque(maxlen=self._max_metrics)
                self._series[name] = series
            series.append(sample)
        except Exception as exc:  # noqa: BLE001
            return RecordOutcome.failed(exc)
        return RecordOutcome.success(sample)

    def query(
        self,
        name: str | None = None,
        limit: int | None = None,
        since: int | None = None,
    ) -> list[Sample]:
        """Return stored samples, newest first.

        Args:
            name: Metric name. None returns samples of every series.
            limit: Maximum number of samples to return. None or 0 returns
                every matching sample.
            since: Only samples with timestamp >= since are returned.

        Returns:
            A new list; changing it does not affect the store.
        """
        if name is not None:
            samples = list(self._series.get(name, ()))
        else:
            samples = [s for series in self._series.values() for s in series]

        if since is not None:
            samples = [s for s in samples if s.timestamp >= since]

        # Ties keep reverse insertion order: the sort is stable.
        samples.reverse()
        samples.sort(key=lambda s: s.timestamp, reverse=True)

        if limit:
            samples = samples[:limit]
        return samples

    def latest(self, name: str) -> Sample | None:
        """Return the most recent sample recorded under ``name``."""
        samples = self.query(name, limit=1)
        return samples[0] if samples else None

    def sweep(self, retention_period: int, now: int) -> int:
        """Drop samples older than the retention window.

        A sample survives only if ``timestamp > now - retention_period``.
        Series left empty are removed.

        Returns:
            Number of samples removed.
        """
        cutoff = now - retention_period
        removed = 0
        for name in list(self._series):
            series = self._series[name]
            kept = [s for s in series if s.timestamp > cutoff]
            removed += len(series) - len(kept)
            if not kept:
                del self._series[name]
            elif len(kept) != len(series):
                self._series[name] = deque(kept, maxlen=self._max_metrics)
        return removed

    def resize(self, max_metrics: int) -> None:
        """Change the per-name bound, keeping the newest samples."""
        self._max_metrics = max_metrics
        for name, series in self._series.items():
            self._series[name] = deque(series, maxlen=max_metrics)

    def clear(self) -> None:
        """Remove every series."""
        self._series.clear()

    def __iter__(self) -> Iterator[Sample]:
        for series in self._series.values():
            yield from series
