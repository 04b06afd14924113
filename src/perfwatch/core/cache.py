"""Cache hit/miss accounting."""

from perfwatch.core.models import CacheStats


class CacheAccounting:
    """Running hit, miss and operation counters.

    Counters only ever increase; ``reset`` is the sole way back to zero.
    """

    def __init__(self) -> None:
        self._hits = 0
        self._misses = 0
        self._operations = 0

    def record(self, operation: str) -> CacheStats:
        """Count one cache operation and return the updated counters.

        Every operation increments ``operations``; only ``"hit"`` and
        ``"miss"`` touch the hit and miss counters.
        """
        self._operations += 1
        if operation == "hit":
            self._hits += 1
        elif operation == "miss":
            self._misses += 1
        return self.snapshot()

    def snapshot(self) -> CacheStats:
        return CacheStats(
            hits=self._hits, misses=self._misses, operations=self._operations
        )

    def hit_rate(self) -> float:
        """Hits as a percentage of hits and misses, or 0 with no lookups."""
        lookups = self._hits + self._misses
        return self._hits / lookups * 100 if lookups else 0

    def miss_rate(self) -> float:
        """Misses as a percentage of hits and misses, or 0 with no lookups."""
        lookups = self._hits + self._misses
        return self._misses / lookups * 100 if lookups else 0

    def reset(self) -> None:
        self._hits = 0
        self._misses = 0
        self._operations = 0
