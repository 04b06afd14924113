"""Test doubles shared across test modules."""


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FixedRandom:
    """Stand-in for random.Random whose ``random()`` is constant."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value
