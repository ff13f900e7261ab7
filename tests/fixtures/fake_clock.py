"""
Manual clock for deterministic TTL tests.
Time only moves when a test advances it.
"""


class ManualClock:
    """Callable time source, in seconds."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now

    def set(self, seconds: float) -> None:
        self.now = seconds
