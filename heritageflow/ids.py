import itertools
import uuid
from typing import Protocol


class IdFactory(Protocol):
    def __call__(self) -> str: ...


class UuidIdFactory:
    """Random ids; collisions are negligible, not impossible."""

    def __call__(self) -> str:
        return uuid.uuid4().hex[:12]


class CounterIdFactory:
    """Deterministic monotonic ids, handy in tests."""

    def __init__(self, prefix: str = "p", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}{next(self._counter)}"
