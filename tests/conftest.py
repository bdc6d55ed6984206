from __future__ import annotations  # noqa: D100

import pytest


class FakeClock:
    "A microsecond clock that only moves when told to"

    def __init__(self, t: int = 1000000):
        self.t = t

    def __call__(self) -> int:
        return self.t

    def advance(self, us: int) -> None:
        "move forward by @us microseconds"
        self.t += us


@pytest.fixture
def clock():
    "a settable clock, starting at one second"
    return FakeClock()
