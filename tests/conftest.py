import pytest

from flash.core.config import Settings
from flash.core.flashcard import CardKind, Flashcard

# Cooldowns in seconds for stages 1-5
TEST_COOLDOWNS = [0, 60, 120, 180, 240]


class Clock:
    """A controllable replacement for the wall clock (unix ms)."""

    def __init__(self, now: int = 1_000_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def tick(self, ms: int) -> None:
        self.now += ms


def make_card(n, subject="test.txt", face=None, note=None, kind=CardKind.WRITE_THE_LINE):
    return Flashcard(
        subject=subject,
        face=face or f"face {n}",
        back=(f"back {n}",),
        kind=kind,
        note=note,
    )


@pytest.fixture
def config():
    return Settings(_env_file=None, initial_queue_size=3, stage_cooldowns=TEST_COOLDOWNS)


@pytest.fixture
def clock():
    return Clock()
