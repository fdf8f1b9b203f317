"""Shared test fixtures for TypeArcade tests."""

import pytest
import tempfile
from pathlib import Path
from typing import Callable, Optional

from core.kv_store import MemoryKeyValueStore
from core.leaderboard import minigame_leaderboard, sentence_leaderboard
from core.ticker import Ticker


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ManualTicker(Ticker):
    """Ticker fired explicitly by the test."""

    def __init__(self):
        self.callback: Optional[Callable[[], None]] = None
        self.start_count = 0
        self.stop_count = 0

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.start_count += 1

    def stop(self) -> None:
        self.callback = None
        self.stop_count += 1

    @property
    def is_active(self) -> bool:
        return self.callback is not None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


@pytest.fixture
def temp_db_path():
    """Create a temporary database path and clean up afterwards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield db_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def countdown_ticker():
    return ManualTicker()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def leaderboard(store):
    return sentence_leaderboard(store)


@pytest.fixture
def drill_leaderboard(store):
    return minigame_leaderboard(store)
