"""Local leaderboards of recorded rounds and word drills."""

import logging
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from core.kv_store import KeyValueStore
from core.models import (
    GameMode,
    Language,
    LeaderboardEntry,
    LeaderboardFilter,
    MinigameLeaderboardEntry,
)

log = logging.getLogger("typearcade.leaderboard")

SENTENCE_LEADERBOARD_KEY = "typingLeaderboard"
MINIGAME_LEADERBOARD_KEY = "typingMinigameLeaderboard"

EntryT = TypeVar("EntryT", bound=BaseModel)


class LeaderboardStore(Generic[EntryT]):
    """Append-only history, most recent first, with ranked views.

    Retention is by insertion order: once capacity is reached the oldest
    entry is dropped regardless of its score.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        entry_type: type[EntryT],
        capacity: int = 100,
        query_limit: int = 50,
    ):
        """Initialize leaderboard.

        Args:
            store: Key-value store holding the entries
            key: Store key of the entry list
            entry_type: Pydantic model of one entry
            capacity: Maximum number of retained entries
            query_limit: Maximum number of entries returned by query
        """
        self.store = store
        self.key = key
        self.entry_type = entry_type
        self.capacity = capacity
        self.query_limit = query_limit

    def entries(self) -> list[EntryT]:
        """All retained entries, most recent first.

        Unreadable entries are skipped.
        """
        raw = self.store.get(self.key, [])
        if not isinstance(raw, list):
            log.warning(f"Leaderboard {self.key} is not a list, ignoring stored data")
            return []

        entries = []
        for item in raw:
            try:
                entries.append(self.entry_type.model_validate(item))
            except ValidationError as e:
                log.warning(f"Skipping invalid leaderboard entry in {self.key}: {e.error_count()} errors")
        return entries

    def record(self, entry: EntryT) -> None:
        """Prepend entry and drop entries beyond capacity."""
        entries = [entry] + self.entries()
        entries = entries[: self.capacity]
        self.store.set(
            self.key,
            [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in entries],
        )
        log.info(f"Recorded {self.key} entry {entry.id} (wpm={getattr(entry, 'wpm', None)})")

    def query(
        self, filter: Union[LeaderboardFilter, str] = LeaderboardFilter.ALL
    ) -> list[EntryT]:
        """Entries matching filter, sorted by WPM descending, top query_limit."""
        filter = LeaderboardFilter(filter)
        matching = [e for e in self.entries() if self.matches(e, filter)]
        matching.sort(key=lambda e: e.wpm, reverse=True)
        return matching[: self.query_limit]

    @staticmethod
    def matches(entry: EntryT, filter: LeaderboardFilter) -> bool:
        if filter == LeaderboardFilter.ALL:
            return True

        mode: Optional[GameMode] = getattr(entry, "mode", None)
        language: Optional[Language] = getattr(entry, "language", None)
        if filter == LeaderboardFilter.CUSTOM:
            return mode == GameMode.CUSTOM
        if mode == GameMode.CUSTOM:
            return False
        if filter == LeaderboardFilter.KOREAN:
            # Entries recorded before the language field existed are Korean
            return language == Language.KOREAN or language is None
        return language == Language.ENGLISH


def sentence_leaderboard(store: KeyValueStore, capacity: int = 100, query_limit: int = 50):
    """Leaderboard of sentence-mode rounds."""
    return LeaderboardStore(
        store, SENTENCE_LEADERBOARD_KEY, LeaderboardEntry, capacity, query_limit
    )


def minigame_leaderboard(store: KeyValueStore, capacity: int = 100, query_limit: int = 50):
    """Leaderboard of word drills."""
    return LeaderboardStore(
        store, MINIGAME_LEADERBOARD_KEY, MinigameLeaderboardEntry, capacity, query_limit
    )
