"""Sentence and round timing with pauses between sentences excluded."""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

log = logging.getLogger("typearcade.round_timer")


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def iso_timestamp(timestamp_ms: int) -> str:
    """Format a millisecond timestamp as an ISO-8601 UTC string."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RoundTimer:
    """Tracks the timestamps of one sentence and the active time of a round.

    A round spans many sentences. Only the time spent typing each sentence
    (first keystroke to completion) is accumulated; the gap before the next
    sentence's first keystroke is not counted.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        """Initialize round timer.

        Args:
            clock: Function returning the current time in milliseconds
        """
        self.clock = clock
        self.sentence_start_ms: Optional[int] = None
        self.round_start_ms: Optional[int] = None
        self.active_seconds: int = 0
        self.correct_chars: int = 0

    @property
    def round_started(self) -> bool:
        return self.round_start_ms is not None

    def mark_keystroke(self) -> None:
        """Record the first keystroke of the sentence (and of the round)."""
        now = self.clock()
        if self.sentence_start_ms is None:
            self.sentence_start_ms = now
        if self.round_start_ms is None:
            self.round_start_ms = now
            log.debug(f"Round timing started at {now}")

    def finish_sentence(self, correct_chars: int) -> int:
        """Add the finished sentence to the round totals.

        Args:
            correct_chars: Correct characters of the finished sentence

        Returns:
            Accumulated active seconds of the round
        """
        if self.sentence_start_ms is not None:
            duration_ms = self._duration_ms(self.sentence_start_ms, self.clock())
            self.active_seconds += duration_ms // 1000
        self.correct_chars += correct_chars
        return self.active_seconds

    def sentence_elapsed_ms(self) -> int:
        """Time since the first keystroke of the current sentence."""
        if self.sentence_start_ms is None:
            return 0
        return self._duration_ms(self.sentence_start_ms, self.clock())

    def active_elapsed_ms(self, sentence_running: bool) -> int:
        """Active round time including the sentence in progress.

        Args:
            sentence_running: Whether the current sentence is still being typed
        """
        elapsed = self.active_seconds * 1000
        if sentence_running:
            elapsed += self.sentence_elapsed_ms()
        return elapsed

    def start_sentence(self) -> None:
        """Clear the sentence timestamp; round totals are kept."""
        self.sentence_start_ms = None

    def reset_round(self) -> None:
        """Clear all round-scoped state."""
        self.sentence_start_ms = None
        self.round_start_ms = None
        self.active_seconds = 0
        self.correct_chars = 0

    @staticmethod
    def _duration_ms(start_ms: int, end_ms: int) -> int:
        duration = end_ms - start_ms
        if duration < 0:
            log.warning(f"Negative duration: {duration}ms (start={start_ms}, end={end_ms})")
            return 0
        return duration
