"""Fixed-duration word drill with a countdown before the start."""

import logging
import math
import random
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from core.leaderboard import LeaderboardStore
from core.models import Language, MinigameLeaderboardEntry, MinigamePhase, MinigameResult
from core.round_timer import iso_timestamp, now_ms
from core.ticker import Ticker
from core.wpm_calculator import calculate_wpm, round10

log = logging.getLogger("typearcade.minigame")


class MinigameEngine(QObject):
    """Idle -> Countdown -> Active -> Result word drill.

    Only exactly matching committed words score. The drill ends a fixed
    number of seconds after the first keystroke (or after the drill began
    if nothing is typed).
    """

    signal_countdown = Signal(int)
    signal_word_changed = Signal(str)
    signal_time_left = Signal(int)
    signal_result = Signal(object)  # MinigameResult

    def __init__(
        self,
        words: list[str],
        language: Language,
        leaderboard: LeaderboardStore,
        ticker: Ticker,
        countdown_ticker: Ticker,
        duration_seconds: int = 30,
        countdown_seconds: int = 3,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
    ):
        """Initialize word drill.

        Args:
            words: Word pool drawn from uniformly
            language: Language used for the WPM word unit
            leaderboard: Store receiving one entry per result
            ticker: Fast periodic task polling the remaining time
            countdown_ticker: One-second periodic task driving the countdown
            duration_seconds: Length of the drill
            countdown_seconds: Countdown before the drill starts
            clock: Function returning the current time in milliseconds
            rng: Random generator
        """
        super().__init__()
        self.words = list(words)
        self.language = Language(language)
        self.leaderboard = leaderboard
        self.ticker = ticker
        self.countdown_ticker = countdown_ticker
        self.duration_seconds = duration_seconds
        self.countdown_seconds = countdown_seconds
        self.clock = clock
        self.rng = rng or random.Random()

        self.phase = MinigamePhase.IDLE
        self.countdown: Optional[int] = None
        self.time_left = duration_seconds
        self.target_word = ""
        self.user_input = ""
        self.correct_chars = 0
        self.total_chars = 0
        self.word_count = 0
        self.activated_ms: Optional[int] = None
        self.start_ms: Optional[int] = None
        self.end_ms: Optional[int] = None
        self._recorded = False

    def begin_countdown(self) -> bool:
        """Start the countdown. Blocked while running or with no words."""
        if self.phase in (MinigamePhase.COUNTDOWN, MinigamePhase.ACTIVE):
            return False
        if not self.words:
            log.info("Word drill blocked: empty word pool")
            return False

        self.phase = MinigamePhase.COUNTDOWN
        self.countdown = self.countdown_seconds
        self.signal_countdown.emit(self.countdown)
        self.countdown_ticker.start(self.countdown_tick)
        return True

    def countdown_tick(self) -> None:
        if self.phase != MinigamePhase.COUNTDOWN:
            self.countdown_ticker.stop()
            return
        if self.countdown > 1:
            self.countdown -= 1
            self.signal_countdown.emit(self.countdown)
            return
        self.countdown = None
        self.countdown_ticker.stop()
        self._start_drill()

    def _start_drill(self) -> None:
        self._recorded = False
        self.phase = MinigamePhase.ACTIVE
        self.time_left = self.duration_seconds
        self.user_input = ""
        self.correct_chars = 0
        self.total_chars = 0
        self.word_count = 0
        self.activated_ms = self.clock()
        self.start_ms = None
        self.end_ms = None
        self._next_word()
        self.ticker.start(self.tick)

    def _next_word(self) -> None:
        self.target_word = self.rng.choice(self.words)
        self.user_input = ""
        self.signal_word_changed.emit(self.target_word)

    def handle_input(self, text: str) -> None:
        """Process the full current input string."""
        if self.phase != MinigamePhase.ACTIVE:
            return
        if self.start_ms is None:
            self.start_ms = self.clock()
        self.user_input = text

    def commit(self) -> bool:
        """Submit the current input (commit key).

        A mismatch leaves the input untouched and costs nothing.

        Returns:
            True if the word was accepted
        """
        if self.phase != MinigamePhase.ACTIVE:
            return False
        if self.user_input.strip() != self.target_word:
            return False

        length = len(self.target_word)
        self.correct_chars += length
        self.total_chars += length
        self.word_count += 1
        self._next_word()
        return True

    def tick(self) -> None:
        """Poll the remaining time and end the drill when it runs out."""
        if self.phase != MinigamePhase.ACTIVE:
            self.ticker.stop()
            return

        now = self.clock()
        anchor = self.start_ms if self.start_ms is not None else self.activated_ms
        end_at = anchor + self.duration_seconds * 1000
        self.time_left = max(0, math.ceil((end_at - now) / 1000))
        self.signal_time_left.emit(self.time_left)
        if self.time_left <= 0:
            self.end_ms = now
            self._finish()

    def _finish(self) -> None:
        self.phase = MinigamePhase.RESULT
        self.ticker.stop()
        result = self.result()
        self._record_once(result)
        self.signal_result.emit(result)

    def result(self) -> MinigameResult:
        """Score of the drill so far."""
        if self.start_ms is not None and self.end_ms is not None:
            elapsed_ms = self.end_ms - self.start_ms
        else:
            elapsed_ms = self.duration_seconds * 1000

        if self.total_chars > 0:
            accuracy = round10(self.correct_chars / self.total_chars * 100)
        else:
            accuracy = 100.0

        return MinigameResult(
            wpm=calculate_wpm(self.correct_chars, elapsed_ms, self.language),
            accuracy=accuracy,
            word_count=self.word_count,
            correct_chars=self.correct_chars,
            total_chars=self.total_chars,
            elapsed_ms=elapsed_ms,
        )

    def _record_once(self, result: MinigameResult) -> None:
        if self._recorded:
            return
        self._recorded = True
        timestamp = self.clock()
        self.leaderboard.record(
            MinigameLeaderboardEntry(
                id=str(timestamp),
                wpm=result.wpm,
                accuracy=result.accuracy,
                word_count=result.word_count,
                date=iso_timestamp(timestamp),
                language=self.language,
            )
        )

    def dispose(self) -> None:
        """Cancel both tickers."""
        self.ticker.stop()
        self.countdown_ticker.stop()
        if self.phase in (MinigamePhase.COUNTDOWN, MinigamePhase.ACTIVE):
            self.phase = MinigamePhase.IDLE
