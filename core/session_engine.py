"""Sentence-mode session: round lifecycle, live stats and round summaries."""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from core.content_source import ContentSource, FolderSource
from core.leaderboard import LeaderboardStore
from core.models import (
    GameMode,
    GameStats,
    Language,
    LeaderboardEntry,
    SessionPhase,
    SummaryStats,
)
from core.round_timer import RoundTimer, iso_timestamp, now_ms
from core.ticker import Ticker
from core.wpm_calculator import compute_stats, count_correct_chars, round10, round_half_up

log = logging.getLogger("typearcade.session")

DEFAULT_BATCH_SIZE = 15


class SessionEngine(QObject):
    """State machine of a typing session.

    Idle -> Active -> Finished -> (Active | Summary), and Summary -> Active
    once the summary is acknowledged. Round timing continues across the
    sentences of a round and only counts time spent typing.
    """

    signal_stats_updated = Signal(object)  # GameStats
    signal_sentence_finished = Signal(object)  # GameStats
    signal_summary = Signal(object)  # SummaryStats
    signal_target_achieved = Signal(float)
    signal_leaderboard_entry = Signal(object)  # LeaderboardEntry

    def __init__(
        self,
        source: ContentSource,
        language: Language,
        leaderboard: LeaderboardStore,
        ticker: Ticker,
        target_wpm: int = 100,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize session engine.

        Args:
            source: Supplier of target sentences
            language: Language used for the WPM word unit
            leaderboard: Store receiving one entry per acknowledged summary
            ticker: Periodic task driving live stats while typing
            target_wpm: WPM goal checked at each summary
            clock: Function returning the current time in milliseconds
        """
        super().__init__()
        self.source = source
        self.language = Language(language)
        self.leaderboard = leaderboard
        self.ticker = ticker
        self.target_wpm = max(1, int(target_wpm))
        self.clock = clock

        self.timer = RoundTimer(clock)
        self.phase = SessionPhase.IDLE
        self.target_text = ""
        self.user_input = ""
        self.completed_count = 0
        self.history: list[GameStats] = []
        self.stats = GameStats()

        self.target_achieved = False
        self.achieved_wpm = 0.0
        self._disposed = False

    @property
    def mode(self) -> GameMode:
        return GameMode.CUSTOM if isinstance(self.source, FolderSource) else GameMode.NORMAL

    @property
    def batch_size(self) -> int:
        return self.source.length or DEFAULT_BATCH_SIZE

    @property
    def can_start(self) -> bool:
        """Whether start() would begin a sentence."""
        return (
            not self._disposed
            and self.phase in (SessionPhase.IDLE, SessionPhase.FINISHED)
            and self.source.is_playable
        )

    def start(self) -> bool:
        """Begin the next sentence (start or advance trigger).

        Ignored while a sentence or summary is showing, and blocked while the
        content source has nothing to type.

        Returns:
            True if a new sentence began
        """
        if not self.can_start:
            if not self.source.is_playable:
                log.info("Start blocked: no sentences available")
            return False
        self._begin_sentence()
        return True

    def _begin_sentence(self) -> None:
        self.target_text = self.source.get_next()
        self.user_input = ""
        self.timer.start_sentence()
        self.phase = SessionPhase.ACTIVE
        self.stats = GameStats()
        self.signal_stats_updated.emit(self.stats)
        self._update_ticker()

    def handle_input(self, text: str) -> None:
        """Process the full current input string.

        The whole string is compared on every event, so repeated or pasted
        input is handled the same way as single keystrokes.
        """
        if self.phase != SessionPhase.ACTIVE:
            return

        if not self.user_input and text and self.timer.sentence_start_ms is None:
            self.timer.mark_keystroke()
        self.user_input = text

        if text == self.target_text:
            self._finish_sentence()
            return

        self.stats = self.project()
        self.signal_stats_updated.emit(self.stats)
        self._update_ticker()

    def _finish_sentence(self) -> None:
        previous_correct = self.timer.correct_chars
        correct = count_correct_chars(self.user_input, self.target_text)
        active_seconds = self.timer.finish_sentence(correct)

        stats = compute_stats(
            self.user_input,
            self.target_text,
            active_seconds * 1000,
            self.language,
            is_round_timing=True,
            accumulated_correct_chars=previous_correct,
        )
        stats = stats.model_copy(update={"elapsed_seconds": active_seconds})

        self.phase = SessionPhase.FINISHED
        self.stats = stats
        self.completed_count += 1
        self.history.append(stats)
        log.debug(
            f"Sentence {self.completed_count} finished: wpm={stats.wpm}, "
            f"active={active_seconds}s"
        )
        self.signal_stats_updated.emit(stats)
        self.signal_sentence_finished.emit(stats)

        if self.source.is_exhausted_cycle(self.completed_count):
            self._enter_summary()
        self._update_ticker()

    def _enter_summary(self) -> None:
        self.phase = SessionPhase.SUMMARY
        summary = self.summary_stats()
        if summary is None:
            return
        self.signal_summary.emit(summary)

        recent = self.history[-self.batch_size:]
        avg_wpm = sum(s.wpm for s in recent) / len(recent)
        if avg_wpm >= self.target_wpm:
            self.target_achieved = True
            self.achieved_wpm = avg_wpm
            log.info(f"Target {self.target_wpm} WPM achieved with {avg_wpm:.1f} WPM")
            self.signal_target_achieved.emit(avg_wpm)

    def summary_stats(self) -> Optional[SummaryStats]:
        """Averages over the last batch of completed sentences."""
        if not self.history:
            return None
        recent = self.history[-self.batch_size:]
        count = len(recent)
        return SummaryStats(
            avg_wpm=round10(sum(s.wpm for s in recent) / count),
            avg_accuracy=sum(s.accuracy for s in recent) / count,
            avg_elapsed_seconds=round_half_up(sum(s.elapsed_seconds for s in recent) / count),
            total_errors=sum(s.errors for s in recent),
            count=count,
        )

    def close_summary(self) -> bool:
        """Acknowledge the summary: record the round and start the next one.

        Returns:
            True if a summary was closed
        """
        if self.phase != SessionPhase.SUMMARY:
            return False

        summary = self.summary_stats()
        if summary is not None:
            entry = self._leaderboard_entry(summary)
            self.leaderboard.record(entry)
            self.signal_leaderboard_entry.emit(entry)

        self.timer.reset_round()
        self.source.reset()
        self._begin_sentence()
        return True

    def _leaderboard_entry(self, summary: SummaryStats) -> LeaderboardEntry:
        timestamp = self.clock()
        custom = self.mode == GameMode.CUSTOM
        return LeaderboardEntry(
            id=str(timestamp),
            wpm=summary.avg_wpm,
            elapsed_seconds=self.history[-1].elapsed_seconds,
            sentence_count=summary.count,
            date=iso_timestamp(timestamp),
            mode=self.mode,
            language=None if custom else self.language,
            folder_name=self.source.folder_name if custom else None,
        )

    def project(self) -> GameStats:
        """Stats for the current state without modifying it."""
        if self.phase in (SessionPhase.FINISHED, SessionPhase.SUMMARY, SessionPhase.IDLE):
            return self.stats

        if self.timer.round_started:
            sentence_running = self.timer.sentence_start_ms is not None
            return compute_stats(
                self.user_input,
                self.target_text,
                self.timer.active_elapsed_ms(sentence_running),
                self.language,
                is_round_timing=True,
                accumulated_correct_chars=self.timer.correct_chars,
            )
        if self.timer.sentence_start_ms is not None:
            return compute_stats(
                self.user_input,
                self.target_text,
                self.timer.sentence_elapsed_ms(),
                self.language,
            )
        return compute_stats(self.user_input, self.target_text, 0, self.language)

    def tick(self) -> None:
        """Periodic live recomputation."""
        if self._disposed or self.phase != SessionPhase.ACTIVE:
            self._update_ticker()
            return
        self.stats = self.project()
        self.signal_stats_updated.emit(self.stats)

    def _update_ticker(self) -> None:
        should_run = (
            not self._disposed
            and self.phase == SessionPhase.ACTIVE
            and (self.timer.round_started or self.timer.sentence_start_ms is not None)
        )
        if should_run:
            if not self.ticker.is_active:
                self.ticker.start(self.tick)
        elif self.ticker.is_active:
            self.ticker.stop()

    def dismiss_target_achieved(self) -> None:
        self.target_achieved = False

    def set_target_wpm(self, target_wpm: int) -> None:
        """Set the WPM goal, clamped to at least 1."""
        self.target_wpm = max(1, int(target_wpm))

    def switch_source(
        self,
        source: ContentSource,
        language: Optional[Language] = None,
        reset_progress: bool = True,
    ) -> None:
        """Replace the content source.

        Args:
            source: New supplier of target sentences
            language: New language, unchanged if None
            reset_progress: Discard the session (history, counts, round timing)
                and return to Idle
        """
        self.source = source
        if language is not None:
            self.language = Language(language)
        if not reset_progress:
            return

        self.timer.reset_round()
        self.phase = SessionPhase.IDLE
        self.target_text = ""
        self.user_input = ""
        self.completed_count = 0
        self.history = []
        self.stats = GameStats()
        self.target_achieved = False
        self._update_ticker()

    def dispose(self) -> None:
        """Cancel the ticker; the engine ignores further events."""
        self._disposed = True
        self.ticker.stop()
