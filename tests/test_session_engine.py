"""Tests for SessionEngine state machine."""

import pytest

from core.content_source import CorpusSource, FolderSource
from core.models import GameMode, Language, SentenceFolder, SessionPhase
from core.session_engine import SessionEngine


def make_engine(source, leaderboard, ticker, clock, language=Language.ENGLISH, target_wpm=100):
    return SessionEngine(
        source, language, leaderboard, ticker, target_wpm=target_wpm, clock=clock
    )


def type_sentence(engine, clock, duration_ms):
    """Type the current target: first keystroke, then the rest after duration_ms."""
    engine.handle_input(engine.target_text[:1])
    clock.advance(duration_ms)
    engine.handle_input(engine.target_text)


@pytest.fixture
def hello_source():
    return CorpusSource(["hello"], Language.ENGLISH, batch_size=15)


@pytest.fixture
def engine(hello_source, leaderboard, ticker, clock):
    engine = make_engine(hello_source, leaderboard, ticker, clock)
    yield engine
    engine.dispose()


@pytest.fixture
def folder():
    return SentenceFolder(id="f1", name="Drills", sentences=["one", "two", "three"])


class TestSessionStart:
    """Tests for starting sentences."""

    def test_initial_state(self, engine):
        assert engine.phase == SessionPhase.IDLE
        assert engine.completed_count == 0
        assert engine.history == []
        assert engine.mode == GameMode.NORMAL

    def test_start_enters_active(self, engine, ticker):
        assert engine.start() is True

        assert engine.phase == SessionPhase.ACTIVE
        assert engine.target_text == "hello"
        assert engine.user_input == ""
        assert engine.timer.sentence_start_ms is None
        # Nothing typed yet, so no live timing
        assert not ticker.is_active

    def test_start_ignored_while_active(self, engine):
        engine.start()
        engine.handle_input("he")

        assert engine.start() is False
        assert engine.user_input == "he"

    def test_start_blocked_for_empty_corpus(self, leaderboard, ticker, clock):
        engine = make_engine(CorpusSource([], Language.ENGLISH), leaderboard, ticker, clock)

        assert engine.start() is False
        assert engine.phase == SessionPhase.IDLE

    @pytest.mark.parametrize("folder", [None, SentenceFolder(id="e", name="Empty")])
    def test_start_blocked_for_unplayable_folder(self, folder, leaderboard, ticker, clock):
        engine = make_engine(FolderSource(folder), leaderboard, ticker, clock)

        assert engine.can_start is False
        assert engine.start() is False
        assert engine.phase == SessionPhase.IDLE

    def test_input_ignored_when_idle(self, engine):
        engine.handle_input("hello")

        assert engine.phase == SessionPhase.IDLE
        assert engine.user_input == ""
        assert engine.completed_count == 0


class TestTyping:
    """Tests for input handling and sentence completion."""

    def test_first_keystroke_starts_timing(self, engine, clock, ticker):
        engine.start()
        engine.handle_input("h")

        assert engine.timer.sentence_start_ms == clock.now
        assert engine.timer.round_start_ms == clock.now
        assert ticker.is_active

    def test_progressive_typing_scenario(self, engine, clock):
        """Test 'hello' typed progressively over 3 seconds gives 20 WPM."""
        engine.start()
        for text in ("h", "he", "hel", "hell"):
            engine.handle_input(text)
            clock.advance(750)
        engine.handle_input("hello")

        stats = engine.stats
        assert engine.phase == SessionPhase.FINISHED
        assert stats.correct_chars == 5
        assert stats.errors == 0
        assert stats.total_chars == 5
        assert stats.accuracy == 100.0
        assert stats.elapsed_seconds == 3
        assert stats.wpm == 20.0

    def test_completion_requires_exact_match(self, engine):
        engine.start()
        engine.handle_input("Hello")

        assert engine.phase == SessionPhase.ACTIVE
        assert engine.stats.errors == 1

    def test_edits_do_not_restart_timing(self, engine, clock):
        engine.start()
        engine.handle_input("hx")
        start = engine.timer.sentence_start_ms
        clock.advance(1000)
        engine.handle_input("h")
        clock.advance(1000)
        engine.handle_input("hello")

        assert engine.timer.round_start_ms == start
        assert engine.stats.elapsed_seconds == 2

    def test_paste_completes_in_one_event(self, engine):
        """Test a single event carrying the whole sentence completes it."""
        engine.start()
        engine.handle_input("hello")

        assert engine.phase == SessionPhase.FINISHED
        assert engine.stats.elapsed_seconds == 0
        assert engine.stats.wpm == 0.0

    def test_repeated_identical_events_are_idempotent(self, engine, clock):
        engine.start()
        engine.handle_input("hel")
        clock.advance(500)
        engine.handle_input("hel")
        engine.handle_input("hel")

        assert engine.user_input == "hel"
        assert engine.stats.total_chars == 3
        assert engine.completed_count == 0

    def test_completion_appends_history(self, engine, clock, ticker):
        engine.start()
        type_sentence(engine, clock, 3000)

        assert engine.completed_count == 1
        assert engine.history == [engine.stats]
        assert not ticker.is_active

    def test_input_ignored_after_finish(self, engine, clock):
        engine.start()
        type_sentence(engine, clock, 3000)
        engine.handle_input("hellox")

        assert engine.user_input == "hello"
        assert engine.completed_count == 1

    def test_sentence_finished_signal(self, engine, clock):
        finished = []
        engine.signal_sentence_finished.connect(lambda stats: finished.append(stats))
        engine.start()
        type_sentence(engine, clock, 3000)

        assert len(finished) == 1
        assert finished[0].wpm == 20.0


class TestRoundTiming:
    """Tests for continuous timing across sentences."""

    def test_pause_between_sentences_excluded(self, engine, clock):
        """Test thinking time between sentences does not count.

        Sentence 1: 3s, pause 60s, sentence 2: 2s -> 5 active seconds.
        10 correct chars = 2 words in 5s = 24 WPM.
        """
        engine.start()
        type_sentence(engine, clock, 3000)
        clock.advance(60000)
        engine.start()
        clock.advance(30000)
        type_sentence(engine, clock, 2000)

        assert engine.stats.elapsed_seconds == 5
        assert engine.stats.wpm == 24.0
        assert engine.stats.correct_chars == 5

    def test_elapsed_is_sum_of_whole_second_windows(self, engine, clock):
        engine.start()
        durations = [1999, 2500, 3100, 900]
        for duration in durations:
            type_sentence(engine, clock, duration)
            clock.advance(12345)
            engine.start()

        assert engine.history[-1].elapsed_seconds == sum(d // 1000 for d in durations)
        assert [s.elapsed_seconds for s in engine.history] == [1, 3, 6, 6]

    def test_live_tick_uses_round_timing(self, engine, clock, ticker):
        """Test live stats include the running sentence.

        'h' after 1s: 0.2 words in 1/60 min = 12 WPM.
        """
        engine.start()
        engine.handle_input("h")
        clock.advance(1000)
        ticker.fire()

        assert engine.stats.wpm == 12.0
        assert engine.stats.elapsed_seconds == 1

    def test_live_tick_includes_accumulated_sentences(self, engine, clock, ticker):
        """Test live stats after the first sentence carry its chars and time.

        3s + 1s active, 5 + 1 chars -> 1.2 words in 4/60 min = 18 WPM.
        """
        engine.start()
        type_sentence(engine, clock, 3000)
        clock.advance(20000)
        engine.start()
        engine.handle_input("h")
        clock.advance(1000)
        ticker.fire()

        assert engine.stats.elapsed_seconds == 4
        assert engine.stats.wpm == 18.0

    def test_ticker_stops_when_sentence_finishes(self, engine, clock, ticker):
        engine.start()
        engine.handle_input("h")
        assert ticker.is_active
        clock.advance(1000)
        engine.handle_input("hello")

        assert not ticker.is_active

    def test_ticker_resumes_on_next_sentence(self, engine, clock, ticker):
        """Test round timing keeps the tick running once a round has begun."""
        engine.start()
        type_sentence(engine, clock, 1000)
        engine.start()

        assert ticker.is_active
        clock.advance(5000)
        ticker.fire()
        # Time before the first keystroke of the sentence is not counted
        assert engine.stats.elapsed_seconds == 1

    def test_project_has_no_side_effects(self, engine, clock):
        engine.start()
        engine.handle_input("he")
        clock.advance(2000)

        first = engine.project()
        second = engine.project()

        assert first == second
        assert engine.user_input == "he"
        assert engine.timer.active_seconds == 0


class TestSummary:
    """Tests for round summaries and leaderboard entries."""

    def play_round(self, engine, clock, count, duration_ms=3000):
        for _ in range(count):
            engine.start()
            type_sentence(engine, clock, duration_ms)
            clock.advance(5000)

    def test_summary_after_fifteen_sentences(self, engine, clock, ticker):
        summaries = []
        engine.signal_summary.connect(lambda s: summaries.append(s))

        self.play_round(engine, clock, 14)
        assert engine.phase == SessionPhase.FINISHED

        self.play_round(engine, clock, 1)
        assert engine.phase == SessionPhase.SUMMARY
        assert len(summaries) == 1
        assert summaries[0].count == 15
        assert summaries[0].avg_wpm == 20.0
        assert summaries[0].avg_accuracy == 100.0
        assert summaries[0].total_errors == 0
        assert not ticker.is_active

    def test_start_and_input_blocked_during_summary(self, engine, clock):
        self.play_round(engine, clock, 15)

        assert engine.start() is False
        engine.handle_input("h")
        assert engine.phase == SessionPhase.SUMMARY

    def test_close_summary_records_one_entry(self, engine, clock, leaderboard):
        self.play_round(engine, clock, 15)
        assert leaderboard.entries() == []

        assert engine.close_summary() is True
        assert engine.close_summary() is False

        entries = leaderboard.entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.wpm == 20.0
        assert entry.elapsed_seconds == 45
        assert entry.sentence_count == 15
        assert entry.mode == GameMode.NORMAL
        assert entry.language == Language.ENGLISH
        assert entry.folder_name is None

    def test_close_summary_resets_round_and_starts_next(self, engine, clock):
        self.play_round(engine, clock, 15)
        engine.close_summary()

        assert engine.phase == SessionPhase.ACTIVE
        assert engine.timer.round_start_ms is None
        assert engine.timer.active_seconds == 0
        assert engine.timer.correct_chars == 0
        # Completed sentences are counted across rounds
        assert engine.completed_count == 15

        type_sentence(engine, clock, 3000)
        assert engine.stats.elapsed_seconds == 3
        assert engine.stats.wpm == 20.0

    def test_summaries_only_at_batch_multiples(self, engine, clock, leaderboard):
        self.play_round(engine, clock, 15)
        engine.close_summary()
        type_sentence(engine, clock, 3000)
        self.play_round(engine, clock, 13)
        assert engine.phase == SessionPhase.FINISHED

        self.play_round(engine, clock, 1)
        assert engine.phase == SessionPhase.SUMMARY
        assert engine.completed_count == 30
        engine.close_summary()
        assert len(leaderboard.entries()) == 2

    def test_target_achieved(self, hello_source, leaderboard, ticker, clock):
        engine = make_engine(hello_source, leaderboard, ticker, clock, target_wpm=20)
        achieved = []
        engine.signal_target_achieved.connect(lambda wpm: achieved.append(wpm))

        self.play_round(engine, clock, 15)

        assert engine.target_achieved is True
        assert achieved == [pytest.approx(20.0)]

        engine.dismiss_target_achieved()
        assert engine.target_achieved is False
        assert engine.phase == SessionPhase.SUMMARY

    def test_target_not_achieved(self, hello_source, leaderboard, ticker, clock):
        engine = make_engine(hello_source, leaderboard, ticker, clock, target_wpm=21)
        achieved = []
        engine.signal_target_achieved.connect(lambda wpm: achieved.append(wpm))

        self.play_round(engine, clock, 15)

        assert engine.target_achieved is False
        assert achieved == []

    def test_summary_averages_last_batch_only(self, engine, clock):
        self.play_round(engine, clock, 15, duration_ms=3000)
        engine.close_summary()
        type_sentence(engine, clock, 6000)
        self.play_round(engine, clock, 14, duration_ms=6000)

        summary = engine.summary_stats()
        assert summary.count == 15
        assert summary.avg_wpm == 10.0


class TestCustomMode:
    """Tests for folder-driven sessions."""

    def test_summary_after_folder_length(self, folder, leaderboard, ticker, clock):
        engine = make_engine(FolderSource(folder), leaderboard, ticker, clock)
        targets = []
        for _ in range(3):
            engine.start()
            targets.append(engine.target_text)
            type_sentence(engine, clock, 2000)

        assert targets == ["one", "two", "three"]
        assert engine.phase == SessionPhase.SUMMARY
        assert engine.summary_stats().count == 3

    def test_close_summary_restarts_folder(self, folder, leaderboard, ticker, clock):
        engine = make_engine(FolderSource(folder), leaderboard, ticker, clock)
        for _ in range(3):
            engine.start()
            type_sentence(engine, clock, 2000)

        engine.close_summary()

        assert engine.target_text == "one"
        entry = leaderboard.entries()[0]
        assert entry.mode == GameMode.CUSTOM
        assert entry.folder_name == "Drills"
        assert entry.language is None
        assert entry.sentence_count == 3
        assert entry.elapsed_seconds == 6

    def test_switch_folder_without_reset(self, folder, leaderboard, ticker, clock):
        engine = make_engine(FolderSource(folder), leaderboard, ticker, clock)
        engine.start()
        type_sentence(engine, clock, 2000)

        other = SentenceFolder(id="f2", name="Other", sentences=["x", "y"])
        engine.switch_source(FolderSource(other), reset_progress=False)
        engine.start()

        assert engine.target_text == "x"
        assert engine.completed_count == 1


class TestLifecycle:
    """Tests for configuration changes and teardown."""

    def test_set_target_wpm_clamped(self, engine):
        engine.set_target_wpm(0)
        assert engine.target_wpm == 1
        engine.set_target_wpm(150)
        assert engine.target_wpm == 150

    def test_switch_source_resets_session(self, engine, clock, ticker):
        engine.start()
        type_sentence(engine, clock, 3000)
        engine.start()
        engine.handle_input("h")

        engine.switch_source(CorpusSource(["안녕"], Language.KOREAN), Language.KOREAN)

        assert engine.phase == SessionPhase.IDLE
        assert engine.language == Language.KOREAN
        assert engine.completed_count == 0
        assert engine.history == []
        assert engine.timer.round_start_ms is None
        assert not ticker.is_active

    def test_korean_round(self, leaderboard, ticker, clock):
        """Test Korean counts one character per word: 2 chars in 6s = 20 WPM."""
        engine = make_engine(
            CorpusSource(["안녕"], Language.KOREAN), leaderboard, ticker, clock,
            language=Language.KOREAN,
        )
        engine.start()
        type_sentence(engine, clock, 6000)

        assert engine.stats.wpm == 20.0

    def test_dispose_cancels_ticker(self, engine, ticker):
        engine.start()
        engine.handle_input("h")
        assert ticker.is_active

        engine.dispose()

        assert not ticker.is_active
        assert engine.start() is False

    def test_tick_after_dispose_does_not_mutate(self, engine, clock):
        engine.start()
        engine.handle_input("h")
        tick = engine.tick
        engine.dispose()
        before = engine.stats
        clock.advance(5000)
        tick()

        assert engine.stats is before
