#!/usr/bin/env python3
"""TypeArcade - typing speed trainer with rounds, leaderboards and a word drill."""

import argparse
import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Setup logging with XDG state directory
xdg_state_home = os.environ.get('XDG_STATE_HOME', str(Path.home() / '.local' / 'state'))
log_dir = Path(xdg_state_home) / 'typearcade'
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / 'typearcade.log'

# Configure rotating file handler (5MB max, keep 5 backups)
file_handler = RotatingFileHandler(
    log_file,
    maxBytes=5*1024*1024,  # 5MB
    backupCount=5
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        file_handler,
        logging.StreamHandler()
    ]
)
log = logging.getLogger('typearcade')

from PySide6.QtCore import QCoreApplication  # noqa: E402

from core.content_source import ContentSource, CorpusSource, FolderSource  # noqa: E402
from core.corpus import Corpus  # noqa: E402
from core.folders import FolderManager  # noqa: E402
from core.kv_store import SqliteKeyValueStore  # noqa: E402
from core.leaderboard import minigame_leaderboard, sentence_leaderboard  # noqa: E402
from core.minigame_engine import MinigameEngine  # noqa: E402
from core.models import GameMode, Language, LeaderboardFilter, MinigamePhase, PracticeType, SessionPhase  # noqa: E402
from core.round_timer import now_ms  # noqa: E402
from core.session_engine import SessionEngine  # noqa: E402
from core.ticker import QtTicker  # noqa: E402
from utils.config import AppSettings, Config  # noqa: E402


class PromptClock:
    """Wall clock that can be pinned to the moment a prompt was shown.

    Line input arrives all at once, so the first keystroke of a sentence is
    attributed to the time the sentence was displayed.
    """

    def __init__(self):
        self.pinned: Optional[int] = None

    def __call__(self) -> int:
        return self.pinned if self.pinned is not None else now_ms()


class Application:
    """Wires storage, settings and engines together."""

    def __init__(self, data_dir: Optional[Path] = None, corpus_path: Optional[Path] = None):
        data_dir = data_dir or Path.home() / '.local' / 'share' / 'typearcade'
        data_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = data_dir / 'typearcade.db'

        self.store = SqliteKeyValueStore(self.db_path)
        self.config = Config(self.store)
        self.settings: AppSettings = self.config.settings()
        self.corpus = Corpus.from_file(corpus_path) if corpus_path else Corpus()
        self.folders = FolderManager(self.store)
        self.leaderboard = sentence_leaderboard(
            self.store, self.settings.leaderboard_capacity, self.settings.leaderboard_query_limit
        )
        self.minigame_leaderboard = minigame_leaderboard(
            self.store, self.settings.leaderboard_capacity, self.settings.leaderboard_query_limit
        )

    def content_source(self) -> ContentSource:
        """Source matching the persisted mode selection."""
        if self.settings.use_custom_mode:
            return FolderSource(self.folders.selected)
        return CorpusSource(
            self.corpus.sentences(self.settings.language, self.settings.practice_type),
            self.settings.language,
            batch_size=self.settings.sentences_per_round,
            recent_window=self.settings.recent_window,
        )

    def session_engine(self, clock=now_ms) -> SessionEngine:
        return SessionEngine(
            self.content_source(),
            self.settings.language,
            self.leaderboard,
            QtTicker(self.settings.tick_interval_ms),
            target_wpm=self.settings.target_wpm,
            clock=clock,
        )

    def minigame_engine(self) -> MinigameEngine:
        return MinigameEngine(
            self.corpus.words(self.settings.language),
            self.settings.language,
            self.minigame_leaderboard,
            QtTicker(self.settings.tick_interval_ms),
            QtTicker(1000),
            duration_seconds=self.settings.minigame_seconds,
            countdown_seconds=self.settings.countdown_seconds,
        )


def run_play(app: Application) -> int:
    """Line-based sentence rounds on the console."""
    clock = PromptClock()
    engine = app.session_engine(clock)
    engine.signal_target_achieved.connect(
        lambda wpm: print(f"*** Target {engine.target_wpm} WPM achieved: {wpm:.1f} WPM ***")
    )
    if not engine.start():
        print("Nothing to practise: add sentences or pick another practice type.", file=sys.stderr)
        return 1

    print("Type each sentence and press Enter. Ctrl-D quits.")
    try:
        while True:
            print(f"\n  {engine.target_text}")
            prompt_ms = now_ms()
            while engine.phase == SessionPhase.ACTIVE:
                line = input("> ")
                if not engine.user_input and line:
                    clock.pinned = prompt_ms
                    engine.handle_input(line[:1])
                    clock.pinned = None
                engine.handle_input(line)
                stats = engine.stats
                print(
                    f"  {stats.wpm:.1f} WPM  {stats.accuracy:.1f}%  "
                    f"errors={stats.errors}  {stats.elapsed_seconds}s"
                )

            if engine.phase == SessionPhase.SUMMARY:
                summary = engine.summary_stats()
                print(
                    f"\n== Round complete ({engine.completed_count} sentences total) ==\n"
                    f"  avg {summary.avg_wpm:.1f} WPM, {summary.avg_accuracy:.1f}%, "
                    f"{summary.avg_elapsed_seconds}s, {summary.total_errors} errors"
                )
                input("Press Enter for the next round...")
                engine.dismiss_target_achieved()
                engine.close_summary()
            else:
                engine.start()
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        engine.dispose()
    return 0


def run_minigame(app: Application) -> int:
    """Word drill on the console: one word per line."""
    engine = app.minigame_engine()
    engine.signal_countdown.connect(lambda n: print(f"{n}..."))
    if not engine.begin_countdown():
        print("No words available for this language.", file=sys.stderr)
        return 1

    while engine.phase == MinigamePhase.COUNTDOWN:
        time.sleep(1)
        engine.countdown_tick()

    print(f"Type each word and press Enter. {engine.duration_seconds} seconds!")
    try:
        while engine.phase == MinigamePhase.ACTIVE:
            line = input(f"  {engine.target_word} > ")
            engine.tick()
            if engine.phase != MinigamePhase.ACTIVE:
                break
            engine.handle_input(line)
            engine.commit()
            print(f"  {engine.time_left}s left, {engine.word_count} words")
    except (EOFError, KeyboardInterrupt):
        print()
        engine.dispose()
        return 0

    result = engine.result()
    print(f"\n{result.wpm:.1f} WPM, {result.accuracy:.1f}% accuracy, {result.word_count} words")
    engine.dispose()
    return 0


def run_leaderboard(app: Application, filter: str) -> int:
    entries = app.leaderboard.query(filter)
    if not entries:
        print("No records yet.")
    for rank, entry in enumerate(entries, 1):
        if entry.mode == GameMode.CUSTOM:
            label = entry.folder_name or "-"
        else:
            label = (entry.language or Language.KOREAN).value
        print(
            f"{rank:3d}. {entry.wpm:6.1f} WPM  {entry.elapsed_seconds:5d}s  "
            f"{entry.sentence_count:3d} sentences  {label}  {entry.date}"
        )
    return 0


def run_minigame_leaderboard(app: Application) -> int:
    entries = app.minigame_leaderboard.query()
    if not entries:
        print("No records yet.")
    for rank, entry in enumerate(entries, 1):
        print(
            f"{rank:3d}. {entry.wpm:6.1f} WPM  {entry.accuracy:5.1f}%  "
            f"{entry.word_count:3d} words  {entry.language.value if entry.language else '-'}  {entry.date}"
        )
    return 0


def run_folders(app: Application, args: argparse.Namespace) -> int:
    folders = app.folders
    action = args.action
    ok = True
    if action == "create":
        ok = folders.create(args.value or "") is not None
    elif action == "rename":
        ok = folders.rename(args.folder_id or "", args.value or "")
    elif action == "delete":
        ok = folders.delete(args.folder_id or "")
    elif action == "select":
        ok = folders.select(args.folder_id or "")
    elif action == "add":
        ok = folders.add_sentence(args.value or "", args.folder_id)
    elif action == "remove":
        ok = folders.remove_sentence(args.folder_id or "", int(args.value or -1))

    if not ok:
        print(f"folders {action} failed", file=sys.stderr)
        return 1

    for folder in folders.folders:
        marker = "*" if folder.id == folders.selected_folder_id else " "
        print(f"{marker} {folder.id}  {folder.name} ({len(folder.sentences)} sentences)")
        if action == "list" and args.folder_id == folder.id:
            for i, sentence in enumerate(folder.sentences):
                print(f"    {i}: {sentence}")
    return 0


def run_mode(app: Application, args: argparse.Namespace) -> int:
    try:
        if args.language:
            app.config.set("language", args.language)
            app.config.set("use_custom_mode", False)
        if args.practice:
            app.config.set("practice_type", args.practice)
        if args.custom is not None:
            app.config.set("use_custom_mode", args.custom)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1
    settings = app.config.settings()
    mode = "custom" if settings.use_custom_mode else f"{settings.language}/{settings.practice_type}"
    print(f"Mode: {mode}, target {settings.target_wpm} WPM")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--data-dir", type=Path, help="Directory holding typearcade.db")
    parser.add_argument("--corpus", type=Path, help="JSON practice corpus")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("play", help="Practise sentence rounds")
    sub.add_parser("minigame", help="30-second word drill")

    lb = sub.add_parser("leaderboard", help="Show sentence-mode leaderboard")
    lb.add_argument("--filter", choices=[f.value for f in LeaderboardFilter], default="all")
    sub.add_parser("minigame-leaderboard", help="Show word drill leaderboard")

    target = sub.add_parser("target-wpm", help="Set the WPM goal")
    target.add_argument("wpm", type=int)

    mode = sub.add_parser("mode", help="Select language, practice type or custom mode")
    mode.add_argument("--language", choices=[lang.value for lang in Language])
    mode.add_argument("--practice", choices=[p.value for p in PracticeType])
    mode.add_argument("--custom", action=argparse.BooleanOptionalAction, default=None)

    folders = sub.add_parser("folders", help="Manage custom sentence folders")
    folders.add_argument(
        "action", choices=["list", "create", "rename", "delete", "select", "add", "remove"]
    )
    folders.add_argument("--id", dest="folder_id")
    folders.add_argument("value", nargs="?")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])  # noqa: F841
    app = Application(args.data_dir, args.corpus)

    if args.command == "play":
        return run_play(app)
    if args.command == "minigame":
        return run_minigame(app)
    if args.command == "leaderboard":
        return run_leaderboard(app, args.filter)
    if args.command == "minigame-leaderboard":
        return run_minigame_leaderboard(app)
    if args.command == "target-wpm":
        # Goals below 1 are clamped rather than rejected
        app.config.set("target_wpm", max(1, args.wpm))
        print(f"Target WPM: {app.config.get_int('target_wpm')}")
        return 0
    if args.command == "mode":
        return run_mode(app, args)
    if args.command == "folders":
        return run_folders(app, args)
    return 1


if __name__ == '__main__':
    sys.exit(main())
