"""WPM and accuracy calculation utilities."""

import math

from core.models import GameStats, Language


def round10(value: float) -> float:
    """Round to one decimal place, halves rounding up."""
    return math.floor(value * 10 + 0.5) / 10


def count_correct_chars(text: str, target: str) -> int:
    """Count positions where text matches target.

    Positions beyond the end of target never match.
    """
    return sum(
        1 for i, char in enumerate(text) if i < len(target) and char == target[i]
    )


def calculate_wpm(char_count: int, duration_ms: float, language: Language) -> float:
    """Calculate words per minute.

    Korean counts one character as one word; other languages use the
    five-characters-per-word convention.

    Args:
        char_count: Number of correctly typed characters
        duration_ms: Duration in milliseconds
        language: Language the characters were typed in

    Returns:
        WPM rounded to one decimal, or 0.0 if duration is zero
    """
    minutes = duration_ms / 60000.0
    if minutes <= 0:
        return 0.0

    words = char_count if language == Language.KOREAN else char_count / 5.0
    return round10(words / minutes)


def compute_stats(
    text: str,
    target: str,
    elapsed_ms: float,
    language: Language,
    is_round_timing: bool = False,
    accumulated_correct_chars: int = 0,
) -> GameStats:
    """Compute statistics for the current input against the target.

    Args:
        text: Everything typed so far for the current sentence
        target: Sentence being typed
        elapsed_ms: Elapsed typing time in milliseconds
        language: Language used for the WPM word unit
        is_round_timing: Count correct chars of earlier sentences in the round
        accumulated_correct_chars: Correct chars of completed sentences

    Returns:
        GameStats snapshot
    """
    correct_chars = count_correct_chars(text, target)
    total_chars = len(text)
    errors = total_chars - correct_chars
    accuracy = correct_chars / total_chars * 100 if total_chars > 0 else 0.0

    chars_for_wpm = correct_chars
    if is_round_timing:
        chars_for_wpm += accumulated_correct_chars

    return GameStats(
        wpm=calculate_wpm(chars_for_wpm, elapsed_ms, language),
        accuracy=accuracy,
        errors=errors,
        correct_chars=correct_chars,
        total_chars=total_chars,
        elapsed_seconds=round_half_up(elapsed_ms / 1000),
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return math.floor(value + 0.5)
