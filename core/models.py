"""Pydantic models for TypeArcade data structures."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Practice language."""

    KOREAN = "korean"
    ENGLISH = "english"


class PracticeType(str, Enum):
    """Kind of practice material drawn from the corpus."""

    POSITION = "position"
    WORD = "word"
    SHORT = "short"
    LONG = "long"


class GameMode(str, Enum):
    """Where target text comes from."""

    NORMAL = "normal"
    CUSTOM = "custom"


class LeaderboardFilter(str, Enum):
    """Leaderboard view filter."""

    ALL = "all"
    KOREAN = "korean"
    ENGLISH = "english"
    CUSTOM = "custom"


class SessionPhase(str, Enum):
    """Lifecycle of a sentence-mode session."""

    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"
    SUMMARY = "summary"


class MinigamePhase(str, Enum):
    """Lifecycle of the fixed-duration word drill."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    ACTIVE = "active"
    RESULT = "result"


class GameStats(BaseModel):
    """Typing statistics snapshot for the current input."""

    wpm: float = Field(default=0.0, description="Words per minute (1 decimal)")
    accuracy: float = Field(default=0.0, description="Percentage of correct chars")
    errors: int = Field(default=0, description="Typed chars not matching target")
    correct_chars: int = Field(default=0, description="Typed chars matching target")
    total_chars: int = Field(default=0, description="Length of the current input")
    elapsed_seconds: int = Field(default=0, description="Rounded elapsed time (sec)")

    model_config = ConfigDict(extra="ignore")


class SummaryStats(BaseModel):
    """Averages over the last batch of completed sentences."""

    avg_wpm: float = Field(..., description="Average WPM rounded to 1 decimal")
    avg_accuracy: float = Field(..., description="Average accuracy percentage")
    avg_elapsed_seconds: int = Field(..., description="Average elapsed seconds")
    total_errors: int = Field(..., description="Sum of errors over the batch")
    count: int = Field(..., description="Number of sentences averaged")

    model_config = ConfigDict(extra="ignore")


class SentenceFolder(BaseModel):
    """User-owned collection of practice sentences."""

    id: str = Field(..., description="Unique folder identifier")
    name: str = Field(..., description="Display name")
    sentences: list[str] = Field(default_factory=list, description="Ordered sentences")

    model_config = ConfigDict(extra="ignore")


class LeaderboardEntry(BaseModel):
    """One recorded sentence-mode round."""

    id: str = Field(..., description="Entry identifier (ms timestamp)")
    wpm: float = Field(..., description="Average WPM of the round")
    elapsed_seconds: int = Field(
        ..., alias="elapsedSeconds", description="Active seconds of the round"
    )
    sentence_count: int = Field(
        ..., alias="sentenceCount", description="Sentences in the round"
    )
    date: str = Field(..., description="ISO-8601 timestamp")
    mode: GameMode = Field(default=GameMode.NORMAL, description="normal or custom")
    language: Optional[Language] = Field(
        default=None, description="Language (normal mode only)"
    )
    folder_name: Optional[str] = Field(
        default=None, alias="folderName", description="Folder name (custom mode only)"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class MinigameLeaderboardEntry(BaseModel):
    """One recorded word-drill result."""

    id: str = Field(..., description="Entry identifier (ms timestamp)")
    wpm: float = Field(..., description="WPM over the drill")
    accuracy: float = Field(..., description="Accuracy percentage")
    word_count: int = Field(..., alias="wordCount", description="Words completed")
    date: str = Field(..., description="ISO-8601 timestamp")
    language: Optional[Language] = Field(default=None, description="Drill language")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class MinigameResult(BaseModel):
    """Final score of a word drill."""

    wpm: float
    accuracy: float
    word_count: int
    correct_chars: int
    total_chars: int
    elapsed_ms: int

    model_config = ConfigDict(extra="ignore")
