"""Configuration management for TypeArcade."""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.kv_store import KeyValueStore
from core.models import Language, PracticeType

log = logging.getLogger("typearcade.config")


class AppSettings(BaseModel):
    """Application settings with validation."""

    # Mode selection, restored at session start
    language: Language = Field(
        default=Language.KOREAN, description="Practice language"
    )
    practice_type: PracticeType = Field(
        default=PracticeType.SHORT, description="Corpus practice type"
    )
    use_custom_mode: bool = Field(
        default=False, description="Draw sentences from the selected folder"
    )
    selected_folder_id: Optional[str] = Field(
        default=None, description="Selected sentence folder id"
    )

    # Goal
    target_wpm: int = Field(default=100, ge=1, description="Target WPM goal")

    # Engine settings
    tick_interval_ms: int = Field(
        default=100, gt=0, description="Live stats refresh interval (ms)"
    )
    sentences_per_round: int = Field(
        default=15, ge=1, description="Sentences per round in normal mode"
    )
    recent_window: int = Field(
        default=10, ge=0, description="Recently shown sentences excluded from draws"
    )
    leaderboard_capacity: int = Field(
        default=100, ge=1, description="Maximum retained leaderboard entries"
    )
    leaderboard_query_limit: int = Field(
        default=50, ge=1, description="Entries shown per leaderboard view"
    )
    minigame_seconds: int = Field(
        default=30, gt=0, description="Word drill duration (sec)"
    )
    countdown_seconds: int = Field(
        default=3, ge=1, description="Countdown before the word drill (sec)"
    )

    model_config = ConfigDict(extra="ignore", use_enum_values=True)


# Settings persisted under the store keys used by earlier releases
STORAGE_KEYS = {
    "language": "language",
    "practice_type": "practiceType",
    "use_custom_mode": "useCustomMode",
    "selected_folder_id": "selectedFolderId",
    "target_wpm": "targetWpm",
}


class Config:
    """Configuration manager on top of a key-value store with Pydantic validation."""

    def __init__(self, store: KeyValueStore):
        """Initialize config.

        Args:
            store: Key-value store holding persisted settings
        """
        self.store = store

    @staticmethod
    def storage_key(key: str) -> str:
        """Map a settings field name to its store key."""
        return STORAGE_KEYS.get(key, key)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Get configuration value.

        Stored values that fail validation fall back to the default.

        Args:
            key: Setting key (AppSettings field name)
            default: Default value if not found

        Returns:
            Setting value
        """
        raw = self.store.get(self.storage_key(key))
        if raw is not None and key in AppSettings.model_fields:
            try:
                settings = AppSettings(**{key: raw})
                return getattr(settings, key)
            except ValidationError as e:
                log.warning(f"Invalid stored value for {key}: {raw!r} ({e.error_count()} errors)")
                raw = None
        if raw is not None:
            return raw
        if default is not None:
            return default
        if key in AppSettings.model_fields:
            return getattr(AppSettings(), key)
        return None

    def get_int(self, key: str, default: Optional[int] = None) -> int:
        """Get integer configuration value."""
        value = self.get(key, default)
        try:
            return int(value)
        except (ValueError, TypeError):
            if key in AppSettings.model_fields:
                return getattr(AppSettings(), key)
            return default if default is not None else 0

    def get_bool(self, key: str, default: Optional[bool] = None) -> bool:
        """Get boolean configuration value."""
        value = self.get(key, default)
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value) if value else False

    def set(self, key: str, value: Any) -> None:
        """Set configuration value with pydantic validation.

        Args:
            key: Setting key
            value: Setting value, None removes the stored value

        Raises:
            ValueError: If value fails validation
        """
        if value is None:
            self.store.remove(self.storage_key(key))
            return

        if key in AppSettings.model_fields:
            try:
                validated = AppSettings(**{key: value})
                value = getattr(validated, key)
            except ValidationError as e:
                raise ValueError(f"Invalid value for {key}: {e}")

        self.store.set(self.storage_key(key), value)

    def settings(self) -> AppSettings:
        """Get all settings, substituting defaults for invalid values."""
        return AppSettings(
            **{key: self.get(key) for key in AppSettings.model_fields}
        )
