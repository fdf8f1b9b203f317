"""Practice corpus keyed by language and practice type."""

import json
import logging
from pathlib import Path
from typing import Optional

from core.models import Language, PracticeType

log = logging.getLogger("typearcade.corpus")


DEFAULT_CORPUS: dict[str, dict[str, list[str]]] = {
    "korean": {
        "position": ["ㅁㄴㅇㄹ", "ㅓㅏㅣ;", "ㅂㅈㄷㄱ", "ㅛㅕㅑㅐㅔ", "ㅋㅌㅊㅍ", "ㅠㅜㅡ"],
        "word": ["사랑", "하늘", "바다", "나무", "학교", "친구", "가족", "음악", "여행", "시간"],
        "short": [
            "오늘도 좋은 하루 보내세요.",
            "천 리 길도 한 걸음부터.",
            "시작이 반이다.",
            "배움에는 끝이 없다.",
            "웃으면 복이 와요.",
            "티끌 모아 태산.",
        ],
        "long": [
            "가는 말이 고와야 오는 말이 곱다는 말처럼 먼저 친절하게 대하면 상대도 친절하게 대한다.",
            "꾸준히 연습하는 사람은 결국 원하는 목표에 도달하게 되니 조급해하지 말고 한 걸음씩 나아가자.",
        ],
    },
    "english": {
        "position": ["asdf jkl;", "qwer uiop", "zxcv m,./", "fjfj dkdk", "slsl a;a;"],
        "word": ["apple", "river", "stone", "light", "music", "happy", "garden", "window", "travel", "friend"],
        "short": [
            "The quick brown fox jumps over the lazy dog.",
            "Practice makes perfect.",
            "Slow and steady wins the race.",
            "Every day is a new beginning.",
            "Knowledge is power.",
            "Actions speak louder than words.",
        ],
        "long": [
            "The best way to predict the future is to create it, one small and deliberate step at a time.",
            "Typing fluently is less about moving your fingers quickly and more about never having to look down.",
        ],
    },
}


class Corpus:
    """Read-only table of candidate sentences."""

    def __init__(self, data: Optional[dict[str, dict[str, list[str]]]] = None):
        """Initialize corpus.

        Args:
            data: Mapping language -> practice type -> sentences
        """
        self._data = data if data is not None else DEFAULT_CORPUS

    @classmethod
    def from_file(cls, path: Path) -> "Corpus":
        """Load a corpus from a JSON document.

        A missing or malformed file yields an empty corpus.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            log.warning(f"Cannot load corpus from {path}: {e}")
            return cls({})
        if not isinstance(data, dict):
            log.warning(f"Corpus file {path} is not a JSON object")
            return cls({})
        return cls(data)

    def sentences(self, language: Language, practice_type: PracticeType) -> list[str]:
        """Get sentences for a language and practice type (empty if unknown)."""
        by_type = self._data.get(Language(language).value, {})
        entries = by_type.get(PracticeType(practice_type).value, [])
        return [s for s in entries if isinstance(s, str) and s]

    def words(self, language: Language) -> list[str]:
        """Get the word pool used by the word drill."""
        return self.sentences(language, PracticeType.WORD)
