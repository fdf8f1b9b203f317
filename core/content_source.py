"""Target text sources for sentence-mode sessions."""

import logging
import random
from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

from core.models import Language, SentenceFolder

log = logging.getLogger("typearcade.content_source")

CORPUS_PLACEHOLDER = {
    Language.KOREAN: "연습 문장을 선택해주세요.",
    Language.ENGLISH: "Please select practice.",
}
FOLDER_PLACEHOLDER = "폴더를 선택하고 문장을 추가해주세요!"


class ContentSource(ABC):
    """Supplies target sentences and defines the round length."""

    @abstractmethod
    def get_next(self) -> str:
        """Select the next target sentence.

        Returns a placeholder message when the source is not playable.
        """
        pass

    @property
    @abstractmethod
    def length(self) -> int:
        """Number of sentences per round."""
        pass

    @property
    @abstractmethod
    def is_playable(self) -> bool:
        """Whether get_next yields typeable sentences."""
        pass

    def is_exhausted_cycle(self, completed_count: int) -> bool:
        """Whether completed_count closes a round."""
        return self.length > 0 and completed_count > 0 and completed_count % self.length == 0

    def reset(self) -> None:
        """Restart the source at the beginning of a round."""
        pass


class CorpusSource(ContentSource):
    """Uniform random draws from the corpus avoiding recently shown sentences.

    Exclusion applies only while the corpus is larger than the recent window
    and is best-effort: after max_attempts resamples a repeat is accepted.
    """

    def __init__(
        self,
        sentences: list[str],
        language: Language,
        batch_size: int = 15,
        recent_window: int = 10,
        max_attempts: int = 50,
        rng: Optional[random.Random] = None,
    ):
        """Initialize corpus source.

        Args:
            sentences: Candidate sentences
            language: Language of the sentences (selects the placeholder)
            batch_size: Sentences per round
            recent_window: Number of recent sentences excluded from draws
            max_attempts: Resample attempts before accepting a repeat
            rng: Random generator
        """
        self.sentences = list(sentences)
        self.language = Language(language)
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()
        self.recent: deque[str] = deque(maxlen=recent_window)

    @property
    def length(self) -> int:
        return self.batch_size

    @property
    def is_playable(self) -> bool:
        return bool(self.sentences)

    def get_next(self) -> str:
        if not self.sentences:
            return CORPUS_PLACEHOLDER[self.language]

        text = self.rng.choice(self.sentences)
        if len(self.sentences) > len(self.recent):
            attempts = 0
            while text in self.recent and attempts < self.max_attempts:
                text = self.rng.choice(self.sentences)
                attempts += 1
            if text in self.recent:
                log.debug(f"Accepting repeated sentence after {attempts} attempts")

        self.recent.append(text)
        return text


class FolderSource(ContentSource):
    """Sentences of a user folder in fixed order, wrapping around."""

    def __init__(self, folder: Optional[SentenceFolder]):
        self.folder = folder
        self.index = 0

    @property
    def folder_name(self) -> Optional[str]:
        return self.folder.name if self.folder else None

    @property
    def length(self) -> int:
        return len(self.folder.sentences) if self.folder else 0

    @property
    def is_playable(self) -> bool:
        return self.length > 0

    def get_next(self) -> str:
        if not self.is_playable:
            return FOLDER_PLACEHOLDER
        text = self.folder.sentences[self.index % self.length]
        self.index += 1
        return text

    def reset(self) -> None:
        self.index = 0
