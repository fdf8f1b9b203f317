"""Custom sentence folders owned by the user."""

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from core.kv_store import KeyValueStore
from core.models import SentenceFolder

log = logging.getLogger("typearcade.folders")

FOLDERS_KEY = "sentenceFolders"
SELECTED_FOLDER_KEY = "selectedFolderId"
LEGACY_CUSTOM_TEXTS_KEY = "customTexts"
LEGACY_FOLDER_ID = "default"
LEGACY_FOLDER_NAME = "기본 폴더"


class FolderManager:
    """CRUD over the folder collection.

    Every mutation rewrites the whole collection in the store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize folder manager.

        Args:
            store: Key-value store holding folders and the selection
            id_factory: Function generating new folder ids
        """
        self.store = store
        self.id_factory = id_factory or (lambda: str(int(time.time() * 1000)))
        self.folders: list[SentenceFolder] = self._load_folders()
        self.selected_folder_id: Optional[str] = self.store.get(SELECTED_FOLDER_KEY) or None

    def _load_folders(self) -> list[SentenceFolder]:
        raw = self.store.get(FOLDERS_KEY)
        if raw is None:
            return self._migrate_legacy_texts()
        if not isinstance(raw, list):
            log.warning(f"{FOLDERS_KEY} is not a list, starting with no folders")
            return []

        folders = []
        for item in raw:
            try:
                folders.append(SentenceFolder.model_validate(item))
            except ValidationError as e:
                log.warning(f"Skipping invalid folder: {e.error_count()} errors")
        return folders

    def _migrate_legacy_texts(self) -> list[SentenceFolder]:
        texts = self.store.get(LEGACY_CUSTOM_TEXTS_KEY)
        if not isinstance(texts, list) or not texts:
            return []
        log.info(f"Migrating {len(texts)} legacy custom texts into a default folder")
        return [
            SentenceFolder(
                id=LEGACY_FOLDER_ID,
                name=LEGACY_FOLDER_NAME,
                sentences=[t for t in texts if isinstance(t, str)],
            )
        ]

    def _save(self) -> None:
        self.store.set(FOLDERS_KEY, [f.model_dump() for f in self.folders])

    def _save_selection(self) -> None:
        if self.selected_folder_id is None:
            self.store.remove(SELECTED_FOLDER_KEY)
        else:
            self.store.set(SELECTED_FOLDER_KEY, self.selected_folder_id)

    def get(self, folder_id: Optional[str]) -> Optional[SentenceFolder]:
        """Find a folder by id."""
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        return None

    @property
    def selected(self) -> Optional[SentenceFolder]:
        """Currently selected folder, if it still exists."""
        return self.get(self.selected_folder_id)

    def create(self, name: str) -> Optional[SentenceFolder]:
        """Create an empty folder; the first folder becomes selected.

        Returns:
            The new folder, or None if name is blank
        """
        name = name.strip()
        if not name:
            return None

        folder_id = self.id_factory()
        while self.get(folder_id) is not None:
            folder_id = f"{folder_id}-1"

        folder = SentenceFolder(id=folder_id, name=name, sentences=[])
        was_empty = not self.folders
        self.folders = self.folders + [folder]
        self._save()
        if was_empty:
            self.select(folder.id)
        return folder

    def rename(self, folder_id: str, name: str) -> bool:
        """Rename a folder. Blank names are rejected."""
        name = name.strip()
        if not name or self.get(folder_id) is None:
            return False
        self.folders = [
            f.model_copy(update={"name": name}) if f.id == folder_id else f
            for f in self.folders
        ]
        self._save()
        return True

    def delete(self, folder_id: str) -> bool:
        """Delete a folder, moving the selection to the first remaining folder."""
        if self.get(folder_id) is None:
            return False
        self.folders = [f for f in self.folders if f.id != folder_id]
        self._save()
        if self.selected_folder_id == folder_id:
            self.selected_folder_id = self.folders[0].id if self.folders else None
            self._save_selection()
        return True

    def select(self, folder_id: str) -> bool:
        """Select a folder."""
        if self.get(folder_id) is None:
            return False
        self.selected_folder_id = folder_id
        self._save_selection()
        return True

    def add_sentence(self, text: str, folder_id: Optional[str] = None) -> bool:
        """Append a sentence to a folder (the selected folder by default)."""
        text = text.strip()
        folder_id = folder_id or self.selected_folder_id
        folder = self.get(folder_id)
        if not text or folder is None:
            return False
        self._replace(folder.model_copy(update={"sentences": folder.sentences + [text]}))
        return True

    def remove_sentence(self, folder_id: str, index: int) -> bool:
        """Remove the sentence at index from a folder."""
        folder = self.get(folder_id)
        if folder is None or not 0 <= index < len(folder.sentences):
            return False
        sentences = [s for i, s in enumerate(folder.sentences) if i != index]
        self._replace(folder.model_copy(update={"sentences": sentences}))
        return True

    def _replace(self, updated: SentenceFolder) -> None:
        self.folders = [updated if f.id == updated.id else f for f in self.folders]
        self._save()
