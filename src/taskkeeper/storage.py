"""JSON storage for taskkeeper.

The store is persisted as four documents in the data directory, one JSON
array per collection. Loading restores them in dependency order so that
tasks can be checked against categories and priorities, and reminders
can find their task by title.
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigModel
from .errors import StorageError
from .store import TaskStore
from .utils.datetime import now_utc

logger = logging.getLogger(__name__)

# Collection name -> file name, in load order.
DOCUMENTS = {
    "categories": "categories.json",
    "priorities": "priorities.json",
    "tasks": "tasks.json",
    "reminders": "reminders.json",
}


class Storage:
    """File-based storage for the task store."""

    def __init__(self, config: ConfigModel):
        self.config = config
        self._ensure_directories()

    def _ensure_directories(self):
        """Ensure necessary directories exist."""
        Path(self.config.data_dir).mkdir(parents=True, exist_ok=True)
        Path(self.config.backup_dir).mkdir(parents=True, exist_ok=True)

    def document_path(self, collection: str) -> Path:
        return self.config.get_data_path(DOCUMENTS[collection])

    def _read_document(self, collection: str) -> Optional[List[Dict[str, Any]]]:
        path = self.document_path(collection)
        if not path.exists():
            logger.info("%s not found, starting fresh.", path.name)
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise StorageError(f"Error reading {path}: {e}") from e

        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(
                f"Error parsing {path}: {e}",
                suggestions=[f"Restore {path.name} from a backup in {self.config.backup_dir}"],
            ) from e

        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON array in {path}")
        logger.info("Loaded %s (%d records)", path.name, len(data))
        return data

    def read_snapshot(self) -> Dict[str, Optional[List[Dict[str, Any]]]]:
        """Read all documents; missing files come back as None."""
        return {name: self._read_document(name) for name in DOCUMENTS}

    def load(self, store: Optional[TaskStore] = None) -> TaskStore:
        """Load the persisted snapshot into ``store`` (or a new store).

        Raises:
            StorageError: If a document is unreadable or malformed
        """
        snapshot = self.read_snapshot()
        if store is None:
            store = TaskStore()
        store.load_snapshot(snapshot)
        return store

    def _write_document(self, collection: str, records: List[Dict[str, Any]]) -> None:
        path = self.document_path(collection)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Error saving {path}: {e}") from e
        logger.debug("Saved %s (%d records)", path.name, len(records))

    def save(self, store: TaskStore) -> None:
        """Write every collection of ``store`` to disk.

        The snapshot is taken under the store lock, so the four documents
        describe one consistent state.
        """
        snapshot = store.snapshot()
        self._ensure_directories()
        for collection in DOCUMENTS:
            self._write_document(collection, snapshot[collection])
        logger.info("Saved task data to %s", self.config.data_dir)

    def backup(self, timestamp: Optional[str] = None) -> Optional[Path]:
        """Copy the existing documents to a timestamped backup directory.

        Returns:
            The backup directory, or None if there was nothing to back up
        """
        existing = [self.document_path(name) for name in DOCUMENTS]
        existing = [path for path in existing if path.exists()]
        if not existing:
            return None

        if timestamp is None:
            timestamp = now_utc().strftime("%Y-%m-%d_%H-%M-%S")
        backup_dir = self.config.get_backup_path(timestamp)
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
            for path in existing:
                shutil.copy2(path, backup_dir / path.name)
        except OSError as e:
            raise StorageError(f"Error backing up to {backup_dir}: {e}") from e
        logger.info("Backed up %d document(s) to %s", len(existing), backup_dir)
        return backup_dir


# Global storage instance
_storage_instance: Optional[Storage] = None


def get_storage() -> Storage:
    """Get the global storage instance, initialized with current config."""
    global _storage_instance

    if _storage_instance is None:
        from .config import get_config
        _storage_instance = Storage(get_config())

    return _storage_instance


def reset_storage() -> None:
    """Reset the global storage instance (useful for testing)."""
    global _storage_instance
    _storage_instance = None
