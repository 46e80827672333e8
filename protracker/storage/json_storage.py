"""JSON file persistence: one file per named collection."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Union

from protracker.exceptions import StorageError

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Reads and writes named collections as JSON files in a directory.

    Writes go to a temporary file that replaces the target, so a failed
    write leaves the previous contents intact.

    Example:
        >>> storage = JsonFileStorage(tmp_path)
        >>> storage.save("clients", [{"id": "c1", "name": "Acme"}])
        True
        >>> storage.load("clients")
        [{'id': 'c1', 'name': 'Acme'}]
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def keys(self) -> List[str]:
        if not self.data_dir.is_dir():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    def load(self, key: str, default: Any = None) -> Any:
        """Load a collection, or ``default`` if it was never saved.

        Raises:
            StorageError: If the file exists but is not valid JSON
        """
        path = self.path_for(key)
        if not path.is_file():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(
                f"Stored data for '{key}' could not be read: {e}",
                recovery_hint=f"Restore {path.name} from a backup or remove it",
            )

    def save(self, key: str, data: Any) -> bool:
        """Write a collection.

        Returns:
            True on success, False if the write failed (the failure is logged)
        """
        path = self.path_for(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save '{key}' to {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        logger.debug(f"Saved '{key}' to {path}")
        return True

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            return False
        return True
