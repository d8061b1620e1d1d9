"""
Local Storage Implementations

DESIGN DECISION: Data lives in a directory of small JSON files, one per
key, because:
1. The user can open and inspect them directly
2. No database setup required
3. Copying the directory is a complete manual backup
4. The key-per-file layout mirrors the browser storage the data came from

TRADEOFFS:
- Whole-value rewrites on every mutation (fine at hundreds/thousands of rows)
- No transactions: each key is replaced atomically, but two keys are not
  replaced together

The in-memory store round-trips values through JSON as well, so tests
exercise exactly the same serialization rules as the file store.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog

from pocketbook.config import get_settings
from pocketbook.services.storage.interface import (
    CorruptValueError,
    KeyValueStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


def _check_key(key: str) -> str:
    if not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class JsonFileStore(KeyValueStoreInterface):
    """
    Key-value store backed by `<data_dir>/<key>.json` files.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so a crash never leaves half a file.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir else get_settings().storage.data_path

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{_check_key(key)}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Could not read '{key}': {e}")

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptValueError(key, str(e))

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}")

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Could not write '{key}': {e}")

        logger.debug("storage_write", key=key, bytes=len(payload))

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Could not delete '{key}': {e}")

    def keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(p.stem for p in self._data_dir.glob("*.json"))


class InMemoryStore(KeyValueStoreInterface):
    """Process-local store; values are kept as JSON text."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._values: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        text = self._values.get(_check_key(key))
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptValueError(key, str(e))

    def set(self, key: str, value: Any) -> None:
        key = _check_key(key)
        try:
            self._values[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}")

    def set_raw(self, key: str, text: str) -> None:
        """Store raw text as-is (used to simulate corrupt values)."""
        self._values[_check_key(key)] = text

    def delete(self, key: str) -> bool:
        return self._values.pop(_check_key(key), None) is not None

    def keys(self) -> list[str]:
        return sorted(self._values)
