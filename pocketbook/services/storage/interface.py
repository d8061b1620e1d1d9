"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract key-value interface for storage.
This allows us to:
1. Keep the JSON-file store for real use
2. Use in-memory storage for tests and throwaway sessions
3. Keep state logic decoupled from where the bytes live

The interface is intentionally tiny: each key holds one JSON value that
is always read and written as a whole. There are no partial updates.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pocketbook.models.expense import Scope


EXPENSES_KEY = "expenses"
SETTINGS_KEY = "userSettings"


def categories_key(scope: Scope) -> str:
    """Storage key of one scope's category collection."""
    return f"categories_{scope.value}"


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for local key-value persistence.

    Values are JSON-compatible Python objects (dicts, lists, numbers,
    strings). Writes overwrite the whole value; last writer wins.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Read the value stored under a key.

        Returns:
            The decoded JSON value, or None if the key was never written

        Raises:
            CorruptValueError: If the stored bytes are not valid JSON
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List every key currently stored, sorted."""
        pass

    def contains(self, key: str) -> bool:
        return key in self.keys()


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class CorruptValueError(StorageError):
    """A stored value exists but cannot be decoded."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Value under '{key}' is unreadable: {message}")
