"""
Storage Services Package

Provides the abstract key-value interface and its local implementations.
"""

from pocketbook.services.storage.interface import (
    EXPENSES_KEY,
    SETTINGS_KEY,
    CorruptValueError,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
    categories_key,
)
from pocketbook.services.storage.local import InMemoryStore, JsonFileStore

__all__ = [
    # Keys
    "EXPENSES_KEY",
    "SETTINGS_KEY",
    "categories_key",
    # Interface
    "KeyValueStoreInterface",
    # Exceptions
    "CorruptValueError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
]
