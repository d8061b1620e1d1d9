"""Tests for the local key-value stores."""

import pytest

from pocketbook.models import Scope
from pocketbook.services.storage import (
    CorruptValueError,
    InMemoryStore,
    JsonFileStore,
    StorageError,
    categories_key,
)


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path):
    if request.param == "file":
        return JsonFileStore(tmp_path / "store")
    return InMemoryStore()


class TestKeyValueStores:
    """Behaviour shared by every store implementation."""

    def test_missing_key_is_none(self, store):
        assert store.get("expenses") is None
        assert store.contains("expenses") is False

    def test_set_then_get(self, store):
        store.set("userSettings", {"name": "Usuário", "monthlyBudgets": {"personal": 10}})
        assert store.get("userSettings") == {"name": "Usuário", "monthlyBudgets": {"personal": 10}}

    def test_overwrite_replaces_whole_value(self, store):
        store.set("expenses", [1, 2, 3])
        store.set("expenses", [4])
        assert store.get("expenses") == [4]

    def test_keys_and_delete(self, store):
        store.set("b", 1)
        store.set("a", 2)
        assert store.keys() == ["a", "b"]
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.keys() == ["b"]

    def test_invalid_key_rejected(self, store):
        with pytest.raises(ValueError):
            store.set("../escape", 1)

    def test_unserializable_value(self, store):
        with pytest.raises(StorageError):
            store.set("expenses", {1, 2})


class TestJsonFileStore:
    """File-specific behaviour."""

    def test_one_file_per_key(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set(categories_key(Scope.BUSINESS), [])
        assert (tmp_path / "categories_business.json").read_text(encoding="utf-8") == "[]"

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "expenses.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptValueError) as exc_info:
            JsonFileStore(tmp_path).get("expenses")
        assert exc_info.value.key == "expenses"

    def test_default_directory_from_settings(self, tmp_path):
        store = JsonFileStore()
        assert store.data_dir == tmp_path / "data"

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("expenses", [{"id": "1"}])
        assert [p.name for p in tmp_path.iterdir()] == ["expenses.json"]


class TestInMemoryStore:
    """In-memory specifics."""

    def test_initial_values(self):
        store = InMemoryStore({"expenses": []})
        assert store.get("expenses") == []

    def test_corrupt_raw_value(self):
        store = InMemoryStore()
        store.set_raw("userSettings", "{oops")
        with pytest.raises(CorruptValueError):
            store.get("userSettings")

    def test_values_are_copies(self):
        store = InMemoryStore()
        value = {"a": [1]}
        store.set("k", value)
        value["a"].append(2)
        assert store.get("k") == {"a": [1]}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
