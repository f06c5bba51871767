"""Tests for the key-value stores."""

from __future__ import annotations

import pytest

from planner.store import JsonFileStore, MemoryStore, StoreError


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_get_missing(self):
        assert MemoryStore().get("nothing") is None

    def test_values_are_copied(self):
        store = MemoryStore()
        value = {"a": [1, 2]}
        store.set("k", value)
        value["a"].append(3)
        assert store.get("k") == {"a": [1, 2]}

        fetched = store.get("k")
        fetched["a"].append(4)
        assert store.get("k") == {"a": [1, 2]}

    def test_remove(self):
        store = MemoryStore({"k": 1})
        store.remove("k")
        store.remove("k")
        assert store.keys() == []


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "data.json").get("settings") is None

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        JsonFileStore(path).set("settings", {"holidays": []})
        assert JsonFileStore(path).get("settings") == {"holidays": []}

    def test_keys_independent(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")
        store.set("a", 1)
        store.set("b", 2)
        store.remove("a")
        assert store.get("a") is None
        assert store.get("b") == 2

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{oops")
        with pytest.raises(StoreError):
            JsonFileStore(path).get("a")

    def test_non_object_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[1, 2]")
        with pytest.raises(StoreError):
            JsonFileStore(path).get("a")
