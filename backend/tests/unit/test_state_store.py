"""
Unit tests for bot cursor state stores.
"""

import pytest

from trustcrawler.core.exceptions import StateStoreError
from trustcrawler.scheduler.state_store import InMemoryStateStore, JsonFileStateStore


class TestJsonFileStateStore:
    """Test the JSON file store."""

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileStateStore(tmp_path / "state.json").load("brreg_import") == {}

    def test_round_trip(self, tmp_path):
        store = JsonFileStateStore(tmp_path / "state.json")

        store.save("brreg_import", {"offset": 200, "passes": 1})

        reopened = JsonFileStateStore(tmp_path / "state.json")
        assert reopened.load("brreg_import") == {"offset": 200, "passes": 1}

    def test_bots_are_independent(self, tmp_path):
        store = JsonFileStateStore(tmp_path / "state.json")

        store.save("brreg_import", {"offset": 10})
        store.save("news_sweep", {"offset": 3})
        store.save("brreg_import", {"offset": 20})

        assert store.load("brreg_import") == {"offset": 20}
        assert store.load("news_sweep") == {"offset": 3}

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "data" / "bots" / "state.json"

        JsonFileStateStore(path).save("brreg_import", {"offset": 1})

        assert path.exists()

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStateStore(tmp_path / "state.json")

        store.save("brreg_import", {"offset": 1})
        store.save("brreg_import", {"offset": 2})

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StateStoreError):
            JsonFileStateStore(path).load("brreg_import")

    def test_non_object_file_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(StateStoreError):
            JsonFileStateStore(path).load("brreg_import")


class TestInMemoryStateStore:
    """Test the in-process store."""

    def test_load_returns_copy(self):
        store = InMemoryStateStore({"brreg_import": {"offset": 5}})

        state = store.load("brreg_import")
        state["offset"] = 99

        assert store.load("brreg_import") == {"offset": 5}

    def test_unknown_bot(self):
        assert InMemoryStateStore().load("brreg_import") == {}
