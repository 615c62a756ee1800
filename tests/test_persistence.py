import json

from repair_round.persistence import (
    ERROR,
    IDLE,
    SYNCED,
    SYNCING,
    DebouncedSync,
    JsonFileStore,
    MemoryStore,
)


class FailingStore:
    def __init__(self):
        self.calls = 0

    def load(self):
        raise ConnectionError("offline")

    def save(self, snapshot):
        self.calls += 1
        raise ConnectionError("offline")


class TestMemoryStore:
    def test_save_when_caller_mutates_snapshot_then_stored_copy_unchanged(self):
        store = MemoryStore()
        data = {"total_stars": 1}
        assert store.save(data) is True
        data["total_stars"] = 99
        assert store.load() == {"total_stars": 1}
        assert store.save_count == 1


class TestJsonFileStore:
    def test_load_when_file_missing_then_none(self, tmp_path):
        assert JsonFileStore(tmp_path / "save.json").load() is None

    def test_save_when_loaded_back_then_same_snapshot(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "save.json")
        assert store.save({"total_stars": 5, "current_game": None}) is True
        assert store.load() == {"total_stars": 5, "current_game": None}
        assert [p.name for p in (tmp_path / "nested").iterdir()] == ["save.json"]

    def test_load_when_file_corrupt_then_none(self, tmp_path):
        path = tmp_path / "save.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileStore(path).load() is None

    def test_load_when_not_an_object_then_none(self, tmp_path):
        path = tmp_path / "save.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        assert JsonFileStore(path).load() is None

    def test_save_when_not_serializable_then_false_and_old_file_kept(self, tmp_path):
        path = tmp_path / "save.json"
        store = JsonFileStore(path)
        store.save({"total_stars": 1})

        assert store.save({"bad": object()}) is False
        assert store.load() == {"total_stars": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["save.json"]


class TestDebouncedSync:
    def test_request_save_when_repeated_within_window_then_last_written_once(self):
        remote = MemoryStore()
        sync = DebouncedSync(remote, delay_steps=5)
        assert sync.status == IDLE

        sync.request_save({"total_stars": 1})
        sync.scheduler.tick(3)
        sync.request_save({"total_stars": 2})
        assert sync.status == SYNCING
        sync.scheduler.tick(4)
        assert remote.save_count == 0

        sync.scheduler.tick()
        assert remote.save_count == 1
        assert remote.load() == {"total_stars": 2}
        assert sync.status == SYNCED
        assert sync.has_pending is False

    def test_flush_when_pending_then_written_immediately(self):
        remote = MemoryStore()
        sync = DebouncedSync(remote)
        sync.request_save({"total_stars": 3})

        sync.flush()
        assert remote.load() == {"total_stars": 3}

        sync.scheduler.tick(DebouncedSync.DEBOUNCE_STEPS)
        assert remote.save_count == 1

    def test_flush_when_nothing_pending_then_noop(self):
        remote = MemoryStore()
        sync = DebouncedSync(remote)
        sync.flush()
        assert remote.save_count == 0
        assert sync.status == IDLE

    def test_write_when_store_raises_then_error_status(self):
        remote = FailingStore()
        sync = DebouncedSync(remote, delay_steps=1)
        sync.request_save({"total_stars": 3})

        sync.scheduler.tick()

        assert remote.calls == 1
        assert sync.status == ERROR
