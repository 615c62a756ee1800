"""
Storage collaborators for profile snapshots.

A store only needs `load() -> dict | None` and `save(snapshot) -> bool`.
Failures are logged and reported through return values and
`DebouncedSync.status`; they never reach the game loop as exceptions.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path

from .scheduler import Scheduler

logger = logging.getLogger(__name__)

IDLE = "idle"
SYNCING = "syncing"
SYNCED = "synced"
ERROR = "error"


class MemoryStore:
    def __init__(self, snapshot=None):
        self.snapshot = copy.deepcopy(snapshot)
        self.save_count = 0

    def load(self):
        return copy.deepcopy(self.snapshot)

    def save(self, snapshot):
        self.snapshot = copy.deepcopy(snapshot)
        self.save_count += 1
        return True


class JsonFileStore:
    def __init__(self, path):
        self.path = Path(path)

    def load(self):
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to load game state from %s", self.path)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring game state in %s: expected an object", self.path)
            return None
        return data

    def save(self, snapshot):
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save game state to %s", self.path)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False
        return True


class DebouncedSync:
    """Coalesces saves to a slow store: only the last snapshot in a window is written."""

    FPS = 30
    DEBOUNCE_STEPS = 2 * FPS  # 2 seconds

    def __init__(self, store, scheduler=None, delay_steps=None):
        self.store = store
        self.scheduler = scheduler or Scheduler()
        self.delay_steps = self.DEBOUNCE_STEPS if delay_steps is None else delay_steps
        self.status = IDLE
        self._pending_call = None
        self._pending_snapshot = None

    def request_save(self, snapshot):
        if self._pending_call is not None:
            self._pending_call.cancel()
        self._pending_snapshot = copy.deepcopy(snapshot)
        self._pending_call = self.scheduler.schedule(self.delay_steps, self._write, name="sync")
        self.status = SYNCING

    def flush(self):
        if self._pending_call is None:
            return
        self._pending_call.cancel()
        self._write()

    def _write(self):
        snapshot = self._pending_snapshot
        self._pending_call = None
        self._pending_snapshot = None
        if snapshot is None:
            return
        try:
            ok = self.store.save(snapshot)
        except Exception:
            # Remote stores may raise anything; the game keeps running regardless
            logger.exception("Remote save failed")
            ok = False
        self.status = SYNCED if ok else ERROR

    @property
    def has_pending(self):
        return self._pending_call is not None
