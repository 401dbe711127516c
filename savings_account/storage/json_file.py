"""JSON file-backed state store."""
from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import StateFileLocked
from .memory import MemoryStore

logger = logging.getLogger(__name__)


class JsonFileStore(MemoryStore):
    """MemoryStore that loads from and rewrites a JSON file on each commit.

    The state is read once, so only one store may own a file at a time: an
    exclusive lock on ``<state file>.lock`` is taken on open and held until
    :meth:`close`. The OS drops it when the owning process exits.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._lock_file = self._acquire_lock()

        data = {}
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            logger.info("Loaded pool state from %s (%d keys)", self.path, len(data))
        super().__init__(data)

    def _acquire_lock(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock_file = self.lock_path.open("a", encoding="utf-8")
        try:
            fcntl.flock(lock_file, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            raise StateFileLocked(
                f"{self.path} is in use by another process (lock {self.lock_path})"
            ) from None
        return lock_file

    def close(self) -> None:
        if self._lock_file is None:
            return
        fcntl.flock(self._lock_file, fcntl.LOCK_UN)
        self._lock_file.close()
        self._lock_file = None
        logger.debug("Released %s", self.lock_path)

    def _commit(self) -> None:
        if self._lock_file is None:
            raise StateFileLocked(f"{self.path} was closed")
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, sort_keys=True, separators=(",", ":"))
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Pool state written to %s", self.path)
