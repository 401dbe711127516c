"""Dict-backed state store with snapshot transactions."""
from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class MemoryStore:
    """In-process key/value store.

    ``transaction()`` blocks nest; only the outermost one snapshots, and the
    snapshot is restored if the block raises.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._depth = 0

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, default)
        # Callers must not mutate stored containers in place.
        return copy.deepcopy(value) if isinstance(value, (dict, list)) else value

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> Iterator[str]:
        return iter(sorted(k for k in self._data if k.startswith(prefix)))

    def close(self) -> None:
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy(self._data)
        self._depth = 1
        try:
            yield
            self._depth = 0
            self._commit()
        except BaseException:
            self._data = snapshot
            logger.debug("Transaction rolled back")
            raise
        finally:
            self._depth = 0

    def _commit(self) -> None:
        """Hook for persistent subclasses."""
