"""State store protocol — persistent key/value storage for pool state."""
from contextlib import AbstractContextManager
from typing import Any, Iterator, Protocol


class StateStore(Protocol):
    """Abstract interface for the storage that outlives a single operation."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> Iterator[str]: ...

    def transaction(self) -> AbstractContextManager[None]: ...

    def close(self) -> None: ...
