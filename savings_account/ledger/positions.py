"""Staking position ledger — a doubly-linked list kept in the state store.

Nodes live under ``position:<id>``; id 0 is the implicit head whose
``next_id`` is the first real position. ``position_instance:<ref>`` maps
each staking instance back to the position that holds it.
"""
from __future__ import annotations

import logging
from typing import Iterator, Sequence

from ..errors import PositionNotFound, ValidationError
from ..interfaces.store import StateStore
from ..models import Position

logger = logging.getLogger(__name__)

HEAD_ID = 0
_LAST_VALID_KEY = "last_valid_position_id"


def _node_key(position_id: int) -> str:
    return f"position:{position_id}"


def _index_key(instance_ref: int) -> str:
    return f"position_instance:{instance_ref}"


class PositionLedger:
    """Append, remove, re-point and walk staking positions in insertion order."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def last_valid_id(self) -> int:
        return int(self._store.get(_LAST_VALID_KEY, 0))

    def first_id(self) -> int:
        return self.get(HEAD_ID).next_id

    def id_for_instance(self, instance_ref: int) -> int:
        """Position holding ``instance_ref``, or 0 if none."""
        return int(self._store.get(_index_key(instance_ref), 0))

    def exists(self, position_id: int) -> bool:
        return position_id != HEAD_ID and self._store.get(_node_key(position_id)) is not None

    def get(self, position_id: int) -> Position:
        raw = self._store.get(_node_key(position_id))
        if raw is None:
            if position_id == HEAD_ID:
                return Position(position_id=HEAD_ID, staking_instance_ref=0)
            raise PositionNotFound(f"No staking position {position_id}")
        return Position(position_id=position_id, **raw)

    def traverse(self) -> Iterator[Position]:
        """Walk from the head to the tail."""
        seen: set[int] = set()
        position_id = self.first_id()
        while position_id != HEAD_ID:
            if position_id in seen:
                raise RuntimeError(f"Cycle in position list at {position_id}")
            seen.add(position_id)
            position = self.get(position_id)
            yield position
            position_id = position.next_id

    __iter__ = traverse

    def __len__(self) -> int:
        return sum(1 for _ in self.traverse())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _write(self, position: Position) -> None:
        self._store.set(
            _node_key(position.position_id),
            {
                "staking_instance_ref": position.staking_instance_ref,
                "prev_id": position.prev_id,
                "next_id": position.next_id,
            },
        )

    def _relink(self, position_id: int, **links: int) -> None:
        current = self.get(position_id)
        fields = {
            "staking_instance_ref": current.staking_instance_ref,
            "prev_id": current.prev_id,
            "next_id": current.next_id,
        }
        fields.update(links)
        self._write(Position(position_id=position_id, **fields))

    def append(self, instance_ref: int) -> int:
        """Add a position at the tail; returns the existing id if already indexed."""
        existing_id = self.id_for_instance(instance_ref)
        if existing_id != HEAD_ID:
            return existing_id

        prev_last_id = self.last_valid_id
        new_id = prev_last_id + 1

        self._relink(prev_last_id, next_id=new_id)
        self._write(
            Position(
                position_id=new_id,
                staking_instance_ref=instance_ref,
                prev_id=prev_last_id,
                next_id=HEAD_ID,
            )
        )
        self._store.set(_index_key(instance_ref), new_id)
        self._store.set(_LAST_VALID_KEY, new_id)

        logger.debug("Appended staking position %d (instance %d)", new_id, instance_ref)
        return new_id

    def remove(self, position_id: int) -> None:
        """Unlink and clear a position. Removing the head is a no-op."""
        if position_id == HEAD_ID:
            return

        position = self.get(position_id)

        self._relink(position.prev_id, next_id=position.next_id)
        if position.next_id != HEAD_ID:
            self._relink(position.next_id, prev_id=position.prev_id)

        if position_id == self.last_valid_id:
            self._store.set(_LAST_VALID_KEY, position.prev_id)

        if self.id_for_instance(position.staking_instance_ref) == position_id:
            self._store.delete(_index_key(position.staking_instance_ref))
        self._store.delete(_node_key(position_id))

        logger.debug("Removed staking position %d", position_id)

    def update(self, position_id: int, instance_ref: int) -> None:
        """Point a position at a new staking instance; links are untouched."""
        self.reassign([(position_id, instance_ref)])

    def reassign(self, assignments: Sequence[tuple[int, int]]) -> None:
        """Point several positions at new instances at once.

        All old index entries are dropped before the new ones are written, so
        instances may be swapped between positions in one batch.
        """
        positions = [self.get(pid) for pid, _ in assignments if pid != HEAD_ID]
        if len(positions) != len(assignments):
            raise PositionNotFound("The head position cannot hold an instance")

        batch_ids = {p.position_id for p in positions}
        new_refs = [ref for _, ref in assignments]
        if len(set(new_refs)) != len(new_refs) or len(batch_ids) != len(positions):
            raise ValidationError("Duplicate position or instance in reassignment")
        for ref in new_refs:
            owner = self.id_for_instance(ref)
            if owner != HEAD_ID and owner not in batch_ids:
                raise ValidationError(
                    f"Instance {ref} already belongs to position {owner}"
                )

        for position in positions:
            if self.id_for_instance(position.staking_instance_ref) == position.position_id:
                self._store.delete(_index_key(position.staking_instance_ref))

        for position, (_, ref) in zip(positions, assignments):
            self._relink(position.position_id, staking_instance_ref=ref)
            self._store.set(_index_key(ref), position.position_id)
