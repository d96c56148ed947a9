"""Snapshot capture and restore for timeline undo.

A snapshot is the world state immediately before an event's actions run:
every token position plus the ids of the persistent effects alive at that
moment. Restoring it is the exact inverse of running the event for positions
and effect existence. Other token properties (hit points, conditions) and
in-flight animation objects are not part of a snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .timeline import Snapshot

if TYPE_CHECKING:
    from ..interfaces import ObjectStore


@dataclass(frozen=True)
class RestoreResult:
    """What a restore changed."""
    positions_restored: int
    effects_removed: tuple[str, ...]


class SnapshotEngine:
    """Captures and restores snapshots against an object store."""

    def __init__(self, object_store: "ObjectStore"):
        self.object_store = object_store

    def capture(self) -> Snapshot:
        """Record current token positions and live persistent effect ids."""
        positions = {}
        for token_id in self.object_store.list_token_ids():
            position = self.object_store.get_token_position(token_id)
            if position is not None:
                positions[token_id] = position

        effect_ids = frozenset(effect.id for effect in self.object_store.list_persistent_effects())
        return Snapshot(token_positions=positions, effect_ids=effect_ids)

    def restore(self, snapshot: Snapshot) -> RestoreResult:
        """Return the object store to the snapshot's state.

        Recorded positions are written back. Persistent effects that did not
        exist at capture time are deleted; effects present in both are left
        untouched.
        """
        for token_id, position in snapshot.token_positions.items():
            self.object_store.set_token_position(token_id, position)

        removed = []
        for effect in self.object_store.list_persistent_effects():
            if effect.id not in snapshot.effect_ids:
                self.object_store.delete_object(effect.id)
                removed.append(effect.id)

        return RestoreResult(
            positions_restored=len(snapshot.token_positions),
            effects_removed=tuple(removed),
        )
