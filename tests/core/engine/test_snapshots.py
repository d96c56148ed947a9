"""
Unit tests for snapshot capture and restore.
"""

from battlemap.core.data import Vector2
from battlemap.core.engine.snapshots import SnapshotEngine
from battlemap.core.engine.timeline import Snapshot
from battlemap.core.interfaces import EffectSpec, PersistentEffect
from battlemap.core.data import EffectKind


class TestSnapshotEngine:
    """Test SnapshotEngine against the in-memory store."""

    def test_capture_positions_and_effects(self, object_store):
        object_store.add_persistent_effect(PersistentEffect(id="bless", duration=2, round_created=1))
        engine = SnapshotEngine(object_store)

        snapshot = engine.capture()

        assert snapshot.token_positions == {
            "hero": Vector2(0, 0),
            "ally": Vector2(50, 50),
            "orc": Vector2(100, 100),
        }
        assert snapshot.effect_ids == frozenset({"bless"})

    def test_instant_effects_are_not_captured(self, object_store):
        object_store.create_ephemeral_effect(EffectSpec(kind=EffectKind.ATTACK))
        snapshot = SnapshotEngine(object_store).capture()
        assert snapshot.effect_ids == frozenset()

    def test_restore_positions(self, object_store):
        engine = SnapshotEngine(object_store)
        snapshot = engine.capture()

        object_store.set_token_position("hero", Vector2(10, 10))
        object_store.set_token_position("orc", Vector2(0, 0))
        result = engine.restore(snapshot)

        assert object_store.get_token_position("hero") == Vector2(0, 0)
        assert object_store.get_token_position("orc") == Vector2(100, 100)
        assert result.positions_restored == 3

    def test_restore_removes_newer_effects_only(self, object_store):
        object_store.add_persistent_effect(PersistentEffect(id="old", duration=3, round_created=1))
        engine = SnapshotEngine(object_store)
        snapshot = engine.capture()

        new_id = object_store.create_ephemeral_effect(EffectSpec(
            kind=EffectKind.SPELL, persistent=True, duration=2, round_created=1, event_created=1
        ))
        result = engine.restore(snapshot)

        remaining_ids = [effect.id for effect in object_store.list_persistent_effects()]
        assert remaining_ids == ["old"]
        assert result.effects_removed == (new_id,)

    def test_restore_does_not_recreate_deleted_effects(self, object_store):
        """Undo covers effect existence going forward only."""
        object_store.add_persistent_effect(PersistentEffect(id="old", duration=3, round_created=1))
        engine = SnapshotEngine(object_store)
        snapshot = engine.capture()

        object_store.delete_object("old")
        engine.restore(snapshot)

        assert object_store.list_persistent_effects() == []

    def test_restore_empty_snapshot(self, object_store):
        result = SnapshotEngine(object_store).restore(Snapshot())
        assert result.positions_restored == 0
        assert object_store.get_token_position("hero") == Vector2(0, 0)
