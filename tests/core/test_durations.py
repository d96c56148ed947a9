"""
Unit tests for persistent effect duration rules.
"""

from battlemap.core.data import DurationMode, EffectKind, Vector2
from battlemap.core.durations import find_expired, is_expired, purge_expired, remaining
from battlemap.core.interfaces import PersistentEffect
from battlemap.game.object_store import InMemoryObjectStore


def rounds_effect(duration=3, round_created=2, effect_id="bless"):
    return PersistentEffect(
        id=effect_id,
        duration=duration,
        duration_mode=DurationMode.ROUNDS,
        round_created=round_created,
        event_created=1,
    )


def events_effect(duration=1, round_created=1, event_created=5, effect_id="flash"):
    return PersistentEffect(
        id=effect_id,
        duration=duration,
        duration_mode=DurationMode.EVENTS,
        round_created=round_created,
        event_created=event_created,
    )


class TestRoundsMode:
    """Effects that last a number of rounds."""

    def test_present_until_last_round(self):
        effect = rounds_effect(duration=3, round_created=2)

        assert not is_expired(effect, current_round=2, current_event=1)
        assert not is_expired(effect, current_round=4, current_event=9)
        assert is_expired(effect, current_round=5, current_event=1)

    def test_missing_stamp_never_expires(self):
        effect = PersistentEffect(id="x", duration=1, round_created=None)
        assert not is_expired(effect, current_round=99, current_event=99)


class TestEventsMode:
    """Effects that last a number of events within a round."""

    def test_present_for_duration_events(self):
        effect = events_effect(duration=1, round_created=1, event_created=5)

        assert not is_expired(effect, current_round=1, current_event=5)
        assert not is_expired(effect, current_round=1, current_event=6)
        assert is_expired(effect, current_round=1, current_event=7)

    def test_round_change_expires(self):
        effect = events_effect(duration=1, round_created=1, event_created=5)
        assert is_expired(effect, current_round=2, current_event=6)

    def test_missing_event_stamp_never_expires(self):
        effect = PersistentEffect(id="x", duration=1, duration_mode=DurationMode.EVENTS,
                                  round_created=1, event_created=None)
        assert not is_expired(effect, current_round=5, current_event=50)


class TestInstantEffects:

    def test_zero_duration_never_expires(self):
        for mode in DurationMode:
            effect = PersistentEffect(id="x", duration=0, duration_mode=mode,
                                      round_created=1, event_created=1)
            assert not is_expired(effect, current_round=10, current_event=10)


class TestRemaining:
    """Display helper for rounds or events left."""

    def test_rounds_remaining(self):
        effect = rounds_effect(duration=3, round_created=2)

        assert remaining(effect, 2, 1) == 3
        assert remaining(effect, 4, 1) == 1
        assert remaining(effect, 5, 1) == 0

    def test_events_remaining(self):
        effect = events_effect(duration=2, event_created=5)

        assert remaining(effect, 1, 5) == 3
        assert remaining(effect, 1, 7) == 1
        assert remaining(effect, 1, 8) == 0

    def test_instant_has_no_remaining(self):
        assert remaining(PersistentEffect(id="x", duration=0), 1, 1) is None


class TestPurge:
    """Purging deletes expired effects from the store."""

    def test_purge_expired(self):
        store = InMemoryObjectStore()
        store.add_token("hero", Vector2(0, 0))
        store.add_persistent_effect(rounds_effect(duration=1, round_created=1, effect_id="short"))
        store.add_persistent_effect(rounds_effect(duration=5, round_created=1, effect_id="long"))
        store.add_persistent_effect(PersistentEffect(id="aura", duration=2, kind=EffectKind.STATUS,
                                                     round_created=1))

        assert find_expired(store, current_round=2, current_event=3) == ["short"]

        removed = purge_expired(store, current_round=3, current_event=3)

        assert sorted(removed) == ["aura", "short"]
        assert [effect.id for effect in store.list_persistent_effects()] == ["long"]

    def test_purge_with_nothing_expired(self):
        store = InMemoryObjectStore()
        store.add_persistent_effect(rounds_effect())
        assert purge_expired(store, 2, 1) == []
        assert len(store.list_persistent_effects()) == 1
