"""
Unit tests for the timeline data model.

Tests event ordering, action ordering inside an event, archiving and the
plain-dict form of the whole aggregate.
"""

import pytest

from battlemap.core.data import ActionKind, Vector2
from battlemap.core.engine.actions import GenericPayload, MovePayload, SpellPayload
from battlemap.core.engine.timeline import (
    Snapshot,
    Timeline,
    TimelineAction,
    TimelineEvent,
)


def make_action(event_number=1, token_id="hero", order=0, kind=ActionKind.MOVE, payload=None):
    return TimelineAction(
        event_number=event_number,
        token_id=token_id,
        kind=kind,
        payload=payload or MovePayload(to_position=Vector2(10, 10)),
        order=order,
    )


class TestTimelineEvent:
    """Test TimelineEvent functionality."""

    def test_ordered_actions(self):
        event = TimelineEvent(number=1)
        second = make_action(order=1)
        first = make_action(order=0)
        event.actions.extend([second, first])

        assert event.ordered_actions() == [first, second]

    def test_next_order(self):
        event = TimelineEvent(number=1)
        assert event.next_order() == 0

        event.actions.append(make_action(order=0))
        event.actions.append(make_action(order=1))
        assert event.next_order() == 2

    def test_next_order_after_removal(self):
        """Appends still run last after an earlier action is removed."""
        event = TimelineEvent(number=1)
        first = make_action(order=0)
        event.actions.extend([first, make_action(order=1)])
        event.actions.remove(first)

        assert event.next_order() == 2

    def test_find_action(self):
        event = TimelineEvent(number=1)
        action = make_action()
        event.actions.append(action)

        assert event.find_action(action.id) is action
        assert event.find_action("missing") is None

    def test_reset_execution(self):
        event = TimelineEvent(number=1, executed=True)
        action = make_action()
        action.executed = True
        event.actions.append(action)

        event.reset_execution()

        assert not event.executed
        assert not action.executed


class TestTimeline:
    """Test the Timeline aggregate."""

    def test_ensure_event_keeps_sorted_order(self):
        timeline = Timeline(map_id="map")
        for number in (3, 1, 10, 2):
            timeline.ensure_event(number)

        assert timeline.event_numbers == [1, 2, 3, 10]
        assert timeline.highest_event == 10

    def test_ensure_event_returns_existing(self):
        timeline = Timeline(map_id="map")
        event = timeline.ensure_event(4)
        revision = timeline.revision

        assert timeline.ensure_event(4) is event
        assert timeline.revision == revision

    def test_ensure_event_stamps_current_round(self):
        timeline = Timeline(map_id="map", current_round=3)
        assert timeline.ensure_event(1).round_number == 3

    def test_get_event(self):
        timeline = Timeline(map_id="map")
        timeline.ensure_event(2)

        assert timeline.get_event(2).number == 2
        assert timeline.get_event(1) is None
        assert timeline.get_event(5) is None

    def test_current(self):
        timeline = Timeline(map_id="map")
        assert timeline.current is None
        timeline.ensure_event(1)
        assert timeline.current.number == 1

    def test_empty_timeline(self):
        timeline = Timeline(map_id="map")
        assert timeline.highest_event == 0
        assert timeline.event_numbers == []

    def test_find_action_across_events(self):
        timeline = Timeline(map_id="map")
        action = make_action(event_number=2)
        timeline.ensure_event(1)
        timeline.ensure_event(2).actions.append(action)

        assert timeline.find_action(action.id) is action
        assert timeline.find_action("nope") is None

    def test_archive(self):
        timeline = Timeline(map_id="map")
        timeline.ensure_event(1)
        timeline.ensure_event(2)

        assert timeline.archive() == 2
        assert timeline.events == []
        assert [event.number for event in timeline.history] == [1, 2]
        assert timeline.archive() == 0

    def test_touch_increments_revision(self):
        timeline = Timeline(map_id="map")
        timeline.touch()
        timeline.touch()
        assert timeline.revision == 2


class TestTimelineSerialization:
    """Test the plain-dict tree used for saving."""

    def build_timeline(self):
        timeline = Timeline(map_id="crypt", current_round=2, current_event=2)
        event = timeline.ensure_event(1)
        event.actions.append(make_action(order=0))
        event.actions.append(make_action(order=1, kind=ActionKind.SPELL,
                                         payload=SpellPayload(spell_name="Bless", persist_duration=2)))
        event.executed = True
        event.snapshot = Snapshot(token_positions={"hero": Vector2(0, 0)}, effect_ids=frozenset({"e1"}))
        timeline.ensure_event(2)
        return timeline

    def test_round_trip(self):
        timeline = self.build_timeline()
        rebuilt = Timeline.from_dict(timeline.to_dict())

        assert rebuilt.id == timeline.id
        assert rebuilt.map_id == "crypt"
        assert rebuilt.current_round == 2
        assert rebuilt.current_event == 2
        assert rebuilt.event_numbers == [1, 2]

        event = rebuilt.get_event(1)
        assert event.executed
        assert event.snapshot == timeline.get_event(1).snapshot
        assert [a.payload for a in event.ordered_actions()] == \
            [a.payload for a in timeline.get_event(1).ordered_actions()]

    def test_action_dict_uses_kind_string(self):
        data = make_action().to_dict()
        assert data["kind"] == "move"
        assert data["payload"]["to_position"] == {"x": 10, "y": 10}

    def test_unknown_kind_survives(self):
        action = TimelineAction.from_dict({
            "event_number": 1,
            "token_id": "hero",
            "kind": "teleport",
            "payload": {"destination": "tower"},
        })

        assert action.kind == "teleport"
        assert isinstance(action.payload, GenericPayload)
        assert action.to_dict()["payload"] == {"destination": "tower"}
        assert action.to_dict()["kind"] == "teleport"

    def test_events_sorted_on_load(self):
        data = {"map_id": "m", "events": [{"number": 5}, {"number": 2}]}
        assert Timeline.from_dict(data).event_numbers == [2, 5]

    def test_duplicate_event_numbers_rejected(self):
        data = {"map_id": "m", "events": [{"number": 1}, {"number": 1}]}
        with pytest.raises(ValueError):
            Timeline.from_dict(data)

    def test_history_round_trip(self):
        timeline = self.build_timeline()
        timeline.archive()
        rebuilt = Timeline.from_dict(timeline.to_dict())

        assert rebuilt.events == []
        assert [event.number for event in rebuilt.history] == [1, 2]
