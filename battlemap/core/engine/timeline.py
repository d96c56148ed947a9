"""Timeline data model for one combat encounter.

The timeline is an ordered list of events ("beats" of combat), each holding the
actions tokens perform in that beat. Events are kept sorted by number and are
located by binary search; actions inside an event keep their append order.

Core Concepts:
- Event numbers are the primary ordering key and are unique in the active list
- The round number is a display value maintained alongside the event cursor
- Every event may carry a snapshot of the world taken just before it ran
- The whole aggregate converts to and from a plain dict tree for saving
"""

from __future__ import annotations

import time
import uuid
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..data import ActionKind, Vector2, parse_action_kind
from .actions import ActionPayload, create_payload


def new_id() -> str:
    """Generate a unique identifier for timeline objects."""
    return str(uuid.uuid4())


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Snapshot:
    """World state captured immediately before an event's actions run.

    Holds only what undo restores: token positions and the ids of the
    persistent effects that existed at capture time.
    """
    token_positions: dict[str, Vector2] = field(default_factory=dict)
    effect_ids: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_positions": {tid: pos.to_dict() for tid, pos in self.token_positions.items()},
            "effect_ids": sorted(self.effect_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        return cls(
            token_positions={
                tid: Vector2.from_dict(pos)
                for tid, pos in (data.get("token_positions") or {}).items()
            },
            effect_ids=frozenset(data.get("effect_ids") or ()),
        )


@dataclass
class TimelineAction:
    """One atomic token-bound effect scheduled within an event."""

    event_number: int
    token_id: str
    kind: Union[ActionKind, str]
    payload: ActionPayload
    order: int = 0
    executed: bool = False
    id: str = field(default_factory=new_id)

    @property
    def kind_name(self) -> str:
        return self.kind.value if isinstance(self.kind, ActionKind) else str(self.kind)

    def get_description(self) -> str:
        return self.payload.get_description()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event_number": self.event_number,
            "token_id": self.token_id,
            "kind": self.kind_name,
            "payload": self.payload.to_dict(),
            "order": self.order,
            "executed": self.executed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimelineAction":
        kind = parse_action_kind(data["kind"])
        return cls(
            id=data.get("id") or new_id(),
            event_number=int(data["event_number"]),
            token_id=str(data["token_id"]),
            kind=kind,
            payload=create_payload(kind, data.get("payload") or {}),
            order=int(data.get("order", 0)),
            executed=bool(data.get("executed", False)),
        )


@dataclass
class TimelineEvent:
    """One discrete beat of combat containing zero or more actions."""

    number: int
    round_number: int = 1
    actions: list[TimelineAction] = field(default_factory=list)
    executed: bool = False
    snapshot: Optional[Snapshot] = None
    timestamp: int = field(default_factory=_now_ms)
    id: str = field(default_factory=new_id)

    def ordered_actions(self) -> list[TimelineAction]:
        """Actions in execution order."""
        return sorted(self.actions, key=lambda a: a.order)

    def next_order(self) -> int:
        """Order index for the next appended action.

        Equals the action count until an action is removed; after that it stays
        above every existing order so appends still run last.
        """
        return max((action.order for action in self.actions), default=-1) + 1

    def find_action(self, action_id: str) -> Optional[TimelineAction]:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def reset_execution(self) -> None:
        """Mark the event and its actions as not executed so they can replay."""
        self.executed = False
        for action in self.actions:
            action.executed = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "round_number": self.round_number,
            "timestamp": self.timestamp,
            "executed": self.executed,
            "actions": [action.to_dict() for action in self.actions],
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimelineEvent":
        snapshot = data.get("snapshot")
        return cls(
            id=data.get("id") or new_id(),
            number=int(data["number"]),
            round_number=int(data.get("round_number", 1)),
            timestamp=int(data.get("timestamp") or _now_ms()),
            executed=bool(data.get("executed", False)),
            actions=[TimelineAction.from_dict(a) for a in data.get("actions") or []],
            snapshot=Snapshot.from_dict(snapshot) if snapshot else None,
        )


@dataclass
class Timeline:
    """Root aggregate for one encounter on one map.

    Owns the active events (sorted by number), the archived history and the
    cursor. `revision` increases on every mutation so observers can detect
    change without diffing.
    """

    map_id: str
    events: list[TimelineEvent] = field(default_factory=list)
    current_round: int = 1
    current_event: int = 1
    is_active: bool = True
    history: list[TimelineEvent] = field(default_factory=list)
    revision: int = 0
    id: str = field(default_factory=new_id)

    def touch(self) -> None:
        """Record that the timeline changed."""
        self.revision += 1

    def _index_of(self, number: int) -> int:
        return bisect_left([event.number for event in self.events], number)

    def get_event(self, number: int) -> Optional[TimelineEvent]:
        """Find an active event by number."""
        index = self._index_of(number)
        if index < len(self.events) and self.events[index].number == number:
            return self.events[index]
        return None

    def ensure_event(self, number: int) -> TimelineEvent:
        """Get an event, creating it in sorted position if absent."""
        index = self._index_of(number)
        if index < len(self.events) and self.events[index].number == number:
            return self.events[index]
        event = TimelineEvent(number=number, round_number=self.current_round)
        self.events.insert(index, event)
        self.touch()
        return event

    @property
    def current(self) -> Optional[TimelineEvent]:
        """The event under the cursor, if it exists."""
        return self.get_event(self.current_event)

    @property
    def event_numbers(self) -> list[int]:
        return [event.number for event in self.events]

    @property
    def highest_event(self) -> int:
        return self.events[-1].number if self.events else 0

    def events_in_round(self, round_number: int) -> list[TimelineEvent]:
        """Active events stamped with a round, in number order."""
        return [event for event in self.events if event.round_number == round_number]

    @property
    def rounds(self) -> list[int]:
        """Distinct round numbers of the active events."""
        return sorted({event.round_number for event in self.events})

    def find_action(self, action_id: str) -> Optional[TimelineAction]:
        """Locate an action by id across all active events."""
        for event in self.events:
            action = event.find_action(action_id)
            if action is not None:
                return action
        return None

    def archive(self) -> int:
        """Move every active event into history. Returns how many moved."""
        moved = len(self.events)
        self.history.extend(self.events)
        self.events = []
        if moved:
            self.touch()
        return moved

    def to_dict(self) -> dict[str, Any]:
        """Plain tree: timeline -> events -> actions, plus history."""
        return {
            "id": self.id,
            "map_id": self.map_id,
            "current_round": self.current_round,
            "current_event": self.current_event,
            "is_active": self.is_active,
            "events": [event.to_dict() for event in self.events],
            "history": [event.to_dict() for event in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Timeline":
        events = sorted(
            (TimelineEvent.from_dict(e) for e in data.get("events") or []),
            key=lambda e: e.number,
        )
        numbers = [event.number for event in events]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Timeline contains duplicate event numbers")
        return cls(
            id=data.get("id") or new_id(),
            map_id=str(data.get("map_id", "")),
            current_round=int(data.get("current_round", 1)),
            current_event=int(data.get("current_event", 1)),
            is_active=bool(data.get("is_active", True)),
            events=events,
            history=[TimelineEvent.from_dict(e) for e in data.get("history") or []],
        )
