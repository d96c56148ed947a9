"""Timeline system events.

This module defines the events that the timeline manager, the execution
pipeline and the logging managers exchange through the event bus.

Event Design Principles:
- Events are immutable dataclasses
- All events carry the round and event numbers of the timeline cursor
- Events use proper enums instead of magic strings where a set is closed
- Keep event types focused and avoid over-granular events
"""

from dataclasses import dataclass, field
from typing import Any, Optional
from abc import ABC
from enum import Enum, auto


class EventType(Enum):
    """Types of events that managers can subscribe to."""
    # Combat lifecycle
    COMBAT_STARTED = auto()
    COMBAT_ENDED = auto()
    TIMELINE_CLEARED = auto()
    ROUND_STARTED = auto()
    ROUND_REWOUND = auto()
    ROUND_REPLAYED = auto()

    # Cursor navigation
    EVENT_ADVANCED = auto()
    EVENT_REWOUND = auto()
    CURSOR_MOVED = auto()

    # Actions
    ACTION_ADDED = auto()
    ACTION_UPDATED = auto()
    ACTION_REMOVED = auto()
    ACTION_REJECTED = auto()
    ACTION_EXECUTED = auto()
    ACTION_FAILED = auto()

    # World state
    EFFECTS_EXPIRED = auto()
    SNAPSHOT_RESTORED = auto()

    # Logging
    LOG_MESSAGE = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all timeline events."""
    round_number: int
    event_number: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class CombatStarted(GameEvent):
    """Event emitted when combat starts or resumes on a map."""
    map_id: str
    resumed: bool = False

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.COMBAT_STARTED)


@dataclass(frozen=True)
class CombatEnded(GameEvent):
    """Event emitted when combat ends and events move to history."""
    archived_events: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBAT_ENDED)


@dataclass(frozen=True)
class TimelineCleared(GameEvent):
    """Event emitted when the timeline is discarded."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TIMELINE_CLEARED)


@dataclass(frozen=True)
class RoundStarted(GameEvent):
    """Event emitted when a new round begins."""
    previous_round: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_STARTED)


@dataclass(frozen=True)
class RoundRewound(GameEvent):
    """Event emitted when the cursor went back to the start of an earlier round."""
    from_round: int
    from_event: int
    snapshot_restored: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_REWOUND)


@dataclass(frozen=True)
class RoundReplayed(GameEvent):
    """Event emitted after every event of a round ran again."""
    replayed_round: int
    events_run: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_REPLAYED)


@dataclass(frozen=True)
class EventAdvanced(GameEvent):
    """Event emitted after the cursor moved forward by one event."""
    from_event: int
    actions_executed: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.EVENT_ADVANCED)


@dataclass(frozen=True)
class EventRewound(GameEvent):
    """Event emitted after the cursor moved back by one event."""
    from_event: int
    snapshot_restored: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.EVENT_REWOUND)


@dataclass(frozen=True)
class CursorMoved(GameEvent):
    """Event emitted when the cursor jumps directly to an event."""
    from_event: int
    created: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.CURSOR_MOVED)


@dataclass(frozen=True)
class ActionAdded(GameEvent):
    """Event emitted when an action is scheduled."""
    action_id: str
    token_id: str
    kind: str
    target_event: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_ADDED)


@dataclass(frozen=True)
class ActionUpdated(GameEvent):
    """Event emitted when an action's payload is edited."""
    action_id: str
    fields: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_UPDATED)


@dataclass(frozen=True)
class ActionRemoved(GameEvent):
    """Event emitted when an action is deleted."""
    action_id: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_REMOVED)


@dataclass(frozen=True)
class ActionRejected(GameEvent):
    """Event emitted when a token's allow-list refuses an action kind."""
    token_id: str
    kind: str
    allowed_kinds: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_REJECTED)


@dataclass(frozen=True)
class ActionExecuted(GameEvent):
    """Event emitted when an action's visual has completed."""
    action_id: str
    token_id: str
    kind: str
    description: str
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_EXECUTED)


@dataclass(frozen=True)
class ActionFailed(GameEvent):
    """Event emitted when an action raised during execution."""
    action_id: str
    token_id: str
    kind: str
    error: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_FAILED)


@dataclass(frozen=True)
class EffectsExpired(GameEvent):
    """Event emitted when the duration tracker removed effects."""
    effect_ids: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.EFFECTS_EXPIRED)


@dataclass(frozen=True)
class SnapshotRestored(GameEvent):
    """Event emitted when rewinding restored a snapshot."""
    positions_restored: int
    effects_removed: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SNAPSHOT_RESTORED)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    source: str
    level: str = "INFO"
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)
