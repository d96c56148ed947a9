"""Event system for publisher-subscriber communication.

This package contains the event-driven plumbing of the timeline:
- event_manager.py: Publisher-subscriber event routing and coordination
- events.py: Event definitions for inter-system communication
"""

from .event_manager import EventManager, EventPriority, QueuedEvent
from .events import (
    GameEvent,
    EventType,
    CombatStarted,
    CombatEnded,
    TimelineCleared,
    RoundStarted,
    RoundRewound,
    RoundReplayed,
    EventAdvanced,
    EventRewound,
    CursorMoved,
    ActionAdded,
    ActionUpdated,
    ActionRemoved,
    ActionRejected,
    ActionExecuted,
    ActionFailed,
    EffectsExpired,
    SnapshotRestored,
    LogMessage,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "GameEvent",
    "EventType",
    "CombatStarted",
    "CombatEnded",
    "TimelineCleared",
    "RoundStarted",
    "RoundRewound",
    "RoundReplayed",
    "EventAdvanced",
    "EventRewound",
    "CursorMoved",
    "ActionAdded",
    "ActionUpdated",
    "ActionRemoved",
    "ActionRejected",
    "ActionExecuted",
    "ActionFailed",
    "EffectsExpired",
    "SnapshotRestored",
    "LogMessage",
]
