"""Centralized enums and constants for the combat timeline.

This module contains the enums shared by the engine, the managers and the
persistence layer, providing a single source of truth for the string values
that end up in saved timelines and encounter files.
"""

from enum import Enum
from typing import Union


class ActionKind(str, Enum):
    """Kinds of actions a token can perform within an event."""
    MOVE = "move"
    APPEAR = "appear"
    DISAPPEAR = "disappear"
    SPELL = "spell"
    ATTACK = "attack"
    INTERACTION = "interaction"
    ENVIRONMENTAL = "environmental"
    SEQUENCE = "sequence"


class DurationMode(str, Enum):
    """How a persistent effect measures its lifetime."""
    ROUNDS = "rounds"
    EVENTS = "events"


class EffectKind(str, Enum):
    """Types of objects the pipeline asks the object store to create."""
    SPELL = "spell"
    STATUS = "status"
    ATTACK = "attack"
    INTERACTION = "interaction"
    ENVIRONMENTAL = "environmental"


class ShapeType(str, Enum):
    """Area-of-effect footprints."""
    CIRCLE = "circle"
    SQUARE = "square"
    CONE = "cone"
    LINE = "line"


class LogSeverity(str, Enum):
    """Severity of battle log entries, used for highlighting."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# Display names for UI
ACTION_KIND_NAMES = {
    ActionKind.MOVE: "Move",
    ActionKind.APPEAR: "Appear",
    ActionKind.DISAPPEAR: "Disappear",
    ActionKind.SPELL: "Spell",
    ActionKind.ATTACK: "Attack",
    ActionKind.INTERACTION: "Interaction",
    ActionKind.ENVIRONMENTAL: "Environmental",
    ActionKind.SEQUENCE: "Sequence",
}


def parse_action_kind(value: Union[str, ActionKind]) -> Union[ActionKind, str]:
    """Convert a kind string to ActionKind, keeping unknown kinds as raw strings.

    Timelines saved by newer versions may carry kinds this engine does not know;
    those are kept verbatim so they survive a load/save cycle.
    """
    if isinstance(value, ActionKind):
        return value
    try:
        return ActionKind(str(value).lower())
    except ValueError:
        return str(value)
