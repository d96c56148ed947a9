"""Core data structures and definitions.

This package contains fundamental data types shared by the engine:
- data_structures.py: Vector2 and VectorArray for map positions
- game_enums.py: Action kinds, duration modes, shape and effect types
"""

from .data_structures import Vector2, VectorArray, coerce_position
from .game_enums import (
    ActionKind,
    DurationMode,
    EffectKind,
    ShapeType,
    LogSeverity,
    ACTION_KIND_NAMES,
    parse_action_kind,
)

__all__ = [
    "Vector2",
    "VectorArray",
    "coerce_position",
    "ActionKind",
    "DurationMode",
    "EffectKind",
    "ShapeType",
    "LogSeverity",
    "ACTION_KIND_NAMES",
    "parse_action_kind",
]
