"""Action payloads for timeline-based combat.

Each action kind carries its own payload shape. Payloads are immutable
dataclasses; editing an action replaces its payload with a merged copy. The
execution pipeline dispatches on the action's kind and reads the matching
payload fields.

Action kinds:
- move: token travels between two positions (optionally through waypoints)
- appear / disappear: token visibility changes
- spell / attack: visual effect between caster and target, spells may persist
- interaction / environmental: effects on map objects or areas
- sequence: ordered sub-steps performed by the same token
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..data import ActionKind, DurationMode, Vector2, coerce_position, ACTION_KIND_NAMES
from ..geometry import AreaShape, shape_from_dict

DEFAULT_ACTION_DURATION_MS = 1000
DEFAULT_VISIBILITY_DURATION_MS = 500


def _position_to_dict(position: Optional[Vector2]) -> Optional[dict[str, float]]:
    return position.to_dict() if position is not None else None


def _coerce_area(value: Any) -> Optional[AreaShape]:
    if value is None or not isinstance(value, dict):
        return value
    return shape_from_dict(value)


class ActionPayload:
    """Base class for the payload of one action kind.

    Subclasses are frozen dataclasses. Position fields accept Vector2, dicts
    with x/y or 2-tuples, and area fields accept shapes or their dict form.
    """

    kind: ActionKind
    position_fields: tuple[str, ...] = ()
    area_fields: tuple[str, ...] = ()

    def __post_init__(self):
        # Normalize loose input so saved files and UI dicts share one shape
        for name in self.position_fields:
            object.__setattr__(self, name, coerce_position(getattr(self, name)))
        for name in self.area_fields:
            object.__setattr__(self, name, _coerce_area(getattr(self, name)))

    @property
    def duration(self) -> int:
        """Animation time in milliseconds."""
        return DEFAULT_ACTION_DURATION_MS

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for persistence."""
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if f.name in self.position_fields:
                value = _position_to_dict(value)
            elif f.name in self.area_fields:
                value = value.to_dict() if value is not None else None
            elif isinstance(value, DurationMode):
                value = value.value
            elif isinstance(value, tuple):
                value = [v.to_dict() if isinstance(v, Vector2) else v for v in value]
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionPayload":
        """Build a payload from a dict, ignoring keys the kind does not use."""
        known = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
        return cls(**{k: v for k, v in data.items() if k in known})

    def merged(self, updates: dict[str, Any]) -> "ActionPayload":
        """Copy of this payload with some fields replaced."""
        data = self.to_dict()
        data.update(updates)
        return type(self).from_dict(data)

    def get_description(self) -> str:
        return ACTION_KIND_NAMES.get(self.kind, str(self.kind))


@dataclass(frozen=True)
class MovePayload(ActionPayload):
    """Token movement from one position to another."""
    from_position: Optional[Vector2] = None
    to_position: Optional[Vector2] = None
    duration: int = DEFAULT_ACTION_DURATION_MS
    path: tuple[Vector2, ...] = ()

    kind = ActionKind.MOVE
    position_fields = ("from_position", "to_position")

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "path", tuple(coerce_position(p) for p in self.path))

    def waypoints(self, start: Vector2) -> list[Vector2]:
        """Every point the token passes after start, ending at the destination."""
        points = list(self.path)
        if self.to_position is not None:
            points.append(self.to_position)
        # Drop a leading waypoint equal to the starting point
        if points and points[0] == start:
            points = points[1:]
        return points


@dataclass(frozen=True)
class AppearPayload(ActionPayload):
    """Token becomes visible, optionally at a new position."""
    position: Optional[Vector2] = None
    duration: int = DEFAULT_VISIBILITY_DURATION_MS

    kind = ActionKind.APPEAR
    position_fields = ("position",)


@dataclass(frozen=True)
class DisappearPayload(ActionPayload):
    """Token becomes hidden."""
    duration: int = DEFAULT_VISIBILITY_DURATION_MS

    kind = ActionKind.DISAPPEAR


@dataclass(frozen=True)
class SpellPayload(ActionPayload):
    """Spell cast from a caster towards a position or token."""
    spell_name: str = "Spell"
    from_position: Optional[Vector2] = None
    to_position: Optional[Vector2] = None
    target_token_id: Optional[str] = None
    duration: int = DEFAULT_ACTION_DURATION_MS
    persist_duration: int = 0
    duration_mode: DurationMode = DurationMode.ROUNDS
    area: Optional[AreaShape] = None

    kind = ActionKind.SPELL
    position_fields = ("from_position", "to_position")
    area_fields = ("area",)

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "duration_mode", DurationMode(self.duration_mode))

    @property
    def is_persistent(self) -> bool:
        return self.persist_duration > 0

    def get_description(self) -> str:
        return f"Cast {self.spell_name}"


@dataclass(frozen=True)
class AttackPayload(ActionPayload):
    """Weapon attack against a position or token."""
    weapon_name: str = "Attack"
    from_position: Optional[Vector2] = None
    to_position: Optional[Vector2] = None
    target_token_id: Optional[str] = None
    duration: int = DEFAULT_ACTION_DURATION_MS
    damage: Optional[str] = None
    critical: bool = False

    kind = ActionKind.ATTACK
    position_fields = ("from_position", "to_position")

    def get_description(self) -> str:
        return self.weapon_name


@dataclass(frozen=True)
class InteractionPayload(ActionPayload):
    """Interaction with a map object (door, lever, chest...)."""
    interaction_type: str = "custom"
    target_object_id: Optional[str] = None
    duration: int = DEFAULT_ACTION_DURATION_MS
    parameters: dict[str, Any] = field(default_factory=dict)

    kind = ActionKind.INTERACTION

    def get_description(self) -> str:
        return self.interaction_type.replace("_", " ").capitalize()


@dataclass(frozen=True)
class EnvironmentalPayload(ActionPayload):
    """Weather, terrain or lighting change over an area."""
    effect_type: str = "atmospheric"
    area: Optional[AreaShape] = None
    intensity: int = 1
    duration: int = DEFAULT_ACTION_DURATION_MS
    persist_duration: int = 0
    duration_mode: DurationMode = DurationMode.ROUNDS

    kind = ActionKind.ENVIRONMENTAL
    area_fields = ("area",)

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "duration_mode", DurationMode(self.duration_mode))


@dataclass(frozen=True)
class SequenceStep:
    """One step of a sequence action."""
    kind: Union[ActionKind, str]
    payload: ActionPayload

    def to_dict(self) -> dict[str, Any]:
        kind = self.kind.value if isinstance(self.kind, ActionKind) else self.kind
        return {"kind": kind, "payload": self.payload.to_dict()}


@dataclass(frozen=True)
class SequencePayload(ActionPayload):
    """Ordered sub-steps performed by the same token."""
    steps: tuple[SequenceStep, ...] = ()

    kind = ActionKind.SEQUENCE

    def __post_init__(self):
        steps = []
        for step in self.steps:
            if isinstance(step, SequenceStep):
                steps.append(step)
            else:
                step_kind = step["kind"]
                steps.append(SequenceStep(step_kind, create_payload(step_kind, step.get("payload", {}))))
        object.__setattr__(self, "steps", tuple(steps))

    @property
    def duration(self) -> int:
        return sum(step.payload.duration for step in self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {"steps": [step.to_dict() for step in self.steps]}

    def get_description(self) -> str:
        return " > ".join(step.payload.get_description() for step in self.steps) or "Sequence"


@dataclass(frozen=True)
class GenericPayload(ActionPayload):
    """Payload of a kind this engine does not recognise, kept verbatim."""
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenericPayload":
        return cls(data=dict(data))

    @property
    def duration(self) -> int:
        return 0

    def get_description(self) -> str:
        return "Unknown action"


# ============== Payload Factory ==============


PAYLOAD_TYPES: dict[ActionKind, type[ActionPayload]] = {
    ActionKind.MOVE: MovePayload,
    ActionKind.APPEAR: AppearPayload,
    ActionKind.DISAPPEAR: DisappearPayload,
    ActionKind.SPELL: SpellPayload,
    ActionKind.ATTACK: AttackPayload,
    ActionKind.INTERACTION: InteractionPayload,
    ActionKind.ENVIRONMENTAL: EnvironmentalPayload,
    ActionKind.SEQUENCE: SequencePayload,
}


def create_payload(kind: Union[ActionKind, str], data: Union[ActionPayload, dict[str, Any], None] = None) -> ActionPayload:
    """Create the payload for an action kind.

    Args:
        kind: Action kind (enum or its string value)
        data: Existing payload, dict of payload fields, or None for defaults

    Returns:
        Payload instance; GenericPayload for unrecognised kinds

    Raises:
        ValueError: If the payload does not match the kind or a field is invalid
    """
    if isinstance(kind, str) and not isinstance(kind, ActionKind):
        try:
            kind = ActionKind(kind.lower())
        except ValueError:
            return data if isinstance(data, ActionPayload) else GenericPayload.from_dict(data or {})

    payload_type = PAYLOAD_TYPES[kind]
    if isinstance(data, ActionPayload):
        if not isinstance(data, payload_type):
            raise ValueError(f"{type(data).__name__} does not match action kind '{kind.value}'")
        return data
    try:
        return payload_type.from_dict(data or {})
    except TypeError as e:
        raise ValueError(f"Invalid payload for action kind '{kind.value}': {e}") from e
