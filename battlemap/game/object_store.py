"""In-memory map object store.

Reference implementation of the ObjectStore boundary used by the demo runner,
the encounter loader and the tests. Holds tokens, static map objects (doors,
chests, levers) and the effect objects the pipeline creates.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.data import ActionKind, EffectKind, Vector2
from ..core.engine.timeline import new_id
from ..core.interfaces import EffectSpec, ObjectStore, PersistentEffect


@dataclass
class MapToken:
    """A creature or character placed on the map."""
    id: str
    name: str
    position: Vector2
    visible: bool = True
    allowed_actions: Optional[list[ActionKind]] = None


@dataclass
class MapObject:
    """A static map object that interactions can target."""
    id: str
    name: str
    position: Vector2
    state: dict[str, Any] = field(default_factory=dict)


@dataclass
class EffectObject:
    """A visual effect created by an action."""
    id: str
    spec: EffectSpec

    @property
    def persistent(self) -> bool:
        return self.spec.persistent

    def to_persistent_effect(self) -> PersistentEffect:
        kind = self.spec.kind
        if kind not in (EffectKind.SPELL, EffectKind.STATUS, EffectKind.ENVIRONMENTAL):
            kind = EffectKind.SPELL
        return PersistentEffect(
            id=self.id,
            duration=self.spec.duration,
            duration_mode=self.spec.duration_mode,
            round_created=self.spec.round_created,
            event_created=self.spec.event_created,
            kind=kind,
        )


class InMemoryObjectStore(ObjectStore):
    """Dictionary-backed object store."""

    def __init__(self):
        self.tokens: dict[str, MapToken] = {}
        self.objects: dict[str, MapObject] = {}
        self.effects: dict[str, EffectObject] = {}

        # Every effect id ever created, for inspecting instant effects
        self.created_effects: list[str] = []

    # ============== Setup ==============

    def add_token(self, token_id: str, position: Vector2, name: Optional[str] = None,
                  allowed_actions: Optional[list[ActionKind]] = None, visible: bool = True) -> MapToken:
        token = MapToken(
            id=token_id,
            name=name or token_id,
            position=position,
            visible=visible,
            allowed_actions=list(allowed_actions) if allowed_actions is not None else None,
        )
        self.tokens[token_id] = token
        return token

    def add_object(self, object_id: str, position: Vector2, name: Optional[str] = None,
                   state: Optional[dict[str, Any]] = None) -> MapObject:
        map_object = MapObject(id=object_id, name=name or object_id, position=position, state=dict(state or {}))
        self.objects[object_id] = map_object
        return map_object

    def add_persistent_effect(self, effect: PersistentEffect) -> None:
        """Place an existing persistent effect on the map (status effects, saved spells)."""
        spec = EffectSpec(
            kind=effect.kind,
            persistent=True,
            duration=effect.duration,
            duration_mode=effect.duration_mode,
            round_created=effect.round_created,
            event_created=effect.event_created,
        )
        self.effects[effect.id] = EffectObject(id=effect.id, spec=spec)

    # ============== Queries ==============

    def get_token(self, token_id: str) -> Optional[MapToken]:
        return self.tokens.get(token_id)

    def token_name(self, token_id: str) -> Optional[str]:
        token = self.tokens.get(token_id)
        return token.name if token else None

    def is_visible(self, token_id: str) -> bool:
        token = self.tokens.get(token_id)
        return bool(token and token.visible)

    def has_object(self, object_id: str) -> bool:
        return object_id in self.tokens or object_id in self.objects or object_id in self.effects

    # ============== ObjectStore ==============

    def get_token_position(self, token_id: str) -> Optional[Vector2]:
        token = self.tokens.get(token_id)
        if token is not None:
            return token.position
        map_object = self.objects.get(token_id)
        return map_object.position if map_object else None

    def set_token_position(self, token_id: str, position: Vector2) -> None:
        token = self.tokens.get(token_id)
        if token is not None:
            token.position = position

    def list_token_ids(self) -> list[str]:
        return list(self.tokens)

    def set_token_visible(self, token_id: str, visible: bool) -> None:
        token = self.tokens.get(token_id)
        if token is not None:
            token.visible = visible

    def create_ephemeral_effect(self, spec: EffectSpec) -> str:
        effect_id = new_id()
        self.effects[effect_id] = EffectObject(id=effect_id, spec=spec)
        self.created_effects.append(effect_id)
        return effect_id

    def delete_object(self, object_id: str) -> None:
        self.effects.pop(object_id, None)
        self.objects.pop(object_id, None)
        self.tokens.pop(object_id, None)

    def list_persistent_effects(self) -> list[PersistentEffect]:
        return [effect.to_persistent_effect() for effect in self.effects.values() if effect.persistent]

    def get_allowed_action_kinds(self, token_id: str) -> Optional[list[ActionKind]]:
        token = self.tokens.get(token_id)
        if token is None or token.allowed_actions is None:
            return None
        return list(token.allowed_actions)
