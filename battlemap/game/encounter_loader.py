"""Encounter files for demos and tests.

An encounter describes a map's starting state (tokens, objects, status
effects) and a scripted timeline grouped into rounds and events. Loading one
fills an object store; playing one schedules every action through the
TimelineManager and advances the cursor the way a DM would at the table.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

import yaml

from ..core.data import DurationMode, EffectKind, coerce_position, parse_action_kind
from ..core.interfaces import PersistentEffect
from .object_store import InMemoryObjectStore

if TYPE_CHECKING:
    from .managers.timeline_manager import TimelineManager


@dataclass
class TokenData:
    """Token placement from an encounter file."""
    id: str
    position: tuple[float, float]
    name: Optional[str] = None
    allowed_actions: Optional[list[str]] = None
    visible: bool = True


@dataclass
class ObjectData:
    """Static map object from an encounter file."""
    id: str
    position: tuple[float, float]
    name: Optional[str] = None
    state: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScriptedAction:
    token_id: str
    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScriptedEvent:
    actions: list[ScriptedAction] = field(default_factory=list)


@dataclass
class Encounter:
    """A loaded encounter."""
    name: str
    map_id: str
    description: str = ""
    tokens: list[TokenData] = field(default_factory=list)
    objects: list[ObjectData] = field(default_factory=list)
    effects: list[PersistentEffect] = field(default_factory=list)
    rounds: list[list[ScriptedEvent]] = field(default_factory=list)

    @property
    def event_count(self) -> int:
        return sum(len(events) for events in self.rounds)

    def build_store(self, store: Optional[InMemoryObjectStore] = None) -> InMemoryObjectStore:
        """Place the encounter's tokens, objects and effects in a store."""
        store = store or InMemoryObjectStore()
        for token in self.tokens:
            allowed = None
            if token.allowed_actions is not None:
                allowed = [parse_action_kind(kind) for kind in token.allowed_actions]
            store.add_token(
                token.id,
                coerce_position(token.position),
                name=token.name,
                allowed_actions=allowed,
                visible=token.visible,
            )
        for map_object in self.objects:
            store.add_object(map_object.id, coerce_position(map_object.position),
                             name=map_object.name, state=map_object.state)
        for effect in self.effects:
            store.add_persistent_effect(effect)
        return store


class EncounterLoader:
    """Handles loading encounters from YAML files."""

    @staticmethod
    def load_from_file(file_path: str) -> Encounter:
        """Load an encounter from a YAML file."""
        path_obj = Path(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            print(f"Loaded encounter from YAML: {path_obj.name}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Encounter file not found: {file_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML encounter: {e}")

        if not isinstance(data, dict):
            raise ValueError("Encounter file must contain a mapping")
        return EncounterLoader.parse_encounter(data, default_map_id=path_obj.stem)

    @staticmethod
    def parse_encounter(data: dict[str, Any], default_map_id: str = "map") -> Encounter:
        """Parse encounter data from a dictionary."""
        encounter = Encounter(
            name=data.get("name", "Unnamed Encounter"),
            map_id=str(data.get("map_id", default_map_id)),
            description=data.get("description", ""),
        )

        for token_data in data.get("tokens") or []:
            encounter.tokens.append(TokenData(
                id=str(token_data["id"]),
                position=EncounterLoader._parse_position(token_data["position"]),
                name=token_data.get("name"),
                allowed_actions=token_data.get("allowed_actions"),
                visible=bool(token_data.get("visible", True)),
            ))

        for object_data in data.get("objects") or []:
            encounter.objects.append(ObjectData(
                id=str(object_data["id"]),
                position=EncounterLoader._parse_position(object_data["position"]),
                name=object_data.get("name"),
                state=dict(object_data.get("state") or {}),
            ))

        for effect_data in data.get("effects") or []:
            encounter.effects.append(EncounterLoader._parse_effect(effect_data))

        for round_data in data.get("rounds") or []:
            events = []
            for event_data in round_data.get("events") or []:
                actions = [
                    ScriptedAction(
                        token_id=str(action["token"]),
                        kind=str(action["kind"]),
                        payload=dict(action.get("payload") or {}),
                    )
                    for action in event_data.get("actions") or []
                ]
                events.append(ScriptedEvent(actions=actions))
            encounter.rounds.append(events)

        return encounter

    @staticmethod
    def _parse_position(value: Any) -> tuple[float, float]:
        position = coerce_position(value)
        if position is None:
            raise ValueError("Encounter entries need a position")
        return (position.x, position.y)

    @staticmethod
    def _parse_effect(data: dict[str, Any]) -> PersistentEffect:
        try:
            return PersistentEffect(
                id=str(data["id"]),
                duration=int(data["duration"]),
                duration_mode=DurationMode(data.get("duration_mode", "rounds")),
                round_created=data.get("round_created"),
                event_created=data.get("event_created"),
                kind=EffectKind(data.get("kind", "status")),
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid effect in encounter: {e}")


def get_available_encounters(encounter_dir: str = "assets/encounters") -> list[str]:
    """Paths of the encounter files in a directory, sorted by name."""
    if not os.path.isdir(encounter_dir):
        return []
    return sorted(
        os.path.join(encounter_dir, name)
        for name in os.listdir(encounter_dir)
        if name.endswith((".yaml", ".yml"))
    )


def schedule_event(manager: "TimelineManager", scripted: ScriptedEvent) -> int:
    """Add a scripted event's actions to the current event.

    Returns:
        Number of actions accepted
    """
    accepted = 0
    for action in scripted.actions:
        if manager.add_action(action.token_id, action.kind, action.payload) is not None:
            accepted += 1
    return accepted


async def play_encounter(manager: "TimelineManager", encounter: Encounter,
                         fast_forward: bool = False) -> None:
    """Run an encounter's script from the first event to the last.

    Each scripted event is scheduled on the current event and then advanced.
    The last event of every round but the final one ends the round.
    """
    manager.start_combat(encounter.map_id)
    for round_index, events in enumerate(encounter.rounds):
        last_round = round_index == len(encounter.rounds) - 1
        for event_index, scripted in enumerate(events):
            schedule_event(manager, scripted)
            if event_index == len(events) - 1 and not last_round:
                await manager.start_new_round(fast_forward=fast_forward)
            else:
                await manager.advance(fast_forward=fast_forward)
