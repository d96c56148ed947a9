"""
Tests for encounter files.
"""

import asyncio
import os
import textwrap

import pytest

from battlemap.core.data import ActionKind, DurationMode, EffectKind, Vector2
from battlemap.game.encounter_loader import (
    EncounterLoader,
    ScriptedAction,
    ScriptedEvent,
    get_available_encounters,
    play_encounter,
    schedule_event,
)
from battlemap.game.managers.timeline_manager import TimelineManager

ENCOUNTER_YAML = """
    name: Crypt Door
    description: A short test encounter.
    tokens:
      - id: rogue
        name: Vex
        position: [0, 0]
      - id: skeleton
        position: {x: 40, y: 0}
        allowed_actions: [move, appear]
        visible: false
    objects:
      - id: crypt_door
        position: [20, 20]
        state:
          locked: true
    effects:
      - id: rogue_haste
        duration: 2
        round_created: 1
    rounds:
      - events:
          - actions:
              - token: rogue
                kind: move
                payload:
                  to_position: [10, 0]
          - actions:
              - token: skeleton
                kind: appear
      - events:
          - actions:
              - token: rogue
                kind: interaction
                payload:
                  interaction_type: pick_lock
                  target_object_id: crypt_door
"""


@pytest.fixture
def encounter_file(tmp_path):
    path = tmp_path / "crypt_door.yaml"
    path.write_text(textwrap.dedent(ENCOUNTER_YAML), encoding="utf-8")
    return str(path)


class TestEncounterLoader:
    """Test reading encounter files."""

    def test_load_from_file(self, encounter_file, capsys):
        encounter = EncounterLoader.load_from_file(encounter_file)

        assert encounter.name == "Crypt Door"
        assert encounter.map_id == "crypt_door"
        assert [token.id for token in encounter.tokens] == ["rogue", "skeleton"]
        assert encounter.tokens[1].position == (40, 0)
        assert encounter.objects[0].state == {"locked": True}
        assert encounter.event_count == 3
        assert "Loaded encounter from YAML: crypt_door.yaml" in capsys.readouterr().out

    def test_effect_defaults(self, encounter_file):
        effect = EncounterLoader.load_from_file(encounter_file).effects[0]

        assert effect.kind is EffectKind.STATUS
        assert effect.duration_mode is DurationMode.ROUNDS
        assert effect.round_created == 1

    def test_build_store(self, encounter_file):
        store = EncounterLoader.load_from_file(encounter_file).build_store()

        assert store.get_token_position("skeleton") == Vector2(40, 0)
        assert store.token_name("rogue") == "Vex"
        assert not store.is_visible("skeleton")
        assert store.get_allowed_action_kinds("skeleton") == [ActionKind.MOVE, ActionKind.APPEAR]
        assert store.get_token_position("crypt_door") == Vector2(20, 20)
        assert [effect.id for effect in store.list_persistent_effects()] == ["rogue_haste"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EncounterLoader.load_from_file(str(tmp_path / "nothing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("tokens: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError):
            EncounterLoader.load_from_file(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            EncounterLoader.load_from_file(str(path))

    def test_invalid_effect(self):
        with pytest.raises(ValueError):
            EncounterLoader.parse_encounter({"effects": [{"id": "x", "duration": 1, "kind": "weather"}]})

    def test_invalid_position(self):
        with pytest.raises(ValueError):
            EncounterLoader.parse_encounter({"tokens": [{"id": "x", "position": "center"}]})

    def test_available_encounters(self, tmp_path, encounter_file):
        (tmp_path / "notes.txt").write_text("ignore me", encoding="utf-8")

        assert get_available_encounters(str(tmp_path)) == [os.path.join(str(tmp_path), "crypt_door.yaml")]
        assert get_available_encounters(str(tmp_path / "missing")) == []


class TestPlayback:
    """Test scheduling and playing scripted events."""

    def test_schedule_event_counts_accepted(self, manager):
        manager.object_store.add_token("wolf", Vector2(0, 0), allowed_actions=[ActionKind.MOVE])
        manager.start_combat("m")
        scripted = ScriptedEvent(actions=[
            ScriptedAction("wolf", "move", {"to_position": [1, 1]}),
            ScriptedAction("wolf", "spell", {"spell_name": "Howl"}),
        ])

        assert schedule_event(manager, scripted) == 1
        assert len(manager.get_actions(1)) == 1

    def test_play_encounter(self, encounter_file, event_manager, clock):
        encounter = EncounterLoader.load_from_file(encounter_file)
        store = encounter.build_store()
        manager = TimelineManager(store, event_manager, clock=clock)

        asyncio.run(play_encounter(manager, encounter, fast_forward=True))

        assert manager.current_round == 2
        assert manager.current_event == 4
        assert store.get_token_position("rogue") == Vector2(10, 0)
        assert store.is_visible("skeleton")
        assert all(manager.get_event(n).executed for n in (1, 2, 3))
        assert clock.total_slept_ms == 0
