#!/usr/bin/env python3

import argparse
import asyncio

from battlemap.core.clock import ManualClock
from battlemap.core.config import TimelineConfigLoader
from battlemap.core.events import EventManager
from battlemap.game.encounter_loader import EncounterLoader, get_available_encounters, play_encounter
from battlemap.game.managers import BattleLogManager, LogLevel, LogManager, TimelineManager
from battlemap.game.timeline_io import save_timeline


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a scripted encounter through the combat timeline")
    parser.add_argument("encounter", nargs="?", help="Encounter YAML file (defaults to the first in assets/encounters)")
    parser.add_argument("--config", help="Timeline config file")
    parser.add_argument("--profile", help="Config profile to activate")
    parser.add_argument("--save", help="Write the finished timeline to this .yaml or .json file")
    parser.add_argument("--rewind", type=int, default=0, help="Rewind this many events after playing")
    parser.add_argument("--log", action="store_true", help="Print the system log as well")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    loader = TimelineConfigLoader(args.config)
    loader.load_config()
    if args.profile and not loader.set_active_profile(args.profile):
        print(f"Warning: Unknown profile '{args.profile}', using {loader.get_active_profile()}")
    config = loader.get_settings()

    encounter_path = args.encounter
    if encounter_path is None:
        available = get_available_encounters()
        if not available:
            raise SystemExit("No encounter files found in assets/encounters")
        encounter_path = available[0]

    encounter = EncounterLoader.load_from_file(encounter_path)
    store = encounter.build_store()

    event_manager = EventManager(enable_debug_logging=config.debug_events)
    log_manager = LogManager(
        event_manager,
        max_messages=config.max_log_messages,
        default_level=LogLevel.parse(config.log_level),
    )
    event_manager.set_debug_callback(log_manager.handle_bus_debug)
    battle_log = BattleLogManager(
        event_manager,
        max_entries=config.battle_log_size,
        token_name_resolver=store.token_name,
    )

    # Manual time plays the whole encounter instantly but with real frame counts
    clock = ManualClock()
    manager = TimelineManager(store, event_manager, clock=clock, config=config)

    print(f"=== {encounter.name} ===")
    if encounter.description:
        print(encounter.description)
    print()

    await play_encounter(manager, encounter)
    for _ in range(args.rewind):
        manager.rewind()

    for round_number in battle_log.get_rounds():
        print(f"--- Round {round_number} ---")
        for line in battle_log.format_log(round_number):
            print(f"  {line}")

    print()
    print(f"Cursor: round {manager.current_round}, event {manager.current_event}")
    print(f"Simulated animation time: {clock.now_ms() / 1000:.1f}s")
    for token_id in store.list_token_ids():
        token = store.get_token(token_id)
        if token is not None:
            state = "visible" if token.visible else "hidden"
            print(f"  {token.name}: {token.position} ({state})")
    print(f"  Persistent effects: {len(store.list_persistent_effects())}")

    if args.log:
        print()
        for entry in log_manager.get_messages():
            print(entry.format())

    if args.save and manager.timeline is not None:
        path = save_timeline(manager.timeline, args.save)
        print(f"\nTimeline saved to {path}")


def main():
    args = parse_args()
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n\nPlayback interrupted by user")


if __name__ == "__main__":
    main()
