"""Combat timeline management.

This module owns the active timeline of an encounter and exposes the command
and query surface the editor UI talks to. It moves the event cursor, schedules
and edits actions, asks the pipeline to run events, restores snapshots on
rewind and purges expired effects after every navigation.

Every state change is announced on the event bus, and the queue is flushed
before a command returns so subscribers observe a consistent timeline.
"""

from typing import TYPE_CHECKING, Any, Optional, Union

from ...core.clock import AsyncioClock
from ...core.config import TimelineConfig
from ...core.data import ActionKind, parse_action_kind
from ...core.durations import purge_expired
from ...core.engine.actions import ActionPayload, create_payload
from ...core.engine.animation import ClockAnimationCoordinator
from ...core.engine.pipeline import ActionPipeline, TargetResolver
from ...core.engine.snapshots import RestoreResult, SnapshotEngine
from ...core.engine.timeline import Timeline, TimelineAction, TimelineEvent
from ...core.events import (
    ActionAdded,
    ActionRejected,
    ActionRemoved,
    ActionUpdated,
    CombatEnded,
    CombatStarted,
    CursorMoved,
    EffectsExpired,
    EventAdvanced,
    EventPriority,
    EventRewound,
    LogMessage,
    RoundReplayed,
    RoundRewound,
    RoundStarted,
    SnapshotRestored,
    TimelineCleared,
)
from ..targeting import find_tokens_in_area

if TYPE_CHECKING:
    from ...core.clock import Clock
    from ...core.events import EventManager, GameEvent
    from ...core.interfaces import AnimationCoordinator, ObjectStore


PayloadInput = Union[ActionPayload, dict[str, Any], None]


class TimelineManager:
    """Manages the combat timeline of one map.

    The manager is the only writer of the timeline. The UI issues commands
    (start/end combat, advance, rewind, add/edit actions) and reads the
    timeline and cursor through the query properties.
    """

    def __init__(
        self,
        object_store: "ObjectStore",
        event_manager: "EventManager",
        animation: Optional["AnimationCoordinator"] = None,
        clock: Optional["Clock"] = None,
        config: Optional[TimelineConfig] = None,
        target_resolver: Optional[TargetResolver] = find_tokens_in_area,
    ):
        """Initialize the timeline manager.

        Args:
            object_store: Map object store the timeline drives
            event_manager: Event bus for state change and log events
            animation: Animation coordinator, defaults to a clock-driven one
            clock: Clock for the default coordinator, defaults to asyncio time
            config: Timeline settings, defaults to built-in values
            target_resolver: Finds tokens inside spell and environment areas
        """
        self.object_store = object_store
        self.event_manager = event_manager
        self.config = config or TimelineConfig()
        self.clock = clock or AsyncioClock()
        self.animation = animation or ClockAnimationCoordinator(
            object_store, self.clock, frame_interval_ms=self.config.frame_interval_ms
        )
        self.snapshot_engine = SnapshotEngine(object_store)
        self.pipeline = ActionPipeline(
            object_store,
            self.animation,
            event_manager,
            snapshot_engine=self.snapshot_engine,
            target_resolver=target_resolver,
        )

        self._timeline: Optional[Timeline] = None
        self._is_executing = False
        self._animation_speed = self.config.clamp_speed(self.config.default_speed)
        self.pipeline.speed = self._animation_speed

    # ============== Helpers ==============

    def _emit_log(self, message: str, category: str = "TIMELINE", level: str = "INFO") -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                round_number=self.current_round,
                event_number=self.current_event,
                message=message,
                category=category,
                level=level,
                source="TimelineManager"
            ),
            source="TimelineManager"
        )

    def _publish(self, event: "GameEvent", priority: EventPriority = EventPriority.NORMAL) -> None:
        self.event_manager.publish(event, priority=priority, source="TimelineManager")

    def _flush(self) -> None:
        """Deliver queued events before a command returns."""
        self.event_manager.process_events()

    def _purge_expired(self) -> list[str]:
        """Remove effects that expired at the current cursor."""
        expired = purge_expired(self.object_store, self.current_round, self.current_event)
        if expired:
            self._publish(EffectsExpired(
                round_number=self.current_round,
                event_number=self.current_event,
                effect_ids=tuple(expired),
            ))
            self._emit_log(f"Removed {len(expired)} expired effect(s)", category="EFFECT")
        return expired

    def _prepare_payload(self, kind: Union[ActionKind, str], payload: PayloadInput) -> ActionPayload:
        """Build the payload, filling in the configured default duration."""
        if isinstance(payload, ActionPayload) or not isinstance(kind, ActionKind):
            return create_payload(kind, payload)

        data = dict(payload or {})
        if kind in (ActionKind.APPEAR, ActionKind.DISAPPEAR):
            data.setdefault("duration", self.config.default_visibility_duration_ms)
        elif kind != ActionKind.SEQUENCE:
            data.setdefault("duration", self.config.default_action_duration_ms)
        return create_payload(kind, data)

    # ============== Queries ==============

    @property
    def timeline(self) -> Optional[Timeline]:
        return self._timeline

    @property
    def current_round(self) -> int:
        return self._timeline.current_round if self._timeline else 1

    @property
    def current_event(self) -> int:
        return self._timeline.current_event if self._timeline else 1

    @property
    def is_active(self) -> bool:
        return bool(self._timeline and self._timeline.is_active)

    @property
    def animation_speed(self) -> float:
        return self._animation_speed

    @property
    def is_executing(self) -> bool:
        """True while an event's actions are running."""
        return self._is_executing

    def can_advance(self) -> bool:
        return self.is_active

    def can_rewind(self) -> bool:
        return self._timeline is not None and self._timeline.current_event > 1

    def get_event(self, event_number: int) -> Optional[TimelineEvent]:
        if self._timeline is None:
            return None
        return self._timeline.get_event(event_number)

    def get_actions(self, event_number: int) -> list[TimelineAction]:
        """Actions of an event in execution order."""
        event = self.get_event(event_number)
        return event.ordered_actions() if event else []

    def is_current_event_editable(self) -> bool:
        """The current event exists and has not run yet."""
        event = self.get_event(self.current_event)
        return event is not None and not event.executed

    # ============== Combat lifecycle ==============

    def start_combat(self, map_id: str) -> Timeline:
        """Start combat on a map, or resume the existing timeline.

        Args:
            map_id: Identifier of the map the timeline belongs to

        Returns:
            The active timeline
        """
        resumed = self._timeline is not None
        if self._timeline is None:
            self._timeline = Timeline(map_id=map_id)
            self._timeline.ensure_event(1)
        else:
            self._timeline.is_active = True
            self._timeline.touch()

        self._publish(CombatStarted(
            round_number=self.current_round,
            event_number=self.current_event,
            map_id=self._timeline.map_id,
            resumed=resumed,
        ), priority=EventPriority.HIGH)
        self._emit_log(f"Combat {'resumed' if resumed else 'started'} on map {self._timeline.map_id}")
        self._flush()
        return self._timeline

    def end_combat(self) -> None:
        """End combat and move every active event into history."""
        timeline = self._timeline
        if timeline is None or (not timeline.is_active and not timeline.events):
            return

        timeline.is_active = False
        archived = timeline.archive()
        timeline.touch()

        self._publish(CombatEnded(
            round_number=self.current_round,
            event_number=self.current_event,
            archived_events=archived,
        ), priority=EventPriority.HIGH)
        self._emit_log(f"Combat ended, {archived} event(s) archived")
        self._flush()

    def clear_timeline(self) -> None:
        """Discard the timeline and reset the cursor."""
        self._timeline = None
        self._publish(TimelineCleared(round_number=1, event_number=1), priority=EventPriority.HIGH)
        self._emit_log("Timeline cleared")
        self._flush()

    def load_timeline(self, timeline: Timeline) -> None:
        """Install a saved timeline as the current one."""
        self._timeline = timeline
        self._emit_log(
            f"Loaded timeline for map {timeline.map_id} with {len(timeline.events)} event(s)",
            category="SYSTEM"
        )
        self._flush()

    # ============== Navigation ==============

    async def advance(self, fast_forward: bool = False) -> bool:
        """Run the current event and move the cursor to the next one.

        Args:
            fast_forward: Skip animation waits

        Returns:
            True if the cursor moved
        """
        timeline = self._timeline
        if timeline is None or not timeline.is_active:
            return False
        if self._is_executing:
            self._emit_log("Advance ignored while an event is executing", level="WARNING")
            self._flush()
            return False

        from_event = timeline.current_event
        self._is_executing = True
        try:
            result = await self.pipeline.execute_event(timeline, from_event, fast_forward=fast_forward)

            next_number = from_event + 1
            next_event = timeline.ensure_event(next_number)
            # World state after this event is the starting point of the next one
            next_event.snapshot = self.snapshot_engine.capture()
            timeline.current_event = next_number
            # Replaying into a later round picks that round up again
            if next_event.round_number > timeline.current_round:
                timeline.current_round = next_event.round_number
            timeline.touch()
        finally:
            self._is_executing = False

        self._publish(EventAdvanced(
            round_number=self.current_round,
            event_number=self.current_event,
            from_event=from_event,
            actions_executed=len(result.executed),
        ))
        if result.failed:
            self._emit_log(
                f"Event {from_event} finished with {len(result.failed)} failed action(s)",
                level="WARNING"
            )
        self._emit_log(f"Advanced to event {self.current_event}", category="DEBUG", level="DEBUG")
        self._purge_expired()
        self._flush()
        return True

    def rewind(self) -> bool:
        """Move the cursor back one event and restore that event's snapshot.

        Returns:
            True if the cursor moved
        """
        timeline = self._timeline
        if timeline is None or timeline.current_event <= 1:
            return False
        if self._is_executing:
            self._emit_log("Rewind ignored while an event is executing", level="WARNING")
            self._flush()
            return False

        from_event = timeline.current_event
        target_number = from_event - 1
        restored = self._rewind_cursor(target_number)

        self._publish(EventRewound(
            round_number=self.current_round,
            event_number=target_number,
            from_event=from_event,
            snapshot_restored=restored is not None,
        ))
        self._publish_restore(restored)
        self._emit_log(f"Rewound to event {target_number}", category="DEBUG", level="DEBUG")
        self._purge_expired()
        self._flush()
        return True

    def _rewind_cursor(self, target_number: int) -> Optional[RestoreResult]:
        """Move the cursor back to an event and undo everything after it.

        Events from the target up to the one being left become replayable, the
        target's snapshot is restored and the round follows the target's stamp.
        """
        timeline = self._timeline
        from_event = timeline.current_event
        for event in timeline.events:
            if target_number <= event.number < from_event:
                event.reset_execution()
        timeline.current_event = target_number

        restored = None
        event = timeline.get_event(target_number)
        if event is not None:
            timeline.current_round = event.round_number
            if event.snapshot is not None:
                restored = self.snapshot_engine.restore(event.snapshot)
        timeline.touch()
        return restored

    def _publish_restore(self, restored: Optional[RestoreResult]) -> None:
        if restored is None:
            return
        self._publish(SnapshotRestored(
            round_number=self.current_round,
            event_number=self.current_event,
            positions_restored=restored.positions_restored,
            effects_removed=restored.effects_removed,
        ))

    def go_to(self, event_number: int) -> bool:
        """Jump the cursor to an event without running anything.

        Returns:
            True if the cursor moved
        """
        timeline = self._timeline
        if timeline is None or event_number < 1:
            return False

        from_event = timeline.current_event
        created = timeline.get_event(event_number) is None
        timeline.ensure_event(event_number)
        timeline.current_event = event_number
        timeline.touch()

        self._publish(CursorMoved(
            round_number=self.current_round,
            event_number=event_number,
            from_event=from_event,
            created=created,
        ))
        self._purge_expired()
        self._flush()
        return True

    def set_round(self, round_number: int) -> bool:
        """Set the round display value."""
        timeline = self._timeline
        if timeline is None or round_number < 1:
            return False
        timeline.current_round = round_number
        timeline.touch()
        self._emit_log(f"Round set to {round_number}")
        self._flush()
        return True

    async def start_new_round(self, fast_forward: bool = False) -> bool:
        """Finish the current event and begin the next round.

        Event numbers keep increasing across rounds; only the round display
        value changes.

        Returns:
            True if a new round started
        """
        previous_round = self.current_round
        if not await self.advance(fast_forward=fast_forward):
            return False

        timeline = self._timeline
        if timeline is None:
            return False
        timeline.current_round = previous_round + 1

        event = timeline.current
        if event is not None and not event.actions:
            event.round_number = timeline.current_round
        timeline.touch()

        self._publish(RoundStarted(
            round_number=timeline.current_round,
            event_number=timeline.current_event,
            previous_round=previous_round,
        ), priority=EventPriority.HIGH)
        self._emit_log(f"Round {timeline.current_round} begins")
        self._purge_expired()
        self._flush()
        return True

    def previous_round(self) -> bool:
        """Rewind to the first event of the round before the current one.

        Every event from there up to the cursor becomes replayable and the
        world returns to the snapshot taken before that first event ran.

        Returns:
            True if the cursor moved
        """
        timeline = self._timeline
        if timeline is None or timeline.current_round <= 1:
            return False
        if self._is_executing:
            self._emit_log("Round rewind ignored while an event is executing", level="WARNING")
            self._flush()
            return False

        events = timeline.events_in_round(timeline.current_round - 1)
        if not events:
            return False

        from_round = timeline.current_round
        from_event = timeline.current_event
        restored = self._rewind_cursor(events[0].number)

        self._publish(RoundRewound(
            round_number=self.current_round,
            event_number=self.current_event,
            from_round=from_round,
            from_event=from_event,
            snapshot_restored=restored is not None,
        ), priority=EventPriority.HIGH)
        self._publish_restore(restored)
        self._emit_log(f"Rewound to the start of round {self.current_round}")
        self._purge_expired()
        self._flush()
        return True

    def go_to_round(self, round_number: int) -> bool:
        """Jump the cursor to the first event of a round without running anything.

        Returns:
            True if the round has events and the cursor moved
        """
        timeline = self._timeline
        if timeline is None:
            return False
        events = timeline.events_in_round(round_number)
        if not events:
            return False

        timeline.current_round = round_number
        return self.go_to(events[0].number)

    async def replay_round(self, round_number: int, fast_forward: bool = False) -> int:
        """Run every event of a round again, in order.

        If the cursor is past the round's first event the world is rewound to
        it first; otherwise the cursor jumps there.

        Returns:
            Number of events that ran
        """
        timeline = self._timeline
        if timeline is None or not timeline.is_active or self._is_executing:
            return 0
        events = timeline.events_in_round(round_number)
        if not events:
            return 0

        first = events[0].number
        last = events[-1].number
        if timeline.current_event > first:
            # Stop where the cursor was, the event under it has not run yet
            last = min(last, timeline.current_event - 1)
            restored = self._rewind_cursor(first)
            self._publish_restore(restored)
            self._purge_expired()
            self._flush()
        elif timeline.current_event < first:
            self.go_to_round(round_number)

        events_run = 0
        while timeline.current_event <= last:
            if not await self.advance(fast_forward=fast_forward):
                break
            events_run += 1

        self._publish(RoundReplayed(
            round_number=self.current_round,
            event_number=self.current_event,
            replayed_round=round_number,
            events_run=events_run,
        ))
        self._emit_log(f"Replayed round {round_number} ({events_run} event(s))")
        self._flush()
        return events_run

    def set_animation_speed(self, speed: float) -> float:
        """Set the animation speed multiplier, clamped to the configured bounds.

        Returns:
            The speed actually applied
        """
        self._animation_speed = self.config.clamp_speed(speed)
        self.pipeline.speed = self._animation_speed
        return self._animation_speed

    # ============== Action editing ==============

    def add_action(
        self,
        token_id: str,
        kind: Union[ActionKind, str],
        payload: PayloadInput = None,
        event_number: Optional[int] = None,
    ) -> Optional[TimelineAction]:
        """Schedule an action for a token.

        Args:
            token_id: Token performing the action
            kind: Action kind (enum or its string value)
            payload: Payload instance or dict of payload fields
            event_number: Target event, defaults to the current event

        Returns:
            The new action, or None if there is no timeline or the token's
            allow-list rejects the kind
        """
        timeline = self._timeline
        if timeline is None:
            return None

        kind = parse_action_kind(kind)
        kind_name = kind.value if isinstance(kind, ActionKind) else kind

        allowed = self.object_store.get_allowed_action_kinds(token_id)
        if allowed is not None and kind not in allowed:
            allowed_names = tuple(k.value if isinstance(k, ActionKind) else str(k) for k in allowed)
            self._emit_log(
                f"Action '{kind_name}' is not allowed for token {token_id} "
                f"(allowed: {', '.join(allowed_names) or 'none'})",
                category="ACTION", level="WARNING"
            )
            self._publish(ActionRejected(
                round_number=self.current_round,
                event_number=self.current_event,
                token_id=token_id,
                kind=kind_name,
                allowed_kinds=allowed_names,
            ))
            self._flush()
            return None

        target_number = event_number if event_number is not None else timeline.current_event
        if target_number < 1:
            return None

        action_payload = self._prepare_payload(kind, payload)
        event = timeline.ensure_event(target_number)
        action = TimelineAction(
            event_number=target_number,
            token_id=token_id,
            kind=kind,
            payload=action_payload,
            order=event.next_order(),
        )
        event.actions.append(action)
        timeline.touch()

        self._publish(ActionAdded(
            round_number=self.current_round,
            event_number=self.current_event,
            action_id=action.id,
            token_id=token_id,
            kind=kind_name,
            target_event=target_number,
        ))
        self._emit_log(
            f"Added {kind_name} for {token_id} to event {target_number}",
            category="ACTION", level="DEBUG"
        )
        self._flush()
        return action

    def update_action(self, action_id: str, updates: dict[str, Any]) -> bool:
        """Merge fields into an action's payload.

        Field names the action's payload does not have are ignored.

        Returns:
            True if the action was found
        """
        if self._timeline is None:
            return False
        action = self._timeline.find_action(action_id)
        if action is None:
            return False

        action.payload = action.payload.merged(updates)
        known = set(action.payload.to_dict())
        changed = tuple(sorted(name for name in updates if name in known))
        self._timeline.touch()

        self._publish(ActionUpdated(
            round_number=self.current_round,
            event_number=self.current_event,
            action_id=action_id,
            fields=changed,
        ))
        self._flush()
        return True

    def remove_action(self, action_id: str) -> bool:
        """Delete an action from whichever event holds it.

        Returns:
            True if the action was found
        """
        if self._timeline is None:
            return False
        for event in self._timeline.events:
            action = event.find_action(action_id)
            if action is not None:
                event.actions.remove(action)
                self._timeline.touch()
                self._publish(ActionRemoved(
                    round_number=self.current_round,
                    event_number=self.current_event,
                    action_id=action_id,
                ))
                self._flush()
                return True
        return False
