"""Sequential execution of one timeline event.

The pipeline walks an event's actions in order, dispatches each one on its kind
and awaits the animation coordinator before moving to the next action. It is the
only place that turns timeline data into object store mutations.

Execution rules:
- An event runs at most once until it is rewound
- The snapshot for the event is captured before the first action runs
- A failing action is logged and reported, the remaining actions still run
- Waits are divided by the speed multiplier, fast-forward skips them entirely
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from ..data import ActionKind, EffectKind, Vector2, parse_action_kind
from ..events import ActionExecuted, ActionFailed, EventPriority, LogMessage
from ..interfaces import EffectSpec
from .actions import (
    ActionPayload,
    AppearPayload,
    AttackPayload,
    EnvironmentalPayload,
    InteractionPayload,
    MovePayload,
    SequencePayload,
    SpellPayload,
)
from .snapshots import SnapshotEngine

if TYPE_CHECKING:
    from ..events import EventManager
    from ..geometry import AreaShape
    from ..interfaces import AnimationCoordinator, ObjectStore
    from .timeline import Timeline, TimelineAction


TargetResolver = Callable[["AreaShape", "ObjectStore"], list[str]]
ActionHandler = Callable[[str, Any, "ExecutionContext"], Awaitable[dict[str, Any]]]


@dataclass
class ExecutionContext:
    """Cursor values and timing mode shared by every action of one event."""
    round_number: int
    event_number: int
    fast_forward: bool = False


@dataclass
class EventExecutionResult:
    """Outcome of running one event."""
    event_number: int
    executed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: bool = False


class ActionPipeline:
    """Runs the actions of an event against the object store."""

    def __init__(
        self,
        object_store: "ObjectStore",
        animation: "AnimationCoordinator",
        event_manager: "EventManager",
        snapshot_engine: Optional[SnapshotEngine] = None,
        target_resolver: Optional[TargetResolver] = None,
    ):
        """Initialize the pipeline.

        Args:
            object_store: Store holding token positions and effects
            animation: Coordinator that provides the suspension points
            event_manager: Event bus for execution and log events
            snapshot_engine: Engine used to capture pre-execution snapshots
            target_resolver: Finds the token ids inside an area shape
        """
        self.object_store = object_store
        self.animation = animation
        self.event_manager = event_manager
        self.snapshot_engine = snapshot_engine or SnapshotEngine(object_store)
        self.target_resolver = target_resolver
        self.speed = 1.0

        self._handlers: dict[ActionKind, ActionHandler] = {
            ActionKind.MOVE: self._execute_move,
            ActionKind.APPEAR: self._execute_appear,
            ActionKind.DISAPPEAR: self._execute_disappear,
            ActionKind.SPELL: self._execute_spell,
            ActionKind.ATTACK: self._execute_attack,
            ActionKind.INTERACTION: self._execute_interaction,
            ActionKind.ENVIRONMENTAL: self._execute_environmental,
            ActionKind.SEQUENCE: self._execute_sequence,
        }

    def _emit_log(self, message: str, context: ExecutionContext,
                  category: str = "ACTION", level: str = "INFO") -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                round_number=context.round_number,
                event_number=context.event_number,
                message=message,
                category=category,
                level=level,
                source="ActionPipeline"
            ),
            source="ActionPipeline"
        )

    def scaled(self, duration_ms: float, context: ExecutionContext) -> float:
        """Animation time for a payload duration at the current speed."""
        if context.fast_forward or duration_ms <= 0:
            return 0.0
        return duration_ms / self.speed

    async def execute_event(self, timeline: "Timeline", event_number: int,
                            fast_forward: bool = False) -> EventExecutionResult:
        """Run every action of an event in order.

        Args:
            timeline: Timeline owning the event
            event_number: Number of the event to run
            fast_forward: Skip animation waits

        Returns:
            Ids of the actions that ran and of those that failed
        """
        result = EventExecutionResult(event_number=event_number)
        event = timeline.get_event(event_number)
        if event is None or event.executed:
            result.skipped = True
            return result

        # Each run replaces the snapshot so undo returns to the latest pre-run state
        event.snapshot = self.snapshot_engine.capture()

        context = ExecutionContext(
            round_number=timeline.current_round,
            event_number=event_number,
            fast_forward=fast_forward,
        )
        completed: list[tuple["TimelineAction", dict[str, Any]]] = []

        for action in event.ordered_actions():
            try:
                details = await self.execute_action(action, context)
            except Exception as e:
                result.failed.append(action.id)
                self._emit_log(
                    f"{action.kind_name} action for {action.token_id} failed: {e}",
                    context, category="ERROR", level="ERROR"
                )
                self.event_manager.publish(
                    ActionFailed(
                        round_number=context.round_number,
                        event_number=context.event_number,
                        action_id=action.id,
                        token_id=action.token_id,
                        kind=action.kind_name,
                        error=str(e),
                    ),
                    priority=EventPriority.HIGH,
                    source="ActionPipeline"
                )
                continue
            result.executed.append(action.id)
            completed.append((action, details))

        for action in event.actions:
            action.executed = True
        event.executed = True
        timeline.touch()

        for action, details in completed:
            self.event_manager.publish(
                ActionExecuted(
                    round_number=context.round_number,
                    event_number=context.event_number,
                    action_id=action.id,
                    token_id=action.token_id,
                    kind=action.kind_name,
                    description=action.get_description(),
                    details=details,
                ),
                source="ActionPipeline"
            )

        return result

    async def execute_action(self, action: "TimelineAction", context: ExecutionContext) -> dict[str, Any]:
        """Run a single action and return details about what it did."""
        return await self._dispatch(action.kind, action.token_id, action.payload, context)

    async def _dispatch(self, kind: Any, token_id: str, payload: ActionPayload,
                        context: ExecutionContext) -> dict[str, Any]:
        kind = parse_action_kind(kind)
        handler = self._handlers.get(kind) if isinstance(kind, ActionKind) else None
        if handler is None:
            # Unknown kinds resolve immediately
            self._emit_log(f"Skipping unsupported action kind '{kind}'", context,
                           category="DEBUG", level="DEBUG")
            return {}
        return await handler(token_id, payload, context)

    def _resolve_position(self, token_id: Optional[str], fallback: Optional[Vector2]) -> Optional[Vector2]:
        """Current position of a token, or the stored fallback."""
        if token_id:
            position = self.object_store.get_token_position(token_id)
            if position is not None:
                return position
        return fallback

    def _affected_tokens(self, area: Optional["AreaShape"], target_token_id: Optional[str] = None) -> list[str]:
        if area is not None and self.target_resolver is not None:
            return self.target_resolver(area, self.object_store)
        return [target_token_id] if target_token_id else []

    # ============== Handlers ==============

    async def _execute_move(self, token_id: str, payload: MovePayload,
                            context: ExecutionContext) -> dict[str, Any]:
        start = self._resolve_position(token_id, payload.from_position)
        if start is None:
            start = payload.to_position
        if start is None:
            return {}

        waypoints = payload.waypoints(start)
        if not waypoints:
            return {"from": start.to_dict(), "to": start.to_dict(), "distance": 0.0}

        # Split the animation time over the legs by their length
        legs = []
        previous = start
        for point in waypoints:
            legs.append((previous, point, previous.distance_to(point)))
            previous = point
        total_distance = sum(length for _, _, length in legs)
        total_time = self.scaled(payload.duration, context)

        for leg_start, leg_end, length in legs:
            if total_distance > 0:
                share = length / total_distance
            else:
                share = 1.0 / len(legs)
            await self.animation.interpolate(token_id, leg_start, leg_end, total_time * share)

        self._emit_log(f"{token_id} moves to {waypoints[-1]}", context, category="MOVEMENT")
        return {
            "from": start.to_dict(),
            "to": waypoints[-1].to_dict(),
            "distance": total_distance,
        }

    async def _execute_appear(self, token_id: str, payload: AppearPayload,
                              context: ExecutionContext) -> dict[str, Any]:
        if payload.position is not None:
            self.object_store.set_token_position(token_id, payload.position)
        self.object_store.set_token_visible(token_id, True)
        await self.animation.wait(self.scaled(payload.duration, context))
        details: dict[str, Any] = {"visible": True}
        if payload.position is not None:
            details["position"] = payload.position.to_dict()
        return details

    async def _execute_disappear(self, token_id: str, payload: ActionPayload,
                                 context: ExecutionContext) -> dict[str, Any]:
        self.object_store.set_token_visible(token_id, False)
        await self.animation.wait(self.scaled(payload.duration, context))
        return {"visible": False}

    async def _execute_spell(self, token_id: str, payload: SpellPayload,
                             context: ExecutionContext) -> dict[str, Any]:
        caster = self._resolve_position(token_id, payload.from_position)
        target = self._resolve_position(payload.target_token_id, payload.to_position)

        spec = EffectSpec(
            kind=EffectKind.SPELL,
            source_token_id=token_id,
            position=target if target is not None else caster,
            from_position=caster,
            to_position=target,
            persistent=payload.is_persistent,
            duration=payload.persist_duration,
            duration_mode=payload.duration_mode,
            round_created=context.round_number,
            event_created=context.event_number,
            area=payload.area,
            data={"spell_name": payload.spell_name},
        )
        effect_id = self.object_store.create_ephemeral_effect(spec)
        affected = self._affected_tokens(payload.area, payload.target_token_id)

        self._emit_log(f"{token_id} casts {payload.spell_name}", context)
        await self.animation.play_effect(
            effect_id,
            self.scaled(payload.duration, context),
            remove_on_complete=not payload.is_persistent,
        )
        return {
            "effect_id": effect_id,
            "spell_name": payload.spell_name,
            "persistent": payload.is_persistent,
            "affected_tokens": affected,
        }

    async def _execute_attack(self, token_id: str, payload: AttackPayload,
                              context: ExecutionContext) -> dict[str, Any]:
        attacker = self._resolve_position(token_id, payload.from_position)
        target = self._resolve_position(payload.target_token_id, payload.to_position)

        spec = EffectSpec(
            kind=EffectKind.ATTACK,
            source_token_id=token_id,
            position=target,
            from_position=attacker,
            to_position=target,
            round_created=context.round_number,
            event_created=context.event_number,
            data={
                "weapon_name": payload.weapon_name,
                "damage": payload.damage,
                "critical": payload.critical,
            },
        )
        effect_id = self.object_store.create_ephemeral_effect(spec)
        await self.animation.play_effect(
            effect_id, self.scaled(payload.duration, context), remove_on_complete=True
        )
        return {
            "weapon_name": payload.weapon_name,
            "target_token_id": payload.target_token_id,
            "damage": payload.damage,
            "critical": payload.critical,
        }

    async def _execute_interaction(self, token_id: str, payload: InteractionPayload,
                                   context: ExecutionContext) -> dict[str, Any]:
        position = self._resolve_position(payload.target_object_id, None)
        if position is None:
            position = self._resolve_position(token_id, None)

        spec = EffectSpec(
            kind=EffectKind.INTERACTION,
            source_token_id=token_id,
            position=position,
            round_created=context.round_number,
            event_created=context.event_number,
            data={
                "interaction_type": payload.interaction_type,
                "target_object_id": payload.target_object_id,
                "parameters": dict(payload.parameters),
            },
        )
        effect_id = self.object_store.create_ephemeral_effect(spec)
        await self.animation.play_effect(
            effect_id, self.scaled(payload.duration, context), remove_on_complete=True
        )
        return {
            "interaction_type": payload.interaction_type,
            "target_object_id": payload.target_object_id,
        }

    async def _execute_environmental(self, token_id: str, payload: EnvironmentalPayload,
                                     context: ExecutionContext) -> dict[str, Any]:
        persistent = payload.persist_duration > 0
        spec = EffectSpec(
            kind=EffectKind.ENVIRONMENTAL,
            source_token_id=token_id,
            persistent=persistent,
            duration=payload.persist_duration,
            duration_mode=payload.duration_mode,
            round_created=context.round_number,
            event_created=context.event_number,
            area=payload.area,
            data={"effect_type": payload.effect_type, "intensity": payload.intensity},
        )
        effect_id = self.object_store.create_ephemeral_effect(spec)
        affected = self._affected_tokens(payload.area)

        self._emit_log(f"Environment: {payload.effect_type} (intensity {payload.intensity})", context)
        await self.animation.play_effect(
            effect_id, self.scaled(payload.duration, context), remove_on_complete=not persistent
        )
        return {
            "effect_id": effect_id,
            "effect_type": payload.effect_type,
            "persistent": persistent,
            "affected_tokens": affected,
        }

    async def _execute_sequence(self, token_id: str, payload: SequencePayload,
                                context: ExecutionContext) -> dict[str, Any]:
        steps = []
        for step in payload.steps:
            details = await self._dispatch(step.kind, token_id, step.payload, context)
            steps.append(details)
        return {"steps": steps}
