"""Core timeline engine components.

This package contains the systems that model and run a combat timeline:
- timeline.py: Timeline, events, actions and snapshots
- actions.py: Payload dataclasses per action kind and the payload factory
- pipeline.py: Sequential execution of one event's actions
- snapshots.py: Snapshot capture and restore for undo
- animation.py: Clock-driven default animation coordinator
"""

from .timeline import Timeline, TimelineEvent, TimelineAction, Snapshot, new_id
from .actions import (
    ActionPayload,
    MovePayload,
    AppearPayload,
    DisappearPayload,
    SpellPayload,
    AttackPayload,
    InteractionPayload,
    EnvironmentalPayload,
    SequencePayload,
    SequenceStep,
    GenericPayload,
    PAYLOAD_TYPES,
    create_payload,
)
from .snapshots import SnapshotEngine, RestoreResult
from .pipeline import ActionPipeline, ExecutionContext, EventExecutionResult
from .animation import ClockAnimationCoordinator

__all__ = [
    "Timeline",
    "TimelineEvent",
    "TimelineAction",
    "Snapshot",
    "new_id",
    "ActionPayload",
    "MovePayload",
    "AppearPayload",
    "DisappearPayload",
    "SpellPayload",
    "AttackPayload",
    "InteractionPayload",
    "EnvironmentalPayload",
    "SequencePayload",
    "SequenceStep",
    "GenericPayload",
    "PAYLOAD_TYPES",
    "create_payload",
    "SnapshotEngine",
    "RestoreResult",
    "ActionPipeline",
    "ExecutionContext",
    "EventExecutionResult",
    "ClockAnimationCoordinator",
]
