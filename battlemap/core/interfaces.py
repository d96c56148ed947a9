"""Boundaries between the timeline engine and its collaborators.

The engine never holds references into the map's object data. It reads and
commands the map through ObjectStore, and it hands every visual wait to an
AnimationCoordinator. Both are abstract so tests can inject doubles and the
editor can plug in its own canvas-backed implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .data import ActionKind, DurationMode, EffectKind, Vector2

if TYPE_CHECKING:
    from .geometry import AreaShape


@dataclass(frozen=True)
class PersistentEffect:
    """A spell or status object that outlives the action that created it.

    Owned by the object store; the duration rules in durations.py decide when
    it is removed. A duration of 0 marks an instant effect.
    """
    id: str
    duration: int
    duration_mode: DurationMode = DurationMode.ROUNDS
    round_created: Optional[int] = None
    event_created: Optional[int] = None
    kind: EffectKind = EffectKind.SPELL


@dataclass
class EffectSpec:
    """Description of a visual object the pipeline asks the store to create."""
    kind: EffectKind
    source_token_id: Optional[str] = None
    position: Optional[Vector2] = None
    from_position: Optional[Vector2] = None
    to_position: Optional[Vector2] = None
    persistent: bool = False
    duration: int = 0
    duration_mode: DurationMode = DurationMode.ROUNDS
    round_created: Optional[int] = None
    event_created: Optional[int] = None
    area: Optional["AreaShape"] = None
    data: dict[str, Any] = field(default_factory=dict)


class ObjectStore(ABC):
    """Map object store consumed by the timeline engine.

    Implementations own token positions and effect existence. All calls are
    synchronous and the timeline is assumed to be the only writer while an
    event executes.
    """

    @abstractmethod
    def get_token_position(self, token_id: str) -> Optional[Vector2]:
        """Current position of a token, or None if the token is unknown."""

    @abstractmethod
    def set_token_position(self, token_id: str, position: Vector2) -> None:
        """Move a token. Unknown tokens are ignored."""

    @abstractmethod
    def list_token_ids(self) -> list[str]:
        """Ids of every token on the map."""

    @abstractmethod
    def set_token_visible(self, token_id: str, visible: bool) -> None:
        """Show or hide a token."""

    @abstractmethod
    def create_ephemeral_effect(self, spec: EffectSpec) -> str:
        """Create a visual effect object and return its id."""

    @abstractmethod
    def delete_object(self, object_id: str) -> None:
        """Delete any object by id. Unknown ids are ignored."""

    @abstractmethod
    def list_persistent_effects(self) -> list[PersistentEffect]:
        """Every live persistent effect (spells, statuses, environment)."""

    @abstractmethod
    def get_allowed_action_kinds(self, token_id: str) -> Optional[list[ActionKind]]:
        """Allow-list of action kinds for a token, or None when unrestricted."""


class AnimationCoordinator(ABC):
    """Drives visual progress and tells the pipeline when a visual is done.

    Each coroutine is a suspension point: it returns once the animation has
    finished (or its declared duration elapsed).
    """

    @abstractmethod
    async def interpolate(self, token_id: str, start: Vector2, end: Vector2,
                          duration_ms: float) -> None:
        """Move a token from start to end over duration_ms."""

    @abstractmethod
    def report_progress(self, token_id: str, progress: float) -> None:
        """Record animation progress (0..1) for a token."""

    @abstractmethod
    async def play_effect(self, effect_id: str, duration_ms: float,
                          remove_on_complete: bool) -> None:
        """Let an effect animate for duration_ms, removing it afterwards if asked."""

    @abstractmethod
    async def wait(self, duration_ms: float) -> None:
        """Suspend for duration_ms of animation time."""
