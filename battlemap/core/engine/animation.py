"""Frame-driven animation coordinator.

Replaces a repeated-frame-callback loop with a coroutine: each frame sleeps on
the injected clock, recomputes progress from elapsed time, writes the
interpolated token position to the object store and reports progress. The
coroutine returns when progress reaches 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from ..interfaces import AnimationCoordinator

if TYPE_CHECKING:
    from ..clock import Clock
    from ..data import Vector2
    from ..interfaces import ObjectStore


ProgressCallback = Callable[[str, float], None]


class ClockAnimationCoordinator(AnimationCoordinator):
    """Default coordinator that animates through the object store.

    Progress per token is monotonic: a report lower than the last one for the
    same running animation is ignored.
    """

    def __init__(
        self,
        object_store: "ObjectStore",
        clock: "Clock",
        frame_interval_ms: float = 16.0,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.object_store = object_store
        self.clock = clock
        self.frame_interval_ms = max(1.0, frame_interval_ms)
        self.on_progress = on_progress

        # token_id -> last reported progress of the running animation
        self._progress: dict[str, float] = {}
        self.frames_rendered = 0

    @property
    def active_animations(self) -> dict[str, float]:
        """Tokens currently animating and their progress."""
        return dict(self._progress)

    async def interpolate(self, token_id: str, start: "Vector2", end: "Vector2",
                          duration_ms: float) -> None:
        self._progress[token_id] = 0.0
        try:
            if duration_ms <= 0:
                self.object_store.set_token_position(token_id, end)
                self.report_progress(token_id, 1.0)
                return

            started = self.clock.now_ms()
            progress = 0.0
            while progress < 1.0:
                await self.clock.sleep_ms(self.frame_interval_ms)
                elapsed = self.clock.now_ms() - started
                progress = min(elapsed / duration_ms, 1.0)
                # Snap to the exact end point on the last frame
                position = end if progress >= 1.0 else start.lerp(end, progress)
                self.object_store.set_token_position(token_id, position)
                self.report_progress(token_id, progress)
                self.frames_rendered += 1
        finally:
            self._progress.pop(token_id, None)

    def report_progress(self, token_id: str, progress: float) -> None:
        progress = min(max(progress, 0.0), 1.0)
        if progress < self._progress.get(token_id, 0.0):
            return
        self._progress[token_id] = progress
        if self.on_progress:
            self.on_progress(token_id, progress)

    async def play_effect(self, effect_id: str, duration_ms: float,
                          remove_on_complete: bool) -> None:
        try:
            await self.wait(duration_ms)
        finally:
            if remove_on_complete:
                self.object_store.delete_object(effect_id)

    async def wait(self, duration_ms: float) -> None:
        if duration_ms > 0:
            await self.clock.sleep_ms(duration_ms)
