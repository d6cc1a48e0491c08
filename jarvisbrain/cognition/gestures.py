"""Cosmetic micro-gestures layered on top of whatever task is running."""

from __future__ import annotations

from ..environment.geometry import distance, look_point
from ..logging_utils import log_debug
from ..timers import TimerBucket
from .state import BrainContext
from .task import TaskType


SUPPRESSING_TASKS = frozenset({TaskType.EVADE_THREAT, TaskType.COMBAT})
MOVEMENT_FRIENDLY_TASKS = frozenset({TaskType.OBSERVE, TaskType.STROLL})


class GestureLayer:
    """Rolls a handful of independent probabilities each tick.

    Looks, arm swings and short control pulses only. Goals are never set or
    cleared here, and strafes/jumps are reserved for moments when nothing is
    navigating.
    """

    def __init__(self, ctx: BrainContext) -> None:
        self.ctx = ctx
        self.timers = TimerBucket("gestures")

    def suppressed(self) -> bool:
        state = self.ctx.state
        if state.is_paused(self.ctx.now()) or state.async_pending():
            return True
        task = state.current_task
        return task is not None and task.type in SUPPRESSING_TASKS

    def _movement_allowed(self) -> bool:
        task = self.ctx.state.current_task
        if task is not None and task.type in MOVEMENT_FRIENDLY_TASKS:
            return True
        try:
            return self.ctx.world.current_goal() is None
        except Exception as exc:
            log_debug(f"current_goal failed: {exc}")
            return False

    def _hand(self) -> str:
        return "left" if self.ctx.rng.random() < 0.5 else "right"

    def _pulse(self, control: str, low_ms: float, spread_ms: float) -> None:
        safe = self.ctx.safe
        safe.set_control(control, True)
        self.ctx.timers.schedule(
            low_ms + self.ctx.rng.random() * spread_ms,
            lambda: safe.set_control(control, False),
            self.timers,
        )

    def tick(self) -> None:
        ctx = self.ctx
        here = ctx.position()
        if here is None or self.suppressed():
            return
        rng = ctx.rng
        safe = ctx.safe
        cfg = ctx.config

        player = ctx.memory.nearest_player(here)
        if player is not None and distance(here, player.position) <= cfg.look_at_player_range:
            if rng.random() < 0.7:
                safe.look_at(player.position.offset(0, 1.6, 0))
                if rng.random() < 0.35:
                    safe.swing_arm(self._hand())

        if rng.random() < 0.45:
            try:
                yaw = float(ctx.world.self_yaw())
            except Exception as exc:
                log_debug(f"self_yaw failed: {exc}")
                yaw = 0.0
            yaw += (rng.random() - 0.5) * 1.2
            reach = 3 + rng.random() * 4
            safe.look_at(look_point(here, yaw, reach, 1.6 + (rng.random() - 0.5) * 0.3))

        if self._movement_allowed():
            if rng.random() < 0.14:
                self._pulse(self._hand(), 260, 260)
            if rng.random() < 0.18:
                self._pulse("jump", 180, 240)

        if rng.random() < 0.08:
            safe.swing_arm(self._hand())

        if rng.random() < 0.05:
            self._pulse("sneak", 600, 1200)

    def stop(self) -> None:
        """Cancel pending pulse releases and let go of every control."""
        self.ctx.timers.cancel_bucket(self.timers)
        self.timers = TimerBucket("gestures")
        self.ctx.safe.clear_controls()
