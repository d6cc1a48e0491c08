"""Short idle behaviors: standing still to look around, or a manual stroll."""

from __future__ import annotations

import math

from ...environment.geometry import look_point
from ...logging_utils import log_debug
from ..state import BrainContext
from ..task import Task, TaskType


def _roll_duration(ctx: BrainContext, bounds, floor_ms: int) -> int:
    low, high = bounds
    return max(floor_ms, int(ctx.rng.uniform(low, high)))


class TimedIdleTask(Task):
    """Idle task that ends on its own after a randomized duration."""

    min_duration_ms = 0

    def __init__(self, ctx: BrainContext, duration_ms: int) -> None:
        super().__init__(ctx)
        self.duration_ms = duration_ms

    def remaining(self) -> float:
        return self.duration_ms - self.age(self.ctx.now())

    def continue_predicate(self) -> bool:
        return self.remaining() > 0

    def _engage(self) -> None:
        self.ctx.safe.set_goal(None)
        self.ctx.safe.clear_controls()

    def _cleanup(self) -> None:
        self.ctx.safe.clear_controls()

    def _random_hand(self, right_bias: float = 0.5) -> str:
        return "right" if self.ctx.rng.random() < right_bias else "left"

    def _pulse(self, control: str, low_ms: float, spread_ms: float) -> None:
        """Hold ``control`` for a short random time."""
        self.ctx.safe.set_control(control, True)
        hold = low_ms + self.ctx.rng.random() * spread_ms
        self.schedule(hold, lambda: self.ctx.safe.set_control(control, False))

    def _yaw(self) -> float:
        try:
            return float(self.ctx.world.self_yaw())
        except Exception as exc:
            log_debug(f"self_yaw failed: {exc}")
            return 0.0


class ObserveTask(TimedIdleTask):
    """Stop and glance around for a few seconds."""

    type = TaskType.OBSERVE
    min_duration_ms = 2500

    def __init__(self, ctx: BrainContext) -> None:
        super().__init__(ctx, _roll_duration(ctx, ctx.config.observation_duration_range, self.min_duration_ms))

    def _engage(self) -> None:
        super()._engage()
        self.ctx.state.last_observation_break = self.ctx.now()
        log_debug("Taking a moment to look around.")
        self._look_around()

    def _look_around(self) -> None:
        if self.remaining() <= 0:
            return
        here = self.ctx.position()
        if here is not None:
            rng = self.ctx.rng
            yaw = self._yaw() + (rng.random() - 0.5) * math.pi
            reach = 3 + rng.random() * 4
            self.ctx.safe.look_at(look_point(here, yaw, reach, 1.6 + (rng.random() - 0.5) * 0.4))
            if rng.random() < 0.3:
                self.ctx.safe.swing_arm(self._random_hand())
        self.schedule(600 + self.ctx.rng.random() * 900, self._look_around)


class StrollTask(TimedIdleTask):
    """Walk forward by hand with small, human-looking course corrections."""

    type = TaskType.STROLL
    min_duration_ms = 3000

    def __init__(self, ctx: BrainContext) -> None:
        super().__init__(ctx, _roll_duration(ctx, ctx.config.stroll_duration_range, self.min_duration_ms))

    def _engage(self) -> None:
        super()._engage()
        self.ctx.state.last_stroll = self.ctx.now()
        self.ctx.safe.set_control("forward", True)
        log_debug("Going for a casual stroll.")
        self._pump()
        self.schedule(self.duration_ms + 100, lambda: self.ctx.safe.set_control("forward", False))

    def _pump(self) -> None:
        if self.remaining() <= 0:
            return
        here = self.ctx.position()
        if here is not None:
            rng = self.ctx.rng
            yaw = self._yaw() + (rng.random() - 0.5) * 0.9
            self.ctx.safe.look_at(look_point(here, yaw, 4, 1.6 + (rng.random() - 0.5) * 0.3))
            if rng.random() < 0.35:
                self.ctx.safe.swing_arm(self._random_hand(0.6))
            if rng.random() < 0.25:
                self._pulse("jump", 180, 220)
            if rng.random() < 0.2:
                self._pulse("left" if rng.random() < 0.5 else "right", 320, 260)
            if rng.random() < 0.1:
                self._pulse("sprint", 900, 900)
        self.schedule(450 + self.ctx.rng.random() * 750, self._pump)
