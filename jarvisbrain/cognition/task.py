"""Task abstraction shared by every behavior in the catalog.

A task is created by the planner, engaged once, polled through its
``continue_predicate`` on every decision tick, and torn down through
``cleanup``. Both ``engage`` and ``cleanup`` are idempotent; ``cleanup`` is
safe to call after a partial or failed ``engage``.

Each task owns a :class:`~jarvisbrain.timers.TimerBucket`. Everything the
task schedules goes into that bucket, so cancelling the bucket during
cleanup stops every internal loop and also acts as the cancellation token
those loops check.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, ClassVar, Optional

from ..environment.world import Goal
from ..logging_utils import log_debug
from ..timers import TimerBucket, TimerHandle
from .state import BrainContext


class TaskType(str, Enum):
    EVADE_THREAT = "evade_threat"
    COMBAT = "combat"
    COLLECT_ITEM = "collect_item"
    MINE_RESOURCE = "mine_resource"
    HARVEST_WOOD = "harvest_wood"
    INVESTIGATE_POI = "investigate_poi"
    GROUP_FOLLOW = "group_follow"
    FOLLOW_PLAYER = "follow_player"
    SEEK_REMOTE_PLAYER = "seek_remote_player"
    OBSERVE = "observe"
    STROLL = "stroll"
    SOCIALIZE = "socialize"
    EXPLORE = "explore"


class Task(ABC):
    """Base class for all catalog behaviors."""

    type: ClassVar[TaskType]

    def __init__(self, ctx: BrainContext, target: Any = None) -> None:
        self.ctx = ctx
        self.target = target
        self.started_at = ctx.now()
        self.timers = TimerBucket(self.type.value)
        self.engaged = False
        self.cleaned_up = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} target={self.target!r}>"

    @property
    def cancelled(self) -> bool:
        return self.timers.cancelled

    def age(self, now: float) -> float:
        return now - self.started_at

    def engage(self) -> None:
        """Issue the real-world commands for this task (once)."""
        if self.engaged or self.cleaned_up:
            return
        self.engaged = True
        self.started_at = self.ctx.now()
        self._engage()

    def cleanup(self) -> None:
        """Release timers, goals and control state (idempotent)."""
        if self.cleaned_up:
            return
        self.cleaned_up = True
        self.ctx.timers.cancel_bucket(self.timers)
        self._cleanup()

    @abstractmethod
    def _engage(self) -> None:
        ...

    @abstractmethod
    def continue_predicate(self) -> bool:
        """Cheap, read-only check polled every decision tick."""
        ...

    def _cleanup(self) -> None:
        pass

    def schedule(self, delay_ms: float, callback: Callable[[], Any]) -> Optional[TimerHandle]:
        """Schedule ``callback`` in this task's bucket; skipped once cancelled."""
        return self.ctx.timers.schedule(delay_ms, callback, self.timers)


class GoalTask(Task):
    """A task that drives the agent through a single navigation goal."""

    def __init__(self, ctx: BrainContext, target: Any, goal: Goal) -> None:
        super().__init__(ctx, target)
        self.goal = goal

    def goal_active(self) -> bool:
        try:
            return self.ctx.world.current_goal() is self.goal
        except Exception as exc:
            log_debug(f"current_goal failed: {exc}")
            return False

    def replace_goal(self, goal: Goal) -> None:
        """Swap in a new goal, unless something else took over navigation."""
        if not self.goal_active():
            return
        self.goal = goal
        self.ctx.safe.set_goal(goal)

    def _engage(self) -> None:
        self.ctx.safe.set_goal(self.goal)

    def _cleanup(self) -> None:
        self.ctx.safe.clear_goal_if(self.goal)
