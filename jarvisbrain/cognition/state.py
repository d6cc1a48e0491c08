"""Mutable per-session brain state and the wiring handed to every task."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..config import BrainConfig
from ..environment.geometry import Vec3
from ..environment.world import SafeWorld
from ..logging_utils import log_debug
from ..memory import WorldMemory
from ..timers import TimerRegistry

if TYPE_CHECKING:  # pragma: no cover
    from .task import Task


@dataclass
class AsyncTaskHandle:
    """A long external operation that inhibits planning while pending."""

    future: "asyncio.Future"
    on_cancel: Callable[[], None]

    def pending(self) -> bool:
        return not self.future.done()

    def cancel(self) -> None:
        if not self.pending():
            return
        try:
            self.on_cancel()
        finally:
            self.future.cancel()


@dataclass
class BrainState:
    """Session-level flags and cooldown timestamps. Reset wholesale on death."""

    paused_until: float = 0.0
    current_task: Optional["Task"] = None
    async_task: Optional[AsyncTaskHandle] = None
    combat_cooldown_until: float = 0.0
    last_damage_time: float = float("-inf")
    last_ambient_chat: float = float("-inf")
    last_observation_break: float = float("-inf")
    last_stroll: float = float("-inf")
    last_plan_run: float = float("-inf")

    def is_paused(self, now: float) -> bool:
        return now < self.paused_until

    def extend_pause(self, until: float) -> bool:
        """Move ``paused_until`` forward. Never shortens an existing pause."""
        if until > self.paused_until:
            self.paused_until = until
            return True
        return False

    def async_pending(self) -> bool:
        return self.async_task is not None and self.async_task.pending()

    def reset(self) -> None:
        fresh = BrainState()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(fresh, name))


@dataclass
class BrainContext:
    """Collaborators shared by the planner, tasks and gesture layer."""

    world: Any
    memory: WorldMemory
    state: BrainState
    config: BrainConfig
    timers: TimerRegistry
    clock: Callable[[], float]
    rng: random.Random = field(default_factory=random.Random)
    safe: SafeWorld = field(init=False)

    def __post_init__(self) -> None:
        self.safe = SafeWorld(self.world)

    def now(self) -> float:
        return self.clock()

    def position(self) -> Optional[Vec3]:
        try:
            return self.world.self_position()
        except Exception as exc:
            log_debug(f"self_position failed: {exc}")
            return None

    def health(self) -> float:
        try:
            return float(self.world.health())
        except Exception as exc:
            log_debug(f"health failed: {exc}")
            return 0.0

    def inventory(self) -> list:
        try:
            return list(self.world.inventory())
        except Exception as exc:
            log_debug(f"inventory failed: {exc}")
            return []
