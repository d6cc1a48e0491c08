"""
The cognitive brain: one instance per agent session.

Four independent cycles run on the event loop once :meth:`CognitiveBrain.start`
is awaited:

- scan (``scan_interval_ms``): refresh :class:`~jarvisbrain.memory.WorldMemory`
- decision (``decision_interval_ms``): one planner tick
- social (``social_interval_ms``): maybe say an ambient line
- gestures (``micro_gesture_interval_ms``): cosmetic looks, swings, pulses

Every cycle body tolerates a missing self position and swallows its own
errors (logged, tick skipped), so no single failure stops the agent. The game
adapter forwards events through the ``on_*`` methods.
"""

from __future__ import annotations

import asyncio
import inspect
import random
import time
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from .commands import CommandRegistry
from .config import BrainConfig
from .cognition.gestures import GestureLayer
from .cognition.planner import Planner
from .cognition.state import BrainContext, BrainState
from .cognition.task import Task
from .cognition.tasks import SocializeTask
from .dialogue import DialogueProvider, choose_ambient_line
from .environment.geometry import Vec3
from .environment.schemas import BlockInfo, PlayerListEntry, classify_entity, parse_entity
from .logging_utils import log_debug, log_info, log_warn
from .memory import WorldMemory
from .perception import (
    perceive_block_update,
    perceive_chat,
    perceive_gone,
    perceive_spawn,
    scan_environment,
)
from .timers import CallLater, TimerRegistry


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class CognitiveBrain:
    """Memory, planner, gesture layer and timers for a single agent."""

    def __init__(
        self,
        world: Any,
        config: Optional[BrainConfig] = None,
        dialogue: Optional[DialogueProvider] = None,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        call_later: Optional[CallLater] = None,
    ) -> None:
        self.world = world
        self.config = config or BrainConfig.from_env()
        self.dialogue = dialogue
        self.timers = TimerRegistry(call_later)
        self.context = BrainContext(
            world=world,
            memory=WorldMemory(self.config, world.username),
            state=BrainState(),
            config=self.config,
            timers=self.timers,
            clock=clock or monotonic_ms,
            rng=rng or random.Random(),
        )
        self.planner = Planner(self.context)
        self.gestures = GestureLayer(self.context)
        self.commands = CommandRegistry(self)
        self._cycles: List[asyncio.Task] = []
        self._background: set = set()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def memory(self) -> WorldMemory:
        return self.context.memory

    @property
    def state(self) -> BrainState:
        return self.context.state

    @property
    def current_task(self) -> Optional[Task]:
        return self.context.state.current_task

    @property
    def running(self) -> bool:
        return any(not cycle.done() for cycle in self._cycles)

    def now(self) -> float:
        return self.context.now()

    # ------------------------------------------------------------------
    # Cycle bodies
    # ------------------------------------------------------------------
    def scan_tick(self) -> None:
        if self.context.position() is None:
            return
        scan_environment(self.world, self.memory, self.config, self.now())

    def decision_tick(self) -> Optional[Task]:
        return self.planner.tick()

    async def social_tick(self) -> Optional[SocializeTask]:
        """Maybe say something. Never displaces the current task."""
        ctx = self.context
        state = ctx.state
        now = ctx.now()
        if ctx.position() is None or state.is_paused(now):
            return None
        if now - state.last_ambient_chat < self.config.social_interval_ms:
            return None
        state.last_ambient_chat = now

        line = await choose_ambient_line(self.dialogue, self._social_context(), ctx.rng)
        if state.is_paused(ctx.now()):
            return None
        task = SocializeTask(ctx, line)
        task.engage()
        task.cleanup()
        return task

    def _social_context(self) -> str:
        ctx = self.context
        parts = []
        player = ctx.memory.nearest_player(ctx.position())
        if player is not None:
            parts.append(f"Nearest player {player.username} at {player.position}")
        task = ctx.state.current_task
        if task is not None:
            parts.append(f"Current task {task.type.value}")
        return ". ".join(parts)

    def gesture_tick(self) -> None:
        self.gestures.tick()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def _cycle(self, name: str, interval_ms: int, body: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval_ms / 1000.0)
            try:
                result = body()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log_warn(f"{name} tick failed: {exc}")

    async def start(self) -> None:
        """Start the four cycles on the running loop (no-op if already running)."""
        if self.running:
            return
        cfg = self.config
        cycles = (
            ("scan", cfg.scan_interval_ms, self.scan_tick),
            ("decision", cfg.decision_interval_ms, self.decision_tick),
            ("social", cfg.social_interval_ms, self.social_tick),
            ("gestures", cfg.micro_gesture_interval_ms, self.gesture_tick),
        )
        self._cycles = [
            asyncio.create_task(self._cycle(name, interval, body), name=f"jarvisbrain-{name}")
            for name, interval, body in cycles
        ]
        log_info(f"Brain started for {self.world.username}")

    async def stop(self) -> None:
        """Cancel the cycles, the current task and every pending timer."""
        cycles, self._cycles = self._cycles, []
        for cycle in cycles:
            cycle.cancel()
        if cycles:
            await asyncio.gather(*cycles, return_exceptions=True)
        for pending in list(self._background):
            pending.cancel()
        self.planner.cancel_current_task("stopped")
        self.gestures.stop()
        self.timers.cancel_all()
        self.context.safe.clear_controls()
        log_info("Brain stopped")

    # ------------------------------------------------------------------
    # External control
    # ------------------------------------------------------------------
    def pause(self, duration_ms: float, reason: str = "paused") -> float:
        """Suspend autonomy for at least ``duration_ms``. Never shortens a pause."""
        state = self.state
        if state.extend_pause(self.now() + max(0.0, duration_ms)):
            log_debug(f"Autonomy paused until {state.paused_until:.0f} ({reason})")
        self.planner.cancel_current_task(reason)
        return state.paused_until

    def notify_manual_activity(self, duration_ms: Optional[float] = None) -> float:
        if duration_ms is None:
            duration_ms = self.config.manual_activity_pause_ms
        return self.pause(duration_ms, reason="manual activity")

    def resume(self) -> None:
        """Lift any pause immediately (explicit operator request)."""
        self.state.paused_until = 0.0

    # ------------------------------------------------------------------
    # World events
    # ------------------------------------------------------------------
    def on_entity_hurt(self, entity_id: Optional[int]) -> None:
        try:
            own_id = self.world.self_entity_id()
        except Exception as exc:
            log_debug(f"self_entity_id failed: {exc}")
            return
        if entity_id is None or entity_id != own_id:
            return
        self.state.last_damage_time = self.now()
        log_warn("Took damage; prioritizing safety.")

    def _observe(self, raw: Any):
        """Accept a schema instance, a tagged mapping or a loose adapter mapping."""
        if isinstance(raw, Mapping) and "kind" not in raw:
            return classify_entity(raw)
        try:
            return parse_entity(raw)
        except ValidationError as exc:
            log_debug(f"Ignoring malformed entity: {exc}")
            return None

    def on_entity_spawn(self, raw: Any) -> None:
        entity = self._observe(raw)
        if entity is not None:
            perceive_spawn(self.memory, entity, self.now(), self.world.username)

    def on_entity_gone(self, raw: Any) -> None:
        entity = self._observe(raw)
        if entity is not None:
            perceive_gone(self.memory, entity, self.now())

    def on_block_update(self, old: Optional[BlockInfo], new: Optional[BlockInfo]) -> None:
        perceive_block_update(self.memory, old, new, self.now())

    def on_player_joined(self, entry: Any) -> None:
        entry = PlayerListEntry.model_validate(entry)
        now = self.now()
        if entry.entity is not None:
            self.memory.remember_player(entry.entity, now)
        else:
            self.memory.remember_remote_contact(entry, now)

    def on_player_updated(self, entry: Any) -> None:
        entry = PlayerListEntry.model_validate(entry)
        if entry.entity is None and entry.username in self.memory.players:
            now = self.now()
            self.memory.demote_player(entry.username, now)
            self.memory.remember_remote_contact(entry, now)
            return
        self.on_player_joined(entry)

    def on_player_left(self, username: str) -> None:
        self.memory.forget_player(username)

    def on_player_collect(self, collector: str, position: Optional[Vec3]) -> None:
        """Another player picking something up is worth a look."""
        if collector == self.world.username or position is None:
            return
        self.memory.mark_poi(position, "collection", self.now())

    def on_chat(self, username: str, text: str) -> None:
        if username == self.world.username or not text:
            return
        observation = perceive_chat(self.memory, username, text, self.now(), self.world.username)
        if observation.mentions_self:
            self.pause(self.config.idle_pause_ms, reason=f"addressed by {username}")
        if text.startswith("!"):
            self._spawn(self.commands.execute(username, text))

    def on_health_changed(self, health: float) -> None:
        if health < self.config.low_health_threshold:
            log_warn(f"Low health: {health:g}")

    def on_death(self) -> None:
        """Drop everything: task, timers, volatile memory and state."""
        log_warn("Died; resetting brain state.")
        self.planner.cancel_current_task("death")
        self.gestures.stop()
        self.timers.cancel_all()
        self.context.safe.clear_controls()
        self.memory.clear_volatile()
        self.state.reset()
        self.pause(self.config.death_pause_ms, reason="death")

    def on_respawn(self) -> None:
        self.context.memory = WorldMemory(self.config, self.world.username)
        self.pause(self.config.death_pause_ms, reason="respawn")

    def on_spawn(self) -> None:
        self.pause(self.config.idle_pause_ms, reason="spawned")

    def _spawn(self, coroutine: Awaitable[Any]) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coroutine)
        except RuntimeError as exc:
            if inspect.iscoroutine(coroutine):
                coroutine.close()
            log_debug(f"No running loop for chat command: {exc}")
            return
        self._background.add(task)
        task.add_done_callback(self._background.discard)


__all__ = ["CognitiveBrain", "monotonic_ms"]
