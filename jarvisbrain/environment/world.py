"""Contract between the brain and the game adapter.

The brain never talks to the network or the pathfinder directly. Everything
goes through an object satisfying :class:`WorldInterface`: snapshot accessors
that must return immediately, plus commands. Navigation goals are plain data
objects so tasks can check "is this still my goal" by identity before
clearing it.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Union

from .geometry import Vec3
from .schemas import BlockInfo, InventoryItem, ObservedEntity, PlayerListEntry
from ..logging_utils import log_debug


CONTROL_STATES = ("forward", "back", "left", "right", "jump", "sprint", "sneak")


@dataclass(eq=False)
class GoalNear:
    """Reach any point within ``tolerance`` blocks of ``position``."""

    position: Vec3
    tolerance: float = 1.0


@dataclass(eq=False)
class GoalFollow:
    """Keep within ``tolerance`` blocks of a moving entity.

    Players are addressed by ``username``; mobs by ``entity_id``.
    """

    username: Optional[str] = None
    entity_id: Optional[int] = None
    tolerance: float = 3.0
    dynamic: bool = True


Goal = Union[GoalNear, GoalFollow]


class WorldInterface(Protocol):
    """Everything the brain needs from the live game session."""

    username: str

    # Snapshots -----------------------------------------------------------
    def self_entity_id(self) -> Optional[int]:
        ...

    def self_position(self) -> Optional[Vec3]:
        ...

    def self_yaw(self) -> float:
        ...

    def health(self) -> float:
        ...

    def inventory(self) -> List[InventoryItem]:
        ...

    def entities(self) -> List[ObservedEntity]:
        """Currently rendered players, hostiles and dropped items."""
        ...

    def entity(self, entity_id: int) -> Optional[ObservedEntity]:
        ...

    def players(self) -> Dict[str, PlayerListEntry]:
        """Connected players keyed by username (including the agent)."""
        ...

    def block_at(self, position: Vec3) -> Optional[BlockInfo]:
        ...

    def find_blocks(
        self,
        matching: Callable[[BlockInfo], bool],
        max_distance: float,
        count: int,
    ) -> List[Vec3]:
        ...

    # Commands ------------------------------------------------------------
    def current_goal(self) -> Optional[Goal]:
        ...

    def set_goal(self, goal: Optional[Goal]) -> None:
        ...

    def look_at(self, position: Vec3) -> Any:
        ...

    def attack(self, entity_id: int) -> Any:
        ...

    def equip(self, item_name: str, slot: str) -> Any:
        ...

    def activate_item(self, off_hand: bool = False) -> Any:
        ...

    def deactivate_item(self) -> Any:
        ...

    def set_control_state(self, control: str, active: bool) -> Any:
        ...

    def swing_arm(self, hand: str = "right") -> Any:
        ...

    def chat(self, text: str) -> Any:
        ...

    def collect_block(self, position: Vec3) -> Awaitable[bool]:
        """Start a long-running harvest. Resolves True on success."""
        ...

    def cancel_collect(self) -> Any:
        ...


@dataclass
class SafeWorld:
    """Fire-and-forget wrapper around a :class:`WorldInterface`.

    Commands that can fail transiently are logged and swallowed so that no
    failure ever reaches the planner. Awaitable results are scheduled in the
    background and their errors are logged the same way.
    """

    world: Any
    _pending: set = field(default_factory=set, repr=False)

    def _run(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            result = fn(*args)
        except Exception as exc:
            log_debug(f"{label} failed: {exc}")
            return
        if inspect.isawaitable(result):
            try:
                future = asyncio.ensure_future(result, loop=asyncio.get_running_loop())
            except RuntimeError as exc:
                # No running loop; drop the coroutine without leaking a warning.
                if inspect.iscoroutine(result):
                    result.close()
                log_debug(f"{label} could not be scheduled: {exc}")
                return
            self._pending.add(future)
            future.add_done_callback(lambda fut: self._settle(label, fut))

    def _settle(self, label: str, future: "asyncio.Future") -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log_debug(f"{label} failed: {exc}")

    def set_goal(self, goal: Optional[Goal]) -> None:
        self._run("set_goal", self.world.set_goal, goal)

    def clear_goal_if(self, goal: Goal) -> None:
        """Clear the navigation goal only while it is still ``goal``."""
        try:
            still_ours = self.world.current_goal() is goal
        except Exception as exc:
            log_debug(f"current_goal failed: {exc}")
            return
        if still_ours:
            self.set_goal(None)

    def look_at(self, position: Vec3) -> None:
        self._run("look_at", self.world.look_at, position)

    def attack(self, entity_id: int) -> None:
        self._run("attack", self.world.attack, entity_id)

    def equip(self, item_name: str, slot: str) -> None:
        self._run("equip", self.world.equip, item_name, slot)

    def activate_item(self, off_hand: bool = False) -> None:
        self._run("activate_item", self.world.activate_item, off_hand)

    def deactivate_item(self) -> None:
        self._run("deactivate_item", self.world.deactivate_item)

    def set_control(self, control: str, active: bool) -> None:
        self._run(f"set_control_state({control})", self.world.set_control_state, control, active)

    def clear_controls(self, controls: Iterable[str] = CONTROL_STATES) -> None:
        for control in controls:
            self.set_control(control, False)

    def swing_arm(self, hand: str = "right") -> None:
        self._run("swing_arm", self.world.swing_arm, hand)

    def chat(self, text: str) -> None:
        self._run("chat", self.world.chat, text)

    def cancel_collect(self) -> None:
        self._run("cancel_collect", self.world.cancel_collect)


__all__ = [
    "CONTROL_STATES",
    "GoalNear",
    "GoalFollow",
    "Goal",
    "WorldInterface",
    "SafeWorld",
]
