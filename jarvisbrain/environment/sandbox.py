"""In-memory world and clock used for tests and offline demos.

``SandboxWorld`` satisfies :class:`~jarvisbrain.environment.world.WorldInterface`
without any game connection: entities, players and blocks are plain dicts the
caller edits directly, and every command is recorded so behavior can be
asserted on. ``ManualClock`` provides both the millisecond clock and a
``call_later`` compatible scheduler that only advances when told to.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .geometry import Vec3
from .schemas import (
    BlockInfo,
    HostileEntity,
    InventoryItem,
    ItemEntity,
    ObservedEntity,
    PlayerEntity,
    PlayerListEntry,
)
from .world import Goal


class _ManualHandle:
    __slots__ = ("cancelled",)

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Millisecond clock plus deterministic timer queue."""

    def __init__(self, start_ms: float = 1_000_000.0) -> None:
        self.now_ms = float(start_ms)
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def __call__(self) -> float:
        return self.now_ms

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        due = self.now_ms + max(0.0, delay_seconds) * 1000.0
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, ms: float) -> None:
        """Move time forward, firing every due callback in order."""
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = max(self.now_ms, due)
            callback()
        self.now_ms = target


@dataclass
class SandboxWorld:
    """A scriptable stand-in for a live game session."""

    username: str = "JarvisBot"
    self_id: int = 1
    position: Optional[Vec3] = field(default_factory=lambda: Vec3(0, 64, 0))
    yaw: float = 0.0
    health_value: float = 20.0
    inventory_items: List[InventoryItem] = field(default_factory=list)
    entity_map: Dict[int, ObservedEntity] = field(default_factory=dict)
    player_list: Dict[str, PlayerListEntry] = field(default_factory=dict)
    blocks: Dict[Vec3, str] = field(default_factory=dict)
    goal: Optional[Goal] = None
    controls: Dict[str, bool] = field(default_factory=dict)
    calls: List[Tuple[str, Any]] = field(default_factory=list)
    chat_log: List[str] = field(default_factory=list)
    equipped: Dict[str, str] = field(default_factory=dict)
    item_active: bool = False
    collect_outcome: Any = True
    collect_delay: float = 0.0
    collect_cancelled: bool = False
    _ids: Any = field(default_factory=lambda: itertools.count(100), repr=False)

    def __post_init__(self) -> None:
        self.player_list.setdefault(self.username, PlayerListEntry(username=self.username))

    # ------------------------------------------------------------------
    # Scripting helpers
    # ------------------------------------------------------------------
    def add_player(self, username: str, position: Optional[Vec3], *, ping: int = 40) -> Optional[PlayerEntity]:
        """Connect a player; ``position=None`` keeps it outside render range."""
        entity = None
        if position is not None:
            entity = PlayerEntity(entity_id=next(self._ids), username=username, position=position)
            self.entity_map[entity.entity_id] = entity
        self.player_list[username] = PlayerListEntry(username=username, ping=ping, entity=entity)
        return entity

    def move_player(self, username: str, position: Optional[Vec3]) -> None:
        entry = self.player_list[username]
        if entry.entity is not None:
            self.entity_map.pop(entry.entity.entity_id, None)
        entity = None
        if position is not None:
            entity_id = entry.entity.entity_id if entry.entity is not None else next(self._ids)
            entity = PlayerEntity(entity_id=entity_id, username=username, position=position)
            self.entity_map[entity_id] = entity
        self.player_list[username] = entry.model_copy(update={"entity": entity})

    def remove_player(self, username: str) -> None:
        entry = self.player_list.pop(username, None)
        if entry is not None and entry.entity is not None:
            self.entity_map.pop(entry.entity.entity_id, None)

    def add_hostile(self, name: str, position: Vec3, health: Optional[float] = 20.0) -> HostileEntity:
        entity = HostileEntity(entity_id=next(self._ids), name=name, position=position, health=health)
        self.entity_map[entity.entity_id] = entity
        return entity

    def add_item(self, position: Vec3, name: str = "item") -> ItemEntity:
        entity = ItemEntity(entity_id=next(self._ids), name=name, position=position)
        self.entity_map[entity.entity_id] = entity
        return entity

    def remove_entity(self, entity_id: int) -> Optional[ObservedEntity]:
        return self.entity_map.pop(entity_id, None)

    def set_block(self, position: Vec3, name: Optional[str]) -> None:
        key = position.floored()
        if name is None or name == "air":
            self.blocks.pop(key, None)
        else:
            self.blocks[key] = name

    def give(self, name: str, count: int = 1) -> None:
        self.inventory_items.append(InventoryItem(name=name, count=count))

    def reach_goal(self) -> None:
        """Pretend the pathfinder arrived and dropped its goal."""
        self.goal = None

    def commands(self, name: str) -> List[Any]:
        return [args for call, args in self.calls if call == name]

    # ------------------------------------------------------------------
    # WorldInterface snapshots
    # ------------------------------------------------------------------
    def self_entity_id(self) -> Optional[int]:
        return self.self_id

    def self_position(self) -> Optional[Vec3]:
        return self.position

    def self_yaw(self) -> float:
        return self.yaw

    def health(self) -> float:
        return self.health_value

    def inventory(self) -> List[InventoryItem]:
        return list(self.inventory_items)

    def entities(self) -> List[ObservedEntity]:
        return list(self.entity_map.values())

    def entity(self, entity_id: int) -> Optional[ObservedEntity]:
        return self.entity_map.get(entity_id)

    def players(self) -> Dict[str, PlayerListEntry]:
        return dict(self.player_list)

    def block_at(self, position: Vec3) -> Optional[BlockInfo]:
        key = position.floored()
        name = self.blocks.get(key)
        if name is None:
            return None
        return BlockInfo(name=name, position=key)

    def find_blocks(
        self,
        matching: Callable[[BlockInfo], bool],
        max_distance: float,
        count: int,
    ) -> List[Vec3]:
        if self.position is None:
            return []
        found = []
        for pos, name in self.blocks.items():
            dist = self.position.distance_to(pos)
            if dist > max_distance:
                continue
            if matching(BlockInfo(name=name, position=pos)):
                found.append((dist, pos))
        found.sort(key=lambda item: item[0])
        return [pos for _, pos in found[:count]]

    # ------------------------------------------------------------------
    # WorldInterface commands
    # ------------------------------------------------------------------
    def current_goal(self) -> Optional[Goal]:
        return self.goal

    def set_goal(self, goal: Optional[Goal]) -> None:
        self.calls.append(("set_goal", goal))
        self.goal = goal

    def look_at(self, position: Vec3) -> None:
        self.calls.append(("look_at", position))

    def attack(self, entity_id: int) -> None:
        self.calls.append(("attack", entity_id))

    def equip(self, item_name: str, slot: str) -> None:
        self.calls.append(("equip", (item_name, slot)))
        self.equipped[slot] = item_name

    def activate_item(self, off_hand: bool = False) -> None:
        self.calls.append(("activate_item", off_hand))
        self.item_active = True

    def deactivate_item(self) -> None:
        self.calls.append(("deactivate_item", None))
        self.item_active = False

    def set_control_state(self, control: str, active: bool) -> None:
        self.calls.append(("set_control_state", (control, active)))
        self.controls[control] = active

    def swing_arm(self, hand: str = "right") -> None:
        self.calls.append(("swing_arm", hand))

    def chat(self, text: str) -> None:
        self.calls.append(("chat", text))
        self.chat_log.append(text)

    async def collect_block(self, position: Vec3) -> bool:
        self.calls.append(("collect_block", position))
        self.collect_cancelled = False
        if self.collect_delay:
            await asyncio.sleep(self.collect_delay)
        outcome = self.collect_outcome
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome:
            self.set_block(position, None)
        return bool(outcome)

    def cancel_collect(self) -> None:
        self.calls.append(("cancel_collect", None))
        self.collect_cancelled = True


__all__ = ["ManualClock", "SandboxWorld"]
