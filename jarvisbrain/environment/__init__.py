"""World-facing types: geometry, observed entities, the world contract."""

from .geometry import Vec3, add_noise, centroid, distance, escape_point, look_point, stable_angle
from .schemas import (
    HOSTILE_MOBS,
    BlockInfo,
    HostileEntity,
    InventoryItem,
    ItemEntity,
    ObservedEntity,
    PlayerEntity,
    PlayerListEntry,
    classify_entity,
    parse_entity,
)
from .world import CONTROL_STATES, Goal, GoalFollow, GoalNear, SafeWorld, WorldInterface
from .sandbox import ManualClock, SandboxWorld

__all__ = [
    "Vec3",
    "add_noise",
    "centroid",
    "distance",
    "escape_point",
    "look_point",
    "stable_angle",
    "HOSTILE_MOBS",
    "BlockInfo",
    "HostileEntity",
    "InventoryItem",
    "ItemEntity",
    "ObservedEntity",
    "PlayerEntity",
    "PlayerListEntry",
    "classify_entity",
    "parse_entity",
    "CONTROL_STATES",
    "Goal",
    "GoalFollow",
    "GoalNear",
    "SafeWorld",
    "WorldInterface",
    "ManualClock",
    "SandboxWorld",
]
