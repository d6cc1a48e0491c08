"""
Jarvisbrain - autonomous decision-making core for a Minecraft-style agent.

Decaying world memory, a prioritized task planner, a catalog of concrete
behaviors, a cosmetic gesture layer and a timer registry that keeps every
scheduled callback cancellable.

No game connection required: the brain talks to anything satisfying
``WorldInterface`` (see ``SandboxWorld`` for an in-memory one).
"""

__version__ = "0.1.0"

# Main entry point
from .brain import CognitiveBrain

# Configuration
from .config import BrainConfig, BrainConfigError, Config

# Memory and timers
from .memory import (
    WorldMemory,
    PlayerSighting,
    RemoteContact,
    HostileSighting,
    ItemSighting,
    ResourceTarget,
    ResourceCategory,
    PointOfInterest,
)
from .timers import TimerBucket, TimerHandle, TimerRegistry

# Planning
from .cognition import (
    AsyncTaskHandle,
    BrainContext,
    BrainState,
    DEFAULT_RULES,
    GestureLayer,
    GoalTask,
    Planner,
    PlanningSnapshot,
    Rule,
    Task,
    TaskType,
)

# World contract
from .environment import (
    Vec3,
    GoalNear,
    GoalFollow,
    WorldInterface,
    SafeWorld,
    PlayerEntity,
    HostileEntity,
    ItemEntity,
    BlockInfo,
    PlayerListEntry,
    InventoryItem,
    ManualClock,
    SandboxWorld,
)

# Chat
from .commands import CommandError, CommandRegistry
from .dialogue import DialogueError, DialogueProvider, LLMDialogueProvider, choose_ambient_line

__all__ = [
    # Main class
    "CognitiveBrain",
    # Configuration
    "BrainConfig",
    "BrainConfigError",
    "Config",
    # Memory
    "WorldMemory",
    "PlayerSighting",
    "RemoteContact",
    "HostileSighting",
    "ItemSighting",
    "ResourceTarget",
    "ResourceCategory",
    "PointOfInterest",
    # Timers
    "TimerBucket",
    "TimerHandle",
    "TimerRegistry",
    # Planning
    "AsyncTaskHandle",
    "BrainContext",
    "BrainState",
    "DEFAULT_RULES",
    "GestureLayer",
    "GoalTask",
    "Planner",
    "PlanningSnapshot",
    "Rule",
    "Task",
    "TaskType",
    # World contract
    "Vec3",
    "GoalNear",
    "GoalFollow",
    "WorldInterface",
    "SafeWorld",
    "PlayerEntity",
    "HostileEntity",
    "ItemEntity",
    "BlockInfo",
    "PlayerListEntry",
    "InventoryItem",
    "ManualClock",
    "SandboxWorld",
    # Chat
    "CommandError",
    "CommandRegistry",
    "DialogueError",
    "DialogueProvider",
    "LLMDialogueProvider",
    "choose_ambient_line",
]
