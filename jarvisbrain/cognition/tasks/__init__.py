"""The task catalog."""

from .combat import CombatTask, best_weapon, has_shield
from .gathering import HarvestResourceTask, HarvestWoodTask, MineResourceTask, harvest_task
from .idle import ObserveTask, StrollTask
from .movement import (
    CollectItemTask,
    EvadeTask,
    ExploreTask,
    FollowPlayerTask,
    GroupFollowTask,
    InvestigatePOITask,
    PlayerGroup,
    SeekRemotePlayerTask,
    current_group,
    evade_destination,
    find_group,
    seek_destination,
)
from .social import SocializeTask

__all__ = [
    "CombatTask",
    "best_weapon",
    "has_shield",
    "HarvestResourceTask",
    "HarvestWoodTask",
    "MineResourceTask",
    "harvest_task",
    "ObserveTask",
    "StrollTask",
    "CollectItemTask",
    "EvadeTask",
    "ExploreTask",
    "FollowPlayerTask",
    "GroupFollowTask",
    "InvestigatePOITask",
    "PlayerGroup",
    "SeekRemotePlayerTask",
    "current_group",
    "evade_destination",
    "find_group",
    "seek_destination",
    "SocializeTask",
]
