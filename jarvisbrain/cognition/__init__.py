"""Planning, tasks and gestures."""

from .gestures import GestureLayer
from .planner import Planner
from .rules import DEFAULT_RULES, PlanningSnapshot, Rule, select_task
from .state import AsyncTaskHandle, BrainContext, BrainState
from .task import GoalTask, Task, TaskType

__all__ = [
    "GestureLayer",
    "Planner",
    "DEFAULT_RULES",
    "PlanningSnapshot",
    "Rule",
    "select_task",
    "AsyncTaskHandle",
    "BrainContext",
    "BrainState",
    "GoalTask",
    "Task",
    "TaskType",
]
