"""
Task arbitration and lifecycle.

The planner owns ``state.current_task``. On every decision tick it decides
whether the running task may continue (predicate holds and it is younger
than ``task_timeout_ms``); otherwise it tears the task down and walks the
rule table for a replacement. Switching always runs the outgoing task's
cleanup before the incoming task's engage, so at most one goal-issuing task
is ever live.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..logging_utils import log_debug, log_decision, log_warn
from .rules import DEFAULT_RULES, PlanningSnapshot, Rule, select_task
from .state import BrainContext
from .task import Task


class Planner:
    def __init__(self, ctx: BrainContext, rules: Tuple[Rule, ...] = DEFAULT_RULES) -> None:
        self.ctx = ctx
        self.rules = rules
        self.last_rule: Optional[str] = None

    @property
    def current_task(self) -> Optional[Task]:
        return self.ctx.state.current_task

    def should_plan(self) -> bool:
        """Decide whether a new task is needed, tearing down the old one if so."""
        ctx = self.ctx
        state = ctx.state
        if ctx.position() is None:
            return False
        now = ctx.now()
        if state.is_paused(now):
            return False
        if state.async_pending():
            return False

        task = state.current_task
        if task is None:
            return True
        try:
            keep = bool(task.continue_predicate())
        except Exception as exc:
            log_warn(f"{task.type.value} predicate raised: {exc}")
            keep = False
        if not keep:
            self.cancel_current_task("predicate failed")
            return True
        if task.age(now) > ctx.config.task_timeout_ms:
            self.cancel_current_task("task timeout")
            return True
        return False

    def plan(self) -> Optional[Task]:
        """Pick the next task from the rule table without engaging it."""
        snap = PlanningSnapshot.take(self.ctx)
        if snap is None:
            return None
        picked = select_task(snap, self.rules)
        if picked is None:
            return None
        rule, task = picked
        self.last_rule = rule.name
        return task

    def tick(self) -> Optional[Task]:
        """One decision tick. Returns the newly engaged task, if any."""
        self.ctx.state.last_plan_run = self.ctx.now()
        if not self.should_plan():
            return None
        task = self.plan()
        if task is None:
            return None
        self.set_current_task(task)
        return self.ctx.state.current_task

    def set_current_task(self, task: Task) -> None:
        self.cancel_current_task("switching")
        state = self.ctx.state
        state.current_task = task
        try:
            task.engage()
        except Exception as exc:
            log_warn(f"Failed to engage {task.type.value}: {exc}")
            self.cancel_current_task("engage failed")
            return
        log_debug(f"Current task: {task.type.value}")

    def cancel_current_task(self, reason: str) -> None:
        state = self.ctx.state
        task = state.current_task
        handle = state.async_task
        state.current_task = None
        if task is not None:
            log_decision(f"Stopping {task.type.value} ({reason})")
            try:
                task.cleanup()
            except Exception as exc:
                log_warn(f"Cleanup of {task.type.value} failed: {exc}")
        if handle is not None:
            if handle.pending():
                handle.cancel()
            state.async_task = None
