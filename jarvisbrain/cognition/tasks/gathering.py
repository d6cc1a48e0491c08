"""Resource harvesting driven by the adapter's long-running collect operation."""

from __future__ import annotations

import asyncio
from typing import Optional

from ...logging_utils import log_debug, log_decision, log_success, log_warn
from ...memory import ResourceCategory, ResourceTarget
from ..state import AsyncTaskHandle, BrainContext
from ..task import Task, TaskType


class HarvestResourceTask(Task):
    """Hand one resource block to ``world.collect_block`` and wait for it.

    While the collect future is pending it is registered as the brain's
    ``async_task`` and the planner stays inhibited. Whatever the outcome,
    the done callback releases ``async_task`` and ``current_task`` (if they
    still point at this task). Success, failure and errors all drop the
    resource target; a cancellation keeps it for a later attempt.
    """

    def __init__(self, ctx: BrainContext, resource: ResourceTarget) -> None:
        super().__init__(ctx, resource)
        self.handle: Optional[AsyncTaskHandle] = None
        self.outcome: Optional[str] = None

    def continue_predicate(self) -> bool:
        return self.handle is not None and self.handle.pending()

    def _engage(self) -> None:
        resource = self.target
        try:
            loop = asyncio.get_running_loop()
            future = asyncio.ensure_future(self.ctx.world.collect_block(resource.position), loop=loop)
        except Exception as exc:
            log_warn(f"Could not start collecting {resource.block_kind}: {exc}")
            self.outcome = "failed"
            self.ctx.memory.forget_resource(resource.position)
            return

        self.handle = AsyncTaskHandle(future=future, on_cancel=self.ctx.safe.cancel_collect)
        self.ctx.state.async_task = self.handle
        future.add_done_callback(self._on_done)
        log_decision(f"Collecting {resource.block_kind} at {resource.position}")

    def _on_done(self, future: "asyncio.Future") -> None:
        resource = self.target
        if future.cancelled():
            self.outcome = "cancelled"
            log_debug(f"Collecting {resource.block_kind} was cancelled")
        else:
            exc = future.exception()
            if exc is not None:
                self.outcome = "failed"
                log_warn(f"Failed to collect {resource.block_kind}: {exc}")
            elif future.result() is False:
                self.outcome = "failed"
                log_warn(f"Failed to collect {resource.block_kind}")
            else:
                self.outcome = "collected"
                log_success(f"Collected {resource.block_kind}")
            self.ctx.memory.forget_resource(resource.position)

        state = self.ctx.state
        if state.async_task is self.handle:
            state.async_task = None
        if state.current_task is self:
            state.current_task = None
            self.cleanup()

    def _cleanup(self) -> None:
        if self.handle is not None and self.handle.pending():
            self.handle.cancel()
        if self.ctx.state.async_task is self.handle:
            self.ctx.state.async_task = None


class MineResourceTask(HarvestResourceTask):
    type = TaskType.MINE_RESOURCE


class HarvestWoodTask(HarvestResourceTask):
    type = TaskType.HARVEST_WOOD


def harvest_task(ctx: BrainContext, resource: ResourceTarget) -> HarvestResourceTask:
    if resource.category is ResourceCategory.WOOD:
        return HarvestWoodTask(ctx, resource)
    return MineResourceTask(ctx, resource)
