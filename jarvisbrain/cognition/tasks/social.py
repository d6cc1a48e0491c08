from __future__ import annotations

from ...logging_utils import log_info
from ..state import BrainContext
from ..task import Task, TaskType


class SocializeTask(Task):
    """One-shot: say a line in chat. Never becomes the current task."""

    type = TaskType.SOCIALIZE

    def __init__(self, ctx: BrainContext, line: str) -> None:
        super().__init__(ctx, line)

    def continue_predicate(self) -> bool:
        return False

    def _engage(self) -> None:
        line = (self.target or "").strip()
        if not line:
            return
        self.ctx.safe.chat(line)
        log_info(f"Said: {line}")
