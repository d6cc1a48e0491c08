"""Timer bookkeeping for every callback the brain schedules.

Tasks run their internal loops (attack swings, stroll pumps, look-arounds) as
chains of one-shot timers. All of them go through a single
:class:`TimerRegistry` so a task switch, a pause, a death or a disconnect can
cancel every outstanding callback deterministically.

A :class:`TimerBucket` groups the timers of one owner and doubles as that
owner's cancellation token: once a bucket is cancelled nothing new can be
scheduled into it and anything already queued is skipped.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Protocol, Set

from .logging_utils import log_warn


class _Cancellable(Protocol):
    def cancel(self) -> Any:
        ...


CallLater = Callable[[float, Callable[[], None]], _Cancellable]
"""``(delay_seconds, callback) -> handle``, the shape of ``loop.call_later``."""


class TimerBucket:
    """Timers owned by one task (or layer), plus its cancellation flag."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cancelled = False
        self._handles: Set["TimerHandle"] = set()

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        return handle in self._handles

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "live"
        return f"TimerBucket({self.name!r}, {state}, pending={len(self._handles)})"


class TimerHandle:
    """One scheduled callback."""

    __slots__ = ("bucket", "cancelled", "fired", "_inner")

    def __init__(self, bucket: Optional[TimerBucket]) -> None:
        self.bucket = bucket
        self.cancelled = False
        self.fired = False
        self._inner: Optional[_Cancellable] = None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class TimerRegistry:
    """Registry of every pending timer for one brain instance."""

    def __init__(self, call_later: Optional[CallLater] = None) -> None:
        self._call_later = call_later
        self._handles: Set[TimerHandle] = set()

    @property
    def pending_count(self) -> int:
        return len(self._handles)

    def _scheduler(self) -> CallLater:
        if self._call_later is not None:
            return self._call_later
        return asyncio.get_running_loop().call_later

    def schedule(
        self,
        delay_ms: float,
        callback: Callable[[], Any],
        bucket: Optional[TimerBucket] = None,
    ) -> Optional[TimerHandle]:
        """Run ``callback`` after ``delay_ms``. Returns None if ``bucket`` is cancelled."""
        if bucket is not None and bucket.cancelled:
            return None

        handle = TimerHandle(bucket)

        def fire() -> None:
            self._forget(handle)
            if handle.cancelled or (bucket is not None and bucket.cancelled):
                return
            handle.fired = True
            try:
                callback()
            except Exception as exc:
                label = bucket.name if bucket is not None else "timer"
                log_warn(f"Scheduled callback in {label} failed: {exc}")

        handle._inner = self._scheduler()(max(0.0, delay_ms) / 1000.0, fire)
        self._handles.add(handle)
        if bucket is not None:
            bucket._handles.add(handle)
        return handle

    def _forget(self, handle: TimerHandle) -> None:
        self._handles.discard(handle)
        if handle.bucket is not None:
            handle.bucket._handles.discard(handle)

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is None or not handle.active:
            return
        handle.cancelled = True
        if handle._inner is not None:
            handle._inner.cancel()
        self._forget(handle)

    def cancel_bucket(self, bucket: TimerBucket) -> None:
        """Cancel every timer in ``bucket`` and mark the bucket as cancelled."""
        bucket.cancelled = True
        for handle in list(bucket._handles):
            self.cancel(handle)
        bucket._handles.clear()

    def cancel_all(self) -> None:
        """Cancel every pending timer regardless of bucket."""
        for handle in list(self._handles):
            self.cancel(handle)
        self._handles.clear()


__all__ = ["TimerBucket", "TimerHandle", "TimerRegistry", "CallLater"]
