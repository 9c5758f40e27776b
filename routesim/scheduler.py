from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
import heapq
import itertools


class Scheduler(ABC):
    """Minimal timer interface used by the flood driver.

    Implementations must never block: ``call_later`` only registers the
    callback and returns a handle that ``cancel`` accepts.
    """

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        raise NotImplementedError

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        raise NotImplementedError


@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualScheduler(Scheduler):
    """Virtual clock; time only moves when ``advance`` is called."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[_Timer] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(due=self.now + max(0.0, float(delay)), seq=next(self._seq), callback=callback)
        heapq.heappush(self._queue, timer)
        return timer

    def cancel(self, handle: Optional[_Timer]) -> None:
        if handle is not None:
            handle.cancelled = True

    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order. Returns how many fired."""
        target = self.now + max(0.0, float(seconds))
        fired = 0
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now = timer.due
            timer.callback()
            fired += 1
        self.now = target
        return fired

    def run_all(self, limit: int = 10000) -> int:
        """Fire everything queued, including callbacks scheduled while running."""
        fired = 0
        while fired < limit:
            live = [t for t in self._queue if not t.cancelled]
            if not live:
                break
            fired += self.advance(min(t.due for t in live) - self.now)
        return fired


class TkScheduler(Scheduler):
    """Adapter over a Tk widget's ``after`` / ``after_cancel``."""

    def __init__(self, widget: Any):
        self.widget = widget

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        return self.widget.after(int(delay * 1000), callback)

    def cancel(self, handle: Any) -> None:
        if handle is None:
            return
        try:
            self.widget.after_cancel(handle)
        except Exception:
            # Tk raises once the job already ran or the widget is gone.
            pass
