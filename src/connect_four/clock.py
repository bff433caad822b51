"""
Time source for voting deadlines.

The turn manager never reads the system time directly: it gets a Clock, so tests can drive time by hand with FakeClock.
All times are epoch milliseconds.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

TimerCallback = Callable[[], None]


class Clock(Protocol):
    def now(self) -> int: ...

    def set_timeout(self, callback: TimerCallback, delay_ms: int) -> Any: ...

    def clear_timeout(self, handle: Any) -> None: ...


class SystemClock:
    """Wall clock time, one-shot deadlines on daemon timer threads."""

    def now(self) -> int:
        return int(time.time() * 1000)

    def set_timeout(self, callback: TimerCallback, delay_ms: int) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0) / 1000, callback)
        timer.daemon = True
        timer.start()
        return timer

    def clear_timeout(self, handle: threading.Timer) -> None:
        handle.cancel()


@dataclass
class _ScheduledTimeout:
    id: int
    trigger_time: int
    callback: TimerCallback


class FakeClock:
    """Virtual time. Nothing happens until `tick` moves the clock forward."""

    def __init__(self, start_time: int = 0) -> None:
        self.current_time = start_time
        self._timeouts: list[_ScheduledTimeout] = []
        self._next_id = 1

    def now(self) -> int:
        return self.current_time

    def set_timeout(self, callback: TimerCallback, delay_ms: int) -> int:
        timeout_id = self._next_id
        self._next_id += 1
        self._timeouts.append(_ScheduledTimeout(timeout_id, self.current_time + delay_ms, callback))
        # stable sort: timeouts with the same trigger time fire in scheduling order
        self._timeouts.sort(key=lambda t: t.trigger_time)
        return timeout_id

    def clear_timeout(self, handle: int) -> None:
        self._timeouts = [t for t in self._timeouts if t.id != handle]

    # -- test helpers --
    def set_time(self, time_ms: int) -> None:
        self.current_time = time_ms

    def tick(self, milliseconds: int) -> None:
        """Advance time, firing every timeout that falls due on the way (at its own trigger time)."""
        target_time = self.current_time + milliseconds
        while self._timeouts and self._timeouts[0].trigger_time <= target_time:
            timeout = self._timeouts.pop(0)
            self.current_time = timeout.trigger_time
            timeout.callback()
        self.current_time = target_time

    def has_scheduled_timeouts(self) -> bool:
        return len(self._timeouts) > 0

    def next_timeout_time(self) -> int | None:
        return self._timeouts[0].trigger_time if self._timeouts else None
