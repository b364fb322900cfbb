import itertools
import threading
import time
from typing import Any, Callable, List, Optional


class TimerHandle:
    """A scheduled callback that can be cancelled until it fires."""

    def __init__(self, deadline: float, callback: Callable[..., Any], args: tuple, seq: int = 0):
        self.deadline = deadline
        self.seq = seq
        self._callback = callback
        self._args = args
        self._lock = threading.Lock()
        self._done = False
        self.cancelled = False

    @property
    def pending(self) -> bool:
        return not (self._done or self.cancelled)

    def cancel(self) -> bool:
        """Cancel the callback. Returns False if it already ran."""
        with self._lock:
            if self._done:
                return False
            self.cancelled = True
            return True

    def fire(self) -> None:
        with self._lock:
            if self._done or self.cancelled:
                return
            self._done = True
        self._callback(*self._args)


class SocketIOScheduler:
    """Runs each timer as a Socket.IO background task.

    Uses ``socketio.sleep`` so timers cooperate with whichever async mode
    the server runs under (threading, eventlet or gevent). The worker
    sleeps in slices of at most ``poll_interval`` seconds and exits early
    once its handle is cancelled.
    """

    def __init__(self, socketio, logger=None, poll_interval: float = 1.0):
        self.socketio = socketio
        self.logger = logger
        self.poll_interval = poll_interval

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(self.now() + delay, callback, args)

        def _worker():
            remaining = delay
            while remaining > 0 and handle.pending:
                step = min(self.poll_interval, remaining)
                self.socketio.sleep(step)
                remaining -= step
            if not handle.pending:
                return
            try:
                handle.fire()
            except Exception:
                if self.logger is not None:
                    self.logger.exception(f"[timer-error] callback={getattr(callback, '__name__', callback)}")
                else:
                    raise

        self.socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    """Virtual-clock scheduler: nothing fires until ``advance`` is called.

    Used when the app runs with TESTING so tests control match time.
    """

    def __init__(self, start: float = 1_000_000.0):
        self._now = start
        self._timers: List[TimerHandle] = []
        self._seq = itertools.count()
        self._lock = threading.RLock()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        with self._lock:
            handle = TimerHandle(self._now + max(0.0, delay), callback, args, seq=next(self._seq))
            self._timers.append(handle)
            return handle

    def pending(self) -> List[TimerHandle]:
        with self._lock:
            return sorted((t for t in self._timers if t.pending), key=lambda t: (t.deadline, t.seq))

    def _next_due(self, target: float) -> Optional[TimerHandle]:
        with self._lock:
            self._timers = [t for t in self._timers if t.pending]
            due = [t for t in self._timers if t.deadline <= target]
            if not due:
                return None
            handle = min(due, key=lambda t: (t.deadline, t.seq))
            self._timers.remove(handle)
            return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due in order.

        Timers scheduled by a firing callback also run if they fall inside
        the window.
        """
        target = self._now + seconds
        while True:
            handle = self._next_due(target)
            if handle is None:
                break
            self._now = max(self._now, handle.deadline)
            handle.fire()
        self._now = target

    def run_all(self, limit: int = 1000) -> None:
        """Fire pending timers until none remain."""
        for _ in range(limit):
            timers = self.pending()
            if not timers:
                return
            self.advance(max(0.0, timers[0].deadline - self._now))
        raise RuntimeError('ManualScheduler.run_all did not settle')
