"""
Scheduler - Rescheduling timers on a small worker pool
One dispatcher thread orders pending timers; a thread pool runs them
"""
import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from .compositor import Compositor


logger = logging.getLogger(__name__)


class SchedulerStoppedError(RuntimeError):
    """Raised when arming a timer on a stopped scheduler"""


class PendingTimer:
    """
    Handle for one scheduled callback.
    Fires at most once; cancel() is idempotent.
    """

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self._deadline = deadline
        self._callback = callback
        self._cancelled = False
        self._dispatched = False
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """
        Cancel the timer.

        Returns:
            True if the callback had not been dispatched yet
        """
        with self._lock:
            self._cancelled = True
            return not self._dispatched

    def _claim(self) -> bool:
        """Mark as dispatched unless already cancelled"""
        with self._lock:
            if self._cancelled or self._dispatched:
                return False
            self._dispatched = True
            return True

    def _run(self) -> None:
        try:
            self._callback()
        except Exception:
            logger.exception("Timer callback raised")

    @property
    def deadline(self) -> float:
        """Monotonic time the timer is due"""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """Check if cancel() was called"""
        return self._cancelled


class Scheduler:
    """
    Timer reactor shared by every time-driven producer.

    A single dispatcher thread sleeps until the earliest deadline and hands
    due callbacks to a ThreadPoolExecutor. Callbacks run to completion, but
    two different callbacks may run at the same time on different workers,
    so task bodies must bound their own blocking time.
    """

    def __init__(self, max_workers: int = 2, clock: Callable[[], float] = time.monotonic):
        """
        Initialize scheduler.

        Args:
            max_workers: Worker threads executing callbacks
            clock: Monotonic time source
        """
        self._max_workers = max_workers
        self._clock = clock

        self._queue: List[Tuple[float, int, PendingTimer]] = []
        self._sequence = itertools.count()
        self._condition = threading.Condition()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._stopped = False

    def start(self) -> None:
        """Start dispatcher thread and worker pool"""
        with self._condition:
            if self._running:
                return
            if self._stopped:
                raise SchedulerStoppedError("Scheduler cannot be restarted")

            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix='statusbar-worker'
            )
            self._running = True
            self._thread = threading.Thread(
                target=self._dispatch_loop,
                name='statusbar-reactor',
                daemon=True
            )
            self._thread.start()
        logger.debug(f"Scheduler started with {self._max_workers} workers")

    def call_later(self, delay: float, callback: Callable[[], None]) -> PendingTimer:
        """
        Schedule callback after delay seconds.

        Args:
            delay: Seconds from now, negative values are treated as 0
            callback: Function run on a worker thread

        Returns:
            PendingTimer handle

        Raises:
            SchedulerStoppedError: If stop() was already called
        """
        timer = PendingTimer(self._clock() + max(0.0, delay), callback)
        with self._condition:
            if self._stopped:
                raise SchedulerStoppedError("Scheduler is stopped")
            heapq.heappush(self._queue, (timer.deadline, next(self._sequence), timer))
            self._condition.notify()
        return timer

    def _dispatch_loop(self) -> None:
        with self._condition:
            while self._running:
                if not self._queue:
                    self._condition.wait()
                    continue

                deadline, _, timer = self._queue[0]
                if timer.cancelled:
                    heapq.heappop(self._queue)
                    continue

                remaining = deadline - self._clock()
                if remaining > 0:
                    self._condition.wait(remaining)
                    continue

                heapq.heappop(self._queue)
                if timer._claim():
                    self._executor.submit(timer._run)

    def stop(self, wait: bool = True) -> None:
        """
        Stop dispatching, drop pending timers and shut down the pool.

        Args:
            wait: Wait for in-flight callbacks to finish
        """
        with self._condition:
            if self._stopped:
                return
            self._stopped = True
            self._running = False
            for _, _, timer in self._queue:
                timer.cancel()
            self._queue.clear()
            self._condition.notify_all()

        if self._thread:
            self._thread.join()
            self._thread = None
        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.debug("Scheduler stopped")

    def pending_count(self) -> int:
        """Number of timers waiting to fire"""
        with self._condition:
            return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    @property
    def running(self) -> bool:
        """Check if the dispatcher is running"""
        return self._running


class TimerTask(ABC):
    """
    Producer driven by the scheduler.

    ``on_fire()`` computes a fragment, publishes it and returns the delay
    until the next run; the task rearms itself after every execution until
    cancelled.
    """

    name = 'task'
    interval: float = 60.0

    def __init__(self, scheduler: Scheduler, compositor: Compositor):
        self._scheduler = scheduler
        self._compositor = compositor
        self._pending: Optional[PendingTimer] = None
        self._cancelled = False
        self._lock = threading.Lock()

    def start(self) -> None:
        """Run once synchronously, then arm the next run"""
        with self._lock:
            self._cancelled = False
        self._arm(self._execute())

    def cancel(self) -> None:
        """Abort the pending timer and stop rearming"""
        with self._lock:
            self._cancelled = True
            pending, self._pending = self._pending, None
        if pending:
            pending.cancel()

    @abstractmethod
    def on_fire(self) -> float:
        """
        Produce and publish one fragment.

        Returns:
            Seconds until the next run
        """

    def _execute(self) -> float:
        try:
            return self.on_fire()
        except Exception:
            logger.exception(f"{self.name} task failed, retrying in {self.interval}s")
            return self.interval

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._pending = None
        self._arm(self._execute())

    def _arm(self, delay: float) -> None:
        with self._lock:
            if self._cancelled:
                return
            try:
                self._pending = self._scheduler.call_later(delay, self._fire)
            except SchedulerStoppedError:
                logger.debug(f"{self.name} not rearmed, scheduler stopped")
                self._pending = None

    @property
    def armed(self) -> bool:
        """Check if a run is pending"""
        with self._lock:
            return self._pending is not None
