"""
Shutdown Coordinator - Ordered teardown on SIGINT/SIGTERM
"""
import logging
import threading
from typing import List, Optional

from .scheduler import Scheduler, TimerTask


logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """
    Cancels every timer producer, wakes the blocking device monitor and
    drains the monitor thread and the worker pool.

    ``request()`` only sets an event and is safe to call from a signal
    handler; the owner calls ``shutdown()`` once ``wait()`` returns.
    """

    def __init__(self, scheduler: Scheduler, join_timeout: float = 5.0):
        self._scheduler = scheduler
        self._join_timeout = join_timeout

        self._tasks: List[TimerTask] = []
        self._monitor = None
        self._monitor_thread: Optional[threading.Thread] = None

        self._requested = threading.Event()
        self._done = False
        self._lock = threading.Lock()

    def add_task(self, task: TimerTask) -> None:
        """Register a timer producer for cancellation"""
        self._tasks.append(task)

    def set_monitor(self, monitor, thread: threading.Thread) -> None:
        """
        Register the device monitor and the thread running it.

        Args:
            monitor: Object with a stop() method
            thread: Thread blocked in monitor.run()
        """
        self._monitor = monitor
        self._monitor_thread = thread

    def request(self, signum: Optional[int] = None) -> None:
        """Ask for shutdown; safe from signal handlers"""
        if signum is not None:
            logger.info(f"Received signal {signum}, shutting down")
        self._requested.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until shutdown is requested.

        Returns:
            True if requested, False on timeout
        """
        return self._requested.wait(timeout)

    @property
    def requested(self) -> bool:
        """Check if shutdown was requested"""
        return self._requested.is_set()

    def shutdown(self) -> bool:
        """
        Tear everything down in order. Idempotent.

        Returns:
            True if the monitor thread exited within the join timeout
        """
        with self._lock:
            if self._done:
                return True
            self._done = True

        self._requested.set()

        for task in self._tasks:
            task.cancel()
        logger.debug(f"Cancelled {len(self._tasks)} timer tasks")

        clean = True
        if self._monitor is not None:
            self._monitor.stop()
        if self._monitor_thread is not None:
            self._monitor_thread.join(self._join_timeout)
            if self._monitor_thread.is_alive():
                logger.error("Battery monitor thread did not exit in time")
                clean = False

        self._scheduler.stop(wait=True)
        return clean
