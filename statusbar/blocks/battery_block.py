"""
Battery Block - Event-driven battery fragment
Blocks on udev power_supply events on a dedicated thread
"""
import logging
import re
import select
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from ..core.compositor import Compositor, Slot
from ..hardware.power_supply import UdevPowerSupplySource, Wakeup, read_battery
from ..ui.theme import Theme


logger = logging.getLogger(__name__)

PLACEHOLDER = '---'
CHARGING = 'Charging'

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_capacity(capacity: Optional[str]) -> int:
    """
    Parse a capacity string the lenient way sysfs values need.

    Args:
        capacity: e.g. "87" or "87\\n"

    Returns:
        Leading integer, 0 if there is none
    """
    if not capacity:
        return 0
    match = _LEADING_INT.match(capacity)
    return int(match.group(1)) if match else 0


def battery_bucket(capacity: Optional[str]) -> int:
    """Icon bucket 0..4 for a capacity string"""
    return Theme.get_battery_bucket(parse_capacity(capacity))


def format_battery(capacity: Optional[str], bolt: str = '') -> str:
    """
    Render the battery fragment.

    Args:
        capacity: Capacity percentage, None when unknown
        bolt: Charging suffix or empty string

    Returns:
        Fragment such as "<icon>87%<bolt>"
    """
    if capacity is None:
        glyph = Theme.BATTERY_LEVELS[0][1]
        return f"{Theme.color(Theme.FG_DIM)} {glyph} {PLACEHOLDER}%{bolt}"
    return f"{Theme.get_battery_icon(battery_bucket(capacity))}{capacity}%{bolt}"


class BatteryMonitor:
    """
    Device event monitor for the battery slot.

    ``run()`` blocks in poll() over a udev subscription and a self-pipe.
    ``stop()`` may be called from any thread: it writes to the pipe once
    and returns without waiting. The owner joins the thread running
    ``run()`` to know the loop has exited.

    "Charging" alone is ambiguous, so the bolt is shown only while the
    AC adapter is reported online.
    """

    def __init__(
        self,
        compositor: Compositor,
        battery_path: Union[str, Path] = '/sys/class/power_supply/BAT0',
        source_factory: Callable[[], UdevPowerSupplySource] = UdevPowerSupplySource
    ):
        """
        Initialize battery monitor.

        Args:
            compositor: Fragment table
            battery_path: sysfs directory of the battery
            source_factory: Creates the event subscription
        """
        self._compositor = compositor
        self._battery_path = Path(battery_path)
        self._source_factory = source_factory

        self._level: Optional[str] = None
        self._bolt = ''
        self._ac_online = False

        self._lock = threading.Lock()
        self._running = False
        self._stopping = False
        self._wakeup: Optional[Wakeup] = None
        self._started = threading.Event()

    def init(self) -> str:
        """
        Seed the fragment from sysfs before any event arrives.

        Returns:
            Published fragment
        """
        capacity, status = read_battery(self._battery_path)
        if capacity is None:
            logger.warning(f"Battery capacity unavailable at {self._battery_path}")

        self._level = capacity
        if status == CHARGING:
            self._ac_online = True
            self._bolt = Theme.get_bolt()
        else:
            self._bolt = ''
        return self._publish()

    def handle_event(self, properties: Dict[str, str]) -> Optional[str]:
        """
        Apply one power_supply event.

        Args:
            properties: POWER_SUPPLY_* values present on the event

        Returns:
            Published fragment, or None if the event carried nothing to show
        """
        online = properties.get('POWER_SUPPLY_ONLINE')
        status = properties.get('POWER_SUPPLY_STATUS')
        capacity = properties.get('POWER_SUPPLY_CAPACITY')

        if online is not None:
            self._ac_online = online.strip() == '1'
        if status is not None:
            self._bolt = Theme.get_bolt() if self._ac_online and status.strip() == CHARGING else ''
        if capacity is not None:
            self._level = capacity.strip()

        if capacity is None and status is None:
            return None
        return self._publish()

    def _publish(self) -> str:
        fragment = format_battery(self._level, self._bolt)
        try:
            self._compositor.update(Slot.BATTERY, fragment)
        except ValueError as e:
            logger.error(f"Rejected battery fragment: {e}")
        return fragment

    def run(self) -> None:
        """
        Seed the fragment and process events until stop() is called.
        Can be called again once a previous run has returned.
        """
        with self._lock:
            if self._running:
                logger.warning("Battery monitor is already running")
                return
            self._running = True
            self._stopping = False
            self._wakeup = Wakeup()
            wakeup = self._wakeup
            self._started.set()

        try:
            self.init()
            try:
                source = self._source_factory()
            except (OSError, ImportError) as e:
                # ImportError: pyudev loads libudev lazily in Context()
                logger.error(f"Cannot subscribe to power_supply events: {e}")
                return

            try:
                self._monitor_loop(source, wakeup)
            finally:
                source.close()
        finally:
            with self._lock:
                wakeup.close()
                self._wakeup = None
                self._running = False
                self._stopping = False
                self._started.clear()
            logger.info("Battery monitor stopped")

    def _monitor_loop(self, source, wakeup: Wakeup) -> None:
        poller = select.poll()
        poller.register(source.fileno(), select.POLLIN)
        poller.register(wakeup.fileno(), select.POLLIN)

        while True:
            ready = dict(poller.poll())

            if wakeup.fileno() in ready:
                wakeup.drain()
                logger.info("Battery monitor received stop request")
                return

            mask = ready.get(source.fileno(), 0)
            if mask & (select.POLLERR | select.POLLHUP | select.POLLNVAL):
                logger.error("power_supply event source closed")
                return
            if mask & select.POLLIN:
                while (properties := source.receive()) is not None:
                    self.handle_event(properties)

    def stop(self) -> bool:
        """
        Request the loop to exit. Returns immediately.

        Returns:
            True if this call signalled the loop, False if not running
            or already stopping
        """
        with self._lock:
            if not self._running or self._stopping:
                return False
            self._stopping = True
            self._wakeup.signal()
        return True

    def wait_running(self, timeout: Optional[float] = None) -> bool:
        """Wait until run() has armed its wakeup, after which stop() is effective"""
        return self._started.wait(timeout)

    @property
    def running(self) -> bool:
        """Check if run() is active"""
        with self._lock:
            return self._running

    @property
    def ac_online(self) -> bool:
        """Last known AC adapter state"""
        return self._ac_online
