"""
Power Supply - Battery sensor access
Sysfs reads, udev event subscription and the self-pipe used to wake
a blocking poll from another thread
"""
import os
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pyudev


logger = logging.getLogger(__name__)

EVENT_PROPERTIES = (
    'POWER_SUPPLY_CAPACITY',
    'POWER_SUPPLY_STATUS',
    'POWER_SUPPLY_ONLINE',
)


def read_sysfs_value(path: Union[str, Path]) -> Optional[str]:
    """
    Read a one-line sysfs attribute.

    Args:
        path: Attribute file

    Returns:
        Stripped value, or None if missing/unreadable/empty
    """
    try:
        value = Path(path).read_text().strip()
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return None
    return value or None


def read_battery(battery_path: Union[str, Path]) -> Tuple[Optional[str], Optional[str]]:
    """
    Read capacity and charging status of a battery.

    Args:
        battery_path: Directory such as /sys/class/power_supply/BAT0

    Returns:
        Tuple of (capacity, status), None for unavailable values
    """
    battery_path = Path(battery_path)
    return (
        read_sysfs_value(battery_path / 'capacity'),
        read_sysfs_value(battery_path / 'status'),
    )


class Wakeup:
    """
    Self-pipe used as a cancellation descriptor.

    The read end is pollable; ``signal()`` may be called from any thread.
    """

    def __init__(self):
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        os.set_blocking(self._write_fd, False)
        self._closed = False

    def fileno(self) -> int:
        """Read end for poll()"""
        return self._read_fd

    def signal(self) -> None:
        """Make the read end readable"""
        try:
            os.write(self._write_fd, b'\x01')
        except BlockingIOError:
            # Pipe full, reader is already woken
            pass

    def drain(self) -> None:
        """Consume pending wakeups"""
        try:
            while os.read(self._read_fd, 64):
                pass
        except BlockingIOError:
            pass

    def close(self) -> None:
        """Close both ends. Idempotent."""
        if self._closed:
            return
        self._closed = True
        os.close(self._read_fd)
        os.close(self._write_fd)


class UdevPowerSupplySource:
    """
    Subscription to power_supply uevents over netlink.
    """

    def __init__(self, subsystem: str = 'power_supply'):
        """
        Create and start the udev monitor.

        Args:
            subsystem: Device class to receive events for

        Raises:
            OSError: If the netlink socket cannot be opened
        """
        self._context = pyudev.Context()
        self._monitor = pyudev.Monitor.from_netlink(self._context)
        self._monitor.filter_by(subsystem=subsystem)
        self._monitor.start()

    def fileno(self) -> int:
        """Netlink socket for poll()"""
        return self._monitor.fileno()

    def receive(self) -> Optional[Dict[str, str]]:
        """
        Receive one pending event without blocking.

        Returns:
            Power supply properties present on the event, or None
        """
        device = self._monitor.poll(timeout=0)
        if device is None:
            return None

        properties = device.properties
        return {
            key: properties[key]
            for key in EVENT_PROPERTIES
            if key in properties
        }

    def close(self) -> None:
        """Release the subscription. Idempotent."""
        # pyudev unrefs the libudev monitor and its socket on collection
        self._monitor = None
        self._context = None
