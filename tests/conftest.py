"""
Pytest Configuration for statusbar Tests
=========================================

Provides fakes for the output sink, the scheduler and the udev source.
"""

import os
import sys
import threading
from collections import deque

import pytest

# Add package to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from statusbar.core.compositor import Compositor
from statusbar.ui.title_sink import TitleSink


class RecordingSink(TitleSink):
    """Sink that records every published line."""

    def __init__(self, accept=True):
        self.lines = []
        self.accept = accept
        self._lock = threading.Lock()

    def set_title(self, text):
        with self._lock:
            self.lines.append(text)
        return self.accept


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        return True


class FakeScheduler:
    """Records armed timers instead of running them."""

    def __init__(self):
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def delays(self):
        return [timer.delay for timer in self.timers]

    def fire_next(self):
        """Run the most recently armed, uncancelled timer."""
        timer = self.timers[-1]
        assert not timer.cancelled
        timer.callback()
        return timer


class FakeEventSource:
    """Pipe-backed stand-in for UdevPowerSupplySource."""

    def __init__(self):
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        self._events = deque()
        self._lock = threading.Lock()
        self.closed = False

    def push(self, properties):
        with self._lock:
            self._events.append(properties)
        os.write(self._write_fd, b'e')

    def fileno(self):
        return self._read_fd

    def receive(self):
        try:
            os.read(self._read_fd, 1)
        except BlockingIOError:
            return None
        with self._lock:
            return self._events.popleft() if self._events else None

    def close(self):
        self.closed = True
        os.close(self._read_fd)
        os.close(self._write_fd)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def plain_compositor(sink):
    """Compositor with bare '[' / ']' borders."""
    return Compositor(sink, left='[', right=']')


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()
