"""
Title Sink - Publishes the composed status line
Sets the X root window name the way dwm status scripts do
"""
import os
import shutil
import subprocess
import sys
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO


logger = logging.getLogger(__name__)


class SinkUnavailableError(RuntimeError):
    """Raised when the output sink cannot be constructed"""


class TitleSink(ABC):
    """
    Base class for status line outputs.
    """

    @abstractmethod
    def set_title(self, text: str) -> bool:
        """
        Publish a fully composed line.

        Args:
            text: Status line

        Returns:
            True if the line reached the output, False otherwise
        """


class XsetrootSink(TitleSink):
    """
    Root window title sink backed by ``xsetroot -name``.
    """

    def __init__(self, display: Optional[str] = None, timeout: float = 2.0):
        """
        Initialize sink and verify the X display is reachable.

        Args:
            display: X display name (default: $DISPLAY)
            timeout: Seconds to wait for xsetroot

        Raises:
            SinkUnavailableError: If no display or xsetroot binary is found
        """
        self._display = display or os.environ.get('DISPLAY')
        self._timeout = timeout

        if not self._display:
            raise SinkUnavailableError("Cannot open display: DISPLAY is not set")

        self._binary = shutil.which('xsetroot')
        if not self._binary:
            raise SinkUnavailableError("xsetroot not found on PATH")

    def _command(self, text: str) -> List[str]:
        return [self._binary, '-display', self._display, '-name', text]

    def set_title(self, text: str) -> bool:
        try:
            result = subprocess.run(
                self._command(text),
                capture_output=True,
                text=True,
                timeout=self._timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, PermissionError) as e:
            logger.error(f"Failed to set root window name: {e}")
            return False

        if result.returncode != 0:
            logger.error(f"xsetroot exited with {result.returncode}: {result.stderr.strip()}")
            return False
        return True

    @property
    def display(self) -> str:
        """Get X display name"""
        return self._display


class StdoutSink(TitleSink):
    """
    Writes every published line to a stream, one per line.
    Useful for bars that read a pipe and for debugging.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdout

    def set_title(self, text: str) -> bool:
        try:
            self._stream.write(text + '\n')
            self._stream.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write status line: {e}")
            return False
        return True


def create_sink(kind: str = 'xsetroot') -> TitleSink:
    """
    Build the configured sink.

    Args:
        kind: 'xsetroot' or 'stdout'

    Returns:
        TitleSink instance

    Raises:
        SinkUnavailableError: If the sink cannot be constructed
    """
    kind = (kind or 'xsetroot').lower()
    if kind == 'stdout':
        return StdoutSink()
    if kind == 'xsetroot':
        return XsetrootSink()
    raise SinkUnavailableError(f"Unknown sink: {kind}")
