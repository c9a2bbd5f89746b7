"""
Compositor - Shared table of block fragments
Renders the joined status line and suppresses duplicate publishes
"""
import logging
import threading
from enum import IntEnum
from typing import List, Optional

from ..ui.theme import Theme
from ..ui.title_sink import TitleSink


logger = logging.getLogger(__name__)

MAX_FRAGMENT_BYTES = 128
MAX_STATUS_BYTES = 1024


class Slot(IntEnum):
    """Block slots; declaration order is render order."""
    WEATHER = 0
    EXCHANGE_RATE = 1
    BATTERY = 2
    MEMORY = 3
    DATE = 4


class FragmentTooLongError(ValueError):
    """Raised when a fragment exceeds MAX_FRAGMENT_BYTES"""

    def __init__(self, slot: Slot, size: int):
        super().__init__(
            f"Fragment for {slot.name} is {size} bytes, limit is {MAX_FRAGMENT_BYTES}"
        )
        self.slot = slot
        self.size = size


class Compositor:
    """
    Multi-producer status line compositor.

    Every producer owns one slot. ``update()`` stores the fragment, renders
    the full line and forwards it to the sink only when it differs from the
    line currently shown. The whole sequence runs under a single lock, so
    publishes are totally ordered and the last published line always
    reflects the latest fragment of every slot.
    """

    def __init__(
        self,
        sink: TitleSink,
        left: Optional[str] = None,
        right: Optional[str] = None
    ):
        """
        Initialize compositor.

        Args:
            sink: Output receiving every changed line
            left: Left decoration (default: coloured '[')
            right: Right decoration (default: coloured ']')
        """
        self._sink = sink
        self._left = Theme.left_border() if left is None else left
        self._right = Theme.right_border() if right is None else right

        reserved = len(self._left.encode('utf-8')) + len(self._right.encode('utf-8'))
        if reserved + MAX_FRAGMENT_BYTES * len(Slot) > MAX_STATUS_BYTES:
            raise ValueError("Borders leave no room for all fragments")

        self._lock = threading.Lock()
        self._fragments: List[str] = [''] * len(Slot)
        self._published: Optional[str] = None

    def update(self, slot: Slot, text: str) -> bool:
        """
        Replace the fragment of a slot and publish if the line changed.

        Args:
            slot: Slot owned by the caller
            text: New fragment, empty to hide the block

        Returns:
            True if the sink received a new line

        Raises:
            ValueError: Unknown slot
            FragmentTooLongError: Fragment over MAX_FRAGMENT_BYTES; state is unchanged
        """
        slot = Slot(slot)
        size = len(text.encode('utf-8'))
        if size > MAX_FRAGMENT_BYTES:
            raise FragmentTooLongError(slot, size)

        with self._lock:
            self._fragments[slot] = text
            line = self._render_locked()
            if line == self._published:
                return False

            if not self._sink.set_title(line):
                # Leave _published alone so the next update retries
                return False

            self._published = line
            logger.debug(f"Published status line ({len(line)} chars)")
            return True

    def _render_locked(self) -> str:
        return self._left + ''.join(f for f in self._fragments if f) + self._right

    def render(self) -> str:
        """Render the line from the current fragments"""
        with self._lock:
            return self._render_locked()

    def fragment(self, slot: Slot) -> str:
        """Get the current fragment of a slot"""
        with self._lock:
            return self._fragments[Slot(slot)]

    @property
    def published(self) -> Optional[str]:
        """Last line accepted by the sink, None before the first publish"""
        with self._lock:
            return self._published
