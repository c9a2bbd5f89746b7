"""
Memory Block - Used RAM fragment
"""
import logging
from pathlib import Path
from typing import Union

from ..core.compositor import Compositor, Slot
from ..core.scheduler import Scheduler, TimerTask
from ..hardware.meminfo import read_meminfo, used_kilobytes
from ..ui.theme import Theme


logger = logging.getLogger(__name__)


def format_memory(used_kb: int) -> str:
    """Render used memory in GB with one decimal"""
    return f"{Theme.color(Theme.MEMORY)} {Theme.GLYPH_MEMORY} {used_kb / 1000.0 / 1000.0:.1f}GB"


class MemoryBlock(TimerTask):
    """
    Polls memory counters on a fixed cadence.
    A failed read skips the cycle and keeps the previous fragment.
    """

    name = 'memory'

    def __init__(
        self,
        scheduler: Scheduler,
        compositor: Compositor,
        path: Union[str, Path] = '/proc/meminfo',
        interval: float = 5.0
    ):
        super().__init__(scheduler, compositor)
        self._path = path
        self.interval = interval

    def on_fire(self) -> float:
        try:
            values = read_meminfo(self._path)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping memory update: {e}")
            return self.interval

        self._compositor.update(Slot.MEMORY, format_memory(used_kilobytes(values)))
        return self.interval
