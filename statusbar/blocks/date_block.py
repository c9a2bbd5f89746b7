"""
Date Block - Clock and calendar fragment
Aligns updates to minute boundaries
"""
import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..core.compositor import Compositor, Slot
from ..core.scheduler import Scheduler, TimerTask
from ..ui.theme import Theme


logger = logging.getLogger(__name__)

DAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
          'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def format_date(now: datetime) -> str:
    """
    Render the date fragment.

    Args:
        now: Local time

    Returns:
        Fragment such as " <cal> Mon Jan 5 <sun> 08:05 "
    """
    return (
        f" {Theme.color(Theme.DATE_ICON)}{Theme.GLYPH_CALENDAR}"
        f" {Theme.color(Theme.DATE_TEXT)}{DAYS[now.weekday()]} {MONTHS[now.month - 1]} {now.day}"
        f" {Theme.get_daytime_icon(now.hour)} {now.hour:02d}:{now.minute:02d} "
    )


def seconds_to_next_minute(now: datetime) -> int:
    """Delay that lands just past the next minute boundary"""
    return 60 - now.second + 1


class DateBlock(TimerTask):
    """
    Clock producer with timezone support.
    """

    name = 'date'
    interval = 60.0

    def __init__(
        self,
        scheduler: Scheduler,
        compositor: Compositor,
        timezone: str = '',
        clock: Optional[Callable[[Optional[ZoneInfo]], datetime]] = None
    ):
        """
        Initialize date block.

        Args:
            scheduler: Timer reactor
            compositor: Fragment table
            timezone: IANA timezone string, empty for system local time
            clock: Replacement for datetime.now
        """
        super().__init__(scheduler, compositor)
        self._timezone = timezone
        self._tz_obj: Optional[ZoneInfo] = None
        self._clock = clock or datetime.now
        self._load_timezone()

    def _load_timezone(self) -> None:
        """Load timezone object, fallback to UTC on error"""
        if not self._timezone:
            self._tz_obj = None
            return
        try:
            self._tz_obj = ZoneInfo(self._timezone)
        except (ValueError, KeyError) as e:
            logger.warning(f"Invalid timezone '{self._timezone}', using UTC: {e}")
            self._timezone = 'UTC'
            self._tz_obj = ZoneInfo('UTC')

    def get_current_time(self) -> datetime:
        """Current time in the configured timezone"""
        return self._clock(self._tz_obj)

    def on_fire(self) -> float:
        now = self.get_current_time()
        self._compositor.update(Slot.DATE, format_date(now))
        return seconds_to_next_minute(now)

    @property
    def timezone(self) -> str:
        """Get current timezone string"""
        return self._timezone or 'local'
