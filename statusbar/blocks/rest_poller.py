"""
REST Poller - Cached polling of a JSON API
Fetch, format, publish, persist, reschedule
"""
import logging
import time
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from ..core.cache_store import CachedValue, SidecarCache
from ..core.compositor import Compositor, Slot
from ..core.scheduler import Scheduler, TimerTask


logger = logging.getLogger(__name__)


@dataclass
class RestRequest:
    """URL and query parameters of one fetch."""
    url: str
    params: Dict[str, Any] = field(default_factory=dict)


class CachedRestPoller(TimerTask):
    """
    Base class for blocks backed by a rate-limited JSON API.

    Subclasses provide ``build_request()`` and ``format_result()``. The last
    rendered fragment is kept in a sidecar cache so that a restart within
    the refresh interval shows the cached value and waits for the remaining
    time instead of fetching again.

    One request per cycle: a failure is logged, the previous fragment stays
    on screen and the next attempt happens a full interval later.
    """

    name = 'rest'

    def __init__(
        self,
        scheduler: Scheduler,
        compositor: Compositor,
        slot: Slot,
        cache: SidecarCache,
        interval: float = 3600,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize poller and load the cached value.

        Args:
            scheduler: Timer reactor
            compositor: Fragment table
            slot: Slot owned by this block
            cache: Sidecar cache file
            interval: Seconds between fetches
            timeout: HTTP timeout in seconds
            session: requests session (default: new session)
            clock: Wall clock for cache ages
        """
        super().__init__(scheduler, compositor)
        self._slot = slot
        self._cache = cache
        self.interval = interval
        self._timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

        self._request: Optional[RestRequest] = None
        self._last_error: Optional[str] = None
        self._cached = self._cache.load()

        if self._cached.synced:
            logger.info(
                f"Last {self.name} fetch: {self._cached.text!r}, "
                f"{int(self._cached.age(self._clock()))} seconds ago"
            )

    @abstractmethod
    def build_request(self) -> Optional[RestRequest]:
        """
        Build the request from configuration.

        Returns:
            RestRequest, or None if required settings are missing
        """

    @abstractmethod
    def format_result(self, payload: Any) -> str:
        """
        Render a decoded JSON payload.

        Raises:
            KeyError, ValueError, TypeError: Malformed payload
        """

    def start(self) -> None:
        """
        Show a fresh cached value or schedule an immediate fetch.
        Does nothing if the block is not configured.
        """
        self._request = self.build_request()
        if self._request is None:
            logger.info(f"{self.name} block disabled: not configured")
            return

        with self._lock:
            self._cancelled = False

        self._arm(self.initial_delay())

    def initial_delay(self) -> float:
        """
        Publish the cached fragment if still fresh.

        Returns:
            Seconds until the first fetch
        """
        age = self._cached.age(self._clock())
        if not self._cached.synced or not self._cached.text or not 0 <= age < self.interval:
            return 0

        try:
            self._compositor.update(self._slot, self._cached.text)
        except ValueError as e:
            logger.warning(f"Ignoring cached {self.name} fragment: {e}")
            return 0

        wait_for = self.interval - age
        logger.info(f"{self.name} block will be updated in {int(wait_for)} seconds")
        return wait_for

    def on_fire(self) -> float:
        self.fetch()
        return self.interval

    def fetch(self) -> bool:
        """
        Perform one request and publish the result.

        Returns:
            True if a new fragment was published and cached
        """
        if self._request is None:
            self._request = self.build_request()
            if self._request is None:
                return False

        try:
            response = self._session.get(
                self._request.url,
                params=self._request.params,
                timeout=self._timeout
            )
            response.raise_for_status()
            text = self.format_result(response.json())
            self._compositor.update(self._slot, text)

        except requests.exceptions.Timeout:
            return self._fail("request timed out")
        except requests.exceptions.HTTPError as e:
            return self._fail(f"HTTP error: {e}")
        except requests.exceptions.RequestException as e:
            return self._fail(f"request failed: {e}")
        except (KeyError, ValueError, TypeError) as e:
            return self._fail(f"error parsing response: {e}")

        self._last_error = None
        self._cached = CachedValue(text=text, timestamp=int(self._clock()))
        self._cache.store(self._cached)
        logger.debug(f"{self.name} updated: {text!r}")
        return True

    def _fail(self, reason: str) -> bool:
        self._last_error = reason
        logger.error(f"{self.name} fetch failed, {reason}")
        return False

    @property
    def enabled(self) -> bool:
        """Check if the block is configured"""
        return self.build_request() is not None

    @property
    def cached(self) -> CachedValue:
        """Last successfully fetched value"""
        return self._cached

    @property
    def last_error(self) -> Optional[str]:
        """Get last error message"""
        return self._last_error
