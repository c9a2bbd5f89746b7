"""
Cache Store - Last-value sidecar files for REST-backed blocks
"""
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedValue:
    """Last rendered fragment and the unix time it was fetched."""
    text: str = ''
    timestamp: int = 0

    @property
    def synced(self) -> bool:
        """Check if the block was ever fetched successfully"""
        return self.timestamp != 0

    def age(self, now: float) -> float:
        """Seconds since the last successful fetch"""
        return now - self.timestamp


class SidecarCache:
    """
    Two-line cache file: rendered fragment, then unix timestamp.
    A missing or unreadable file means "never synced".
    """

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: Cache file location
        """
        self._path = Path(path).expanduser()

    def load(self) -> CachedValue:
        """
        Read the cached value.

        Returns:
            CachedValue, timestamp 0 if missing or malformed
        """
        try:
            lines = self._path.read_text(encoding='utf-8').splitlines()
        except FileNotFoundError:
            logger.debug(f"No cache at {self._path}")
            return CachedValue()
        except OSError as e:
            logger.warning(f"Failed to read cache {self._path}: {e}")
            return CachedValue()

        if len(lines) < 2:
            logger.warning(f"Ignoring truncated cache {self._path}")
            return CachedValue()

        try:
            timestamp = int(lines[1].strip())
        except ValueError:
            logger.warning(f"Ignoring cache {self._path}: bad timestamp {lines[1]!r}")
            return CachedValue()

        return CachedValue(text=lines[0], timestamp=timestamp)

    def store(self, value: CachedValue) -> bool:
        """
        Persist value atomically.

        Args:
            value: Fragment and fetch time

        Returns:
            True if written, False on I/O error
        """
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                dir=str(self._path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(f"{value.text}\n{value.timestamp}\n")
            os.replace(tmp_name, self._path)
            tmp_name = None
            return True
        except OSError as e:
            logger.warning(f"Failed to write cache {self._path}: {e}")
            return False
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    @property
    def path(self) -> Path:
        """Cache file location"""
        return self._path


def default_cache_dir() -> Path:
    """$XDG_CACHE_HOME/statusbar, falling back to ~/.cache/statusbar"""
    base = os.environ.get('XDG_CACHE_HOME') or str(Path.home() / '.cache')
    return Path(base) / 'statusbar'
