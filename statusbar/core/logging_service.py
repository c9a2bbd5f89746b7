"""
Logging Service - stderr logging for the daemon
Module loggers (logging.getLogger(__name__)) propagate to the 'statusbar' logger
"""
import sys
import logging
from typing import Optional


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ('urllib3', 'pyudev')


class LoggingService:
    """
    Configures the package logger once at startup.

    Output goes to stderr: stdout may carry the status line itself when
    the stdout sink is selected.
    """

    def __init__(self, name: str = 'statusbar', level: str = 'INFO'):
        """
        Initialize logging service.

        Args:
            name: Package logger name
            level: Log level name, unknown names fall back to INFO
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(self._parse_level(level))

        # Reconfiguring replaces the previous handler
        self._logger.handlers.clear()
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        self._logger.addHandler(handler)

        for quiet in QUIET_LOGGERS:
            logging.getLogger(quiet).setLevel(max(logging.WARNING, self._logger.level))

    @staticmethod
    def _parse_level(level: str) -> int:
        value = logging.getLevelName(str(level).upper())
        return value if isinstance(value, int) else logging.INFO

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def critical(self, message: str, exc_info: bool = False) -> None:
        """
        Log a fatal condition.

        Args:
            message: What failed
            exc_info: Include exception traceback
        """
        self._logger.critical(message, exc_info=exc_info)

    def log_startup(self, version: str, summary: dict) -> None:
        """
        Log the startup banner.

        Args:
            version: Application version
            summary: Configuration summary from the application
        """
        self.info("=" * 60)
        self.info(f"statusbar v{version} starting, Python {sys.version.split()[0]}")
        self.info(f"Sink: {summary.get('sink', 'xsetroot')}")
        self.info(f"Timezone: {summary.get('timezone') or 'local'}")
        for block in ('weather', 'currency'):
            state = 'configured' if summary.get(block) else 'not configured'
            self.info(f"{block.capitalize()} block: {state}")
        self.info("=" * 60)

    def log_shutdown(self) -> None:
        self.info("statusbar stopped")

    @property
    def level(self) -> int:
        """Effective level of the package logger"""
        return self._logger.level


_logging_service: Optional[LoggingService] = None


def get_logger(name: str = 'statusbar', level: str = 'INFO') -> LoggingService:
    """
    Get or create the logging service singleton.

    Args:
        name: Package logger name
        level: Log level used on first call

    Returns:
        LoggingService instance
    """
    global _logging_service
    if _logging_service is None:
        _logging_service = LoggingService(name, level)
    return _logging_service
