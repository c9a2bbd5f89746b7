"""
Main entry point for statusbar
"""
import sys
import signal
import threading
from pathlib import Path
from typing import List, Optional

from .core.cache_store import SidecarCache, default_cache_dir
from .core.compositor import Compositor, Slot
from .core.config_service import config
from .core.logging_service import get_logger
from .core.scheduler import Scheduler, TimerTask
from .core.shutdown import ShutdownCoordinator
from .blocks.battery_block import BatteryMonitor
from .blocks.currency_block import CurrencyBlock
from .blocks.date_block import DateBlock
from .blocks.memory_block import MemoryBlock
from .blocks.weather_block import WeatherBlock
from .ui.title_sink import SinkUnavailableError, TitleSink, create_sink


__version__ = '1.0.0'

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


class Application:
    """
    Main application orchestrator.
    """

    def __init__(self):
        """Initialize application"""
        # Load configuration
        config.reload()

        # Initialize logging
        log_level = config.get('logging.level', 'INFO')
        self._logger = get_logger('statusbar', log_level)
        self._logger.log_startup(__version__, self._get_config_summary())

        self._sink: Optional[TitleSink] = None
        self._compositor: Optional[Compositor] = None
        self._scheduler: Optional[Scheduler] = None
        self._coordinator: Optional[ShutdownCoordinator] = None
        self._tasks: List[TimerTask] = []
        self._battery: Optional[BatteryMonitor] = None
        self._battery_thread: Optional[threading.Thread] = None

    def _get_config_summary(self) -> dict:
        """Get configuration summary for logging"""
        return {
            'sink': config.get('output.sink', 'xsetroot'),
            'timezone': config.get('timezone', ''),
            'weather': bool(config.get('weather.location')),
            'currency': bool(config.get('currency.api_key')),
        }

    def _cache_dir(self) -> Path:
        configured = config.get('cache.directory', '')
        return Path(configured).expanduser() if configured else default_cache_dir()

    def _initialize_output(self) -> None:
        """Create sink and compositor; failures here are fatal"""
        self._sink = create_sink(config.get('output.sink', 'xsetroot'))
        self._compositor = Compositor(self._sink)
        self._logger.info(f"Output sink initialized: {type(self._sink).__name__}")

    def _initialize_blocks(self) -> None:
        """Create every producer"""
        self._logger.info("Initializing blocks")

        workers = int(config.get('scheduler.workers', 2))
        self._scheduler = Scheduler(max_workers=workers)
        self._coordinator = ShutdownCoordinator(self._scheduler)

        cache_dir = self._cache_dir()

        # Order matters only for startup logging; render order is fixed by Slot
        if config.get('weather.enabled', True):
            self._tasks.append(WeatherBlock(
                self._scheduler,
                self._compositor,
                Slot.WEATHER,
                SidecarCache(cache_dir / 'weather'),
                interval=config.get('weather.refresh_interval_seconds', 3600),
                timeout=config.get('weather.timeout', 10),
                location=config.get('weather.location', ''),
            ))

        if config.get('currency.enabled', True):
            self._tasks.append(CurrencyBlock(
                self._scheduler,
                self._compositor,
                Slot.EXCHANGE_RATE,
                SidecarCache(cache_dir / 'currency'),
                interval=config.get('currency.refresh_interval_seconds', 3600),
                timeout=config.get('currency.timeout', 10),
                api_key=config.get('currency.api_key', ''),
                base=config.get('currency.base', 'USD'),
                quote=config.get('currency.quote', 'EUR'),
            ))

        self._tasks.append(MemoryBlock(
            self._scheduler,
            self._compositor,
            path=config.get('memory.path', '/proc/meminfo'),
            interval=config.get('memory.interval', 5),
        ))

        timezone = config.get('timezone', '')
        self._tasks.append(DateBlock(self._scheduler, self._compositor, timezone))

        for task in self._tasks:
            self._coordinator.add_task(task)

        if config.get('battery.enabled', True):
            self._battery = BatteryMonitor(
                self._compositor,
                battery_path=config.get('battery.path', '/sys/class/power_supply/BAT0'),
            )

    def _start_blocks(self) -> None:
        """Start the reactor, timer producers and the battery thread"""
        self._scheduler.start()

        for task in self._tasks:
            task.start()
            self._logger.info(f"Started {task.name} block")

        if self._battery:
            self._battery_thread = threading.Thread(
                target=self._battery.run,
                name='battery-monitor',
                daemon=True
            )
            self._coordinator.set_monitor(self._battery, self._battery_thread)
            self._battery_thread.start()
            if not self._battery.wait_running(timeout=5):
                self._logger.warning("Battery monitor did not start")

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown"""
        def signal_handler(signum, frame):
            self._coordinator.request(signum)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self) -> int:
        """
        Run until SIGINT/SIGTERM.

        Returns:
            Process exit code
        """
        try:
            self._initialize_output()
        except (SinkUnavailableError, ValueError) as e:
            self._logger.critical(f"Cannot start: {e}")
            return EXIT_STARTUP_FAILURE

        try:
            self._initialize_blocks()
            self._setup_signal_handlers()
            self._start_blocks()

            self._logger.info("Application started successfully")
            self._coordinator.wait()

        except KeyboardInterrupt:
            self._logger.info("Keyboard interrupt received")
        except Exception as e:
            self._logger.critical(f"Fatal error: {e}", exc_info=True)
            raise
        finally:
            self.shutdown()

        return EXIT_OK

    def shutdown(self) -> None:
        """Cleanup and shutdown"""
        self._logger.info("Shutting down application")

        if self._coordinator and not self._coordinator.shutdown():
            self._logger.warning("Shutdown finished with a stuck battery monitor")

        self._logger.log_shutdown()


def main():
    """Main entry point"""
    app = Application()
    sys.exit(app.run())


if __name__ == '__main__':
    main()
