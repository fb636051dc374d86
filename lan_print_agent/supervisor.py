"""
Supervisor
==========

Process-level restart policy and upstream health polling.

The restart counter is owned here and handed to whatever needs it; it only
ever goes up and the process exits once it reaches the configured maximum
instead of looping on a persistent fault.
"""

import sys
import threading
import time
from typing import Callable, Optional

import requests

from .config import AgentConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class RestartLimitReached(Exception):
    """The restart counter hit its maximum."""


class RestartCounter:
    """Monotonic, capped restart counter."""

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def exhausted(self) -> bool:
        return self._count >= self.max_attempts

    def record(self, reason: str) -> int:
        """
        Count one restart.

        Raises:
            RestartLimitReached: If the maximum was already reached
        """
        with self._lock:
            if self._count >= self.max_attempts:
                raise RestartLimitReached(
                    f'Max restart attempts ({self.max_attempts}) reached'
                )
            self._count += 1
            logger.warning("Restarting agent due to %s. Attempt %d/%d",
                           reason, self._count, self.max_attempts)
            return self._count


class HealthMonitor:
    """
    Polls ``<server_url>/health`` on a background thread.

    The URL and interval are read from the configuration on every poll.
    """

    def __init__(self, config: AgentConfig, timeout: float = 5):
        self.config = config
        self.timeout = timeout
        self.server_connected = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def server_url(self) -> str:
        return self.config.server_url.rstrip('/')

    @property
    def interval(self) -> float:
        return self.config.health_check_interval / 1000

    def check(self) -> bool:
        """One poll; updates and returns ``server_connected``."""
        try:
            response = requests.get(f'{self.server_url}/health', timeout=self.timeout)
            self.server_connected = response.ok
        except requests.exceptions.RequestException:
            self.server_connected = False

        logger.info("Health check: Server %s",
                    'connected' if self.server_connected else 'disconnected')
        return self.server_connected

    def _run(self):
        while not self._stop.wait(self.interval):
            self.check()

    def start(self):
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='HealthCheck', daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.timeout + 1)
            self._thread = None


class Supervisor:
    """
    Runs the agent and restarts it after unexpected failures.

    Args:
        config: Agent configuration (retry delay, max restart attempts, health polling)
        serve: Blocking callable that runs the agent until it returns or raises
        stop: Optional cleanup called before every restart
    """

    def __init__(self, config: AgentConfig, serve: Callable[[], None],
                 stop: Optional[Callable[[], None]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.serve = serve
        self.stop = stop
        self.sleep = sleep
        self.restarts = RestartCounter(config.max_restart_attempts)
        self.health = HealthMonitor(config)

    def run(self) -> int:
        """
        Serve, restarting on failure.

        Returns:
            Process exit status: 0 after a clean return, 1 once the restart
            limit is exhausted
        """
        self.health.start()
        try:
            while True:
                try:
                    self.serve()
                    return 0
                except KeyboardInterrupt:
                    logger.info("Received interrupt, shutting down gracefully...")
                    return 0
                except Exception as e:
                    logger.exception("Agent failed: %s", e)
                    try:
                        self.restarts.max_attempts = self.config.max_restart_attempts
                        self.restarts.record(type(e).__name__)
                    except RestartLimitReached as limit:
                        logger.critical("%s. Exiting.", limit)
                        return 1
                    if self.stop is not None:
                        self.stop()
                    self.sleep(self.config.retry_delay / 1000)
        finally:
            self.health.stop()

    def exit(self) -> None:
        """Run and terminate the process with the resulting status."""
        sys.exit(self.run())
