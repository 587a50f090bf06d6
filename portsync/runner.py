"""
Port sync loop.

PortSyncRunner moves through three states:

- BOOTSTRAP: log in to qBittorrent through a RetryPolicy. Rejected
  credentials, a spent attempt budget, or any failure in single-shot mode
  raises BootstrapError.
- RUNNING: reconcile once per cycle. Failures are logged and retried on the
  next tick. With an interval of 0 the loop stops after one cycle and
  re-raises that cycle's error.
- STOPPED: reached when the stop event is set; the current wait ends at once.

Everything runs on the calling thread; only stop() is meant to be called
from elsewhere (a signal handler or another thread).
"""

import threading
from enum import Enum
from typing import Optional

from .config import Settings
from .errors import BadResponseError, BootstrapError
from .gateway import PortSource
from .logger import logger
from .qbittorrent import QbitClient
from .reconcile import SyncResult, set_port
from .retry import FatalFailure, RetryPolicy


class State(Enum):
    BOOTSTRAP = "bootstrap"
    RUNNING = "running"
    STOPPED = "stopped"


class PortSyncRunner:
    def __init__(
        self,
        settings: Settings,
        client=None,
        port_source=None,
        policy: Optional[RetryPolicy] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.settings = settings
        self.client = client or QbitClient(settings.qbit_url, timeout=settings.timeout)
        self.port_source = port_source or PortSource()
        self.policy = policy or RetryPolicy(
            max_attempts=settings.login_attempts,
            delay=settings.login_delay,
            single_shot=settings.single_shot,
        )
        self.stop_event = stop_event or threading.Event()
        self.state = State.BOOTSTRAP
        self.cycles = 0
        self.last_result: Optional[SyncResult] = None
        self._needs_login = False

    def _login(self) -> None:
        self.client.login(self.settings.qbit_username, self.settings.qbit_password)

    def bootstrap(self) -> None:
        """Log in to qBittorrent, retrying transient failures."""
        self.state = State.BOOTSTRAP
        logger.info(f"Connecting to qBittorrent at {self.settings.qbit_url}")

        outcome = self.policy.call(self._login, wait=self.stop_event.wait)
        if self.stop_event.is_set():
            self.state = State.STOPPED
            return
        if isinstance(outcome, FatalFailure):
            self.state = State.STOPPED
            raise BootstrapError(outcome.cause, outcome.attempts) from outcome.cause

        logger.info(f"Logged in to qBittorrent after {outcome.attempts} attempt(s)")
        self.state = State.RUNNING

    def run_cycle(self) -> Optional[Exception]:
        """Run one reconciliation and return its error, if any."""
        self.cycles += 1

        if self._needs_login:
            try:
                self._login()
            except Exception as e:
                logger.warning(f"Failed to log in again: {e}")
                return e
            self._needs_login = False
            logger.info("Logged in to qBittorrent again")

        try:
            self.last_result = set_port(self.settings, self.client, self.port_source)
        except Exception as e:
            logger.warning(f"Failed to set port: {e}")
            if isinstance(e, BadResponseError) and e.is_unauthorized:
                self._needs_login = True
            return e
        return None

    def run(self) -> None:
        """
        Log in, then reconcile until stopped.

        Raises:
            BootstrapError: If the initial login fails fatally
            PortSyncError: In single-shot mode, the error of the only cycle
        """
        self.bootstrap()

        while self.state == State.RUNNING:
            error = self.run_cycle()

            if self.settings.single_shot:
                self.state = State.STOPPED
                if error is not None:
                    raise error
                return

            if self.stop_event.wait(self.settings.interval):
                self.state = State.STOPPED

        logger.info("Port sync stopped")

    def stop(self) -> None:
        """Ask the loop to stop; an ongoing wait returns immediately."""
        self.stop_event.set()

    def close(self) -> None:
        self.client.close()
        self.port_source.close()
