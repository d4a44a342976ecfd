"""
Display backend interface: idle measurement, wake and power state.

Concrete backends wrap command-line tools of the host platform. The
PowerMonitor turns the polled power state into change notifications.
"""

import abc
import logging
import subprocess
import threading
from enum import Enum
from typing import Callable

from idlesync.config import POWER_POLL_INTERVAL
from idlesync.errors import StartupFailure

logger = logging.getLogger(__name__)

# Seconds to wait for a helper tool before giving up
COMMAND_TIMEOUT = 5.0


class PowerState(str, Enum):
    """Display power transitions reported to the role controller."""
    POWERED_OFF = "powered_off"
    POWERED_ON = "powered_on"


class DisplayBackend(abc.ABC):
    """Platform hooks the idle-sync core depends on."""

    name = "abstract"

    @abc.abstractmethod
    def idle_seconds(self) -> int:
        """Seconds since the last local user input (>= 0)."""

    @abc.abstractmethod
    def wake(self) -> None:
        """Wake the display. Harmless if it is already on."""

    @abc.abstractmethod
    def power_state(self) -> PowerState | None:
        """Current display power state, or None if it cannot be told."""


def run_command(args: list[str]) -> str:
    """Run a helper tool and return its stdout.

    Raises:
        OSError: If the tool is missing or exits with an error.
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
            check=True,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        raise OSError(f"{args[0]} failed: {e}") from e
    return result.stdout


class PowerMonitor:
    """Polls a backend's power state on a daemon thread.

    The callback runs on the monitor thread, once per transition; it is
    expected to hand the state over to the event loop.
    """

    def __init__(
        self,
        backend: DisplayBackend,
        callback: Callable[[PowerState], None],
        interval: float = POWER_POLL_INTERVAL,
    ) -> None:
        self._backend = backend
        self._callback = callback
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._state: PowerState | None = None

    @property
    def state(self) -> PowerState | None:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Take the first reading and start polling.

        Raises:
            StartupFailure: If the backend cannot report power state at all.
        """
        try:
            self._state = self._backend.power_state()
        except OSError as e:
            raise StartupFailure(f"Cannot watch display power ({self._backend.name}): {e}") from e

        logger.info(f"Watching display power every {self._interval}s, currently {self._state}")
        self._thread = threading.Thread(
            target=self._poll_loop,
            name="display-power-monitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def poll(self) -> PowerState | None:
        """Take one reading; notify if it differs from the last one."""
        try:
            state = self._backend.power_state()
        except OSError as e:
            logger.debug(f"Display power query failed: {e}")
            return None

        if state is None or state == self._state:
            return None

        previous, self._state = self._state, state
        if previous is None:
            # First known state is not a transition
            return None
        self._callback(state)
        return state

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self.poll()
            except Exception:
                logger.exception("Display power callback failed")
