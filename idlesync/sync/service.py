"""
Idle-sync service: wires the transport, bridge, controller and power monitor.

Starting the service binds the sync port, starts watching display power and
hands control to the role controller. Any failure along the way is fatal
and leaves nothing running.
"""

import logging

from idlesync.config import IdleSyncConfig
from idlesync.display.base import DisplayBackend, PowerMonitor, PowerState
from idlesync.errors import StartupFailure
from idlesync.sync.bridge import EventBridge
from idlesync.sync.controller import RoleController
from idlesync.sync.models import PowerChanged
from idlesync.sync.transport import UdpTransport

logger = logging.getLogger(__name__)


class IdleSyncService:
    """Owns every long-lived piece of a running idlesync process."""

    def __init__(
        self,
        config: IdleSyncConfig,
        backend: DisplayBackend,
        transport: UdpTransport | None = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.transport = transport or UdpTransport(port=config.sync_port)
        self.bridge = EventBridge()
        self.controller = RoleController(
            config,
            idle_source=backend.idle_seconds,
            wake_display=backend.wake,
            transport=self.transport,
            scheduler=self.bridge,
        )
        self.power_monitor = PowerMonitor(
            backend,
            self._on_power_change,
            interval=config.power_poll_interval,
        )

    async def start(self) -> None:
        """Start listening, watching and reporting.

        Raises:
            StartupFailure: If the port, the power hook or the idle source is
                unavailable.
        """
        logger.info(
            f"Starting idlesync as {self.config.role.value} "
            f"(backend: {self.backend.name}, timeout: {self.config.idle_timeout}s)"
        )
        self.bridge.start(self.controller.handle)
        try:
            await self.transport.open_listener(self.bridge.submit)
            self.power_monitor.start()
            self.controller.start()
        except OSError as e:
            # The satellite's first report reads the idle source
            await self.stop()
            raise StartupFailure(f"Cannot read idle time ({self.backend.name}): {e}") from e
        except Exception:
            await self.stop()
            raise

    async def stop(self) -> None:
        self.power_monitor.stop()
        self.transport.close()
        await self.bridge.stop()
        logger.info("Idle sync service stopped")

    async def serve_forever(self) -> None:
        """Run until cancelled."""
        await self.start()
        try:
            await self.bridge.wait_closed()
        finally:
            await self.stop()

    def _on_power_change(self, state: PowerState) -> None:
        # Runs on the monitor thread
        self.bridge.submit_threadsafe(PowerChanged(state=state))
