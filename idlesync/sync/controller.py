"""
Role Controller: the hub and satellite halves of the idle-sync exchange.

The role is fixed at construction. Everything here runs on the event
loop's dispatcher task, one event at a time, so no locking is needed.

Hub:        registers each reporting satellite and answers with its own
            idle time; on display power events pushes to all satellites.
Satellite:  reports to the hub at startup, every ``idle_timeout`` seconds
            and on display power events; wakes its display when the hub's
            answer shows more recent activity than its own.
"""

import asyncio
import logging
import time
from ipaddress import IPv4Address
from typing import Any, Callable, Protocol

from idlesync.config import IdleSyncConfig, Role
from idlesync.display.base import PowerState
from idlesync.errors import SocketError
from idlesync.peers.models import RegisterResult
from idlesync.peers.registry import PeerRegistry
from idlesync.sync.decision import should_wake
from idlesync.sync.models import (
    DatagramArrived,
    PowerChanged,
    SyncEvent,
    SyncStatus,
    TimerFired,
)

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, dest: IPv4Address, idle_seconds: int) -> None: ...


class Scheduler(Protocol):
    def call_every(self, interval: float, event: SyncEvent) -> Any: ...


class RoleController:
    """Owns the peer registry, the report schedule and event dispatch."""

    def __init__(
        self,
        config: IdleSyncConfig,
        idle_source: Callable[[], int],
        wake_display: Callable[[], None],
        transport: Transport,
        scheduler: Scheduler,
        registry: PeerRegistry | None = None,
    ) -> None:
        self.config = config
        self._idle_source = idle_source
        self._wake_display = wake_display
        self._transport = transport
        self._scheduler = scheduler

        self.registry: PeerRegistry | None = None
        if config.role is Role.HUB:
            self.registry = registry if registry is not None else PeerRegistry(config.max_clients)

        self.timer = None  # satellite only, armed by start()
        self._event_callbacks: list = []  # async fn(event_type, data)
        self._pending: set[asyncio.Future] = set()
        self._started_at = time.time()
        self._last_peer_idle: int | None = None
        self._last_sent_idle: int | None = None
        self._wake_count = 0

    @property
    def role(self) -> Role:
        return self.config.role

    def on_event(self, callback) -> None:
        """Register callback: async fn(event_type: str, data: dict)."""
        self._event_callbacks.append(callback)

    def _emit(self, event_type: str, data: dict) -> None:
        for cb in self._event_callbacks:
            task = asyncio.ensure_future(cb(event_type, data))
            self._pending.add(task)
            task.add_done_callback(self._listener_done)

    def _listener_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Event listener failed: {task.exception()!r}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Send the first report and arm the timer (satellite only)."""
        if self.role is not Role.SATELLITE:
            logger.info("Running as hub, waiting for satellites")
            return

        self.ping()
        self.timer = self._scheduler.call_every(self.config.idle_timeout, TimerFired())
        logger.info(f"Reporting to hub {self.config.hub_address} every {self.config.idle_timeout}s")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, event: SyncEvent) -> None:
        """Route one event from the bridge to its handler."""
        if isinstance(event, DatagramArrived):
            self.on_datagram(event.sender, event.idle_seconds)
        elif isinstance(event, TimerFired):
            self.on_timer()
        elif isinstance(event, PowerChanged):
            self.on_power(event.state)
        else:
            logger.warning(f"Ignoring unknown event: {event!r}")

    def on_datagram(self, sender: IPv4Address, peer_idle: int) -> None:
        local_idle = self._idle_source()
        self._last_peer_idle = peer_idle
        logger.debug(f"Received {peer_idle} from {sender} idle {local_idle}")
        self._emit("report_received", {"sender": str(sender), "idle_seconds": peer_idle})

        if self.role is Role.HUB:
            self._track(sender, peer_idle)
            # Always answer, tracked or not
            self._send(sender, local_idle)
            return

        if should_wake(local_idle, peer_idle, self.config.idle_timeout):
            logger.info(f"Waking up display, idle {local_idle}, peer idle {peer_idle}")
            self._wake_display()
            self._wake_count += 1
            self._emit("wake", {"idle_seconds": local_idle, "peer_idle": peer_idle})

    def on_timer(self) -> None:
        if self.role is Role.SATELLITE:
            self.ping()

    def on_power(self, state: PowerState) -> None:
        idle = self._idle_source()
        logger.info(f"Display {state.value.replace('_', ' ')}, idle {idle}")

        if self.role is Role.SATELLITE:
            self.ping(idle)
        elif state is PowerState.POWERED_OFF:
            self.broadcast(idle)
        else:
            # Hub just woke: make every satellite see it as freshly active
            self.broadcast(0)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def ping(self, idle: int | None = None) -> None:
        """Report local idle time to the hub."""
        if idle is None:
            idle = self._idle_source()
        self._send(self.config.hub_address, idle)

    def broadcast(self, idle: int) -> None:
        """Push ``idle`` to every registered satellite."""
        for addr in self.registry.all():
            self._send(addr, idle)

    def _send(self, dest: IPv4Address, idle: int) -> None:
        try:
            self._transport.send(dest, idle)
        except SocketError as e:
            logger.error(f"Report to {dest} abandoned: {e}")
            return
        self._last_sent_idle = idle
        self._emit("report_sent", {"dest": str(dest), "idle_seconds": idle})

    def _track(self, sender: IPv4Address, peer_idle: int) -> None:
        result = self.registry.register(sender, peer_idle)
        if result is RegisterResult.ADDED:
            logger.info(f"Added new satellite {len(self.registry)} from {sender}")
            self._emit("peer_added", {"address": str(sender)})
        elif result is RegisterResult.REJECTED_FULL:
            logger.info(
                f"Peer registry full ({self.registry.capacity}), not tracking {sender}"
            )
            self._emit("peer_rejected", {"address": str(sender)})

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def idle_seconds(self) -> int:
        return self._idle_source()

    def status(self) -> SyncStatus:
        return SyncStatus(
            role=self.role,
            hub_address=self.config.hub_address,
            idle_timeout=self.config.idle_timeout,
            sync_port=self.config.sync_port,
            started_at=self._started_at,
            peers=self.registry.peers() if self.registry is not None else [],
            peer_capacity=self.registry.capacity if self.registry is not None else 0,
            last_peer_idle=self._last_peer_idle,
            last_sent_idle=self._last_sent_idle,
            wake_count=self._wake_count,
        )
