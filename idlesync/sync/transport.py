"""
UDP transport for idle-sync datagrams.

Outbound reports use a throwaway socket per message; inbound reports arrive
on one non-blocking socket bound to the sync port and wrapped as an asyncio
datagram endpoint.
"""

import asyncio
import logging
import socket
from ipaddress import IPv4Address
from typing import Callable

from idlesync.config import SYNC_PORT
from idlesync.errors import MalformedMessage, SocketError, StartupFailure
from idlesync.sync.codec import decode, encode
from idlesync.sync.models import DatagramArrived

logger = logging.getLogger(__name__)

# Large enough to see oversized datagrams and reject them
_MAX_DGRAM = 64


class SyncProtocol(asyncio.DatagramProtocol):
    """asyncio UDP protocol turning idle reports into events."""

    def __init__(self, on_datagram: Callable[[DatagramArrived], None]):
        self.on_datagram = on_datagram

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        try:
            idle_seconds = decode(data)
        except MalformedMessage as e:
            logger.warning(f"Dropping datagram from {addr[0]}: {e}")
            return

        self.on_datagram(DatagramArrived(sender=IPv4Address(addr[0]), idle_seconds=idle_seconds))

    def error_received(self, exc: Exception) -> None:
        logger.error(f"Sync socket error: {exc}")


class UdpTransport:
    """Sends and receives idle reports on a fixed port."""

    def __init__(self, port: int = SYNC_PORT, bind_host: str = "0.0.0.0") -> None:
        self._port = port
        self._bind_host = bind_host
        self._transport: asyncio.DatagramTransport | None = None

    @property
    def port(self) -> int:
        """Port peers are addressed on; the bound port once listening."""
        return self._port

    @property
    def listening(self) -> bool:
        return self._transport is not None

    def send(self, dest: IPv4Address, idle_seconds: int) -> None:
        """Fire one report at ``dest``. No acknowledgment, no retry.

        Raises:
            SocketError: If the datagram could not be sent.
        """
        payload = encode(idle_seconds)
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.sendto(payload, (str(dest), self._port))
        except OSError as e:
            raise SocketError(f"send to {dest}:{self._port} failed: {e}") from e
        logger.debug(f"Sent to {dest} idle {idle_seconds}")

    async def open_listener(self, on_datagram: Callable[[DatagramArrived], None]) -> None:
        """Bind the sync port and start delivering reports.

        Raises:
            StartupFailure: If the port cannot be bound.
        """
        loop = asyncio.get_running_loop()

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setblocking(False)
            sock.bind((self._bind_host, self._port))
        except OSError as e:
            sock.close()
            raise StartupFailure(f"Cannot bind UDP port {self._port}: {e}") from e

        # Port 0 asks the OS for a free port
        self._port = sock.getsockname()[1]

        transport, _ = await loop.create_datagram_endpoint(
            lambda: SyncProtocol(on_datagram),
            sock=sock,
        )
        self._transport = transport
        logger.info(f"Listening on UDP port {self._port}")

    def close(self) -> None:
        if self._transport:
            self._transport.close()
            self._transport = None
