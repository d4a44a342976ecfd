"""Bounded, append-only registry of satellite addresses kept by the hub."""

import time
from ipaddress import IPv4Address

from idlesync.config import MAX_CLIENTS
from idlesync.peers.models import Peer, RegisterResult


class PeerRegistry:
    """Insertion-ordered set of at most ``capacity`` distinct addresses.

    Membership only grows: there is no removal, and once the registry is
    full any address not already known is turned away.
    """

    def __init__(self, capacity: int = MAX_CLIENTS) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._peers: dict[IPv4Address, Peer] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._peers) >= self._capacity

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, addr: object) -> bool:
        return addr in self._peers

    def register(self, addr: IPv4Address, idle_seconds: int = 0) -> RegisterResult:
        """Offer ``addr`` to the registry and report what happened."""
        now = time.time()
        peer = self._peers.get(addr)
        if peer is not None:
            peer.last_seen = now
            peer.last_idle = idle_seconds
            return RegisterResult.ALREADY_PRESENT

        if self.is_full:
            return RegisterResult.REJECTED_FULL

        self._peers[addr] = Peer(
            address=addr,
            first_seen=now,
            last_seen=now,
            last_idle=idle_seconds,
        )
        return RegisterResult.ADDED

    def all(self) -> list[IPv4Address]:
        """Return known addresses in first-seen order."""
        return list(self._peers)

    def peers(self) -> list[Peer]:
        """Return the full peer records, first-seen order."""
        return list(self._peers.values())
