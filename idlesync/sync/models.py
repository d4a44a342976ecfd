"""Pydantic models for idle-sync events and status."""

from ipaddress import IPv4Address
from typing import Literal, Union

from pydantic import BaseModel

from idlesync.config import Role
from idlesync.display.base import PowerState
from idlesync.peers.models import Peer


# --- Events delivered to the role controller ---

class DatagramArrived(BaseModel):
    """A well-formed idle report came in from ``sender``."""
    kind: Literal["datagram"] = "datagram"
    sender: IPv4Address
    idle_seconds: int


class TimerFired(BaseModel):
    """The satellite's periodic report is due."""
    kind: Literal["timer"] = "timer"


class PowerChanged(BaseModel):
    """The local display is about to sleep or has woken."""
    kind: Literal["power"] = "power"
    state: PowerState


SyncEvent = Union[DatagramArrived, TimerFired, PowerChanged]


# --- Status exposed to the API ---

class SyncStatus(BaseModel):
    """Snapshot of a running controller."""
    role: Role
    hub_address: IPv4Address | None = None
    idle_timeout: int
    sync_port: int
    started_at: float  # Unix timestamp
    peers: list[Peer] = []
    peer_capacity: int
    last_peer_idle: int | None = None
    last_sent_idle: int | None = None
    wake_count: int = 0
