"""Pydantic models for the hub's view of its satellites."""

from enum import Enum
from ipaddress import IPv4Address

from pydantic import BaseModel


class RegisterResult(str, Enum):
    """Outcome of offering an address to the peer registry."""
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    REJECTED_FULL = "rejected_full"


class Peer(BaseModel):
    """A satellite the hub has heard from."""
    address: IPv4Address
    first_seen: float  # Unix timestamp
    last_seen: float
    last_idle: int  # idle seconds carried by the latest report
