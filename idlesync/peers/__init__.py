"""Peer Registry: the hub's bounded set of known satellites."""

from idlesync.peers.models import Peer, RegisterResult
from idlesync.peers.registry import PeerRegistry

__all__ = ["Peer", "PeerRegistry", "RegisterResult"]
