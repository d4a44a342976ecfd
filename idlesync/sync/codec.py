"""
Wire format for idle-sync datagrams.

A message is the whole UDP payload: one signed 64-bit integer holding the
sender's idle seconds, in host-native byte order. There is no header, type
tag or checksum; what a value means depends on the receiver's role.

Host-native order means every peer must share the same byte order.
"""

import struct

from idlesync.errors import MalformedMessage

IDLE_FMT = "=q"  # native byte order, standard 8-byte size
IDLE_SIZE = struct.calcsize(IDLE_FMT)  # 8 bytes


def encode(idle_seconds: int) -> bytes:
    """Pack an idle value into a datagram payload."""
    try:
        return struct.pack(IDLE_FMT, idle_seconds)
    except struct.error as e:
        raise ValueError(f"Idle value {idle_seconds!r} cannot be encoded: {e}") from e


def decode(data: bytes) -> int:
    """Unpack a datagram payload, returning idle seconds.

    Raises:
        MalformedMessage: If the payload is not exactly IDLE_SIZE bytes.
    """
    if len(data) != IDLE_SIZE:
        raise MalformedMessage(f"Expected {IDLE_SIZE} bytes, got {len(data)}")
    (idle_seconds,) = struct.unpack(IDLE_FMT, data)
    return idle_seconds
