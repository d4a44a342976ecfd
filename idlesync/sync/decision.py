"""Wake decision rule applied by a satellite to its hub's reply."""


def should_wake(local_idle: int, peer_idle: int, timeout: int) -> bool:
    """Wake only if we have been idle past ``timeout`` and the peer saw input more recently."""
    return local_idle > timeout and peer_idle < local_idle
