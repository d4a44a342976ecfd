"""Exceptions raised by the idle-sync core and its platform glue."""


class IdleSyncError(Exception):
    """Base class for all idlesync errors."""


class SocketError(IdleSyncError):
    """A UDP send or receive failed. The attempt is abandoned, never retried."""


class MalformedMessage(IdleSyncError):
    """A datagram did not have the size of an encoded idle value."""


class StartupFailure(IdleSyncError):
    """The process cannot run: listener, power hook or platform unavailable."""
