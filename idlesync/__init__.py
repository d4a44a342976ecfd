"""Keep display idle state in sync across machines on a LAN."""

__version__ = "1.0.0"
