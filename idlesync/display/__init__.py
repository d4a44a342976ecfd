"""Platform display hooks: idle source, wake actuator, power events."""

import sys

from idlesync.display.base import DisplayBackend, PowerMonitor, PowerState
from idlesync.errors import StartupFailure


def create_backend(platform: str = sys.platform) -> DisplayBackend:
    """Pick the display backend for the running platform."""
    if platform == "darwin":
        from idlesync.display.macos import MacDisplay
        return MacDisplay()
    if platform.startswith("linux") or platform.startswith("freebsd"):
        from idlesync.display.x11 import X11Display
        return X11Display()
    raise StartupFailure(f"No display backend for platform {platform!r}")


__all__ = ["DisplayBackend", "PowerMonitor", "PowerState", "create_backend"]
