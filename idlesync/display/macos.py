"""macOS display backend built on ``ioreg`` and ``caffeinate``."""

import logging
import re

from idlesync.display.base import DisplayBackend, PowerState, run_command

logger = logging.getLogger(__name__)

_IDLE_RE = re.compile(r'"HIDIdleTime"\s*=\s*(\d+)')
_POWER_RE = re.compile(r'"CurrentPowerState"\s*=\s*(\d+)')

# IODisplayWrangler power states: 4 = on, 3 = dimmed, 1-2 = asleep
_DISPLAY_ON = 4


def parse_hid_idle(output: str) -> int:
    """Extract idle seconds from ``ioreg -c IOHIDSystem`` output."""
    match = _IDLE_RE.search(output)
    if not match:
        raise OSError("HIDIdleTime not found in ioreg output")
    return int(match.group(1)) // 1_000_000_000


def parse_wrangler_power(output: str) -> PowerState:
    """Map the display wrangler's CurrentPowerState to a PowerState."""
    match = _POWER_RE.search(output)
    if not match:
        raise OSError("IODisplayWrangler power state not found")
    if int(match.group(1)) >= _DISPLAY_ON:
        return PowerState.POWERED_ON
    return PowerState.POWERED_OFF


class MacDisplay(DisplayBackend):
    """Reads HID idle time and display wrangler state from the I/O registry."""

    name = "macos"

    def idle_seconds(self) -> int:
        return parse_hid_idle(run_command(["ioreg", "-c", "IOHIDSystem", "-d", "4"]))

    def wake(self) -> None:
        # Asserting user activity lights the display like real input does
        try:
            run_command(["caffeinate", "-u", "-t", "1"])
        except OSError as e:
            logger.error(f"Failed to wake display: {e}")

    def power_state(self) -> PowerState | None:
        return parse_wrangler_power(
            run_command(["ioreg", "-n", "IODisplayWrangler", "-r", "-d", "1"])
        )
