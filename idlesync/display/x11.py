"""X11 display backend built on ``xprintidle`` and ``xset``."""

import logging
import re

from idlesync.display.base import DisplayBackend, PowerState, run_command

logger = logging.getLogger(__name__)

_MONITOR_RE = re.compile(r"Monitor is (?:in )?(On|Off|Standby|Suspend)")


def parse_xprintidle(output: str) -> int:
    """xprintidle prints milliseconds since the last input event."""
    try:
        return max(0, int(output.strip())) // 1000
    except ValueError:
        raise OSError(f"Unexpected xprintidle output: {output.strip()!r}") from None


def parse_xset_query(output: str) -> PowerState | None:
    """Read the DPMS monitor state from ``xset q``.

    Returns None when DPMS is disabled, since no state is reported then.
    """
    match = _MONITOR_RE.search(output)
    if not match:
        if "DPMS is Disabled" in output:
            return None
        raise OSError("DPMS information not found in xset output")
    if match.group(1) == "On":
        return PowerState.POWERED_ON
    return PowerState.POWERED_OFF


class X11Display(DisplayBackend):
    """Uses DPMS through xset; needs DISPLAY set to the user's session."""

    name = "x11"

    def idle_seconds(self) -> int:
        return parse_xprintidle(run_command(["xprintidle"]))

    def wake(self) -> None:
        try:
            run_command(["xset", "s", "reset"])
            run_command(["xset", "dpms", "force", "on"])
        except OSError as e:
            logger.error(f"Failed to wake display: {e}")

    def power_state(self) -> PowerState | None:
        return parse_xset_query(run_command(["xset", "q"]))
