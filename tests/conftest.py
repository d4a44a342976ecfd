"""pytest configuration and shared fakes for idlesync tests."""

from ipaddress import IPv4Address

import pytest

from idlesync.config import IdleSyncConfig
from idlesync.display.base import DisplayBackend, PowerState
from idlesync.errors import SocketError
from idlesync.sync.transport import UdpTransport

HUB = IPv4Address("10.0.0.1")


# Configure asyncio mode for pytest-asyncio
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class FakeTransport:
    """Records every report instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[IPv4Address, int]] = []
        self.fail_for: set[IPv4Address] = set()

    def send(self, dest: IPv4Address, idle_seconds: int) -> None:
        if dest in self.fail_for:
            raise SocketError(f"unreachable {dest}")
        self.sent.append((dest, idle_seconds))


class ListenOnlyTransport(UdpTransport):
    """Real listener that records replies instead of sending them.

    A hub on loopback would otherwise answer its own sync port.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sent = []

    def send(self, dest, idle_seconds):
        self.sent.append((dest, idle_seconds))

class FakeScheduler:
    """Records timers the controller asks for."""

    def __init__(self) -> None:
        self.timers: list[tuple[float, object]] = []

    def call_every(self, interval, event):
        self.timers.append((interval, event))
        return len(self.timers)


class FakeIdle:
    """Adjustable idle source."""

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def __call__(self) -> int:
        return self.value


class FakeWaker:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


class FakeBackend(DisplayBackend):
    name = "fake"

    def __init__(self, idle: int = 0, state: PowerState | None = PowerState.POWERED_ON) -> None:
        self.idle = idle
        self.state = state
        self.idle_error: Exception | None = None
        self.wakes = 0

    def idle_seconds(self) -> int:
        if self.idle_error:
            raise self.idle_error
        return self.idle

    def wake(self) -> None:
        self.wakes += 1

    def power_state(self) -> PowerState | None:
        return self.state


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def idle():
    return FakeIdle()


@pytest.fixture
def waker():
    return FakeWaker()


@pytest.fixture
def hub_config():
    return IdleSyncConfig.create(idle_timeout=180)


@pytest.fixture
def satellite_config():
    return IdleSyncConfig.create(hub_address=HUB, idle_timeout=180)
