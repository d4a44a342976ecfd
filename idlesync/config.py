"""Application-wide configuration constants and the runtime config model."""

from enum import Enum
from ipaddress import IPv4Address

from pydantic import BaseModel, ConfigDict, Field, model_validator

APP_NAME = "idlesync"

# --- Networking ---
SYNC_PORT = 3030  # UDP, used by every peer for both directions
API_HOST = "127.0.0.1"
API_PORT = 3031

# --- Sync ---
MAX_CLIENTS = 8
DEFAULT_IDLE_TIMEOUT = 180  # seconds
POWER_POLL_INTERVAL = 2.0  # seconds between display power-state checks


class Role(str, Enum):
    """Which side of the exchange this process plays."""
    HUB = "hub"
    SATELLITE = "satellite"


class IdleSyncConfig(BaseModel):
    """Startup configuration. Frozen once the process is running."""

    model_config = ConfigDict(frozen=True)

    role: Role
    hub_address: IPv4Address | None = None
    idle_timeout: int = Field(default=DEFAULT_IDLE_TIMEOUT, gt=0)
    verbose: bool = False
    foreground: bool = False

    sync_port: int = Field(default=SYNC_PORT, ge=0, le=65535)
    max_clients: int = Field(default=MAX_CLIENTS, gt=0)
    power_poll_interval: float = Field(default=POWER_POLL_INTERVAL, gt=0)

    api_enabled: bool = True
    api_host: str = API_HOST
    api_port: int = Field(default=API_PORT, ge=0, le=65535)

    @model_validator(mode="after")
    def check_role(self) -> "IdleSyncConfig":
        if self.role is Role.SATELLITE and self.hub_address is None:
            raise ValueError("satellite role requires a hub address")
        if self.role is Role.HUB and self.hub_address is not None:
            raise ValueError("hub role does not take a hub address")
        return self

    @classmethod
    def create(cls, hub_address: str | IPv4Address | None = None, **kwargs) -> "IdleSyncConfig":
        """Build a config, picking the role from whether a hub is given."""
        role = Role.SATELLITE if hub_address else Role.HUB
        return cls(role=role, hub_address=hub_address or None, **kwargs)
