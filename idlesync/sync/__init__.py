"""Idle-sync protocol: codec, transport, wake rule, controller and bridge."""

from idlesync.sync.controller import RoleController
from idlesync.sync.decision import should_wake
from idlesync.sync.service import IdleSyncService

__all__ = ["IdleSyncService", "RoleController", "should_wake"]
