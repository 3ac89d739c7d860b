"""OS daemon registry backends."""

from .base import (
    AlreadyInstalledError,
    Daemon,
    DaemonError,
    NotInstalledError,
    ServiceInfo,
    ServiceStatus,
    get_daemon,
)

__all__ = [
    "AlreadyInstalledError",
    "Daemon",
    "DaemonError",
    "NotInstalledError",
    "ServiceInfo",
    "ServiceStatus",
    "get_daemon",
]
