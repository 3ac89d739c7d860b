"""Base daemon interface."""

import platform
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ServiceStatus(Enum):
    """Service status enumeration."""

    RUNNING = "running"
    STOPPED = "stopped"
    NOT_INSTALLED = "not_installed"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class ServiceInfo:
    """Result of a daemon operation."""

    status: ServiceStatus
    pid: int | None = None
    service_file: Path | None = None
    message: str | None = None


class DaemonError(Exception):
    """A daemon registry operation failed."""


class NotInstalledError(DaemonError):
    """The service is not registered with the daemon registry."""

    def __init__(self, name: str):
        super().__init__(f"Service {name} is not installed")
        self.name = name


class AlreadyInstalledError(DaemonError):
    """The service is already registered with the daemon registry."""

    def __init__(self, name: str):
        super().__init__(f"Service {name} has already been installed")
        self.name = name


class Daemon(ABC):
    """Abstract base class for an OS-level daemon registration."""

    def __init__(self, name: str, description: str, exec_path: Path, log_dir: Path | None = None):
        """Initialize the daemon.

        Args:
            name: Service name, used for the registration
            description: Human-readable description
            exec_path: Installed executable the daemon runs
            log_dir: Directory for stdout/stderr where the platform needs one
        """
        self.name = name
        self.description = description
        self.exec_path = Path(exec_path)
        self.log_dir = Path(log_dir) if log_dir else Path("/var/log") / name

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return the platform name (e.g., 'systemd', 'launchd')."""
        ...

    @property
    @abstractmethod
    def service_file_path(self) -> Path:
        """Return the path to the service registration file."""
        ...

    def is_installed(self) -> bool:
        return self.service_file_path.exists()

    @abstractmethod
    def install(self, *args: str) -> ServiceInfo:
        """Register the daemon.

        Args:
            args: Extra arguments passed to the executable on start

        Raises:
            AlreadyInstalledError: If a registration already exists
            DaemonError: If the registry rejects the registration
        """
        ...

    @abstractmethod
    def remove(self) -> ServiceInfo:
        """Remove the daemon registration.

        Raises:
            NotInstalledError: If there is no registration
        """
        ...

    @abstractmethod
    def start(self) -> ServiceInfo:
        """Start the daemon.

        Raises:
            NotInstalledError: If there is no registration
            DaemonError: If the daemon does not start
        """
        ...

    @abstractmethod
    def stop(self) -> ServiceInfo:
        """Stop the daemon.

        Raises:
            NotInstalledError: If there is no registration
            DaemonError: If the daemon does not stop
        """
        ...

    @abstractmethod
    def status(self) -> ServiceInfo:
        """Get the current daemon status.

        Raises:
            NotInstalledError: If there is no registration
        """
        ...


def get_daemon(name: str, description: str, exec_path: Path, log_dir: Path | None = None) -> Daemon:
    """Get the daemon implementation for the current platform.

    Args:
        name: Service name
        description: Human-readable description
        exec_path: Installed executable the daemon runs
        log_dir: Directory for daemon output

    Returns:
        Daemon instance for the current platform

    Raises:
        NotImplementedError: If the current platform is not supported
    """
    system = platform.system()

    if system == "Darwin":
        from .launchd import LaunchdDaemon

        return LaunchdDaemon(name, description, exec_path, log_dir=log_dir)
    elif system == "Linux":
        from .systemd import SystemdDaemon

        return SystemdDaemon(name, description, exec_path, log_dir=log_dir)
    else:
        raise NotImplementedError(
            f"Service management is not supported on {system}. "
            "Supported platforms: Linux (systemd), macOS (launchd)"
        )
