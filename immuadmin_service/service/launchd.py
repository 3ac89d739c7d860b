"""Launchd daemon management for macOS."""

import logging
import plistlib
import subprocess
import time
from pathlib import Path

from .base import (
    AlreadyInstalledError,
    Daemon,
    DaemonError,
    NotInstalledError,
    ServiceInfo,
    ServiceStatus,
)

logger = logging.getLogger(__name__)

LAUNCHD_LABEL_PREFIX = "com.codenotary"
LAUNCHD_DOMAIN = "system"


class LaunchdDaemon(Daemon):
    """Launchd system daemon for macOS."""

    DAEMON_DIR = Path("/Library/LaunchDaemons")

    @property
    def platform_name(self) -> str:
        return "launchd"

    @property
    def label(self) -> str:
        return f"{LAUNCHD_LABEL_PREFIX}.{self.name}"

    @property
    def service_file_path(self) -> Path:
        return self.DAEMON_DIR / f"{self.label}.plist"

    @property
    def log_file_path(self) -> Path:
        return self.log_dir / f"{self.name}.log"

    @property
    def error_log_path(self) -> Path:
        return self.log_dir / f"{self.name}-error.log"

    def _get_service_target(self) -> str:
        return f"{LAUNCHD_DOMAIN}/{self.label}"

    def _run_launchctl(self, *args: str) -> subprocess.CompletedProcess:
        """Run a launchctl command."""
        cmd = ["launchctl", *args]
        logger.debug(f"Running {cmd}")
        return subprocess.run(cmd, capture_output=True, text=True, check=False)

    def _ensure_installed(self) -> None:
        if not self.is_installed():
            raise NotInstalledError(self.name)

    def _generate_plist(self, args: tuple[str, ...]) -> dict:
        """Generate the launchd plist configuration."""
        return {
            "Label": self.label,
            "ProgramArguments": [str(self.exec_path), *args],
            "RunAtLoad": True,
            "KeepAlive": {
                "SuccessfulExit": False,  # Restart on crash, not on clean exit
            },
            "StandardOutPath": str(self.log_file_path),
            "StandardErrorPath": str(self.error_log_path),
        }

    def install(self, *args: str) -> ServiceInfo:
        """Write the LaunchDaemon plist."""
        if self.is_installed():
            raise AlreadyInstalledError(self.name)

        self.service_file_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        with open(self.service_file_path, "wb") as f:
            plistlib.dump(self._generate_plist(args), f)

        # Set proper permissions (644)
        self.service_file_path.chmod(0o644)

        return ServiceInfo(
            status=ServiceStatus.STOPPED,
            service_file=self.service_file_path,
            message=f"Install {self.description}:\t[  OK  ]",
        )

    def remove(self) -> ServiceInfo:
        """Unload the daemon and delete its plist."""
        self._ensure_installed()

        self._run_launchctl("bootout", self._get_service_target())
        self.service_file_path.unlink()

        return ServiceInfo(
            status=ServiceStatus.NOT_INSTALLED,
            message=f"Removing {self.description}:\t[  OK  ]",
        )

    def start(self) -> ServiceInfo:
        """Load and start the daemon."""
        self._ensure_installed()

        result = self._run_launchctl("bootstrap", LAUNCHD_DOMAIN, str(self.service_file_path))

        # If already bootstrapped, kickstart instead
        if result.returncode != 0:
            stderr = result.stderr.lower()
            if "already bootstrapped" in stderr or "already loaded" in stderr:
                result = self._run_launchctl("kickstart", self._get_service_target())
            if result.returncode != 0:
                raise DaemonError(f"Failed to start {self.label}: {result.stderr.strip()}")

        # Give it a moment to start
        time.sleep(1)

        return ServiceInfo(
            status=ServiceStatus.RUNNING,
            service_file=self.service_file_path,
            message=f"Starting {self.description}:\t[  OK  ]",
        )

    def stop(self) -> ServiceInfo:
        """Stop the daemon by unloading it."""
        self._ensure_installed()

        result = self._run_launchctl("bootout", self._get_service_target())

        if result.returncode != 0 and "no such process" not in result.stderr.lower():
            raise DaemonError(f"Failed to stop {self.label}: {result.stderr.strip()}")

        return ServiceInfo(
            status=ServiceStatus.STOPPED,
            service_file=self.service_file_path,
            message=f"Stopping {self.description}:\t[  OK  ]",
        )

    def status(self) -> ServiceInfo:
        """Get the current daemon status."""
        self._ensure_installed()

        result = self._run_launchctl("list")

        if result.returncode != 0:
            return ServiceInfo(
                status=ServiceStatus.UNKNOWN,
                service_file=self.service_file_path,
                message=f"Could not get status: {result.stderr.strip()}",
            )

        # Format: PID\tStatus\tLabel
        pid = None
        exit_code = None
        found = False

        for line in result.stdout.strip().split("\n"):
            parts = line.split("\t")
            if len(parts) >= 3 and parts[2].strip() == self.label:
                found = True
                pid_str = parts[0].strip()
                exit_str = parts[1].strip()
                pid = int(pid_str) if pid_str and pid_str != "-" else None
                exit_code = int(exit_str) if exit_str and exit_str != "-" else None
                break

        if not found:
            status = ServiceStatus.STOPPED
            message = f"Status: {self.name} installed but not loaded"
        elif pid is not None and pid > 0:
            status = ServiceStatus.RUNNING
            message = f"Status: {self.name} running, pid {pid}"
        elif exit_code is not None and exit_code != 0:
            status = ServiceStatus.FAILED
            message = f"Status: {self.name} failed, last exit code {exit_code}"
        else:
            status = ServiceStatus.STOPPED
            message = f"Status: {self.name} stopped"

        return ServiceInfo(
            status=status,
            pid=pid,
            service_file=self.service_file_path,
            message=message,
        )
