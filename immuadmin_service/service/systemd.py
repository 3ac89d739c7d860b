"""Systemd daemon management for Linux."""

import logging
import shlex
import shutil
import subprocess
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

SYSTEMD_UNIT_TEMPLATE = """\
[Unit]
Description={description}
Documentation=https://docs.immudb.io
Requires=network.target
After=network.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=on-failure
RestartSec=10

[Install]
WantedBy=multi-user.target
"""


class SystemdDaemon(Daemon):
    """Systemd system service."""

    UNIT_DIR = Path("/etc/systemd/system")

    @property
    def platform_name(self) -> str:
        return "systemd"

    @property
    def unit_name(self) -> str:
        return f"{self.name}.service"

    @property
    def service_file_path(self) -> Path:
        return self.UNIT_DIR / self.unit_name

    def _run_systemctl(self, *args: str) -> subprocess.CompletedProcess:
        """Run a systemctl command."""
        cmd = ["systemctl", *args]
        logger.debug(f"Running {cmd}")
        return subprocess.run(cmd, capture_output=True, text=True, check=False)

    def _check_systemd_available(self) -> None:
        """Check if systemd is available."""
        if shutil.which("systemctl") is None:
            raise DaemonError("systemctl not found. systemd is required for service management on Linux.")

    def _ensure_installed(self) -> None:
        if not self.is_installed():
            raise NotInstalledError(self.name)

    def install(self, *args: str) -> ServiceInfo:
        """Write the unit file and enable it."""
        self._check_systemd_available()

        if self.is_installed():
            raise AlreadyInstalledError(self.name)

        exec_start = " ".join(shlex.quote(part) for part in (str(self.exec_path), *args))
        content = SYSTEMD_UNIT_TEMPLATE.format(description=self.description, exec_start=exec_start)

        self.service_file_path.parent.mkdir(parents=True, exist_ok=True)
        self.service_file_path.write_text(content)
        self.service_file_path.chmod(0o644)

        self._run_systemctl("daemon-reload")

        result = self._run_systemctl("enable", self.unit_name)
        if result.returncode != 0:
            raise DaemonError(f"Failed to enable {self.unit_name}: {result.stderr.strip()}")

        return ServiceInfo(
            status=ServiceStatus.STOPPED,
            service_file=self.service_file_path,
            message=f"Install {self.description}:\t[  OK  ]",
        )

    def remove(self) -> ServiceInfo:
        """Disable the unit and delete its file."""
        self._ensure_installed()

        self._run_systemctl("disable", self.unit_name)
        self.service_file_path.unlink()
        self._run_systemctl("daemon-reload")

        return ServiceInfo(
            status=ServiceStatus.NOT_INSTALLED,
            message=f"Removing {self.description}:\t[  OK  ]",
        )

    def start(self) -> ServiceInfo:
        """Start the unit."""
        self._ensure_installed()

        result = self._run_systemctl("start", self.unit_name)
        if result.returncode != 0:
            raise DaemonError(f"Failed to start {self.unit_name}: {result.stderr.strip()}")

        return ServiceInfo(
            status=ServiceStatus.RUNNING,
            service_file=self.service_file_path,
            message=f"Starting {self.description}:\t[  OK  ]",
        )

    def stop(self) -> ServiceInfo:
        """Stop the unit."""
        self._ensure_installed()

        result = self._run_systemctl("stop", self.unit_name)
        if result.returncode != 0:
            raise DaemonError(f"Failed to stop {self.unit_name}: {result.stderr.strip()}")

        return ServiceInfo(
            status=ServiceStatus.STOPPED,
            service_file=self.service_file_path,
            message=f"Stopping {self.description}:\t[  OK  ]",
        )

    def status(self) -> ServiceInfo:
        """Get the current unit status."""
        self._ensure_installed()

        result = self._run_systemctl(
            "show",
            self.unit_name,
            "--property=ActiveState,MainPID,SubState",
        )

        if result.returncode != 0:
            return ServiceInfo(
                status=ServiceStatus.UNKNOWN,
                service_file=self.service_file_path,
                message=f"Could not get status: {result.stderr.strip()}",
            )

        # Parse properties
        props = {}
        for line in result.stdout.strip().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                props[key] = value

        active_state = props.get("ActiveState", "unknown")
        main_pid = props.get("MainPID", "0")
        sub_state = props.get("SubState", "unknown")

        # Map to our status enum
        if active_state == "active":
            status = ServiceStatus.RUNNING
        elif active_state == "failed":
            status = ServiceStatus.FAILED
        elif active_state in ("inactive", "deactivating"):
            status = ServiceStatus.STOPPED
        else:
            status = ServiceStatus.UNKNOWN

        pid = int(main_pid) if main_pid and main_pid != "0" else None

        message = f"Status: {self.name} {active_state} ({sub_state})"
        if pid:
            message += f", pid {pid}"

        return ServiceInfo(
            status=status,
            pid=pid,
            service_file=self.service_file_path,
            message=message,
        )
