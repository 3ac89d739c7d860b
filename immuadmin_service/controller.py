"""
Lifecycle orchestration for managed services.

Validates a parsed `service` command, applies the delay protocol and then
drives one lifecycle action against the platform daemon registry. Daemon
errors abort the remaining steps of an action; nothing is rolled back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

import click

from .errors import PrivilegeError, ValidationError
from .files import PRIMARY_SERVICE, ServiceFiles
from .scheduler import DelayScheduler, Invocation
from .service import Daemon, ServiceInfo, ServiceStatus, get_daemon

logger = logging.getLogger(__name__)

GATEWAY_SERVICE = "immugw"
KNOWN_SERVICES = (PRIMARY_SERVICE, GATEWAY_SERVICE)

SERVICE_DESCRIPTIONS = {
    PRIMARY_SERVICE: "immudb - the lightweight, high-speed immutable database",
    GATEWAY_SERVICE: "immugw - immudb gateway",
}

STATUS_STYLES = {
    ServiceStatus.RUNNING: ("green", "●"),
    ServiceStatus.STOPPED: ("yellow", "○"),
    ServiceStatus.FAILED: ("red", "✗"),
    ServiceStatus.NOT_INSTALLED: ("white", "○"),
    ServiceStatus.UNKNOWN: ("white", "?"),
}


class LifecycleAction(Enum):
    """Operator-invoked verbs."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    STATUS = "status"


AVAILABLE_ACTIONS = tuple(action.value for action in LifecycleAction)


@dataclass
class ManagedService:
    """A service addressed by one command invocation."""

    name: str
    status: ServiceStatus = ServiceStatus.UNKNOWN
    exec_path: Path | None = None
    config_path: Path | None = None


class UninstallStep(Enum):
    """Steps of the uninstall flow, in order."""

    STOP_RUNNING = "stop_running"
    CONFIRM_REMOVAL = "confirm_removal"
    REMOVE_DAEMON = "remove_daemon"
    CONFIRM_DATA_ERASE = "confirm_data_erase"
    REMOVE_FILES = "remove_files"
    DONE = "done"


class ConfirmationReader(Protocol):
    def read_yn(self, question: str, default: str) -> str: ...


DaemonFactory = Callable[..., Daemon]


class ServiceLifecycleController:
    """Runs lifecycle actions for the known services."""

    def __init__(
        self,
        files: ServiceFiles,
        reader: ConfirmationReader,
        scheduler: DelayScheduler,
        daemon_factory: DaemonFactory | None = None,
    ):
        """Initialize the controller.

        Args:
            files: Path resolver and file manager
            reader: Source of yes/no answers
            scheduler: Delay protocol handler
            daemon_factory: Builds the platform daemon for a service,
                defaults to get_daemon
        """
        self.files = files
        self.reader = reader
        self.scheduler = scheduler
        self._daemon_factory = daemon_factory

    def _daemon(self, service: ManagedService) -> Daemon:
        factory = self._daemon_factory or get_daemon
        return factory(
            service.name,
            SERVICE_DESCRIPTIONS[service.name],
            service.exec_path or self.files.default_exec_path(service.name),
            log_dir=self.files.log_dir(service.name),
        )

    def run(self, invocation: Invocation) -> None:
        """Validate and execute a parsed `service` command.

        Raises:
            PrivilegeError: If not running as root
            ValidationError: If the service or action is unknown
            DaemonError: If the daemon registry fails
            OSError: If a file operation fails
        """
        if not self.files.is_admin():
            raise PrivilegeError(
                "You must have root user privileges. Possibly using 'sudo' command should help"
            )

        # --remove-files is a maintenance escape hatch, not a lifecycle action
        if invocation.remove_files:
            self._check_install_name(invocation.service)
            if self.scheduler.schedule(invocation):
                self.files.remove_program_files(invocation.service, missing_ok=False)
                click.echo("Program files removed")
            return

        service, action = self.validate(invocation)

        if not self.scheduler.schedule(invocation):
            click.echo(f"{action.value} of {service.name} scheduled in {invocation.time} seconds")
            return

        service.exec_path = self.files.default_exec_path(service.name)

        if action is LifecycleAction.INSTALL:
            self.install(service, invocation.local_file)
        elif action is LifecycleAction.UNINSTALL:
            self.uninstall(service)
        elif action is LifecycleAction.START:
            self.start(service)
        elif action is LifecycleAction.STOP:
            self.stop(service)
        elif action is LifecycleAction.RESTART:
            self.restart(service)
        elif action is LifecycleAction.STATUS:
            self.status(service)

    def _check_install_name(self, name: str) -> None:
        # The name must address a file directly inside the install directory
        if name in ("", ".", "..") or Path(name).name != name or "\\" in name:
            raise ValidationError(f"invalid executable name: {name}. It must not contain a path")

    def validate(self, invocation: Invocation) -> tuple[ManagedService, LifecycleAction]:
        """Check the service and action names.

        Raises:
            ValidationError: With the allowed set, if either is unknown
        """
        if invocation.service not in KNOWN_SERVICES:
            raise ValidationError(
                f"invalid service argument specified: {invocation.service}. "
                f"Available list is {list(KNOWN_SERVICES)}"
            )
        if not invocation.action:
            raise ValidationError("required a command name")
        if invocation.action not in AVAILABLE_ACTIONS:
            raise ValidationError(
                f"invalid command argument specified: {invocation.action}. "
                f"Available list is {list(AVAILABLE_ACTIONS)}"
            )
        return ManagedService(name=invocation.service), LifecycleAction(invocation.action)

    def _report(self, service: ManagedService, info: ServiceInfo) -> None:
        service.status = info.status
        if info.message:
            click.echo(info.message)

    def install(self, service: ManagedService, local_file: str | None = None) -> None:
        """Copy the executable, register the daemon and start it."""
        if service.name == GATEWAY_SERVICE:
            answer = self.reader.read_yn(
                "To provide the maximum level of security, we recommend running immugw "
                "on a different machine than immudb server. Continue ? [Y/n]",
                "y",
            )
            if answer != "y":
                click.echo("No action")
                return

        source = self.files.get_executable(local_file, service.name)

        click.echo(f"installing {source}...")
        service.exec_path = self.files.copy_exec_in_os_default(source, service.name)
        self.files.install_setup(service.name)
        service.config_path = self.files.default_config_path(service.name)

        daemon = self._daemon(service)
        self._report(service, daemon.install("--config", str(service.config_path)))
        self._report(service, daemon.start())

    def uninstall(self, service: ManagedService) -> None:
        """Stop, deregister and remove a service, confirming each destructive step."""
        daemon = self._daemon(service)
        steps = {
            UninstallStep.STOP_RUNNING: self._stop_running,
            UninstallStep.CONFIRM_REMOVAL: self._confirm_removal,
            UninstallStep.REMOVE_DAEMON: self._remove_daemon,
            UninstallStep.CONFIRM_DATA_ERASE: self._confirm_data_erase,
            UninstallStep.REMOVE_FILES: self._remove_files,
        }

        step = UninstallStep.STOP_RUNNING
        while step is not UninstallStep.DONE:
            logger.debug(f"Uninstall {service.name}: {step.value}")
            step = steps[step](service, daemon)

    def _stop_running(self, service: ManagedService, daemon: Daemon) -> UninstallStep:
        # NotInstalledError propagates: nothing to uninstall
        info = daemon.status()
        service.status = info.status
        if info.status is ServiceStatus.RUNNING:
            self._report(service, daemon.stop())
        return UninstallStep.CONFIRM_REMOVAL

    def _confirm_removal(self, service: ManagedService, daemon: Daemon) -> UninstallStep:
        answer = self.reader.read_yn(f"Are you sure you want to uninstall {service.name}? [y/N]", "n")
        if answer != "y":
            click.echo("No action")
            return UninstallStep.DONE
        return UninstallStep.REMOVE_DAEMON

    def _remove_daemon(self, service: ManagedService, daemon: Daemon) -> UninstallStep:
        self._report(service, daemon.remove())
        if service.name == PRIMARY_SERVICE:
            return UninstallStep.CONFIRM_DATA_ERASE
        return UninstallStep.REMOVE_FILES

    def _confirm_data_erase(self, service: ManagedService, daemon: Daemon) -> UninstallStep:
        answer = self.reader.read_yn("Erase data? [y/N]", "n")
        if answer == "y":
            self.files.erase_data(service.name)
            click.echo("Data folder removed")
        else:
            click.echo("No data removed")
        return UninstallStep.REMOVE_FILES

    def _remove_files(self, service: ManagedService, daemon: Daemon) -> UninstallStep:
        self.files.remove_program_files(service.name)
        click.echo("Program files removed")
        self.files.uninstall_setup(service.name)
        return UninstallStep.DONE

    def start(self, service: ManagedService) -> None:
        self._report(service, self._daemon(service).start())

    def stop(self, service: ManagedService) -> None:
        self._report(service, self._daemon(service).stop())

    def restart(self, service: ManagedService) -> None:
        """Stop then start; a failed stop leaves start uncalled."""
        daemon = self._daemon(service)
        self._report(service, daemon.stop())
        self._report(service, daemon.start())

    def status(self, service: ManagedService) -> None:
        """Print the daemon status line colored by state."""
        info = self._daemon(service).status()
        service.status = info.status

        color, symbol = STATUS_STYLES.get(info.status, ("white", "?"))
        click.secho(f"{symbol} ", fg=color, nl=False, bold=True)
        click.secho(f"{service.name}.service", bold=True, nl=False)
        click.echo(" - ", nl=False)
        click.secho(info.status.value, fg=color, bold=True)
        if info.message:
            click.echo(f"   {info.message}")
