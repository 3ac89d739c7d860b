"""Errors raised by immuadmin-service."""


class ImmuadminError(Exception):
    """Base class for operator-facing errors."""


class ValidationError(ImmuadminError):
    """Bad arguments, unknown service or unknown action."""


class PrivilegeError(ImmuadminError):
    """The current user lacks the privileges an action needs."""


class ProcessScanError(ImmuadminError):
    """The process table could not be queried."""


class AlreadyRunningError(ImmuadminError):
    """Another live process already matches the target name."""

    def __init__(self, name: str, pid: int):
        super().__init__(f"{name} is already running. Pid {pid}")
        self.name = name
        self.pid = pid
