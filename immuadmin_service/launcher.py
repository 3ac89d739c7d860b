"""Detached relaunch of the running program."""

import logging
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Sequence

from .errors import AlreadyRunningError
from .process import ProcessScanner

logger = logging.getLogger(__name__)

DETACHED_FLAG = "--detached"
DETACHED_SHORT_FLAG = "-d"


def strip_detached_flags(argv: Sequence[str]) -> list[str]:
    """Drop the program name and both detached flags, keeping order."""
    return [arg for arg in argv[1:] if arg not in (DETACHED_FLAG, DETACHED_SHORT_FLAG)]


def current_executable(argv0: str) -> list[str]:
    """Return the command prefix that runs this program again.

    Args:
        argv0: The program name the current process was started with

    Returns:
        Command prefix, e.g. ``["/usr/local/bin/immuadmin"]``

    Raises:
        FileNotFoundError: If no way to re-run the program can be found
    """
    script = Path(argv0)
    if script.is_file() and script.suffix != ".py":
        return [str(script.resolve())]

    # Running via `python -m` or from a source checkout
    if sys.executable:
        return [sys.executable, "-m", "immuadmin_service"]

    raise FileNotFoundError(f"Could not resolve the path of the running executable ({argv0})")


class DetachedLauncher:
    """Starts the current program again as an independent background process."""

    def __init__(
        self,
        scanner: ProcessScanner,
        process_name: str,
        argv: Sequence[str],
        settle_seconds: float = 1.0,
        popen: Callable[..., subprocess.Popen] | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        """Initialize the launcher.

        Args:
            scanner: Process scanner used for duplicate detection
            process_name: Canonical process name of the product
            argv: The original command line, program name first
            settle_seconds: Pause after starting the child
            popen: Process factory
            sleep: Sleep function
        """
        self.scanner = scanner
        self.process_name = process_name
        self.argv = list(argv)
        self.settle_seconds = settle_seconds
        self._popen = popen or subprocess.Popen
        self._sleep = sleep or time.sleep
        self.executable: Path | None = None

    def launch(self) -> int:
        """Launch the detached child.

        Returns:
            The pid of the new process

        Raises:
            AlreadyRunningError: If a matching process already exists
            ProcessScanError: If the process table cannot be read
            FileNotFoundError: If the executable cannot be resolved
            OSError: If the process cannot be started
        """
        command = current_executable(self.argv[0])
        self.executable = Path(command[0])

        existing = self.scanner.find_by_name(self.process_name)
        if existing is not None:
            raise AlreadyRunningError(self.process_name, existing.pid)

        command += strip_detached_flags(self.argv)
        logger.info(f"Launching detached: {command}")

        # stdout/stderr are inherited so the child's banner stays visible
        process = self._popen(command, stdin=subprocess.DEVNULL, start_new_session=True)

        # Give the child a moment to reach a running state
        self._sleep(self.settle_seconds)

        return process.pid
