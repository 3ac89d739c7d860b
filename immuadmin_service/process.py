"""
Process table queries.

Answers "is an instance of executable X already running?" by scanning the
live process table. Matching is a substring test on the executable name so
platform suffixes (e.g. ``immudb.exe``) still match; unrelated processes that
share the substring will match too.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Iterator

import psutil

from .errors import ProcessScanError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessRecord:
    """A single entry of the process table."""

    pid: int
    name: str
    exe: str | None = None


class ProcessScanner:
    """Scans the process table visible to the current user."""

    def __init__(self, exclude_pids: Iterable[int] | None = None):
        """Initialize the scanner.

        Args:
            exclude_pids: Pids never reported as matches. Defaults to the
                scanning process itself.
        """
        if exclude_pids is None:
            exclude_pids = (os.getpid(),)
        self.exclude_pids = frozenset(exclude_pids)

    def processes(self) -> Iterator[ProcessRecord]:
        """Yield a record for every process in the table."""
        try:
            for proc in psutil.process_iter(["pid", "name", "exe"]):
                info = proc.info
                yield ProcessRecord(
                    pid=info["pid"],
                    name=info.get("name") or "",
                    exe=info.get("exe"),
                )
        except psutil.Error as e:
            raise ProcessScanError(f"Could not read process table: {e}") from e

    def find_by_name(self, name: str) -> ProcessRecord | None:
        """Return the first process whose executable name contains ``name``.

        Returns:
            The matching ProcessRecord, or None if nothing matches

        Raises:
            ProcessScanError: If the process table query fails
        """
        for record in self.processes():
            if record.pid in self.exclude_pids:
                continue
            if name in record.name:
                logger.debug(f"Found process {record.name} (pid {record.pid}) matching {name!r}")
                return record
        return None
