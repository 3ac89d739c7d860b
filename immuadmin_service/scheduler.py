"""
Delayed execution of lifecycle commands.

A command issued with ``--time N`` is not executed by the requesting process.
Instead the program is started again with the parsed command and a hidden
``--delayed N`` marker; the relaunched instance sleeps N seconds and then
runs the action itself. There is no cancellation other than killing the
relaunched process.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

DELAYED_FLAG = "--delayed"


@dataclass(frozen=True)
class Invocation:
    """A parsed `service` command."""

    service: str
    action: str | None = None
    remove_files: bool = False
    local_file: str | None = None
    time: int = 0
    delayed: int = 0
    verbose: bool = False

    def relaunch_args(self) -> list[str]:
        """Arguments for the relaunched instance.

        Built from the parsed fields, so the requested delay travels only as
        the delayed marker and never as ``--time``.
        """
        args = ["--verbose"] if self.verbose else []
        args += ["service", self.service]
        if self.action:
            args.append(self.action)
        if self.remove_files:
            args.append("--remove-files")
        if self.local_file:
            args += ["--local-file", self.local_file]
        args += [DELAYED_FLAG, str(self.time)]
        return args


class ScheduleState(Enum):
    """How an invocation is executed."""

    REQUESTING = "requesting"
    DELAYED = "delayed"
    IMMEDIATE = "immediate"


class DelayScheduler:
    """Relaunches the program for delayed commands."""

    def __init__(
        self,
        command: Sequence[str],
        spawn: Callable[..., subprocess.Popen] | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        """Initialize the scheduler.

        Args:
            command: Command prefix that runs this program again
            spawn: Process factory used for the relaunch
            sleep: Sleep function used by the relaunched instance
        """
        self.command = list(command)
        self._spawn = spawn or subprocess.Popen
        self._sleep = sleep or time.sleep
        self.spawned: subprocess.Popen | None = None

    @staticmethod
    def state(invocation: Invocation) -> ScheduleState:
        # The marker wins so a relaunched instance never relaunches again
        if invocation.delayed > 0:
            return ScheduleState.DELAYED
        if invocation.time > 0:
            return ScheduleState.REQUESTING
        return ScheduleState.IMMEDIATE

    def schedule(self, invocation: Invocation) -> bool:
        """Apply the delay protocol to an invocation.

        Returns:
            True if the caller should run the action now, False if it was
            handed over to a relaunched process
        """
        state = self.state(invocation)

        if state is ScheduleState.REQUESTING:
            command = self.command + invocation.relaunch_args()
            logger.info(f"Relaunching in {invocation.time}s: {command}")
            self.spawned = self._spawn(command)
            return False

        if state is ScheduleState.DELAYED:
            logger.info(f"Delaying {invocation.action} of {invocation.service} by {invocation.delayed}s")
            self._sleep(invocation.delayed)

        return True
