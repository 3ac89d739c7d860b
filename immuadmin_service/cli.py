"""CLI entry point for immuadmin using Click."""

import logging
import sys

import click

from .config import Config
from .controller import ServiceLifecycleController
from .errors import ImmuadminError
from .files import ServiceFiles
from .launcher import DETACHED_FLAG, DETACHED_SHORT_FLAG, DetachedLauncher, current_executable
from .process import ProcessScanner
from .prompt import TerminalReader
from .scheduler import DELAYED_FLAG, DelayScheduler, Invocation
from .service import DaemonError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SERVICE_EXAMPLES = """
\b
Examples:
  immuadmin service immudb install
  immuadmin service immudb install --local-file ./immudb-v0.8.0-linux-amd64
  immuadmin service immudb restart --time 20
  immuadmin service immugw status
  immuadmin service immudb uninstall
"""

HANDLED_ERRORS = (ImmuadminError, DaemonError, OSError, NotImplementedError)


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostic output to stderr")
@click.option(
    DETACHED_FLAG,
    DETACHED_SHORT_FLAG,
    "detached",
    is_flag=True,
    help="Run the command in the background",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, detached: bool) -> None:
    """immuadmin - manage immudb services on this host.

    Use the 'service' subcommand to install immudb and immugw as
    OS-level daemons and control them.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    ctx.ensure_object(dict)
    ctx.obj.setdefault("argv", list(sys.argv))
    ctx.obj.setdefault("config", Config())
    ctx.obj["verbose"] = verbose

    if detached:
        config = ctx.obj["config"]
        launcher = DetachedLauncher(
            ProcessScanner(),
            config.app_name,
            ctx.obj["argv"],
            settle_seconds=config.settle_seconds,
        )
        try:
            pid = launcher.launch()
        except HANDLED_ERRORS as e:
            raise click.ClickException(str(e))

        click.secho(f"{launcher.executable.name} has been started with ", fg="green", nl=False)
        click.secho(f"PID {pid}", fg="blue")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(
    "service",
    epilog=SERVICE_EXAMPLES,
    short_help="Manage immu services",
)
@click.argument("service_name", metavar="SERVICE")
@click.argument("action", metavar="ACTION", required=False)
@click.option(
    "--time",
    "-t",
    "delay",
    type=click.IntRange(min=0),
    default=0,
    help="Number of seconds to wait before running the action",
)
@click.option(
    DELAYED_FLAG,
    "delayed",
    type=click.IntRange(min=0),
    default=0,
    hidden=True,
)
@click.option("--remove-files", is_flag=True, help="Clean up the installed program files")
@click.option("--local-file", default=None, help="Local executable file to install")
@click.pass_context
def service(
    ctx: click.Context,
    service_name: str,
    action: str | None,
    delay: int,
    delayed: int,
    remove_files: bool,
    local_file: str | None,
) -> None:
    """Manage immudb related services.

    SERVICE is one of immudb, immugw. ACTION is one of install, uninstall,
    start, stop, restart, status. Root permissions are required.
    """
    config = ctx.obj["config"]
    invocation = Invocation(
        service=service_name,
        action=action,
        remove_files=remove_files,
        local_file=local_file,
        time=delay,
        delayed=delayed,
        verbose=ctx.obj.get("verbose", False),
    )
    logger.debug(f"Invocation: {invocation}")

    try:
        scheduler = DelayScheduler(current_executable(ctx.obj["argv"][0]))
        controller = ServiceLifecycleController(ServiceFiles(config), TerminalReader(), scheduler)
        controller.run(invocation)
    except HANDLED_ERRORS as e:
        raise click.ClickException(str(e))


def main() -> None:
    """Main entry point."""
    cli(obj={"argv": list(sys.argv)})


if __name__ == "__main__":
    main()
