"""CLI entry point for pvwatch."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from pvwatch_run.errors import ConfigurationError, RunError, RunStartError
from pvwatch_run.runner import run
from pvwatch_run.types import RunEvents, RunOptions

from pvwatch.transfer import CopyHandle, copy
from pvwatch.types import CopyCallbacks, CopyOptions, CopyStats, ProgressData, TimeoutData


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def main(verbose: bool):
    """pvwatch: supervised processes and monitored file copies."""
    _configure_logging(verbose)


async def _watch_copy(
    source: str, destination: str, options: CopyOptions, max_stalls: int | None
) -> CopyStats:
    handle: CopyHandle | None = None
    stalls = 0  # consecutive, reset by progress

    def on_progress(data: ProgressData) -> None:
        nonlocal stalls
        stalls = 0
        click.echo(f"{data.bytes} bytes ({data.percent:.1f}%)")

    def on_timeout(data: TimeoutData) -> None:
        nonlocal stalls
        stalls += 1
        click.echo(
            f"Stalled at {data.bytes} bytes ({data.percent:.1f}%) "
            f"after {data.time} ms, notice #{data.count}",
            err=True,
        )
        if max_stalls and stalls >= max_stalls and handle is not None:
            click.echo("Too many stalls, aborting", err=True)
            handle.abort()

    handle = copy(source, destination, options, CopyCallbacks(on_progress, on_timeout))
    return await handle


@main.command("copy")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("destination", type=click.Path(dir_okay=False))
@click.option("--rate-limit", type=int, default=None, envvar="PVWATCH_RATE_LIMIT",
              help="Limit transfer to this many bytes per second")
@click.option("--timeout", type=int, default=None, envvar="PVWATCH_TIMEOUT",
              help="Report a stall after this many ms without progress (>= 3000)")
@click.option("--tool", default="pv", envvar="PVWATCH_TOOL", help="Copy tool executable")
@click.option("--max-stalls", type=int, default=None,
              help="Abort after this many stall notices in a row")
def copy_cmd(
    source: str,
    destination: str,
    rate_limit: int | None,
    timeout: int | None,
    tool: str,
    max_stalls: int | None,
):
    """Copy SOURCE to DESTINATION with progress reporting."""
    options = CopyOptions(rate_limit=rate_limit, timeout=timeout, tool=tool)
    try:
        options.validate()
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    try:
        stats = asyncio.run(_watch_copy(source, destination, options, max_stalls))
    except RunError as e:
        click.echo(f"Copy failed: {e}", err=True)
        if e.stderr.strip():
            click.echo(e.stderr.strip().splitlines()[-1], err=True)
        sys.exit(1)
    except RunStartError as e:
        click.echo(f"Copy failed: {e}: {e.cause}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Copy failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Copied {stats.bytes} bytes in {stats.time} ms")


@main.command(
    "run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--shell", is_flag=True, help="Run through the system shell")
@click.option("--cwd", type=click.Path(exists=True, file_okay=False), default=None,
              help="Working directory")
@click.argument("command")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run_cmd(shell: bool, cwd: str | None, command: str, args: tuple[str, ...]):
    """Run COMMAND, streaming its output, and exit with its exit code."""
    events = RunEvents(
        on_out=lambda s: click.echo(s, nl=False),
        on_err=lambda s: click.echo(s, nl=False, err=True),
    )

    async def _run() -> None:
        await run(command, args, events, RunOptions(cwd=cwd, shell=shell))

    try:
        asyncio.run(_run())
    except RunError as e:
        sys.exit(e.code if e.code and e.code > 0 else 1)
    except RunStartError as e:
        click.echo(f"Can't start {command}: {e.cause}", err=True)
        sys.exit(127)


if __name__ == "__main__":
    main()
