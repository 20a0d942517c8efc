"""Runs ps and top and joins their output into per-application usage."""

import asyncio
from dataclasses import dataclass

import structlog

from hog.aggregator import ApplicationAggregate, aggregate_applications
from hog.config import Config
from hog.names import NameResolver, parse_name_listing
from hog.tree import build_process_tree

log = structlog.get_logger()


class SamplerError(RuntimeError):
    """Raised when an external listing command cannot be run or fails."""

    def __init__(self, message: str, command: list[str]):
        super().__init__(message)
        self.command = command


@dataclass
class Sample:
    """Raw text of one ps listing and one top run."""

    name_listing: str
    tree_listing: str
    samples: int


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a subprocess that may already have exited."""
    try:
        process.kill()
    except ProcessLookupError:
        pass  # Already dead


async def run_command(command: list[str], timeout: float | None = None) -> str:
    """Run a command and return its stdout.

    Args:
        command: argv to execute
        timeout: Seconds to wait before killing it; None or 0 waits forever

    Raises:
        SamplerError: If the command can't start, exits non-zero or times out
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        log.error("command_start_failed", command=command, error=str(e))
        raise SamplerError(f"{command[0]} failed to start: {e}", command) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout or None)
    except asyncio.TimeoutError:
        _kill(process)
        await process.wait()
        log.error("command_timed_out", command=command, timeout=timeout)
        raise SamplerError(f"{command[0]} timed out after {timeout}s", command) from None
    except asyncio.CancelledError:
        _kill(process)
        raise

    if process.returncode != 0:
        error_msg = stderr.decode("utf-8", errors="replace").strip()
        log.error(
            "command_failed", command=command, returncode=process.returncode, error=error_msg
        )
        raise SamplerError(
            f"{command[0]} exited with status {process.returncode}: {error_msg}", command
        )

    return stdout.decode("utf-8", errors="replace")


async def collect(samples: int, config: Config) -> Sample:
    """Run the name listing and the top listing concurrently.

    Both commands must finish before either result is used. If one fails
    the other is cancelled.
    """
    sampler = config.sampler
    timeout = sampler.command_timeout
    top_command = [*sampler.top_command, str(samples)]

    log.debug("sample_started", samples=samples, ps=sampler.ps_command, top=top_command)
    name_task = asyncio.ensure_future(run_command(sampler.ps_command, timeout))
    tree_task = asyncio.ensure_future(run_command(top_command, timeout))
    try:
        name_listing, tree_listing = await asyncio.gather(name_task, tree_task)
    except BaseException:
        for task in (name_task, tree_task):
            task.cancel()
        raise

    return Sample(name_listing=name_listing, tree_listing=tree_listing, samples=samples)


def applications_from_sample(
    sample: Sample,
    resolver: NameResolver,
) -> dict[str, ApplicationAggregate]:
    """Parse both listings of a sample and aggregate them by application."""
    names = parse_name_listing(sample.name_listing, resolver)
    tree = build_process_tree(sample.tree_listing, sample.samples)
    return aggregate_applications(tree, names)


async def gather_applications(
    samples: int,
    config: Config,
) -> dict[str, ApplicationAggregate]:
    """Sample the process table and return usage per application."""
    resolver = NameResolver.default((a.marker, a.name) for a in config.names.aliases)
    sample = await collect(samples, config)
    applications = applications_from_sample(sample, resolver)
    log.info("sample_complete", samples=samples, applications=len(applications))
    return applications
