"""CLI commands for hog."""

from pathlib import Path

import click

from hog.config import Config

_SAMPLES_HELP = "Number of top samples for cpu (default 4); memory always reads one"


class ModeGroup(click.Group):
    """Group that runs the memory report for any unknown mode name."""

    def resolve_command(self, ctx, args):
        name = args[0]
        if not name.startswith("-") and self.get_command(ctx, name) is None:
            return "memory", self.get_command(ctx, "memory"), args[1:]
        return super().resolve_command(ctx, args)


@click.group(cls=ModeGroup, invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default ~/.config/hog/config.toml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Write debug events to the log file")
@click.option("--pids", "-p", "show_pids", is_flag=True, help="Show process ids")
@click.option("--samples", "-s", type=click.IntRange(min=1), default=None, help=_SAMPLES_HELP)
@click.version_option(package_name="hog")
@click.pass_context
def main(
    ctx, config_path: Path | None, verbose: bool, show_pids: bool, samples: int | None
) -> None:
    """Show which applications use the most memory or CPU.

    Without a command, reports memory. Options may come before or after
    the mode.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["show_pids"] = show_pids
    ctx.obj["samples"] = samples

    if ctx.invoked_subcommand is None:
        ctx.invoke(memory)


def _load_config(ctx) -> Config:
    """Load the config named on the command line, exiting on errors."""
    from hog.logging import config_invalid

    try:
        return Config.load(ctx.obj["config_path"])
    except ValueError as e:
        config_invalid(str(e))
        raise SystemExit(1) from e


def _report(ctx, mode: str, samples: int | None, show_pids: bool) -> None:
    """Sample, aggregate and print one report."""
    import asyncio

    from rich.console import Console

    from hog.aggregator import CycleError
    from hog.logging import command_failed, configure, empty_report, parse_failed
    from hog.report import render_report
    from hog.sampler import SamplerError, gather_applications
    from hog.tree import ParseError

    config = _load_config(ctx)
    configure(config, verbose=ctx.obj["verbose"])

    if samples is None:
        samples = config.sampler.cpu_samples if mode == "cpu" else config.sampler.memory_samples

    try:
        applications = asyncio.run(gather_applications(samples, config))
    except SamplerError as e:
        command_failed(str(e))
        raise SystemExit(1) from e
    except (ParseError, CycleError) as e:
        parse_failed(str(e))
        raise SystemExit(1) from e

    lines = render_report(applications, mode, config, show_pids=show_pids)
    if not lines:
        empty_report(mode)
        return

    console = Console(highlight=False)
    for line in lines:
        console.print(line, soft_wrap=True)


@main.command()
@click.option("--samples", "-s", type=click.IntRange(min=1), default=None, help="Ignored")
@click.option("--pids", "-p", "show_pids", is_flag=True, help="Show process ids")
@click.pass_context
def memory(ctx, samples: int | None, show_pids: bool) -> None:
    """Report memory per application.

    Memory is read from a single sample, so --samples has no effect.
    """
    _report(ctx, "memory", None, show_pids or ctx.obj["show_pids"])


@main.command()
@click.option(
    "--samples",
    "-s",
    type=click.IntRange(min=1),
    default=None,
    help="Number of top samples (default 4)",
)
@click.option("--pids", "-p", "show_pids", is_flag=True, help="Show process ids")
@click.pass_context
def cpu(ctx, samples: int | None, show_pids: bool) -> None:
    """Report CPU per application."""
    if samples is None:
        samples = ctx.obj["samples"]
    _report(ctx, "cpu", samples, show_pids or ctx.obj["show_pids"])


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx) -> None:
    """Display current configuration."""
    import tomlkit

    cfg = _load_config(ctx)
    path = ctx.obj["config_path"] or cfg.config_path

    click.echo(f"Config file: {path}")
    click.echo(f"Exists: {path.exists()}")
    click.echo()
    click.echo(tomlkit.dumps(cfg.to_document()).rstrip())


@config.command("path")
@click.pass_context
def config_path(ctx) -> None:
    """Print the config file location."""
    click.echo(ctx.obj["config_path"] or Config().config_path)


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
@click.pass_context
def config_reset(ctx) -> None:
    """Reset configuration to defaults."""
    from hog.logging import config_created

    cfg = Config()
    path = ctx.obj["config_path"] or cfg.config_path
    cfg.save(path)
    config_created(str(path))
