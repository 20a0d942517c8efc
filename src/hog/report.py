"""Filtering, ranking and rendering of aggregated applications."""

from collections.abc import Mapping
from typing import Literal

from rich.markup import escape

from hog.aggregator import ApplicationAggregate
from hog.config import Config
from hog.formatting import format_cpu, format_memory, format_pids

Mode = Literal["memory", "cpu"]


def metric(app: ApplicationAggregate, mode: Mode) -> float:
    """Return the value a report in `mode` ranks by."""
    if mode == "cpu":
        return app.cpu_percent
    return app.memory_kib


def select(
    applications: Mapping[str, ApplicationAggregate],
    mode: Mode,
    minimum: float,
) -> list[ApplicationAggregate]:
    """Keep applications whose metric exceeds minimum, largest first.

    Ties are broken by name so output is stable.
    """
    kept = [app for app in applications.values() if metric(app, mode) > minimum]
    return sorted(kept, key=lambda app: (-metric(app, mode), app.name))


def render_line(
    app: ApplicationAggregate,
    mode: Mode,
    config: Config,
    *,
    show_pids: bool = False,
) -> str:
    """Render one report line as Rich markup."""
    if mode == "cpu":
        magnitude = format_cpu(app.cpu_percent, config.cpu_bands)
    else:
        magnitude = format_memory(app.memory_kib, config.memory_bands)

    line = f"{magnitude}  {escape(app.name)}"
    if show_pids:
        line += f" {format_pids(app.pids)}"
    return line


def render_report(
    applications: Mapping[str, ApplicationAggregate],
    mode: Mode,
    config: Config,
    *,
    show_pids: bool = False,
) -> list[str]:
    """Filter, sort and render applications using the configured thresholds."""
    if mode == "cpu":
        minimum = config.thresholds.min_cpu_percent
    else:
        minimum = config.thresholds.min_memory_kib

    return [
        render_line(app, mode, config, show_pids=show_pids)
        for app in select(applications, mode, minimum)
    ]
