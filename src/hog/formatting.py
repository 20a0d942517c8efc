"""Formatting utilities for report lines.

All functions return Rich markup.
"""

from collections.abc import Iterable

from hog.aggregator import sorted_pids
from hog.config import CpuBands, MemoryBands


def format_memory(memory_kib: float, bands: MemoryBands | None = None) -> str:
    """Format a KiB amount, scaled and colored by size.

    Returns:
        Fixed-width markup such as "[bright_yellow]512.0 MB[/]"
    """
    bands = bands or MemoryBands()
    if memory_kib > bands.high:
        return f"[bright_red]{memory_kib / 1024**2:5.1f} GB[/]"
    if memory_kib > bands.elevated:
        return f"[bright_yellow]{memory_kib / 1024:5.1f} MB[/]"
    if memory_kib > bands.mebibyte:
        return f"[bright_blue]{memory_kib / 1024:5.1f} MB[/]"
    return f"[bright_blue]{memory_kib:5.1f} KB[/]"


def format_cpu(cpu_percent: float, bands: CpuBands | None = None) -> str:
    """Format a CPU percentage, colored by load."""
    bands = bands or CpuBands()
    if cpu_percent > bands.high:
        color = "bright_red"
    elif cpu_percent > bands.elevated:
        color = "bright_yellow"
    else:
        color = "bright_blue"
    return f"[{color}]{cpu_percent:5.1f} %[/]"


def format_pids(pids: Iterable[str]) -> str:
    """Format pids as a dimmed, comma-separated, parenthesized list."""
    return f"[dim]({', '.join(sorted_pids(set(pids)))})[/]"
