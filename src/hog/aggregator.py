"""Roll process tree usage up to applications."""

from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog

from hog.names import NameEntry
from hog.tree import ROOT_PID, ProcessRecord

log = structlog.get_logger()


class CycleError(ValueError):
    """Raised when a pid is reached twice while walking one subtree."""

    def __init__(self, pid: str):
        super().__init__(f"Process tree is not a tree: pid {pid} reached twice")
        self.pid = pid


@dataclass
class ApplicationAggregate:
    """Summed usage of every root-level process sharing a short name.

    `pids` holds only the root-level pids, not their descendants.
    """

    name: str
    memory_kib: int = 0
    cpu_percent: float = 0.0
    pids: set[str] = field(default_factory=set)


def _pid_key(pid: str) -> tuple[int, int | str]:
    """Numeric pids first, in numeric order."""
    return (0, int(pid)) if pid.isdigit() else (1, pid)


def sorted_pids(pids: set[str]) -> list[str]:
    """Return pids in numeric order."""
    return sorted(pids, key=_pid_key)


def subtree_totals(tree: Mapping[str, ProcessRecord], pid: str) -> tuple[int, float]:
    """Sum memory and CPU over pid and all of its descendants.

    Walks depth-first with an explicit stack. Pids without a record count
    as zero.

    Raises:
        CycleError: If any pid is reached twice.
    """
    memory = 0
    cpu = 0.0
    visited: set[str] = set()
    stack = [pid]

    while stack:
        current = stack.pop()
        if current in visited:
            raise CycleError(current)
        visited.add(current)

        record = tree.get(current)
        if record is None:
            continue
        memory += record.memory_kib
        cpu += record.cpu_percent
        stack.extend(record.children)

    return memory, cpu


def aggregate_applications(
    tree: Mapping[str, ProcessRecord],
    names: Mapping[str, NameEntry],
    root: str = ROOT_PID,
) -> dict[str, ApplicationAggregate]:
    """Group the root's direct children by short name and sum their subtrees.

    Children without a name entry are skipped.
    """
    applications: dict[str, ApplicationAggregate] = {}
    root_record = tree.get(root)
    if root_record is None:
        log.warning("root_process_missing", root=root)
        return applications

    for pid in sorted_pids(root_record.children):
        entry = names.get(pid)
        if entry is None:
            log.debug("process_unnamed", pid=pid)
            continue

        memory, cpu = subtree_totals(tree, pid)
        app = applications.setdefault(entry.short_name, ApplicationAggregate(entry.short_name))
        app.memory_kib += memory
        app.cpu_percent += cpu
        app.pids.add(pid)

    log.debug("applications_aggregated", applications=len(applications))
    return applications
