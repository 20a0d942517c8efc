"""Process tree parsing from macOS top output."""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import structlog

log = structlog.get_logger()

# Header row of `top -stats ppid,pid,mem,cpu`: "PPID PID  MEM    %CPU"
TREE_HEADER = "PPID"
# launchd; every application hangs off it
ROOT_PID = "1"

MEMORY_SCALES = {"K": 1, "M": 1024, "G": 1024**2}
_MEMORY_RE = re.compile(r"^(\d+)([KMG])[-+]?$")


class ParseError(ValueError):
    """Raised when the top listing cannot be parsed."""

    def __init__(self, message: str, value: str):
        super().__init__(message)
        self.value = value


@dataclass
class ProcessRecord:
    """One process and its direct children.

    Records are created as soon as a pid is seen, either as a parent or as
    a row of its own. Metrics stay zero until the pid's own row is parsed.
    """

    pid: str
    ppid: str | None = None
    memory_kib: int = 0
    cpu_percent: float = 0.0
    children: set[str] = field(default_factory=set)


def parse_memory(value: str) -> int:
    """Parse a top memory field like '2048K', '339M+', '2G-' to KiB.

    Raises:
        ParseError: If the value is not digits followed by K, M or G.
    """
    match = _MEMORY_RE.match(value)
    if match is None:
        raise ParseError(f"Could not parse memory {value!r}", value)
    return int(match.group(1)) * MEMORY_SCALES[match.group(2)]


def parse_cpu(value: str) -> float:
    """Parse a top %CPU field."""
    try:
        return float(value)
    except ValueError:
        raise ParseError(f"Could not parse cpu {value!r}", value) from None


@dataclass(frozen=True)
class SeekingHeader:
    """Skipping preamble until `remaining` more headers have been seen."""

    remaining: int


@dataclass(frozen=True)
class Collecting:
    """Past the last header; rows have `columns` fields."""

    columns: int


def data_rows(lines: Iterable[str], samples: int = 1) -> Iterator[tuple[int, list[str]]]:
    """Yield (column count, fields) for each data row of the final sample.

    top prints one header per sample. Everything up to the `samples`-th
    header is skipped, so only the rows of the last sample are returned.
    Blank lines are ignored.
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1, got {samples}")

    state: SeekingHeader | Collecting = SeekingHeader(samples)
    for line in lines:
        fields = line.split()
        if isinstance(state, SeekingHeader):
            if fields and fields[0] == TREE_HEADER:
                if state.remaining == 1:
                    state = Collecting(len(fields))
                else:
                    state = SeekingHeader(state.remaining - 1)
            continue
        if fields:
            yield state.columns, fields


def build_process_tree(text: str, samples: int = 1) -> dict[str, ProcessRecord]:
    """Parse `top -stats ppid,pid,mem[,cpu]` output into pid -> ProcessRecord.

    Args:
        text: Raw top output, possibly holding several samples
        samples: Number of samples in the output; only the last is used

    Returns:
        Mapping of every pid seen (as parent or row) to its record

    Raises:
        ParseError: On an unexpected header width, a row with the wrong
            number of fields, or an unparseable memory/cpu value
    """
    tree: dict[str, ProcessRecord] = {}

    for columns, fields in data_rows(text.splitlines(), samples):
        if columns not in (3, 4):
            raise ParseError(f"Unexpected top header with {columns} columns", " ".join(fields))
        if len(fields) != columns:
            raise ParseError(
                f"Expected {columns} columns, got {len(fields)}: {' '.join(fields)!r}",
                " ".join(fields),
            )

        ppid, pid = fields[0], fields[1]
        memory = parse_memory(fields[2])
        cpu = parse_cpu(fields[3]) if columns == 4 else 0.0

        parent = tree.setdefault(ppid, ProcessRecord(pid=ppid))
        child = tree.setdefault(pid, ProcessRecord(pid=pid))
        if child.ppid is not None and child.ppid != ppid:
            # A pid has one parent: the one on its last row
            tree[child.ppid].children.discard(pid)
        parent.children.add(pid)
        child.ppid = ppid
        child.memory_kib = memory
        child.cpu_percent = cpu

    log.debug("process_tree_parsed", processes=len(tree), samples=samples)
    return tree
