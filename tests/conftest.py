"""Shared test fixtures for hog."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from hog.tree import ProcessRecord

TOP_PREAMBLE = """\
Processes: 512 total, 2 running, 510 sleeping, 2334 threads
2026/10/17 10:00:00
Load Avg: 1.89, 2.01, 2.10
CPU usage: 5.26% user, 10.52% sys, 84.21% idle
SharedLibs: 446M resident, 83M data, 37M linkedit.
PhysMem: 15G used (2161M wired), 161M unused.
Disks: 1/1K read, 1/1K written.

"""

# launchd (1) has Slack (500) with a helper (501) that has a child (502),
# Terminal (600) running a login shell (601), and cfprefsd (700).
TOP_SINGLE = (
    TOP_PREAMBLE
    + """\
PPID PID  MEM    %CPU
0    1    12M    0.5
1    500  300M+  10.0
500  501  100M   5.0
501  502  2048K  1.5
1    600  80M    2.0
600  601  4M-    0.0
1    700  3M     0.1
"""
)

# Two samples: only the second one counts.
TOP_TWO_SAMPLES = (
    TOP_PREAMBLE
    + """\
PPID PID  MEM    %CPU
1    500  300M   0.0
1    600  80M    0.0
1    900  1G     0.0

"""
    + TOP_PREAMBLE
    + """\
PPID PID  MEM    %CPU
1    500  310M   42.0
1    600  80M    7.5
"""
)

PS_LISTING = """\
  PID   TT  STAT      TIME COMMAND
    1   ??  Ss     1:23.45 /sbin/launchd
  500   ??  S      5:00.00 /Applications/Slack.app/Contents/MacOS/Slack
  501   ??  S      0:10.00 /Applications/Slack.app/Contents/Frameworks/Slack Helper.app/Contents/MacOS/Slack Helper --type=renderer
  502   ??  S      0:00.10 /Applications/Slack.app/Contents/Frameworks/crashpad_handler
  600   ??  S      0:01.00 /System/Applications/Utilities/Terminal.app/Contents/MacOS/Terminal
  601 s000  Ss     0:00.02 -zsh
  700   ??  S      0:00.50 /usr/sbin/cfprefsd agent
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir so config and log paths never touch the real one."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    # Plain text output from Rich regardless of the CI environment
    for var in ("FORCE_COLOR", "TTY_COMPATIBLE", "TTY_INTERACTIVE"):
        monkeypatch.delenv(var, raising=False)
    return home


def make_tree(rows: list[tuple[str, str, int, float]]) -> dict[str, ProcessRecord]:
    """Build a process tree from (ppid, pid, memory_kib, cpu) rows."""
    tree: dict[str, ProcessRecord] = {}
    for ppid, pid, memory, cpu in rows:
        tree.setdefault(ppid, ProcessRecord(pid=ppid)).children.add(pid)
        record = tree.setdefault(pid, ProcessRecord(pid=pid))
        record.ppid = ppid
        record.memory_kib = memory
        record.cpu_percent = cpu
    return tree


def make_process(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    """Create a mock asyncio subprocess that finishes immediately."""
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


def fake_exec(outputs: dict[str, MagicMock]) -> AsyncMock:
    """Return a create_subprocess_exec stand-in that picks a process by argv[0]."""

    async def _exec(*args, **kwargs):
        return outputs[args[0]]

    return AsyncMock(side_effect=_exec)
