"""Application name resolution from process command lines."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

log = structlog.get_logger()

# Header of `ps ax` output: "  PID   TT  STAT      TIME COMMAND"
NAMES_HEADER = "PID"
# TT, STAT and TIME sit between the pid and the command
_STATUS_COLUMNS = 3


@dataclass(frozen=True)
class NameEntry:
    """A process command line and the application name it resolves to."""

    pid: str
    long_name: str
    short_name: str


class NameRule:
    """Base class for a single name resolution rule."""

    def resolve(self, command: str) -> str | None:
        """Return the application name, or None if the rule does not apply."""
        raise NotImplementedError


class PatternRule(NameRule):
    """Extract the name from the first capture group of a regular expression."""

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern)

    def resolve(self, command: str) -> str | None:
        match = self.pattern.search(command)
        if match is None:
            return None
        return match.group(1)

    def __repr__(self) -> str:
        return f"PatternRule({self.pattern.pattern!r})"


class SubstringRule(NameRule):
    """Map any command line containing marker to a fixed name."""

    def __init__(self, marker: str, name: str):
        self.marker = marker
        self.name = name

    def resolve(self, command: str) -> str | None:
        if self.marker in command:
            return self.name
        return None

    def __repr__(self) -> str:
        return f"SubstringRule({self.marker!r} -> {self.name!r})"


# Bundle or binary name under the usual install roots. First match wins.
DEFAULT_PATTERNS = (
    r"^/Applications/(.*?)(?:\.app)?/",
    r"^/System/Applications/Utilities/(.*?)(?:\.app)?/",
    r"^/System/Library/[^ ]*/([^ ]*)",
    r"^/opt/homebrew/bin/([^ ]*)",
    r"^/usr/[^ ]*/([^ ]*)",
    r"^/Library/.*/(.*?)(?:\.app)/",
)

# Helpers that live outside any bundle
DEFAULT_SUBSTRINGS = (
    (".vscode/extensions", "Visual Studio Code"),
    ("Meeting Center.app", "Webex Meetings"),
)


class NameResolver:
    """Ordered list of name rules. First rule that matches wins.

    Pattern rules are always consulted before substring rules, whatever
    order they were given in.
    """

    def __init__(self, rules: Iterable[NameRule]):
        rules = list(rules)
        patterns = [r for r in rules if not isinstance(r, SubstringRule)]
        substrings = [r for r in rules if isinstance(r, SubstringRule)]
        self.rules: list[NameRule] = patterns + substrings

    @classmethod
    def default(cls, aliases: Iterable[tuple[str, str]] = ()) -> "NameResolver":
        """Build the built-in rules, with extra (marker, name) aliases tried last."""
        rules: list[NameRule] = [PatternRule(p) for p in DEFAULT_PATTERNS]
        rules += [SubstringRule(marker, name) for marker, name in DEFAULT_SUBSTRINGS]
        rules += [SubstringRule(marker, name) for marker, name in aliases]
        return cls(rules)

    def resolve(self, command: str) -> str:
        """Return the short name for a command line, or the command line itself."""
        for rule in self.rules:
            name = rule.resolve(command)
            if name is not None:
                return name
        return command


DEFAULT_RESOLVER = NameResolver.default()


def short_name(command: str, resolver: NameResolver = DEFAULT_RESOLVER) -> str:
    """Resolve a full command line to a short application name."""
    return resolver.resolve(command)


def parse_name_listing(
    text: str,
    resolver: NameResolver = DEFAULT_RESOLVER,
) -> dict[str, NameEntry]:
    """Parse `ps ax` output into a pid -> NameEntry mapping.

    Lines up to and including the header are skipped, as are blank lines.
    Commands are re-joined with single spaces.
    """
    names: dict[str, NameEntry] = {}
    lines = iter(text.splitlines())

    for line in lines:
        if line.lstrip().startswith(NAMES_HEADER):
            break

    for line in lines:
        parts = line.split()
        if not parts:
            continue
        pid = parts[0]
        long_name = " ".join(parts[1 + _STATUS_COLUMNS :])
        names[pid] = NameEntry(pid=pid, long_name=long_name, short_name=resolver.resolve(long_name))

    log.debug("name_listing_parsed", processes=len(names))
    return names
