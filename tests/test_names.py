"""Tests for application name resolution."""

import pytest

from hog.names import (
    DEFAULT_RESOLVER,
    NameEntry,
    NameResolver,
    PatternRule,
    SubstringRule,
    parse_name_listing,
    short_name,
)
from tests.conftest import PS_LISTING


class TestShortName:
    """Tests for the built-in rules."""

    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("/Applications/Slack.app/Contents/MacOS/Slack", "Slack"),
            ("/Applications/Google Chrome.app/Contents/MacOS/Google Chrome", "Google Chrome"),
            ("/Applications/Utilities/foo", "Utilities"),
            (
                "/System/Applications/Utilities/Activity Monitor.app/Contents/MacOS/"
                "Activity Monitor",
                "Activity Monitor",
            ),
            ("/System/Library/CoreServices/Finder.app/Contents/MacOS/Finder", "Finder"),
            ("/opt/homebrew/bin/postgres -D /opt/homebrew/var/postgres", "postgres"),
            ("/usr/sbin/cfprefsd agent", "cfprefsd"),
            ("/usr/libexec/trustd", "trustd"),
            ("/Library/Application Support/Foo/Bar Agent.app/Contents/MacOS/agent", "Bar Agent"),
        ],
    )
    def test_pattern_rules(self, command: str, expected: str) -> None:
        """Known install roots resolve to the bundle or binary name."""
        assert short_name(command) == expected

    def test_vscode_extension_helper(self) -> None:
        """Extension host processes belong to Visual Studio Code."""
        command = "/Users/me/.vscode/extensions/ms-python.python/bin/server --stdio"
        assert short_name(command) == "Visual Studio Code"

    def test_webex_helper(self) -> None:
        """Webex helpers outside /Applications are still Webex Meetings."""
        command = "/Users/me/Library/Application Support/WebEx Folder/T33/Meeting Center.app/x"
        assert short_name(command) == "Webex Meetings"

    def test_unmatched_returns_command(self) -> None:
        """Commands no rule matches resolve to themselves."""
        assert short_name("-zsh") == "-zsh"
        assert short_name("node server.js") == "node server.js"

    def test_empty_command(self) -> None:
        """An empty command line resolves to the empty string."""
        assert short_name("") == ""

    def test_pattern_beats_substring(self) -> None:
        """A pattern match wins even when a substring marker is also present."""
        command = "/Applications/Code.app/Contents/MacOS/Electron .vscode/extensions"
        assert short_name(command) == "Code"


class TestNameResolver:
    """Tests for rule ordering."""

    def test_first_pattern_wins(self) -> None:
        """With two matching patterns, the earlier one's capture is used."""
        resolver = NameResolver([PatternRule(r"^/opt/(\w+)"), PatternRule(r"^/opt/\w+/(\w+)")])
        assert resolver.resolve("/opt/first/second") == "first"

        reversed_resolver = NameResolver(
            [PatternRule(r"^/opt/\w+/(\w+)"), PatternRule(r"^/opt/(\w+)")]
        )
        assert reversed_resolver.resolve("/opt/first/second") == "second"

    def test_substrings_consulted_after_patterns(self) -> None:
        """Substring rules run after every pattern rule, whatever the given order."""
        resolver = NameResolver([SubstringRule("opt", "Marker"), PatternRule(r"^/opt/(\w+)")])
        assert resolver.resolve("/opt/tool") == "tool"
        assert isinstance(resolver.rules[-1], SubstringRule)

    def test_first_substring_wins(self) -> None:
        """Substring rules keep their relative order."""
        resolver = NameResolver([SubstringRule("a", "First"), SubstringRule("ab", "Second")])
        assert resolver.resolve("xaby") == "First"

    def test_default_with_aliases(self) -> None:
        """Configured aliases are tried after the built-in rules."""
        resolver = NameResolver.default([("Slack Helper", "Slack"), ("-zsh", "Shell")])
        assert resolver.resolve("/tmp/Slack Helper --type=gpu") == "Slack"
        assert resolver.resolve("-zsh") == "Shell"
        # Built-in pattern still wins over an alias
        assert resolver.resolve("/usr/bin/Slack Helper") == "Slack"
        assert resolver.resolve("/usr/bin/-zsh") == "-zsh"

    def test_deterministic(self) -> None:
        """Resolving twice gives the same answer."""
        command = "/Applications/Slack.app/Contents/MacOS/Slack"
        assert DEFAULT_RESOLVER.resolve(command) == DEFAULT_RESOLVER.resolve(command)


class TestParseNameListing:
    """Tests for parsing ps ax output."""

    def test_parses_entries(self) -> None:
        """Each row becomes a NameEntry keyed by pid."""
        names = parse_name_listing(PS_LISTING)

        assert set(names) == {"1", "500", "501", "502", "600", "601", "700"}
        assert names["500"] == NameEntry(
            pid="500",
            long_name="/Applications/Slack.app/Contents/MacOS/Slack",
            short_name="Slack",
        )
        assert names["600"].short_name == "Terminal"
        assert names["700"].short_name == "cfprefsd"
        assert names["601"].short_name == "-zsh"

    def test_command_with_spaces_rejoined(self) -> None:
        """Commands with arguments keep their arguments."""
        names = parse_name_listing(PS_LISTING)
        assert names["501"].long_name.endswith("Slack Helper --type=renderer")

    def test_skips_preamble_and_blank_lines(self) -> None:
        """Anything before the header and blank lines are ignored."""
        text = "garbage line\n  PID TT STAT TIME COMMAND\n\n  42 ?? S 0:00.01 /usr/bin/true\n\n"
        names = parse_name_listing(text)
        assert list(names) == ["42"]
        assert names["42"].short_name == "true"

    def test_no_header(self) -> None:
        """Output without a header yields no entries."""
        assert parse_name_listing("  42 ?? S 0:00.01 /usr/bin/true\n") == {}

    def test_missing_command(self) -> None:
        """A row without a command column resolves to the empty string."""
        names = parse_name_listing("PID TT STAT TIME COMMAND\n  42 ?? Z 0:00.00\n")
        assert names["42"].long_name == ""
        assert names["42"].short_name == ""

    def test_custom_resolver(self) -> None:
        """The given resolver is used for every row."""
        resolver = NameResolver([SubstringRule("Slack", "Chat")])
        names = parse_name_listing(PS_LISTING, resolver)
        assert names["500"].short_name == "Chat"
        assert names["700"].short_name == "/usr/sbin/cfprefsd agent"
