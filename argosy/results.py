"""
Parse results: what a parse matched, in command-line order.

A ParseResult is created fresh by every parse and never changes afterwards.
It compares structurally: two results built from independently constructed
but identical command trees are equal when they matched the same arguments
with the same raw values and ended with the same final values.
"""
from collections import namedtuple
from types import MappingProxyType

from .arguments import ArgSpec
from .utils import *

Match = namedtuple("Match", ("argument", "values", "command", "name"))
Match.__doc__ = """
One matched occurrence.

- argument: the ArgSpec that matched.
- values: raw strings consumed by this occurrence (after splitting).
- command: CommandSpec whose context matched it.
- name: option name as typed (canonical name for abbreviations), or Unset for positionals.
"""


class ParseResult:
    __slots__ = ("_matches", "_commands", "_unmatched", "_values", "_help_requested", "_version_requested")

    commands = mirror("commands")
    unmatched = mirror("unmatched")
    help_requested = mirror("help_requested")
    version_requested = mirror("version_requested")

    def __init__(self, matches, commands, unmatched=(), values=Unset, /, *, help_requested=False, version_requested=False):
        self._matches = tuple(matches)
        self._commands = tuple(commands)
        self._unmatched = tuple(unmatched)
        self._values = dict(coalesce(values, {}))
        self._help_requested = bool(help_requested)
        self._version_requested = bool(version_requested)

    @property
    def matches(self):
        """Match entries in command-line order."""
        return self._matches

    @property
    def values(self):
        """final typed values keyed by ArgSpec (matched or defaulted)."""
        return MappingProxyType(self._values)

    @property
    def command(self):
        """the innermost matched command."""
        return self._commands[-1]

    @property
    def root(self):
        return self._commands[0]

    @property
    def subcommand(self):
        """the innermost command when a subcommand was matched, else None."""
        return self._commands[-1] if len(self._commands) > 1 else None

    def _resolve(self, key, /):
        if isinstance(key, ArgSpec):
            return key
        if not isinstance(key, str):
            raise TypeError("parse-result keys must be argument specs or strings")
        for command in reversed(self._commands):
            if (found := command.lookup(key)) is not None:
                return found[0]
        for command in reversed(self._commands):
            for argument in command.arguments:
                if key in (argument.dest, argument.label):
                    return argument
        raise KeyError(key)

    def __getitem__(self, key):
        """value of an argument given as ArgSpec, option name, dest or label."""
        argument = self._resolve(key)
        try:
            return self._values[argument]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key):
        try:
            return self._resolve(key) in self._values
        except KeyError:
            return False

    def get(self, key, default=None, /):
        try:
            return self[key]
        except KeyError:
            return default

    def matched(self, key, /):
        """whether the argument occurred on the command line (defaults do not count)."""
        argument = self._resolve(key)
        return any(match.argument is argument for match in self._matches)

    def raw(self, key, /):
        """raw strings of every occurrence of the argument, in order."""
        argument = self._resolve(key)
        return tuple(value for match in self._matches if match.argument is argument for value in match.values)

    def _structure(self):
        return (
            tuple(command.qualified_name for command in self._commands),
            tuple((match.command.qualified_name, match.argument.key, match.values, match.name) for match in self._matches),
            self._unmatched,
            sorted(
                ((argument.key, value) for argument, value in self._values.items()),
                key=lambda item: repr(item[0]),
            ),
            self._help_requested,
            self._version_requested,
        )

    def __eq__(self, other):
        if not isinstance(other, ParseResult):
            return NotImplemented
        return self._structure() == other._structure()

    __hash__ = None

    def __rich_repr__(self):
        yield "commands", tuple(command.name for command in self._commands)
        yield "matches", tuple((str(match.argument), match.values) for match in self._matches)
        if self._unmatched:
            yield "unmatched", self._unmatched
        if self._help_requested:
            yield "help_requested", True
        if self._version_requested:
            yield "version_requested", True

    def __repr__(self):
        return "parse-result(%s)" % ", ".join("%s=%r" % field for field in self.__rich_repr__())


__all__ = (
    "Match",
    "ParseResult",
)
