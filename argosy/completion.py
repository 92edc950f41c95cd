"""
Completion candidates for a partially typed command line.

complete() replays the classification rules of the parser over the tokens
before the cursor to find out what is expected at the cursor:

- "option": an option name of the current command (token starts with "-");
- "value": a value of an option or positional, taken from its completions;
- "subcommand": the name or alias of a child command.

Nothing is converted, validated or written to targets: replaying a line never
fails on input the parser would reject later.

    >>> complete(spec, ["--col"])
    completion(context='option', target=command-spec(...), candidates=('--color',))
"""
import logging
from collections import namedtuple

from .arguments import Option
from .faults import AmbiguousOptionError
from .parser import Parser
from .utils import *

logger = logging.getLogger(__name__)


class Completion(namedtuple("Completion", ("context", "target", "candidates"))):
    """
    What is expected at the cursor.

    - context: "option", "value" or "subcommand".
    - target: the ArgSpec whose value is expected, else the current CommandSpec.
    - candidates: full replacement tokens starting with the typed prefix.
    """
    __slots__ = ()

    def __repr__(self):
        return "completion(context=%r, target=%r, candidates=%r)" % self


class _Replay:
    __slots__ = ("command", "pending", "taken", "position", "literal")

    def __init__(self, command, /):
        self.command = command
        self.pending = None
        self.taken = 0
        self.position = 0
        self.literal = False

    def expect(self, option, value, /):
        """remember option as waiting for values unless it already got one."""
        self.pending = option if option.arity.max > 0 and value is Unset else None
        self.taken = 0


def _replay(parser, tokens, /):
    state = _Replay(parser.command)
    for token in tokens:
        if state.literal:
            state.position += 1
            continue
        try:
            classified = parser.classify(state.command, token)
        except AmbiguousOptionError:
            state.pending = None
            continue

        if state.pending is not None and state.taken < state.pending.arity.max:
            if classified.kind in ("positional", "unknown") or parser.settings.allow_options_as_values:
                state.taken += 1
                continue
        state.pending = None

        match classified.kind:
            case "delimiter":
                state.literal = True
            case "subcommand":
                state.command = classified.argument
                state.position = 0
            case "option":
                if not (classified.negated or classified.argument.boolean):
                    state.expect(classified.argument, classified.value)
            case "cluster":
                option, rest = classified.argument, classified.value
                while (option.boolean or option.arity.max == 0) and rest:
                    if (found := state.command.lookup("-" + rest[0])) is None:
                        break
                    option, rest = found[0], rest[1:]
                else:
                    if not option.boolean and option.arity.max > 0:
                        state.expect(option, rest or Unset)
            case "positional":
                state.position += 1
    return state


def _filtered(candidates, prefix, /):
    seen = []
    for candidate in candidates:
        if candidate.startswith(prefix) and candidate not in seen:
            seen.append(candidate)
    return tuple(seen)


def _options(command, prefix, /):
    names = [name for name, (option, _) in command.names().items() if not option.hidden]
    return Completion("option", command, _filtered(names, prefix))


def complete(command, arguments, index=Unset, position=Unset, /, *, settings=Unset, registry=Unset):
    """
    Candidates for arguments[index], of which position characters are typed.

    - index defaults to len(arguments): completing a new, empty token.
    - position defaults to the end of that token.
    - settings and registry are handed to the Parser used for the replay.

    Raises IndexError for an index or position outside the arguments.
    """
    parser = Parser(command, settings, registry=registry)
    arguments = list(arguments)
    index = coalesce(index, len(arguments))
    if index == len(arguments):
        arguments.append("")
    if not 0 <= index < len(arguments):
        raise IndexError("completion index %d is out of range for %d argument(s)" % (index, len(arguments)))
    current = arguments[index]
    position = coalesce(position, len(current))
    if not 0 <= position <= len(current):
        raise IndexError("completion position %d is out of range for %r" % (position, current))

    prefix = current[:position]
    state = _replay(parser, arguments[:index])
    command = state.command
    logger.debug("completing %r in %r", prefix, command.qualified_name)

    if (pending := state.pending) is not None and state.taken < pending.arity.max:
        if state.taken < pending.arity.min or not prefix.startswith("-"):
            return Completion("value", pending, _filtered(pending.completions, prefix))

    positional = command.positional_at(state.position)
    if state.literal:
        return Completion("value", positional, _filtered(positional.completions if positional else (), prefix))

    if prefix.startswith("-"):
        head, separator, _ = prefix.partition(parser.settings.separator)
        if separator and (found := command.lookup(head)) is not None and isinstance(found[0], Option):
            candidates = (head + separator + candidate for candidate in found[0].completions)
            return Completion("value", found[0], _filtered(candidates, prefix))
        return _options(command, prefix)

    subcommands = [subcommand for subcommand in command.subcommands if not subcommand.hidden]
    if subcommands:
        names = [name for subcommand in subcommands for name in (subcommand.name, *subcommand.aliases)]
        if found := _filtered(names, prefix):
            return Completion("subcommand", command, found)
    if positional is not None and positional.completions:
        return Completion("value", positional, _filtered(positional.completions, prefix))
    if not prefix:
        return _options(command, prefix)
    return Completion("value", positional if positional is not None else command, ())


__all__ = (
    "Completion",
    "complete",
)
