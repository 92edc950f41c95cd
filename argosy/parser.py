"""
Argosy parser: match an argument vector against a CommandSpec tree.

What this module provides
- Parser: binds a command tree once (sealing it and resolving one converter
  per argument), then parses any number of argument vectors.
- Token: the classification of one raw token (see Parser.classify).

Classification order for a token, in the context of one command
1. the end-of-options delimiter ("--"): every later token is positional;
2. a subcommand name or alias: the context switches to that subcommand;
3. an exact option name, including derived negative forms;
4. "name=value" when name is an option of the context;
5. a short-option cluster "-abc" when "-a" is a one-character option;
6. an unambiguous abbreviation of a long name (when enabled);
7. an unknown option when the token looks like one;
8. a positional value otherwise.

The cluster rule comes before abbreviations: a single-dash token whose first
character is a registered short option is always read as a cluster, even if
it is also the prefix of a single-dash long name.

Values never live on the specifications: each parse keeps them in its own
side table, so a bound tree can be shared by repeated or concurrent parses.

Quick start
    parser = Parser(CommandSpec("ls", Option("-l", type=bool), Positional("PATH", type=list[str])))
    result = parser.parse(["-l", "src", "docs"])
    result["PATH"]  # -> ['src', 'docs']
"""
import difflib
import logging
import pathlib
import re
import shlex
from collections import Counter, defaultdict, deque, namedtuple

from .arguments import Option, Positional
from .commands import CommandSpec
from .converters import registry as _registry, Converter, ConverterRegistry
from .faults import *
from .results import Match, ParseResult
from .settings import ParserSettings
from .utils import *
from .validation import Validator

logger = logging.getLogger(__name__)

Token = namedtuple("Token", ("kind", "name", "argument", "value", "negated"))
Token.__doc__ = """
Classification of one raw token.

- kind: "delimiter", "subcommand", "option", "cluster", "unknown" or "positional".
- name: the option name (canonical for abbreviations) or the token itself.
- argument: the Option (option, cluster), the CommandSpec (subcommand) or None.
- value: attached value ("--out=x" -> "x", "-c123" -> "123"), else Unset.
- negated: whether a derived negative name was used.
"""

_OPTION_LIKE = re.compile(r"--?[^\W\d_](-?[^\W_]+)*(=.*)?", re.DOTALL)
_BOOLEANS = ("true", "false")


class _Invocation:
    """Side table of one parse: every per-invocation value lives here."""
    __slots__ = ("values", "matches", "unmatched", "commands", "help", "version", "total")

    def __init__(self, total, /):
        self.values = defaultdict(list)
        self.matches = []
        self.unmatched = []
        self.commands = []
        self.help = False
        self.version = False
        self.total = total


class _Context:
    """Matching state of one command of the chain."""
    __slots__ = ("command", "position", "literal")

    def __init__(self, command, /):
        self.command = command
        self.position = 0
        self.literal = False


class Parser:
    """
    Matcher bound to one command tree.

    Parameters
    - command: the root CommandSpec (any command of a tree binds its root).
    - settings: ParserSettings (defaults when Unset).
    - registry: ConverterRegistry used to resolve converters (the module
      registry of argosy.converters when Unset).

    Binding seals the tree: later additions raise BuildError.
    """
    __slots__ = ("_command", "_settings", "_registry", "_converters", "_validator")

    def __init__(self, command, /, settings=Unset, *, registry=Unset):
        if not isinstance(command, CommandSpec):
            raise TypeError("parser command must be a command-spec")
        if not isinstance(settings, ParserSettings | Unset):
            raise TypeError("parser settings must be parser-settings")
        if not isinstance(registry, ConverterRegistry | Unset):
            raise TypeError("parser registry must be a converter-registry")

        self._command = command.root
        self._settings = coalesce(settings, ParserSettings())
        self._registry = coalesce(registry, _registry)
        self._validator = Validator()
        self._command.seal()

        self._converters = {}
        for node in (self._command, *self._descendants(self._command)):
            for argument in node.arguments:
                if argument not in self._converters:
                    self._converters[argument] = self._bind(argument)
        logger.debug("bound parser to %r with %d argument(s)", self._command.name, len(self._converters))

    @staticmethod
    def _descendants(command, /):
        for subcommand in command.subcommands:
            yield subcommand
            yield from Parser._descendants(subcommand)

    def _bind(self, argument, /):
        """resolve (key converter, value converter) for argument."""
        descriptor = argument.type
        value = argument.converter
        if value is Unset:
            value = self._registry.resolve(descriptor.type)
        elif not isinstance(value, Converter):
            value = Converter(value)
        key = self._registry.resolve(descriptor.key) if descriptor.kind == "mapping" else Unset
        return key, value

    @property
    def command(self):
        return self._command

    @property
    def settings(self):
        return self._settings

    def converter(self, argument, /):
        """the value converter bound to argument."""
        return self._converters[argument][1]

    # ── classification ───────────────────────────────────────────────────────

    def classify(self, command, token, /):
        """
        Classify token in the context of command (see the module docstring).

        Raises AmbiguousOptionError when abbreviations are enabled and token
        abbreviates more than one option.
        """
        settings = self._settings
        if token == settings.end_of_options:
            return Token("delimiter", token, None, Unset, False)
        if (subcommand := command.subcommand(token)) is not None:
            return Token("subcommand", token, subcommand, Unset, False)
        if (found := command.lookup(token)) is not None:
            return Token("option", token, found[0], Unset, found[1])
        if not token.startswith("-") or token == "-":
            return Token("positional", token, None, Unset, False)

        head, separator, tail = token.partition(settings.separator)
        if separator and (found := command.lookup(head)) is not None:
            return Token("option", head, found[0], tail, found[1])

        if settings.posix_clustering and not token.startswith("--") and len(token) > 2:
            if (found := command.lookup(token[:2])) is not None:
                return Token("cluster", token[:2], found[0], token[2:], found[1])

        if settings.abbreviations and (found := self._abbreviated(command, head)) is not None:
            name, (option, negated) = found
            return Token("option", name, option, tail if separator else Unset, negated)

        if _OPTION_LIKE.fullmatch(token):
            return Token("unknown", head if separator else token, None, Unset, False)
        return Token("positional", token, None, Unset, False)

    def _abbreviated(self, command, head, /):
        dashes = len(head) - len(head.lstrip("-"))
        segments = head[dashes:].split("-")
        if not segments[0]:
            return None

        candidates = {}
        for name, entry in command.names().items():
            stripped = name.lstrip("-")
            if len(name) - len(stripped) != dashes or len(stripped) <= 1:
                continue
            parts = stripped.split("-")
            if len(parts) >= len(segments) and all(map(str.startswith, parts, segments)):
                candidates.setdefault(entry, []).append(name)

        if not candidates:
            return None
        if len(candidates) > 1:
            names = sorted(max(names, key=len) for names in candidates.values())
            raise AmbiguousOptionError(
                "option %r is ambiguous: it abbreviates %s" % (head, ", ".join(map(repr, names))),
                code=FaultCode.AMBIGUOUS_OPTION,
                token=head,
                command=command,
                hint="type more of the name, for example %r" % names[0],
                docs=getdoc(FaultCode.AMBIGUOUS_OPTION),
            )
        (entry, names), = candidates.items()
        logger.debug("%r abbreviates %r", head, max(names, key=len))
        return max(names, key=len), entry

    # ── parsing ──────────────────────────────────────────────────────────────

    def parse(self, arguments, /):
        """
        Parse arguments (a sequence of strings, or one shell-like string).

        Returns a ParseResult and writes the values to the bound targets.
        Raises ParseError subclasses while matching, and a ConstraintError
        aggregating every constraint violation afterwards.
        """
        if isinstance(arguments, str):
            arguments = shlex.split(arguments)
        else:
            arguments = tuple(arguments)
        if not all(isinstance(argument, str) for argument in arguments):
            raise TypeError("parse() arguments must be strings")

        stack = deque(self._expand(arguments, set()))
        invocation = _Invocation(len(stack))
        contexts = [context := _Context(self._command)]

        while stack:
            token = stack.popleft()
            position = invocation.total - len(stack)

            if context.literal:
                self._positional(invocation, context, token, stack, position)
                continue

            classified = self.classify(context.command, token)
            logger.debug("token %r at %d classified as %s", token, position, classified.kind)

            match classified.kind:
                case "delimiter":
                    context.literal = True
                case "subcommand":
                    contexts.append(context := _Context(classified.argument))
                case "option":
                    self._option(invocation, context, classified, stack, position)
                case "cluster":
                    self._cluster(invocation, context, classified, stack, position)
                case "unknown":
                    self._unmatched(invocation, context, token, stack, position, option=True)
                case _:
                    self._positional(invocation, context, token, stack, position)

        invocation.commands = [context.command for context in contexts]
        # help and version requests neither prompt nor validate
        requested = invocation.help or invocation.version
        for context in contexts:
            for positional in context.command.positionals:
                if positional.interactive and positional not in invocation.values and not requested:
                    raw = self._settings.prompter(positional)
                    self._record(invocation, context, positional, Unset, [raw], stack, invocation.total)

        values = self._resolve(invocation)
        if not requested:
            self._validator.validate(invocation.commands, Counter(match.argument for match in invocation.matches), values)

        result = ParseResult(
            invocation.matches,
            invocation.commands,
            invocation.unmatched,
            values,
            help_requested=invocation.help,
            version_requested=invocation.version,
        )
        self._apply(result)
        return result

    def _expand(self, arguments, seen, /):
        """replace "@file" tokens with the shell-split contents of file."""
        for token in arguments:
            if not (self._settings.expand_at_files and token.startswith("@") and len(token) > 1):
                yield token
                continue
            path = pathlib.Path(token[1:])
            if not path.is_file() or path.resolve() in seen:
                yield token
                continue
            try:
                contents = path.read_text()
            except OSError as error:
                trigger(ArgumentFileWarning("argument file %r cannot be read (%s); kept as-is" % (str(path), error)))
                yield token
                continue
            logger.debug("expanding argument file %r", str(path))
            yield from self._expand(shlex.split(contents, comments=True), seen | {path.resolve()})

    def _acceptable(self, context, option, token, /):
        """whether token may be consumed as a value of option."""
        settings = self._settings
        if token == settings.end_of_options or context.command.subcommand(token) is not None:
            return False
        try:
            kind = self.classify(context.command, token).kind
        except AmbiguousOptionError:
            kind = "option"
        if kind in ("option", "cluster"):
            return settings.allow_options_as_values
        if kind == "unknown" and not settings.unknown_options_as_values:
            return False
        if option.boolean:
            return token.lower() in _BOOLEANS
        return True

    def _flag(self, option, negated, /):
        """value set by a flag-like occurrence: the inverse of the default, or the default when negated."""
        default = Unset
        if option.default is not Unset:
            default = option.default.resolve(option, self._settings)
            if isinstance(default, str):
                default = self._convert(option, default, deque(), Unset)
        default = bool(coalesce(default, False))
        return default if negated else not default

    def _option(self, invocation, context, token, stack, position, /):
        option = token.argument
        arity = option.arity
        invocation.help |= option.usage_help
        invocation.version |= option.version_help

        if (token.negated or arity.max == 0) and option.boolean:
            if token.value is not Unset:
                raise UnexpectedValueError(
                    "option %r at %s position takes no value, got %r" % (token.name, ordinal(position), token.value),
                    code=FaultCode.UNEXPECTED_VALUE,
                    argument=option,
                    token=token.value,
                    index=position,
                    command=context.command,
                    hint="remove everything from %r (for example: %s)" % (self._settings.separator, token.name),
                    docs=getdoc(FaultCode.UNEXPECTED_VALUE),
                )
            return self._record(invocation, context, option, token.name, [], stack, position, value=self._flag(option, token.negated))

        if (
            not self._settings.allow_overwrite
            and not option.multivalued
            and option in invocation.values
        ):
            raise DuplicateOptionError(
                "option %r at %s position was already specified" % (token.name, ordinal(position)),
                code=FaultCode.DUPLICATE_OPTION,
                argument=option,
                index=position,
                command=context.command,
                hint="give %s only once" % option.longest,
                docs=getdoc(FaultCode.DUPLICATE_OPTION),
            )

        raws = [] if token.value is Unset else [token.value]
        while len(raws) < arity.max and stack and self._acceptable(context, option, stack[0]):
            raws.append(stack.popleft())

        if len(raws) < arity.min:
            if not raws and option.interactive:
                raws.append(self._settings.prompter(option))
            else:
                raise MissingValueError(
                    "option %r at %s position expects %s %s, got %d" % (
                        token.name, ordinal(position), arity, "value" if arity.max == 1 else pluralize("value"), len(raws)
                    ),
                    code=FaultCode.MISSING_VALUE,
                    argument=option,
                    token=stack[0] if stack else None,
                    index=position,
                    command=context.command,
                    hint="add a value after %s (for example: %s%s%s)" % (
                        token.name, token.name, self._settings.separator, option.placeholder
                    ),
                    docs=getdoc(FaultCode.MISSING_VALUE),
                )

        if not raws:
            if option.boolean:
                return self._record(invocation, context, option, token.name, [], stack, position, value=self._flag(option, token.negated))
            if option.interactive:
                raws.append(self._settings.prompter(option))
            elif option.fallback is not Unset:
                if not isinstance(option.fallback, str):
                    return self._record(invocation, context, option, token.name, [], stack, position, value=option.fallback)
                raws.append(option.fallback)

        self._record(invocation, context, option, token.name, raws, stack, position)

    def _cluster(self, invocation, context, token, stack, position, /):
        """expand "-abc" into its options; a value-taking option ends the run."""
        name, option, negated, rest = token.name, token.argument, token.negated, token.value
        while True:
            if option.boolean or option.arity.max == 0:
                if rest and option.arity.max > 0 and not negated and rest.lower() in _BOOLEANS:
                    return self._option(invocation, context, Token("option", name, option, rest, negated), deque(), position)
                # only the last option of the run may take values from the stack
                self._option(invocation, context, Token("option", name, option, Unset, negated), deque() if rest else stack, position)
                if not rest:
                    return
                if (found := context.command.lookup("-" + rest[0])) is None:
                    return self._unmatched(invocation, context, "-" + rest, stack, position, option=True)
                name, (option, negated), rest = "-" + rest[0], found, rest[1:]
            else:
                return self._option(invocation, context, Token("option", name, option, rest or Unset, negated), stack, position)

    def _positional(self, invocation, context, token, stack, position, /):
        command = context.command
        positional = command.positional_at(context.position)
        if positional is None or len(self._matched(invocation, positional)) >= positional.arity.max:
            return self._unmatched(invocation, context, token, stack, position, option=False)
        context.position += 1
        if self._settings.stop_at_positional:
            context.literal = True
        self._record(invocation, context, positional, Unset, [token], stack, position)

    def _matched(self, invocation, argument, /):
        return [value for match in invocation.matches if match.argument is argument for value in match.values]

    def _unmatched(self, invocation, context, token, stack, position, /, *, option):
        settings = self._settings
        command = context.command
        if command.unmatched is not Unset or settings.collect_unmatched or settings.stop_at_unmatched:
            invocation.unmatched.append(token)
            if settings.stop_at_unmatched:
                invocation.unmatched.extend(stack)
                stack.clear()
            logger.debug("captured unmatched token %r", token)
            return

        route = command.qualified_name
        if option:
            name = token.partition(settings.separator)[0]
            suggestions = difflib.get_close_matches(name, command.names().keys(), 5)
            try:
                hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], route)
            except IndexError:
                hint = "run '%s --help' to see all available options" % route
            raise UnknownOptionError(
                "unknown option %r at %s position" % (name, ordinal(position)),
                code=FaultCode.UNKNOWN_OPTION,
                token=name,
                index=position,
                command=command,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            )

        suggestions = difflib.get_close_matches(
            token, [name for subcommand in command.subcommands for name in (subcommand.name, *subcommand.aliases)], 3
        )
        try:
            hint = "did you mean the subcommand %r?" % suggestions[0]
        except IndexError:
            hint = "remove this extra value or run '%s --help' to see the expected usage" % route
        raise UnmatchedArgumentError(
            "unexpected argument %r at %s position" % (token, ordinal(position)),
            code=FaultCode.UNMATCHED_ARGUMENT,
            token=token,
            index=position,
            command=command,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNMATCHED_ARGUMENT),
        )

    def _split(self, argument, raws, /):
        if argument.split is Unset:
            return list(raws)
        return [piece for raw in raws for piece in re.split(argument.split, raw)]

    def _convert(self, argument, raw, stack, position, /, *, command=None):
        key, value = self._converters[argument]
        try:
            if argument.type.kind == "mapping":
                name, separator, text = raw.partition("=")
                if not separator:
                    raise ValueError("expected key=value")
                return key(name), value(text, stack)
            return value(raw, stack)
        except (ValueError, TypeError, ArithmeticError) as error:
            raise ConversionError(
                "invalid value %r for %s %s: %s" % (
                    raw, argument, "default" if position is Unset else "at %s position" % ordinal(position), error
                ),
                code=FaultCode.CONVERSION_FAILURE,
                argument=argument,
                token=raw,
                index=position,
                command=command,
                cause=error,
                hint="expected %s" % _expectation(argument),
                docs=getdoc(FaultCode.CONVERSION_FAILURE),
            ) from error

    def _record(self, invocation, context, argument, name, raws, stack, position, /, *, value=Unset):
        if value is not Unset:
            values = [value]
        else:
            raws = self._split(argument, raws)
            values = [self._convert(argument, raw, stack, position, command=context.command) for raw in raws]
        invocation.matches.append(Match(argument, tuple(raws), context.command, name))
        invocation.values[argument].extend(values)
        logger.debug("matched %r with %r", argument, raws)

    # ── after matching ───────────────────────────────────────────────────────

    def _resolve(self, invocation, /):
        """final values: built from matches, then defaults for everything else."""
        values = {argument: argument.type.build(found) for argument, found in invocation.values.items()}
        for command in invocation.commands:
            for argument in command.arguments:
                if argument in values:
                    continue
                if (default := self._default(argument)) is not Unset:
                    values[argument] = default
                elif isinstance(argument, Option) and argument.boolean:
                    values[argument] = False
        return values

    def _default(self, argument, /):
        if argument.default is Unset:
            return Unset
        if (value := argument.default.resolve(argument, self._settings)) is Unset:
            return Unset
        if isinstance(value, str):
            converted = [self._convert(argument, raw, deque(), Unset) for raw in self._split(argument, [value])]
            return argument.type.build(converted)
        if argument.type.kind == "mapping" and isinstance(value, dict):
            return dict(value)
        if argument.multivalued and not isinstance(value, str | bytes):
            return argument.type.build(list(value))
        return value

    def _apply(self, result, /):
        """write values to bound targets, then call the callbacks of matched arguments."""
        values = result.values
        for command in result.commands:
            for argument in command.arguments:
                if argument not in values or argument.dest is Unset:
                    continue
                if (target := command.binding(argument)) is not Unset:
                    setattr(target, argument.dest, values[argument])
            if command.unmatched is not Unset and command.target is not Unset:
                setattr(command.target, command.unmatched, list(result.unmatched))

        called = set()
        for match in result.matches:
            if match.argument not in called:
                called.add(match.argument)
                match.argument(values[match.argument])


def _expectation(argument, /):
    descriptor = argument.type
    name = getattr(descriptor.type, "__name__", str(descriptor.type))
    if descriptor.kind == "mapping":
        return "key=value pairs of %s" % name
    if descriptor.boolean:
        return "true or false"
    return "a value of type %s" % name


__all__ = (
    "Token",
    "Parser",
)
