"""
Argosy faults (errors raised while building, parsing and validating).

Scope
- FaultCode: stable numeric identifiers grouped by domain:
  build (10xxx), parse (11xxx), constraint (12xxx) and execution (13xxx).
- CommandException: base type carrying a lowercase message plus read-only
  options (argument, token, index, hint, ...), renderable through rich.
- BuildError: malformed command specification, raised while building.
- ParseError and subclasses: raised while matching tokens; they carry the
  offending argument specification and/or token.
- ConstraintViolation and subclasses: single group/required-argument problems.
- ConstraintError: an ExceptionGroup aggregating every violation of a parse.
- ExecutionError: for failures inside bound callbacks; never produced by the
  parser itself, callers raise it and it travels through untouched.
- trigger(): surface a fault, raising it or (in shell mode) printing it.
- getdoc(): optional documentation lookup for a code from the host.

Messages are position-first when a position is known ("unknown option
'--bogus' at second position") and carry a single actionable hint.
Palette entries can be overridden with a __styles__ mapping in __main__.
"""
import inspect
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, pluralize

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    numeric ranges encode domains and leave room for additions:
    - build (100xx): malformed specifications.
    - parse (110xx..111xx): tokens that cannot be matched or converted.
    - constraint (120xx): groups and required arguments.
    - execution (130xx): failures raised by bound callbacks.
    """
    # --- build errors (10xxx) ---
    MALFORMED_SPECIFICATION     = 10001
    DUPLICATE_NAME              = 10002
    POSITIONAL_INDEX_CONFLICT   = 10003
    CYCLIC_GROUP                = 10004
    SEALED_SPECIFICATION        = 10005
    MISSING_CONVERTER           = 10006

    # --- parse errors (11xxx) ---
    UNKNOWN_OPTION              = 11001
    UNMATCHED_ARGUMENT          = 11002
    MISSING_VALUE               = 11003
    UNEXPECTED_VALUE            = 11004
    CONVERSION_FAILURE          = 11005
    DUPLICATE_OPTION            = 11006
    AMBIGUOUS_OPTION            = 11007
    INTERACTIVE_UNAVAILABLE     = 11008

    # --- constraint errors (12xxx) ---
    EXCLUSIVE_GROUP             = 12001
    MISSING_GROUP               = 12002
    GROUP_MULTIPLICITY          = 12003
    INCOMPLETE_GROUP            = 12004
    MISSING_ARGUMENT            = 12005
    CONSTRAINT_VIOLATIONS       = 12100

    # --- execution errors (13xxx) ---
    EXECUTION_FAILURE           = 13001

    def normalize(self):
        """
        return a host-normalized label for this code.

        a __codes__ mapping in __main__ may remap codes to friendlier labels;
        otherwise the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _palette(base, /):
    """merge a default palette with the host overrides found in __main__."""
    return defaultdict(str, base | getattr(__import__("__main__"), "__styles__", {}))


class CommandException(Exception):
    """
    Base class of every argosy error.

    The message is positional; everything else travels in keyword options that
    are exposed read-only through .options. A few common options also have
    shortcuts: argument, token, index and hint. Subclasses provide defaults
    for the fault code, the title shown by the renderer and the exit status
    used in shell mode.
    """
    __code__ = FaultCode.MALFORMED_SPECIFICATION
    __title__ = "error"
    __status__ = 1

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*((message,) if message else ()))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def hint(self):
        return self.options.get("hint")

    @property
    def argument(self):
        return self.options.get("argument")

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        command = self.options.get("command")
        prog = getattr(main, "__prog__", command.root.name if command is not None else "argosy")

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(self.code.normalize(), "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]",
        )
        renders = [header, text(self.message, "error-message")]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders[1:]), title=header, title_align="left")
        return Group(*renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if (usage := self.options.get("usage")) is not None:
            console.print(usage)
        sys.exit(type(self).__status__)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class BuildError(CommandException, ValueError):
    __code__ = FaultCode.MALFORMED_SPECIFICATION
    __title__ = "malformed specification"


class ParseError(CommandException):
    __code__ = FaultCode.UNMATCHED_ARGUMENT
    __title__ = "invalid input"
    __status__ = 2


class UnknownOptionError(ParseError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class UnmatchedArgumentError(ParseError):
    __code__ = FaultCode.UNMATCHED_ARGUMENT
    __title__ = "unexpected argument"


class MissingValueError(ParseError):
    __code__ = FaultCode.MISSING_VALUE
    __title__ = "missing value"


class UnexpectedValueError(ParseError):
    __code__ = FaultCode.UNEXPECTED_VALUE
    __title__ = "option takes no value"


class ConversionError(ParseError):
    __code__ = FaultCode.CONVERSION_FAILURE
    __title__ = "invalid value"


class DuplicateOptionError(ParseError):
    __code__ = FaultCode.DUPLICATE_OPTION
    __title__ = "option specified twice"


class AmbiguousOptionError(ParseError):
    __code__ = FaultCode.AMBIGUOUS_OPTION
    __title__ = "ambiguous option"


class InteractiveUnavailableError(ParseError):
    __code__ = FaultCode.INTERACTIVE_UNAVAILABLE
    __title__ = "no interactive terminal"


class ConstraintViolation(CommandException):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "constraint violation"
    __status__ = 2

    @property
    def group(self):
        return self.options.get("group")


class ExclusiveGroupError(ConstraintViolation):
    __code__ = FaultCode.EXCLUSIVE_GROUP
    __title__ = "mutually exclusive arguments"


class MissingGroupError(ConstraintViolation):
    __code__ = FaultCode.MISSING_GROUP
    __title__ = "missing required group"


class GroupMultiplicityError(ConstraintViolation):
    __code__ = FaultCode.GROUP_MULTIPLICITY
    __title__ = "too many group members"


class IncompleteGroupError(ConstraintViolation):
    __code__ = FaultCode.INCOMPLETE_GROUP
    __title__ = "incomplete group"


class MissingArgumentError(ConstraintViolation):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing required argument"


class ExecutionError(CommandException):
    __code__ = FaultCode.EXECUTION_FAILURE
    __title__ = "execution failed"


class ConstraintError(ExceptionGroup[ConstraintViolation]):
    """
    Every constraint violation found after matching, reported at once.

    The individual violations are available through .exceptions (the usual
    ExceptionGroup attribute) in the order they were detected.
    """
    __code__ = FaultCode.CONSTRAINT_VIOLATIONS
    __status__ = 2

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, _summarize(exceptions), tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__(_summarize(exceptions), tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        })

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        command = self.options.get("command")
        prog = getattr(main, "__prog__", command.root.name if command is not None else "argosy")
        header = Text.assemble("[ ", text(prog, "prog-name"), " — ", text(self.message.title(), "title"), " ]")

        renders = [exception.__replace__(colorful=colorful, command=command) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if (usage := self.options.get("usage")) is not None:
            console.print(usage)
        sys.exit(type(self).__status__)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def _summarize(exceptions, /):
    count = len(exceptions)
    return "%d %s" % (count, "constraint violation" if count == 1 else pluralize("constraint violation"))


class CommandWarning(Warning):
    """Non-fatal notice; surfaced through warnings.warn unless in shell mode."""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*((message,) if message else ()))
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self):
        if not self.options.get("shell", False):
            return __import__("warnings").warn(self, stacklevel=len(inspect.stack()))
        console.print(Text(str(self.message)))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ArgumentFileWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into the fault before triggering.
    - outside shell mode errors are raised and warnings are warned; in shell
      mode both are rendered through rich, and errors exit with their status.

    typical options
    - command, shell, fancy, colorful, usage, hint, and any other context the
      renderer may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, read from __main__.__docs__.

    returns None when the host does not document the code.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "BuildError",
    "ParseError",
    "UnknownOptionError",
    "UnmatchedArgumentError",
    "MissingValueError",
    "UnexpectedValueError",
    "ConversionError",
    "DuplicateOptionError",
    "AmbiguousOptionError",
    "InteractiveUnavailableError",
    "ConstraintViolation",
    "ExclusiveGroupError",
    "MissingGroupError",
    "GroupMultiplicityError",
    "IncompleteGroupError",
    "MissingArgumentError",
    "ConstraintError",
    "ExecutionError",
    "CommandWarning",
    "ArgumentFileWarning",
    "trigger",
    "getdoc",
)
