r"""
Argosy argument specifications and decorators.

Overview
- Specs
  • Option[_T]: named argument (-o/--output), optionally value-bearing.
  • Positional[_T]: argument matched by its position among plain values.
  Both share the ArgSpec base: arity, type descriptor, required flag, default
  source, split pattern, interactive prompt, scope and help metadata.

- Decorators
  • @option(...): build an Option and bind the decorated function as callback.
  • @positional(...): same for a Positional.
  The callback receives the final value once parsing and validation succeed.

- Introspection & representation
  • ArgumentType gives every spec a stable __repr__/__rich_repr__, a
    __typename__ used in messages, and read-only properties for the names
    listed in __introspectable__.

Metadata (sanitized on construction)
- Shared
  • descr: Unset | str | Text | Iterable[str | Text] (lines shown in help).
  • label: Unset | str (placeholder shown in help, "<dest>" when Unset).
  • dest: Unset | identifier (attribute written on the bound target).
  • hidden: bool; order: Unset | int (declaration order hint for help).
- Value handling
  • type: annotation or TypeDescriptor (int, list[int], dict[str, int], ...).
  • arity: Unset | int | "n..m" | "?" | "*" | "+" | Arity.
  • default: literal | Value | Environment | Property | Provider.
  • split: Unset | regular expression splitting one token into many values.
  • fallback: value used when an optional-value option is given bare.
  • converter: Unset | callable overriding the registry for this spec.
  • completions: Iterable[str] candidates offered by the completion generator.
  • interactive/prompt/mask: ask the user for the value at match time.
- Option only
  • names: one or more of "-x", "-long", "--long", "--long-name".
  • negatable: derive "--no-x" (or "--x" for "--no-x") for boolean options.
  • scope: "local" | "inherited" (matchable in every descendant command).
  • usage_help / version_help: mark the standard help and version options.
- Positional only
  • index: Unset | int | "n..m" | "n..*" (assigned in declaration order when Unset).
  • required: derived from arity; an explicit value contradicting arity raises BuildError.

Validation highlights
- Names must match r"--?[^\W\d_](-?[^\W_]+)*" and be unique within a spec.
- Scalar types accept at most one value per match, unless split (BuildError).
- negatable requires a boolean option of arity 0 (BuildError).

Quick example:
    >>> from argosy import option, Positional
    >>> @option("-t", "--threads", type=int, default=4)
    ... def on_threads(threads): ...
    >>> files = Positional("FILE", type=list[str])
"""
import functools
import operator
import re
from collections.abc import Iterable
from types import MethodType

from rich.text import Text

from .arity import Arity, arity as _arity
from .defaults import source
from .descriptors import describe
from .faults import BuildError, FaultCode
from .utils import *


class ArgumentType(type):
    """
    Metaclass of argument specifications.

    Responsibilities
    - derive __typename__ ("Positional" -> "positional") for messages.
    - expose the names in __introspectable__ as read-only properties (mirror()).
    - provide __repr__/__rich_repr__ driven by __displayable__ (falling back to
      __introspectable__).
    - seal classes declared with ``final=True`` against subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize help-facing metadata shared by every spec.

    - descr becomes a tuple of lines (str or rich Text); a str is split on
      newlines, an iterable is taken line by line.
    - label must be a non-empty string when provided.
    - dest must be a valid identifier when provided.
    - order must be an int when provided.

    Mutates metadata in place; raises TypeError/ValueError on bad input.
    """
    match descr := metadata["descr"]:
        case UnsetType():
            metadata["descr"] = ()
        case str():
            if not (descr := descr.strip()):
                raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
            metadata["descr"] = tuple(descr.splitlines())
        case Text():
            metadata["descr"] = tuple(descr.split("\n"))
        case Iterable():
            lines = tuple(descr)
            if not all(isinstance(line, str | Text) for line in lines):
                raise TypeError(f"{cls.__typename__} 'descr' lines must be strings")
            metadata["descr"] = lines
        case _:
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

    if not isinstance(label := metadata["label"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'label' must be a string")
    elif isinstance(label, str) and not (label := label.strip()):
        raise ValueError(f"{cls.__typename__} 'label' cannot be empty")
    metadata["label"] = label

    if not isinstance(dest := metadata["dest"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'dest' must be a string")
    elif isinstance(dest, str) and not dest.isidentifier():
        raise ValueError(f"{cls.__typename__} 'dest' must be a valid identifier")

    if not isinstance(order := metadata["order"], int | Unset) or isinstance(order, bool):
        raise TypeError(f"{cls.__typename__} 'order' must be an integer")


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate option names and the flags that only options have.

    - names: at least one; each must match r"--?[^\W\d_](-?[^\W_]+)*";
      duplicates are rejected; declaration order is kept.
    - scope: "local" or "inherited".
    - usage_help / version_help imply a boolean, non-required option.
    """
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    names = []
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} is not a valid shell-style option name")
        elif name in names:
            raise BuildError(
                f"{cls.__typename__} name {name!r} is declared twice",
                code=FaultCode.DUPLICATE_NAME,
            )
        names.append(name)
    metadata["names"] = tuple(names)

    if metadata["scope"] not in ("local", "inherited"):
        raise ValueError(f"{cls.__typename__} 'scope' must be 'local' or 'inherited'")

    if metadata["usage_help"] or metadata["version_help"]:
        if metadata["type"] is str:
            metadata["type"] = bool
        elif metadata["type"] is not bool:
            raise TypeError(f"help {cls.__typename__} must be boolean")
        if metadata["required"]:
            raise BuildError(f"help {cls.__typename__} cannot be required")


def _sanitize_valued_metadata(cls, metadata, /):
    """
    Internal: validate how a spec consumes and converts values.

    - type is turned into a TypeDescriptor (see descriptors.describe).
    - arity is parsed, or derived from the type when Unset (see _default_arity).
    - split must be a compilable regular expression on multi-valued types.
    - default is wrapped into a DefaultSource (literals become Value).
    - converter must be callable; completions an iterable of strings.
    - prompt is only meaningful for interactive specs.

    Structural problems (scalar with many values, ...) raise BuildError.
    """
    metadata["type"] = descriptor = describe(metadata["type"])

    if (converter := metadata["converter"]) is not Unset and not callable(converter):
        raise TypeError(f"{cls.__typename__} 'converter' must be callable")

    if isinstance(split := metadata["split"], str):
        if not split:
            raise ValueError(f"{cls.__typename__} 'split' cannot be empty")
        try:
            re.compile(split)
        except re.error as error:
            raise ValueError(f"{cls.__typename__} 'split' is not a valid pattern: {error}") from None
        if not descriptor.multivalued:
            raise BuildError(f"{cls.__typename__} with scalar type cannot 'split' values")
    elif split is not Unset:
        raise TypeError(f"{cls.__typename__} 'split' must be a string")

    if (arity := metadata["arity"]) is Unset:
        arity = _default_arity(cls, metadata)
    else:
        try:
            arity = _arity(arity)
        except (TypeError, ValueError) as error:
            raise error.__class__(f"{cls.__typename__} {error}") from None
    metadata["arity"] = arity

    if arity.max > 1 and not descriptor.multivalued:
        raise BuildError(f"{cls.__typename__} with scalar type cannot take {arity} values per match")
    if descriptor.boolean and arity.max > 1:
        raise BuildError(f"boolean {cls.__typename__} cannot take {arity} values")

    metadata["default"] = source(metadata["default"])

    if metadata["fallback"] is not Unset and arity.min > 0:
        raise BuildError(f"{cls.__typename__} 'fallback' requires an optional value (arity 0..n)")

    if isinstance(completions := metadata["completions"], str) or not isinstance(completions, Iterable):
        raise TypeError(f"{cls.__typename__} 'completions' must be an iterable of strings")
    completions = tuple(completions)
    if not all(isinstance(candidate, str) for candidate in completions):
        raise TypeError(f"{cls.__typename__} 'completions' must be an iterable of strings")
    metadata["completions"] = completions

    if not isinstance(prompt := metadata["prompt"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'prompt' must be a string")
    elif prompt and not metadata["interactive"]:
        raise BuildError(f"{cls.__typename__} 'prompt' requires interactive=True")


def _default_arity(cls, metadata, /):
    """
    arity used when none is declared.

    - options: 0 for booleans and interactive options, 1 otherwise.
    - positionals: scalars take 1 (0..1 when a default exists or required is
      False); multi-valued take 0..* (1..* when required).
    """
    descriptor = metadata["type"]
    if issubclass(cls, Option):
        if descriptor.boolean or metadata["interactive"]:
            return Arity(0)
        return Arity(1)

    required = metadata["required"]
    if descriptor.multivalued:
        return Arity.parse("1..*" if required is True else "0..*")
    if required is False or (required is Unset and metadata["default"] is not Unset):
        return Arity(0, 1)
    return Arity(1)


class ArgSpec(metaclass=ArgumentType):
    """
    Common base of Option and Positional.

    Instances are immutable after construction; the only late binding is the
    callback attached by the @option/@positional decorators. Parsing never
    stores values on a spec: per-invocation values live in the parser's side
    table, so a spec can be shared by concurrent parses.
    """

    __introspectable__ = (
        "type",
        "arity",
        "required",
        "default",
        "split",
        "fallback",
        "converter",
        "label",
        "descr",
        "dest",
        "hidden",
        "order",
        "completions",
        "interactive",
        "prompt",
        "mask",
    )

    def _mirror(self, metadata, /):
        self._callback = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __call__(self, value, /):
        """forward the final value to the bound callback (no-op when unbound)."""
        if self._callback is Unset:
            return
        return self._callback(value)

    @property
    def callback(self):
        return self._callback

    @property
    def boolean(self):
        return self._type.boolean

    @property
    def multivalued(self):
        return self._type.multivalued

    @property
    def inherited(self):
        return False

    @property
    def placeholder(self):
        """label used in synopsis and tables ("<dest>" when no label was given)."""
        return coalesce(self._label, f"<{coalesce(self._dest, 'param')}>")


class Option[_T](ArgSpec, final=True):
    """
    Named argument specification.

    An option is matched by one of its names, either followed by its values
    ("--output out.txt"), attached with the separator ("--output=out.txt"), or
    attached to a short name ("-oout.txt"). Boolean options of arity 0 take no
    value and may be clustered ("-abc").

    Highlights
    - negatable boolean options also answer to a derived negative name
      ("--verbose" <-> "--no-verbose"); the declared form sets the inverse of
      the default, the negative form sets the default itself.
    - inherited options are declared once and stay matchable in every
      descendant subcommand.
    - interactive options prompt for their value when matched without one.
    """

    __introspectable__ = ArgSpec.__introspectable__ + (
        "names",
        "negatable",
        "scope",
        "usage_help",
        "version_help",
    )

    __displayable__ = (
        "names",
        "type",
        "arity",
        "required",
        "default",
        "scope",
    )

    def __init__(
            self,
            *names,
            type=str,
            arity=Unset,
            required=False,
            default=Unset,
            split=Unset,
            fallback=Unset,
            converter=Unset,
            label=Unset,
            descr=Unset,
            dest=Unset,
            hidden=False,
            order=Unset,
            completions=(),
            interactive=False,
            prompt=Unset,
            mask=False,
            negatable=False,
            scope="local",
            usage_help=False,
            version_help=False,
    ):
        metadata = {
            "names": names,
            "type": type,
            "arity": arity,
            "required": bool(required),
            "default": default,
            "split": split,
            "fallback": fallback,
            "converter": converter,
            "label": label,
            "descr": descr,
            "dest": dest,
            "hidden": bool(hidden),
            "order": order,
            "completions": completions,
            "interactive": bool(interactive),
            "prompt": prompt,
            "mask": bool(mask),
            "negatable": bool(negatable),
            "scope": scope,
            "usage_help": bool(usage_help),
            "version_help": bool(version_help),
        }
        _sanitize_metadata(Option, metadata)
        _sanitize_named_metadata(Option, metadata)
        _sanitize_valued_metadata(Option, metadata)

        if metadata["negatable"] and not (metadata["type"].boolean and metadata["arity"].max == 0):
            raise BuildError("negatable option must be a boolean of arity 0")

        if metadata["dest"] is Unset:
            longest = max(metadata["names"], key=lambda name: len(name.lstrip("-")))
            metadata["dest"] = re.sub(r"\W", "_", longest.lstrip("-"))

        self._mirror(metadata)

    @property
    def inherited(self):
        return self._scope == "inherited"

    @property
    def shortest(self):
        """the shortest name (first declared on ties)."""
        return min(self._names, key=len)

    @property
    def longest(self):
        return max(self._names, key=len)

    @property
    def negations(self):
        """derived negative names of a negatable option ("--x" <-> "--no-x")."""
        if not self._negatable:
            return ()
        derived = []
        for name in self._names:
            if not name.startswith("--"):
                continue
            if name.startswith("--no-"):
                derived.append("--" + name[5:])
            else:
                derived.append("--no-" + name[2:])
        return tuple(derived)

    @property
    def key(self):
        return "option", tuple(sorted(self._names))

    def __str__(self):
        return self.longest


class Positional[_T](ArgSpec, final=True):
    """
    Positional argument specification.

    Positionals are matched against plain tokens in command-line order. Each
    one covers an index range (a single slot for scalars, possibly open-ended
    for collections); ranges are assigned in declaration order unless given.
    """

    __introspectable__ = ArgSpec.__introspectable__ + (
        "index",
    )

    __displayable__ = (
        "label",
        "index",
        "type",
        "arity",
        "default",
    )

    def __init__(
            self,
            label=Unset,
            /,
            *,
            index=Unset,
            type=str,
            arity=Unset,
            required=Unset,
            default=Unset,
            split=Unset,
            converter=Unset,
            descr=Unset,
            dest=Unset,
            hidden=False,
            order=Unset,
            completions=(),
            interactive=False,
            prompt=Unset,
            mask=False,
    ):
        metadata = {
            "label": label,
            "index": index,
            "type": type,
            "arity": arity,
            "required": required,
            "default": default,
            "split": split,
            "fallback": Unset,
            "converter": converter,
            "descr": descr,
            "dest": dest,
            "hidden": bool(hidden),
            "order": order,
            "completions": completions,
            "interactive": bool(interactive),
            "prompt": prompt,
            "mask": bool(mask),
        }
        if not isinstance(required, bool | Unset):
            raise TypeError("positional 'required' must be a boolean")
        _sanitize_metadata(Positional, metadata)
        _sanitize_valued_metadata(Positional, metadata)

        if required is not Unset and required != (metadata["arity"].min > 0):
            raise BuildError(
                f"positional 'required' is {required} but its arity {metadata['arity']} makes it "
                f"{'required' if metadata['arity'].min > 0 else 'optional'}"
            )
        metadata["required"] = metadata["arity"].min > 0

        if (index := metadata["index"]) is not Unset:
            try:
                metadata["index"] = _arity(index)
            except (TypeError, ValueError) as error:
                raise error.__class__(f"positional index: {error}") from None

        if metadata["dest"] is Unset and metadata["label"] is not Unset:
            if (dest := re.sub(r"\W+", "_", metadata["label"].strip("<>[].").lower()).strip("_")).isidentifier():
                metadata["dest"] = dest

        self._mirror(metadata)

    @property
    def key(self):
        return "positional", self._label, self._dest, self._index

    def __str__(self):
        return self.placeholder


def _decorator(factory, name, /):
    def decorator(*args, **kwargs):
        argument = factory(*args, **kwargs)

        @rename(name)
        def wrapper(callback, /):
            if not callable(callback):
                raise TypeError(f"@{name}() must be applied to a callable")
            if argument._callback is not Unset:  # NOQA: E-501
                raise TypeError(f"@{name}() must be applied only once")
            argument._callback = callback
            return argument

        setattr(wrapper, f"__{name}__", MethodType(rename(lambda self: argument, f"__{name}__"), wrapper))
        return wrapper

    decorator.__doc__ = f"""
    Decorator form of {factory.__name__}(...).

    Builds the spec from the given arguments and binds the decorated function
    as its callback; the decorator returns the spec itself, so the decorated
    name refers to the {factory.__typename__} afterwards:

        @{name}(...)
        def on_value(value): ...
    """
    return rename(decorator, name)


option = _decorator(Option, "option")
positional = _decorator(Positional, "positional")


__all__ = (
    # Classes (specifications)
    "ArgSpec",
    "Option",
    "Positional",

    # Decorators
    "option",
    "positional",
)

del ArgumentType
