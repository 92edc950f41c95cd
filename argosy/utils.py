"""
Argosy utilities (small helpers shared by every layer).

Scope
- UnsetType / Unset: a falsy singleton meaning "not provided", distinct from None.
- coalesce(): materialize Unset into a concrete default while keeping None/0/"".
- rename(): give generated callables a stable __name__/__qualname__.
- mirror(): read-only property over a private "_name" field, returning frozen
  copies of containers so public state cannot be mutated by accident.
- pluralize(): tiny English pluralizer for fault messages.
- ordinal(): "first", "second", ... used by position-first messages.

Everything listed in __all__ is re-exported by the package.
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    A single instance, Unset, exists per process. It is falsy, prints as
    "Unset" and cannot be subclassed.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsy values such as None, 0, "" or [] are kept as they are:

        coalesce(Unset, "x") -> "x"
        coalesce(None, "x")  -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__ and __qualname__ on a callable.

    Two forms are supported:
    - rename(callable, name) updates the callable in place and returns it.
    - rename(name) returns a decorator doing the same later.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Recursively copy containers into their immutable counterparts.

    - str and bytes are returned unchanged.
    - other sequences become tuples, sets become frozensets.
    - mappings become read-only proxies over a fresh dict.
    """
    if isinstance(object, str | bytes):
        return object
    elif isinstance(object, Sequence):
        return tuple(map(_freeze, object))
    elif isinstance(object, Mapping):
        return MappingProxyType(dict(zip(object.keys(), map(_freeze, object.values()))))
    elif isinstance(object, Set):
        return frozenset(map(_freeze, object))
    return object


def mirror(name, /):
    """
    Define a read-only property exposing the private field "_{name}".

    Containers are handed out as frozen copies (see _freeze), so callers can
    iterate freely without being able to alter the owner's state.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralization of the last word of text.

    Casing of the pluralized word follows the original ("Value" -> "Values",
    "VALUE" -> "VALUES"); leading words and trailing whitespace are preserved.

        pluralize("violation")        -> "violations"
        pluralize("constraint entry") -> "constraint entries"
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    if not (match := re.search(r"(\S+)(\s*)$", text)):
        return text

    head, last, trail = text[:match.start(1)], match.group(1), match.group(2)
    lower = last.lower()

    irregulars = {
        "person": "people",
        "child": "children",
        "index": "indices",
        "matrix": "matrices",
        "analysis": "analyses",
        "criterion": "criteria",
    }
    if lower in {"series", "species", "information", "metadata"}:
        plural = lower
    elif lower in irregulars:
        plural = irregulars[lower]
    elif lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if last.isupper() and len(last) > 1:
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal for a 1-based position.

    1..10 are spelled out ("first" .. "tenth"); anything else uses numeric
    suffixes with the usual teens exception (11th, 12th, 13th).
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else str(number)
    except IndexError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
The "not provided" sentinel. Use it as a parameter default when None is a
meaningful value and materialize it with coalesce().
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
