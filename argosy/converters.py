"""
Value conversion registry: turn raw strings into typed values.

Lookup order for a type (see ConverterRegistry.resolve)
1. exact match in this registry, then in its parents;
2. generic fallback: the erased origin of a parameterized type
   (``Path[...]`` -> ``Path``) and the registered bases of a class (MRO walk);
3. the built-in table (numbers, booleans, temporal types, paths, UUIDs,
   patterns, IP addresses, enumerations matched case-insensitively);
4. the type itself when it is a class accepting a single string.

Resolution happens once per argument when a Parser binds a command tree.
Converters raise ValueError/TypeError; the parser wraps those into a
ConversionError carrying the argument and the raw string.

A converter registered with ``consumes=True`` receives the remaining token
stack of the current command as second argument and may pop extra tokens
from its left end.
"""
import builtins
import datetime
import decimal
import enum
import fractions
import ipaddress
import logging
import pathlib
import re
import typing
import uuid

from .faults import BuildError, FaultCode
from .utils import *

logger = logging.getLogger(__name__)


class Converter:
    """A conversion function plus whether it pulls extra tokens itself."""
    __slots__ = ("_function", "_consumes")

    function = mirror("function")
    consumes = mirror("consumes")

    def __init__(self, function, /, *, consumes=False):
        if not callable(function):
            raise TypeError("converter function must be callable")
        self._function = function
        self._consumes = bool(consumes)

    def __call__(self, raw, stack=Unset, /):
        if self._consumes:
            return self._function(raw, stack)
        return self._function(raw)

    def __repr__(self):
        return f"converter({getattr(self._function, '__qualname__', self._function)!r}, consumes={self._consumes!r})"


_TRUTHS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def _boolean(raw, /):
    try:
        return _TRUTHS[raw.strip().lower()]
    except KeyError:
        raise ValueError(f"{raw!r} is not a boolean (expected true or false)") from None


def _integer(raw, /):
    try:
        return int(raw)
    except ValueError:
        # 0x1F, 0o17, 0b101
        return int(raw, 0)


def _pattern(raw, /):
    try:
        return re.compile(raw)
    except re.error as error:
        raise ValueError(f"invalid pattern: {error}") from None


def _enumeration(cls, /):
    @rename(f"convert_{cls.__name__.lower()}")
    def convert(raw):
        folded = raw.casefold()
        for member in cls:
            if member.name.casefold() == folded:
                return member
        for member in cls:
            if str(member.value) == raw:
                return member
        raise ValueError(f"{raw!r} is not one of {', '.join(member.name.lower() for member in cls)}")
    return convert


_BUILTINS = {
    str: str,
    int: _integer,
    float: float,
    complex: complex,
    bool: _boolean,
    bytes: str.encode,
    decimal.Decimal: decimal.Decimal,
    fractions.Fraction: fractions.Fraction,
    pathlib.Path: pathlib.Path,
    pathlib.PurePath: pathlib.PurePath,
    datetime.date: datetime.date.fromisoformat,
    datetime.time: datetime.time.fromisoformat,
    datetime.datetime: datetime.datetime.fromisoformat,
    uuid.UUID: uuid.UUID,
    re.Pattern: _pattern,
    ipaddress.IPv4Address: ipaddress.IPv4Address,
    ipaddress.IPv6Address: ipaddress.IPv6Address,
    ipaddress.IPv4Network: ipaddress.IPv4Network,
    ipaddress.IPv6Network: ipaddress.IPv6Network,
}


class ConverterRegistry:
    """
    Mapping from types to converters, optionally chained to a parent registry.

        registry = ConverterRegistry()

        @registry.register(Color)
        def parse_color(raw): ...

    The module-level ``registry`` is the one parsers use unless given another;
    chain a new registry to it (ConverterRegistry(registry)) to extend it locally.
    """
    __slots__ = ("_table", "_parent")

    def __init__(self, parent=Unset, /):
        if not isinstance(parent, ConverterRegistry | Unset):
            raise TypeError("converter-registry parent must be a converter-registry")
        self._table = {}
        self._parent = parent

    def register(self, type, function=Unset, /, *, consumes=False):
        """
        Register function as the converter of type.

        Without function, return a decorator registering the decorated callable.
        """
        if function is Unset:
            def decorator(function):
                self.register(type, function, consumes=consumes)
                return function
            return decorator

        self._table[type] = converter = function if isinstance(function, Converter) else Converter(function, consumes=consumes)
        logger.debug("registered %r for %r", converter, type)
        return converter

    def _find(self, type, /):
        registry = self
        while registry is not Unset:
            if type in registry._table:
                return registry._table[type]
            registry = registry._parent
        return None

    def resolve(self, type, /):
        """return the Converter of type or raise BuildError."""
        if (converter := self._find(type)) is not None:
            return converter

        candidates = []
        if (origin := typing.get_origin(type)) is not None:
            candidates.append(origin)
        if isinstance(type, builtins.type):
            candidates.extend(type.__mro__[1:])
        for candidate in candidates:
            if (converter := self._find(candidate)) is not None:
                logger.debug("resolved %r through %r", type, candidate)
                return converter

        if (converter := _builtin(type)) is not None:
            return converter
        for candidate in candidates:
            if (converter := _builtin(candidate)) is not None and candidate is not object:
                return converter

        if isinstance(type, builtins.type) and type is not object:
            return Converter(type)
        raise BuildError(
            "no converter registered for type %r" % (type,),
            code=FaultCode.MISSING_CONVERTER,
            hint="register one with registry.register(%s, function)" % getattr(type, "__name__", type),
        )

    def __contains__(self, type):
        return self._find(type) is not None


def _builtin(type, /):
    if isinstance(type, builtins.type) and issubclass(type, enum.Enum):
        return Converter(_enumeration(type))
    if (function := _BUILTINS.get(type)) is not None:
        return Converter(function)
    return None


registry = ConverterRegistry()


__all__ = (
    "Converter",
    "ConverterRegistry",
    "registry",
)
