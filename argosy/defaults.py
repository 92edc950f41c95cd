"""
Default-value sources for argument specifications.

A default is resolved only when its argument was not matched on the command
line, at parse time, never at build time:

- Value(object)             a literal; strings are converted like user input.
- Environment(name)         read an environment variable.
- Property(name)            read a process property from ParserSettings.properties.
- Provider(callable)        call callable(argument) and use its result.

Environment and Property accept a ``fallback`` (another source or a literal)
used when the variable/property is absent. Resolution returns Unset when
nothing applies so that required arguments can still be reported missing.
"""
import logging
from abc import ABC, abstractmethod

from .utils import Unset, mirror

logger = logging.getLogger(__name__)


class DefaultSource(ABC):
    __slots__ = ()

    @abstractmethod
    def resolve(self, argument, settings, /):
        """return the default for argument, or Unset when none is available."""

    @abstractmethod
    def describe(self):
        """short label rendered by the help renderer ("Default: ...")."""

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self):
        return hash((type(self), self._identity()))

    def __repr__(self):
        return f"{type(self).__name__.lower()}({', '.join(map(repr, self._identity()))})"


class Value(DefaultSource):
    __slots__ = ("_value",)

    value = mirror("value")

    def __init__(self, value, /):
        self._value = value

    def resolve(self, argument, settings, /):
        return self._value

    def describe(self):
        return str(self._value)

    def _identity(self):
        return (self._value,) if self._value.__hash__ is not None else (id(self._value),)


class _Reference(DefaultSource):
    __slots__ = ("_name", "_fallback")

    name = mirror("name")
    fallback = mirror("fallback")

    def __init__(self, name, /, fallback=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__name__.lower()} name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__name__.lower()} name cannot be empty")
        self._name = name
        self._fallback = source(fallback)

    @abstractmethod
    def _lookup(self, settings, /):
        ...

    def resolve(self, argument, settings, /):
        if (value := self._lookup(settings)) is not None:
            logger.debug("default for %r read from %s", argument, self.describe())
            return value
        if self._fallback is Unset:
            return Unset
        return self._fallback.resolve(argument, settings)

    def _identity(self):
        return self._name, self._fallback


class Environment(_Reference):
    __slots__ = ()

    def _lookup(self, settings, /):
        return settings.environ.get(self._name)

    def describe(self):
        return "$" + self._name


class Property(_Reference):
    __slots__ = ()

    def _lookup(self, settings, /):
        return settings.properties.get(self._name)

    def describe(self):
        return "${" + self._name + "}"


class Provider(DefaultSource):
    __slots__ = ("_function", "_label")

    function = mirror("function")

    def __init__(self, function, /, label=Unset):
        if not callable(function):
            raise TypeError("provider function must be callable")
        self._function = function
        self._label = label

    def resolve(self, argument, settings, /):
        value = self._function(argument)
        return Unset if value is None else value

    def describe(self):
        if self._label is not Unset:
            return self._label
        return "<" + getattr(self._function, "__name__", "computed") + ">"

    def _identity(self):
        return (self._function,)


def source(object, /):
    """coerce a literal into a Value source; sources and Unset pass through."""
    if object is Unset or isinstance(object, DefaultSource):
        return object
    return Value(object)


__all__ = (
    "DefaultSource",
    "Value",
    "Environment",
    "Property",
    "Provider",
    "source",
)
