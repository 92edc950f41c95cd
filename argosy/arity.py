"""
Arity ranges: how many values an argument consumes per match.

An Arity is an inclusive range ``min..max`` where max may be unbounded
(math.inf). The same type describes positional index ranges and group
multiplicities.

Accepted spellings (see Arity.parse)
- an int n            -> n..n
- "n"                 -> n..n
- "n..m"              -> n..m
- "n..*"              -> n..unbounded
- "*"                 -> 0..unbounded
- "?"                 -> 0..1
- "+"                 -> 1..unbounded
"""
import functools
import math
import re

from .utils import Unset, mirror


class Arity:
    __slots__ = ("_min", "_max")

    min = mirror("min")
    max = mirror("max")

    def __init__(self, min=0, max=Unset, /):
        if not isinstance(min, int) or isinstance(min, bool):
            raise TypeError("arity 'min' must be an integer")
        if max is Unset:
            max = min
        if not (isinstance(max, int) and not isinstance(max, bool)) and max != math.inf:
            raise TypeError("arity 'max' must be an integer or math.inf")
        if min < 0:
            raise ValueError("arity 'min' cannot be negative")
        if max < min:
            raise ValueError(f"arity 'max' ({max}) cannot be lower than 'min' ({min})")
        self._min = min
        self._max = max

    @classmethod
    @functools.cache
    def parse(cls, source, /):
        """
        Parse one of the accepted spellings into an Arity.

        Raises ValueError for anything else (including "3..1").
        """
        if isinstance(source, int) and not isinstance(source, bool):
            return cls(source)
        if not isinstance(source, str):
            raise TypeError("arity must be an integer or a string")

        match source.strip():
            case "?":
                return cls(0, 1)
            case "*":
                return cls(0, math.inf)
            case "+":
                return cls(1, math.inf)
            case text if found := re.fullmatch(r"(\d+)(?:\.\.(\d+|\*))?", text):
                low = int(found[1])
                if found[2] is None:
                    return cls(low)
                return cls(low, math.inf if found[2] == "*" else int(found[2]))
            case _:
                raise ValueError(f"invalid arity {source!r}")

    @property
    def unbounded(self):
        return self._max == math.inf

    @property
    def variable(self):
        return self._min != self._max

    @property
    def optional(self):
        return self._min == 0

    @property
    def span(self):
        """number of slots covered when used as an index range."""
        return self._max - self._min + 1

    def __contains__(self, number):
        return self._min <= number <= self._max

    def __eq__(self, other):
        if not isinstance(other, Arity):
            return NotImplemented
        return (self._min, self._max) == (other._min, other._max)

    def __hash__(self):
        return hash((Arity, self._min, self._max))

    def __str__(self):
        if not self.variable:
            return str(self._min)
        return f"{self._min}..{'*' if self.unbounded else self._max}"

    def __repr__(self):
        return f"arity({str(self)!r})"


def arity(source, /):
    """coerce an Arity, an int or one of the accepted strings into an Arity."""
    if isinstance(source, Arity):
        return source
    return Arity.parse(source)


__all__ = (
    "Arity",
)
