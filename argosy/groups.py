"""
Argument groups: constraint scopes over options, positionals and nested groups.

An ArgGroup is either
- exclusive (default): at most one kind of member may be given, e.g. (-x | -y);
- co-required: members travel together, e.g. (-user -password).

multiplicity bounds how many times the group may be given (see the validator);
a required group needs at least one. Groups only describe constraints: they
are checked once every token has been consumed, never while matching.
"""
import logging

from .arguments import ArgSpec
from .arity import Arity, arity as _arity
from .faults import BuildError, FaultCode
from .utils import *

logger = logging.getLogger(__name__)


class ArgGroup:
    """
    Ordered set of ArgSpecs and nested ArgGroups sharing one constraint.

    Parameters
    - members: ArgSpec | ArgGroup, in display order.
    - exclusive: True for "one of", False for "all together".
    - multiplicity: Arity spelling; defaults to 0..1 (exclusive) or 0..* (co-required).
    - required: raise the multiplicity minimum to at least 1.
    - optional: members of a co-required group that may be left out.
    - heading: section title used by the help renderer.
    - order: sort hint for headings when declaration order is requested.
    """
    __slots__ = (
        "_members",
        "_exclusive",
        "_multiplicity",
        "_required",
        "_optional",
        "_heading",
        "_order",
        "_sealed",
    )

    members = mirror("members")
    exclusive = mirror("exclusive")
    multiplicity = mirror("multiplicity")
    heading = mirror("heading")
    order = mirror("order")

    def __init__(
            self,
            *members,
            exclusive=True,
            multiplicity=Unset,
            required=False,
            optional=(),
            heading=Unset,
            order=Unset,
    ):
        if multiplicity is Unset:
            multiplicity = Arity.parse("0..1" if exclusive else "0..*")
        else:
            try:
                multiplicity = _arity(multiplicity)
            except (TypeError, ValueError) as error:
                raise error.__class__(f"arg-group multiplicity: {error}") from None
        if required and multiplicity.min == 0:
            multiplicity = Arity(1, max(1, multiplicity.max))

        if not isinstance(heading, str | Unset):
            raise TypeError("arg-group 'heading' must be a string")
        if not isinstance(order, int | Unset) or isinstance(order, bool):
            raise TypeError("arg-group 'order' must be an integer")

        self._members = []
        self._exclusive = bool(exclusive)
        self._multiplicity = multiplicity
        self._required = multiplicity.min > 0
        self._heading = heading
        self._order = order
        self._sealed = False

        for member in members:
            self.add(member)

        self._optional = frozenset(optional)
        if stray := [member for member in self._optional if member not in self._members]:
            raise BuildError(f"arg-group 'optional' lists {stray[0]!r} which is not a member")

    @property
    def required(self):
        return self._required

    @property
    def sealed(self):
        return self._sealed

    def add(self, member, /):
        """append an ArgSpec or a nested ArgGroup; returns the member."""
        if self._sealed:
            raise BuildError("arg-group is sealed and cannot be modified", code=FaultCode.SEALED_SPECIFICATION)
        if not isinstance(member, ArgSpec | ArgGroup):
            raise TypeError("arg-group members must be argument specs or arg-groups")
        if member is self or (isinstance(member, ArgGroup) and self in member.walk()):
            raise BuildError("arg-group nesting cannot be cyclic", code=FaultCode.CYCLIC_GROUP)
        if member in self._members:
            raise BuildError(f"{member!r} is already a member of this arg-group", code=FaultCode.DUPLICATE_NAME)
        self._members.append(member)
        return member

    @property
    def arguments(self):
        """direct ArgSpec members."""
        return tuple(member for member in self._members if isinstance(member, ArgSpec))

    @property
    def subgroups(self):
        return tuple(member for member in self._members if isinstance(member, ArgGroup))

    def walk(self):
        """yield every nested group (not self), depth first."""
        for group in self.subgroups:
            yield group
            yield from group.walk()

    def specs(self):
        """yield every ArgSpec reachable from this group, depth first."""
        for member in self._members:
            if isinstance(member, ArgGroup):
                yield from member.specs()
            else:
                yield member

    def requires(self, member, /):
        """whether member must be given once a co-required group is used."""
        return not self._exclusive and member not in self._optional

    def seal(self):
        self._sealed = True
        for group in self.subgroups:
            group.seal()

    def __repr__(self):
        members = ", ".join(map(str, self._members))
        return f"arg-group({members}, exclusive={self._exclusive!r}, multiplicity='{self._multiplicity}')"

    def __str__(self):
        glue = " | " if self._exclusive else " "
        return ("(%s)" if self._required else "[%s]") % glue.join(map(str, self._members))


__all__ = (
    "ArgGroup",
)
