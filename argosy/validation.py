"""
Constraint validation, run once every token of a parse has been consumed.

Checks
- argument groups: the number of times a group was given must lie within its
  multiplicity. An exclusive group is given once per distinct kind of member
  and accepts one kind at most. A co-required group is given once when any
  member occurs, and once more per repetition of a single-valued member; when
  used it must be complete. A nested group counts as one kind when it is
  present, and is itself validated only when one of its members was given.
- required arguments outside groups: matched, or resolved from a default.
- positionals: at least arity.min values.

Nothing stops at the first problem: every violation of the whole parse is
collected and raised at once as a ConstraintError.
"""
import logging

from .arguments import ArgSpec, Option, Positional
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


class Validator:
    __slots__ = ()

    def validate(self, commands, matched, values, /):
        """
        Check every command of the matched chain.

        - commands: the CommandSpecs matched, root first.
        - matched: Counter of how many times each ArgSpec occurred on the command line.
        - values: final values (matched or defaulted) keyed by ArgSpec.
        """
        violations = []
        for command in commands:
            for group in command.groups:
                self._group(command, group, matched, violations)
            for argument in command.arguments:
                if command.group_of(argument) is not None:
                    continue
                self._argument(command, argument, matched, values, violations)

        if violations:
            logger.debug("%d constraint violation(s) in %r", len(violations), commands[-1].name)
            raise ConstraintError(violations, command=commands[-1])

    def _argument(self, command, argument, matched, values, violations, /):
        if argument in matched:
            if isinstance(argument, Positional) and argument.multivalued and len(values[argument]) < argument.arity.min:
                violations.append(MissingArgumentError(
                    "positional %s expects at least %d values, got %d" % (
                        argument, argument.arity.min, len(values[argument])
                    ),
                    code=FaultCode.MISSING_ARGUMENT,
                    argument=argument,
                    command=command,
                    hint="run '%s --help' to see the expected usage" % command.qualified_name,
                    docs=getdoc(FaultCode.MISSING_ARGUMENT),
                ))
            return
        if not argument.required or (argument.default is not Unset and argument in values):
            return
        typeof = "positional" if isinstance(argument, Positional) else "option"
        violations.append(MissingArgumentError(
            "missing required %s %s" % (typeof, argument),
            code=FaultCode.MISSING_ARGUMENT,
            argument=argument,
            command=command,
            hint="add %s%s" % (
                argument if typeof == "positional" else argument.longest,
                "" if typeof == "positional" or argument.arity.max == 0 else " " + argument.placeholder,
            ),
            docs=getdoc(FaultCode.MISSING_ARGUMENT),
        ))

    def _kinds(self, group, matched, /):
        """direct members of group counted as matched kinds."""
        return [
            member for member in group.members
            if (member in matched if isinstance(member, ArgSpec) else self._present(member, matched))
        ]

    def _present(self, group, matched, /):
        kinds = self._kinds(group, matched)
        if group.exclusive:
            return bool(kinds)
        return bool(kinds) and all(member in kinds for member in group.members if group.requires(member))

    def _occurrences(self, group, matched, /):
        """
        times group was given: kinds for an exclusive group; for a co-required
        group one once touched, plus one per repetition of a single-valued member.
        """
        if group.exclusive:
            return len(self._kinds(group, matched))
        if not self._touched(group, matched):
            return 0
        return max([1, *(
            matched[member] for member in group.arguments if not member.multivalued
        )])

    @staticmethod
    def _touched(group, matched, /):
        return any(argument in matched for argument in group.specs())

    def _group(self, command, group, matched, violations, /):
        kinds = self._kinds(group, matched)
        occurrences = self._occurrences(group, matched)
        multiplicity = group.multiplicity
        names = " | ".join(map(_name, group.members)) if group.exclusive else " ".join(map(_name, group.members))
        options = dict(group=group, command=command)

        if group.exclusive and len(kinds) > 1:
            violations.append(ExclusiveGroupError(
                "%s are mutually exclusive" % " and ".join(map(_name, kinds)),
                code=FaultCode.EXCLUSIVE_GROUP,
                hint="specify only one of (%s)" % names,
                docs=getdoc(FaultCode.EXCLUSIVE_GROUP),
                **options,
            ))
        elif occurrences < multiplicity.min:
            violations.append(MissingGroupError(
                "missing required argument%s from group (%s)" % ("" if group.exclusive else "s", names),
                code=FaultCode.MISSING_GROUP,
                hint="specify %s (%s)" % ("one of" if group.exclusive else "all of", names),
                docs=getdoc(FaultCode.MISSING_GROUP),
                **options,
            ))
        elif occurrences > multiplicity.max:
            violations.append(GroupMultiplicityError(
                "group (%s) may be given %s time(s), got %d" % (names, multiplicity, occurrences),
                code=FaultCode.GROUP_MULTIPLICITY,
                hint="give the group (%s) at most %s time(s)" % (names, _bound(multiplicity.max)),
                docs=getdoc(FaultCode.GROUP_MULTIPLICITY),
                **options,
            ))

        if not group.exclusive and self._touched(group, matched):
            if missing := [member for member in group.members if group.requires(member) and member not in kinds]:
                violations.append(IncompleteGroupError(
                    "%s must be given together with %s" % (
                        " and ".join(map(_name, missing)),
                        " and ".join(map(_name, kinds)) or "the rest of its group",
                    ),
                    code=FaultCode.INCOMPLETE_GROUP,
                    hint="complete the group (%s)" % names,
                    docs=getdoc(FaultCode.INCOMPLETE_GROUP),
                    **options,
                ))

        for subgroup in group.subgroups:
            if self._touched(subgroup, matched):
                self._group(command, subgroup, matched, violations)


def _bound(value, /):
    return "any number of" if value == float("inf") else str(value)


def _name(member, /):
    return member.longest if isinstance(member, Option) else str(member)


__all__ = (
    "Validator",
)
