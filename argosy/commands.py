"""
Argosy command specifications: the model a parser binds against.

What this module provides
- CommandSpec: one command of a command tree, with
  • options (names unique within the command plus its inherited scope),
  • positionals laid out on non-conflicting index ranges,
  • argument groups (exclusive or co-required constraint scopes),
  • subcommands, stored in a shared Arena and addressed through handles,
  • mixins: foreign specs merged in, their values bound to their own target.

Core ideas
- Builder-style: every add_* call validates eagerly and raises BuildError for
  duplicate names, conflicting indices, cyclic or overlapping groups.
- Sealed once bound: a Parser seals the whole tree; later mutation raises.
- Parents are never referenced directly. "walk to the root" is an upward
  walk over arena handles, which keeps the tree free of reference cycles.

Quick start
    from argosy import CommandSpec, Option, Positional

    spec = CommandSpec(
        "copy",
        Option("-r", "--recursive", type=bool),
        Positional("SOURCE", type=list[str], arity="1..*"),
        standard_help=True,
    )
"""
import functools
import logging
import math
import operator
import re
from collections.abc import Iterable

from rich.text import Text

from .arena import Arena
from .arguments import ArgSpec, Option, Positional
from .arity import Arity
from .faults import BuildError, FaultCode
from .groups import ArgGroup
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass of CommandSpec.

    Mirrors __introspectable__ into read-only properties and provides the same
    compact __repr__/__rich_repr__ as the argument specifications.
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

        return self


def _lines(cls, name, value, /):
    """normalize a help text field into a tuple of lines (str or rich Text)."""
    match value:
        case UnsetType():
            return ()
        case str():
            return tuple(value.strip("\n").splitlines())
        case Text():
            return tuple(value.split("\n"))
        case Iterable():
            lines = tuple(value)
            if not all(isinstance(line, str | Text) for line in lines):
                raise TypeError(f"{cls.__typename__} '{name}' lines must be strings")
            return lines
        case _:
            raise TypeError(f"{cls.__typename__} '{name}' must be a string")


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate the command name and its aliases.

    Names cannot be empty, contain whitespace or start with a dash (they would
    be read as options). Aliases must differ from the name and each other.
    """
    names = [metadata["name"], *metadata["aliases"]]
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name and aliases must be strings")
        elif not re.fullmatch(r"[^\s\-]\S*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} is not a valid command name")
    if len(set(names)) != len(names):
        raise BuildError(
            f"{cls.__typename__} {metadata['name']!r} repeats a name among its aliases",
            code=FaultCode.DUPLICATE_NAME,
        )
    metadata["aliases"] = tuple(metadata["aliases"])

    if not isinstance(unmatched := metadata["unmatched"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'unmatched' must be an attribute name")
    elif isinstance(unmatched, str) and not unmatched.isidentifier():
        raise ValueError(f"{cls.__typename__} 'unmatched' must be a valid identifier")

    if (callback := metadata["callback"]) is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")


class CommandSpec(metaclass=CommandType):
    """
    Specification of one command and, through its arena, of its whole subtree.

    Parameters
    - name, aliases: how the command is invoked (aliases only for subcommands).
    - arguments: Option and Positional specs, in declaration order.
    - version: lines printed when a version-help option is matched.
    - descr, header, footer: help text sections (str, Text or lines).
    - target: object receiving values through setattr (Unset for none).
    - unmatched: attribute of target receiving unmatched tokens; setting it
      enables capture instead of errors.
    - groups, subcommands: ArgGroup and CommandSpec instances to attach.
    - standard_help: add -h/--help and -V/--version.
    - hidden: leave the command out of parent command lists.
    - callback: called with the ParseResult by argosy.runner.invoke().
    """

    __introspectable__ = (
        "name",
        "aliases",
        "version",
        "descr",
        "header",
        "footer",
        "unmatched",
        "hidden",
        "callback",
        "mixins",
    )

    __displayable__ = (
        "name",
        "aliases",
        "options",
        "positionals",
        "subcommands",
    )

    def __init__(
            self,
            name,
            /,
            *arguments,
            aliases=(),
            version=(),
            descr=Unset,
            header=Unset,
            footer=Unset,
            target=Unset,
            unmatched=Unset,
            groups=(),
            subcommands=(),
            standard_help=False,
            hidden=False,
            callback=Unset,
    ):
        metadata = {
            "name": name,
            "aliases": aliases,
            "version": _lines(CommandSpec, "version", version),
            "descr": _lines(CommandSpec, "descr", descr),
            "header": _lines(CommandSpec, "header", header),
            "footer": _lines(CommandSpec, "footer", footer),
            "target": target,
            "unmatched": unmatched,
            "hidden": bool(hidden),
            "callback": callback,
        }
        _sanitize_names(CommandSpec, metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._arena = Arena()
        self._handle = self._arena.add(self)
        self._options = []
        self._names = {}
        self._positionals = []
        self._indices = {}
        self._groups = []
        self._grouped = {}
        self._bindings = {}
        self._mixins = {}
        self._sealed = False

        for argument in arguments:
            self.add(argument)
        if standard_help:
            self.add(Option("-h", "--help", usage_help=True, descr="Show this help message and exit."))
            self.add(Option("-V", "--version", version_help=True, descr="Print version information and exit."))
        for group in groups:
            self.add_group(group)
        for subcommand in subcommands:
            self.add_subcommand(subcommand)

    # ── construction ─────────────────────────────────────────────────────────

    def _check_mutable(self):
        if self._sealed:
            raise BuildError(
                "%s %r is sealed and cannot be modified" % (type(self).__typename__, self._name),
                code=FaultCode.SEALED_SPECIFICATION,
            )

    def _clash(self, name, /, *, inherited):
        """return the command where name is already taken, if any."""
        if name in self._names:
            return self
        for command in self.ancestors():
            if name in command._names and command._names[name][0].inherited:
                return command
        if inherited:
            for _, command in self._arena.descendants(self._handle):
                if name in command._names:
                    return command
        return None

    def add(self, argument, /, *, target=Unset):
        """
        Declare an Option or Positional on this command.

        target overrides the command target for this argument alone (used by
        mixin()). Returns the argument so the call can be chained.
        """
        self._check_mutable()
        if not isinstance(argument, ArgSpec):
            raise TypeError(f"{type(self).__typename__} arguments must be options or positionals")
        if argument in self._bindings:
            raise BuildError(
                "%r is already declared on %s %r" % (argument, type(self).__typename__, self._name),
                code=FaultCode.DUPLICATE_NAME,
            )

        if isinstance(argument, Option):
            names = (*((name, False) for name in argument.names), *((name, True) for name in argument.negations))
            for name, _ in names:
                if (command := self._clash(name, inherited=argument.inherited)) is not None:
                    raise BuildError(
                        "option name %r is already used by %s %r" % (name, type(self).__typename__, command._name),
                        code=FaultCode.DUPLICATE_NAME,
                        argument=argument,
                    )
            self._names.update((name, (argument, negated)) for name, negated in names)
            self._options.append(argument)
        else:
            self._place(argument)
            self._positionals.append(argument)

        self._bindings[argument] = target
        logger.debug("%s %r declared %r", type(self).__typename__, self._name, argument)
        return argument

    def _place(self, positional, /):
        """assign (or check) the index range of a positional."""
        if (index := positional.index) is Unset:
            if unbounded := [other for other, index in self._indices.items() if index.unbounded]:
                raise BuildError(
                    "positional %s cannot follow the open-ended positional %s" % (positional, unbounded[0]),
                    code=FaultCode.POSITIONAL_INDEX_CONFLICT,
                    argument=positional,
                )
            start = max((index.max + 1 for index in self._indices.values()), default=0)
            if positional.arity.unbounded:
                index = Arity(start, math.inf)
            else:
                index = Arity(start, start + max(positional.arity.max, 1) - 1)
        elif index.span < positional.arity.min:
            raise BuildError(
                "positional %s index %s cannot hold %s value(s)" % (positional, index, positional.arity.min),
                code=FaultCode.POSITIONAL_INDEX_CONFLICT,
                argument=positional,
            )
        elif index.variable and not positional.multivalued:
            raise BuildError(
                "scalar positional %s cannot cover the index range %s" % (positional, index),
                code=FaultCode.POSITIONAL_INDEX_CONFLICT,
                argument=positional,
            )

        for other, taken in self._indices.items():
            if index.min <= taken.max and taken.min <= index.max:
                raise BuildError(
                    "positional %s index %s overlaps %s at %s" % (positional, index, other, taken),
                    code=FaultCode.POSITIONAL_INDEX_CONFLICT,
                    argument=positional,
                )
        self._indices[positional] = index

    def add_group(self, group, /):
        """attach an ArgGroup whose members are all declared on this command."""
        self._check_mutable()
        if not isinstance(group, ArgGroup):
            raise TypeError(f"{type(self).__typename__} groups must be arg-groups")
        for nested in (group, *group.walk()):
            if nested in self._grouped:
                raise BuildError("arg-group %s is attached twice" % nested, code=FaultCode.DUPLICATE_NAME)
        for argument in group.specs():
            if argument not in self._bindings:
                raise BuildError(
                    "arg-group member %s is not declared on %s %r" % (argument, type(self).__typename__, self._name),
                    argument=argument,
                )
            if argument in self._grouped:
                raise BuildError(
                    "%s cannot belong to two arg-groups" % argument,
                    code=FaultCode.DUPLICATE_NAME,
                    argument=argument,
                )

        def register(parent):
            for member in parent.members:
                self._grouped[member] = parent
                if isinstance(member, ArgGroup):
                    register(member)
        self._grouped[group] = Unset
        register(group)
        self._groups.append(group)
        return group

    def add_subcommand(self, subcommand, /):
        """
        Attach subcommand (and its whole subtree) below this command.

        The subtree moves into this command's arena; its names and aliases must
        be free among the existing children, and none of its options may clash
        with options inherited from this command or its ancestors.
        """
        self._check_mutable()
        if not isinstance(subcommand, CommandSpec):
            raise TypeError(f"{type(self).__typename__} subcommands must be command-specs")
        if subcommand is self or subcommand in self.ancestors():
            raise BuildError("command tree cannot be cyclic", code=FaultCode.CYCLIC_GROUP)
        if subcommand.parent is not None:
            raise BuildError("%s %r already has a parent" % (type(self).__typename__, subcommand.name))

        for name in (subcommand.name, *subcommand.aliases):
            if (existing := self.subcommand(name)) is not None:
                raise BuildError(
                    "subcommand name %r is already used by %r" % (name, existing.name),
                    code=FaultCode.DUPLICATE_NAME,
                )

        inherited = {
            name: command
            for command in (self, *self.ancestors())
            for name, (option, _) in command._names.items()
            if option.inherited
        }
        for command in (subcommand, *(node for _, node in subcommand._arena.descendants(subcommand._handle))):
            for name in command._names:
                if name in inherited:
                    raise BuildError(
                        "option name %r of %r is already inherited from %r" % (name, command.name, inherited[name].name),
                        code=FaultCode.DUPLICATE_NAME,
                    )

        moved = self._arena.adopt(subcommand._arena, subcommand._handle, parent=self._handle)
        for node, handle in moved.items():
            node._arena = self._arena
            node._handle = handle
        return subcommand

    def mixin(self, name, spec, /):
        """
        Merge the arguments and groups of another CommandSpec into this one.

        Values of the merged arguments are bound to spec.target rather than to
        this command's target. The mixin is recorded under name.
        """
        self._check_mutable()
        if not isinstance(spec, CommandSpec):
            raise TypeError(f"{type(self).__typename__} mixins must be command-specs")
        if name in self._mixins:
            raise BuildError("mixin %r is already registered" % name, code=FaultCode.DUPLICATE_NAME)
        for argument in (*spec._options, *spec._positionals):
            self.add(argument, target=spec.binding(argument))
        for group in spec._groups:
            self.add_group(group)
        self._mixins[name] = spec
        return spec

    def seal(self):
        """
        Freeze the whole tree this command belongs to.

        Positional ranges are checked for gaps here because explicit indices
        may be declared in any order.
        """
        if (root := self.root)._sealed:
            return
        for command in (root, *(node for _, node in root._arena.descendants(root._handle))):
            covered = 0
            for positional, index in sorted(command._indices.items(), key=lambda item: item[1].min):
                if index.min != covered:
                    raise BuildError(
                        "positional %s starts at index %s leaving a gap at %s" % (positional, index.min, covered),
                        code=FaultCode.POSITIONAL_INDEX_CONFLICT,
                        argument=positional,
                    )
                covered = index.max + 1
            for group in command._groups:
                group.seal()
            command._sealed = True
        logger.debug("sealed command tree %r (%d command(s))", root._name, len(root._arena))

    # ── traversal ────────────────────────────────────────────────────────────

    @property
    def sealed(self):
        return self._sealed

    @property
    def options(self):
        """options declared on this command, in declaration order."""
        return tuple(self._options)

    @property
    def inherited_options(self):
        """options inherited from ancestors, nearest command first."""
        return tuple(
            option for command in self.ancestors() for option in command._options if option.inherited
        )

    @property
    def positionals(self):
        """positionals ordered by their index range."""
        return tuple(sorted(self._positionals, key=lambda positional: self._indices[positional].min))

    @property
    def arguments(self):
        return (*self._options, *self.positionals)

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def subcommands(self):
        return tuple(self._arena[handle] for handle in self._arena.children(self._handle))

    @property
    def parent(self):
        if (handle := self._arena.parent(self._handle)) is None:
            return None
        return self._arena[handle]

    def ancestors(self):
        """yield the commands above this one, nearest first."""
        return self._arena.ancestors(self._handle)

    @property
    def root(self):
        return self.path[0]

    @property
    def path(self):
        """commands from the root down to this one."""
        return (*reversed(tuple(self.ancestors())), self)

    @property
    def qualified_name(self):
        return " ".join(command.name for command in self.path)

    def subcommand(self, token, /):
        """return the direct subcommand called token (by name or alias), or None."""
        for command in self.subcommands:
            if token == command.name or token in command.aliases:
                return command
        return None

    def lookup(self, name, /):
        """
        Resolve an option name in this command's scope.

        Local names win; then inherited options of the ancestors, nearest
        first. Returns (option, negated) or None.
        """
        if (found := self._names.get(name)) is not None:
            return found
        for command in self.ancestors():
            if (found := command._names.get(name)) is not None and found[0].inherited:
                return found
        return None

    def names(self):
        """every option name matchable here, including negations and inherited names."""
        names = {}
        for command in reversed(tuple(self.ancestors())):
            names.update((name, found) for name, found in command._names.items() if found[0].inherited)
        names.update(self._names)
        return names

    def index_of(self, positional, /):
        return self._indices[positional]

    def positional_at(self, position, /):
        """the positional whose index range covers position, or None."""
        for positional, index in self._indices.items():
            if position in index:
                return positional
        return None

    @property
    def target(self):
        return self._target

    def binding(self, argument, /):
        """target object receiving the value of argument."""
        command = coalesce(self.owner_of(argument), self)
        return coalesce(command._bindings.get(argument, Unset), command._target)

    def group_of(self, member, /):
        """the ArgGroup directly containing member (Unset for top-level groups), or None."""
        return self._grouped.get(member)

    def owner_of(self, argument, /):
        """the command declaring argument (itself, or an ancestor for inherited options)."""
        for command in (self, *self.ancestors()):
            if argument in command._bindings:
                return command
        return None

    def __str__(self):
        return self.qualified_name


__all__ = (
    "CommandSpec",
)
