"""
Commands module behavioral tests (building and traversing command trees).

Scope
- Validate eager BuildErrors: duplicate names (local, inherited, across
  subcommands), positional index conflicts and gaps, group membership,
  cyclic trees and mutation after sealing.
- Validate traversal: options, positionals, subcommands, parent, root, path,
  lookup with inherited scope, bindings and mixins.
- Validate the arena: parent links are handles, adoption moves subtrees.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (CommandSpec, Option, Positional, ArgGroup).
"""
import math
import unittest
from types import SimpleNamespace
from unittest import TestCase

from argosy import Arity, ArgGroup, BuildError, CommandSpec, FaultCode, Option, Positional
from argosy.arena import Arena, Handle


class TestCommandBuilding(TestCase):
    """Eager validation while building command trees."""

    def testDuplicateOptionNameRejected(self):
        spec = CommandSpec("tool", Option("-v", "--verbose", type=bool))
        with self.assertRaises(BuildError) as raised:
            spec.add(Option("--verbose", type=bool))
        self.assertEqual(raised.exception.code, FaultCode.DUPLICATE_NAME)

    def testNegationClashesWithDeclaredName(self):
        spec = CommandSpec("tool", Option("--no-color", type=bool))
        with self.assertRaises(BuildError):
            spec.add(Option("--color", type=bool, negatable=True))

    def testSameSpecCannotBeAddedTwice(self):
        verbose = Option("-v", type=bool)
        spec = CommandSpec("tool", verbose)
        with self.assertRaises(BuildError):
            spec.add(verbose)

    def testInheritedOptionClashesWithDescendant(self):
        child = CommandSpec("child", Option("-v", type=bool))
        parent = CommandSpec("parent", subcommands=[child])
        with self.assertRaises(BuildError):
            parent.add(Option("-v", "--verbose", type=bool, scope="inherited"))

    def testSubcommandClashesWithInheritedOption(self):
        parent = CommandSpec("parent", Option("-v", type=bool, scope="inherited"))
        with self.assertRaises(BuildError):
            parent.add_subcommand(CommandSpec("child", Option("-v", type=bool)))

    def testLocalOptionsMayRepeatAcrossCommands(self):
        parent = CommandSpec("parent", Option("-v", type=bool))
        child = parent.add_subcommand(CommandSpec("child", Option("-v", type=bool)))
        self.assertIsNot(parent.lookup("-v")[0], child.lookup("-v")[0])

    def testDuplicateSubcommandNameRejected(self):
        parent = CommandSpec("git", subcommands=[CommandSpec("commit", aliases=["ci"])])
        with self.assertRaises(BuildError):
            parent.add_subcommand(CommandSpec("ci"))

    def testCommandNamesValidated(self):
        for name in ("", "-x", "two words"):
            with self.subTest(name=name), self.assertRaises(ValueError):
                CommandSpec(name)
        with self.assertRaises(BuildError):
            CommandSpec("tool", aliases=["tool"])

    def testPositionalIndicesAssignedInDeclarationOrder(self):
        source, target = Positional("SRC"), Positional("DST")
        spec = CommandSpec("cp", source, target)
        self.assertEqual(spec.index_of(source), Arity(0))
        self.assertEqual(spec.index_of(target), Arity(1))
        self.assertIs(spec.positional_at(1), target)
        self.assertIsNone(spec.positional_at(2))

    def testOpenRangeMustBeLast(self):
        spec = CommandSpec("tool", Positional("FILES", type=list[str]))
        self.assertEqual(spec.index_of(spec.positionals[0]), Arity(0, math.inf))
        with self.assertRaises(BuildError) as raised:
            spec.add(Positional("MORE"))
        self.assertEqual(raised.exception.code, FaultCode.POSITIONAL_INDEX_CONFLICT)

    def testOverlappingIndicesRejected(self):
        spec = CommandSpec("tool", Positional("A", index=0))
        with self.assertRaises(BuildError):
            spec.add(Positional("B", index=0))

    def testScalarCannotCoverIndexRange(self):
        with self.assertRaises(BuildError):
            CommandSpec("tool", Positional("A", index="0..2"))

    def testGapInIndicesRejectedWhenSealed(self):
        spec = CommandSpec("tool", Positional("A", index=0), Positional("C", index=2))
        with self.assertRaises(BuildError):
            spec.seal()

    def testExplicitIndicesInAnyOrder(self):
        second, first = Positional("B", index=1), Positional("A", index=0)
        spec = CommandSpec("tool", second, first)
        spec.seal()
        self.assertEqual(spec.positionals, (first, second))

    def testGroupMembersMustBeDeclared(self):
        x = Option("-x", type=bool)
        spec = CommandSpec("tool")
        with self.assertRaises(BuildError):
            spec.add_group(ArgGroup(x))

    def testArgumentInTwoGroupsRejected(self):
        x, y = Option("-x", type=bool), Option("-y", type=bool)
        spec = CommandSpec("tool", x, y, groups=[ArgGroup(x, y)])
        with self.assertRaises(BuildError):
            spec.add_group(ArgGroup(x))

    def testCyclicGroupsRejected(self):
        outer = ArgGroup(Option("-a", type=bool))
        inner = ArgGroup(Option("-b", type=bool), outer)
        with self.assertRaises(BuildError) as raised:
            outer.add(inner)
        self.assertEqual(raised.exception.code, FaultCode.CYCLIC_GROUP)

    def testCyclicTreeRejected(self):
        root = CommandSpec("root")
        child = root.add_subcommand(CommandSpec("child"))
        with self.assertRaises(BuildError):
            child.add_subcommand(root)

    def testSealedTreeIsImmutable(self):
        root = CommandSpec("root")
        child = root.add_subcommand(CommandSpec("child"))
        child.seal()
        self.assertTrue(root.sealed)
        with self.assertRaises(BuildError) as raised:
            root.add(Option("-v", type=bool))
        self.assertEqual(raised.exception.code, FaultCode.SEALED_SPECIFICATION)

    def testStandardHelpAddsHelpAndVersion(self):
        spec = CommandSpec("tool", standard_help=True)
        self.assertTrue(spec.lookup("--help")[0].usage_help)
        self.assertTrue(spec.lookup("-V")[0].version_help)


class TestCommandTraversal(TestCase):
    """Read-only traversal of built trees."""

    def setUp(self):
        self.verbose = Option("-v", "--verbose", type=bool, scope="inherited")
        self.message = Option("-m", "--message")
        self.commit = CommandSpec("commit", self.message, aliases=["ci"])
        self.remote = CommandSpec("remote", subcommands=[CommandSpec("add")])
        self.git = CommandSpec("git", self.verbose, subcommands=[self.commit, self.remote])

    def testParentRootAndPath(self):
        add = self.remote.subcommand("add")
        self.assertIs(add.parent, self.remote)
        self.assertIs(add.root, self.git)
        self.assertEqual([command.name for command in add.path], ["git", "remote", "add"])
        self.assertEqual(add.qualified_name, "git remote add")
        self.assertIsNone(self.git.parent)

    def testSubcommandByAlias(self):
        self.assertIs(self.git.subcommand("ci"), self.commit)
        self.assertIsNone(self.git.subcommand("push"))

    def testInheritedLookupWalksToRoot(self):
        add = self.remote.subcommand("add")
        self.assertEqual(add.lookup("--verbose"), (self.verbose, False))
        self.assertIsNone(self.git.lookup("--message"))
        self.assertEqual(self.commit.inherited_options, (self.verbose,))
        self.assertIn("-v", add.names())

    def testNegatedLookup(self):
        color = Option("--color", type=bool, negatable=True)
        spec = CommandSpec("tool", color)
        self.assertEqual(spec.lookup("--no-color"), (color, True))

    def testParentLinksAreHandles(self):
        self.assertIsInstance(self.commit._handle, Handle)
        self.assertIs(self.commit._arena, self.git._arena)
        self.assertEqual(len(self.git._arena), 4)

    def testOwnerAndBinding(self):
        target = SimpleNamespace()
        spec = CommandSpec("tool", Option("-n", type=int), target=target)
        self.assertIs(spec.binding(spec.options[0]), target)
        self.assertIs(self.commit.owner_of(self.verbose), self.git)

    def testMixinBindsToItsOwnTarget(self):
        logging_target = SimpleNamespace()
        level = Option("--level", type=int)
        shared = CommandSpec("logging", level, target=logging_target)
        spec = CommandSpec("tool", target=SimpleNamespace())
        spec.mixin("logging", shared)
        self.assertIs(spec.binding(level), logging_target)
        self.assertIs(spec.mixins["logging"], shared)
        with self.assertRaises(BuildError):
            spec.mixin("logging", CommandSpec("again"))


class TestArena(TestCase):
    """Arena storage and adoption."""

    def testAncestorsNearestFirst(self):
        arena = Arena()
        root = arena.add("root")
        middle = arena.add("middle", root)
        leaf = arena.add("leaf", middle)
        self.assertEqual(list(arena.ancestors(leaf)), ["middle", "root"])
        self.assertEqual(arena.children(root), (middle,))

    def testForeignHandleRejected(self):
        handle = Arena().add("x")
        with self.assertRaises(KeyError):
            Arena()[handle]

    def testAdoptMovesSubtree(self):
        source = Arena()
        top = source.add("top")
        source.add("below", top)
        target = Arena()
        root = target.add("root")
        moved = target.adopt(source, top, parent=root)
        self.assertEqual(set(moved), {"top", "below"})
        self.assertEqual([node for _, node in target.descendants(root)], ["top", "below"])


if __name__ == "__main__":
    unittest.main()
