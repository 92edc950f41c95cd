"""
Argument group behavioral tests (construction and validation).

Scope
- ArgGroup construction: default multiplicities, required groups, optional
  members, nesting, sealing and display strings.
- Validation after matching: exclusive conflicts, missing required groups,
  multiplicity overflow, incomplete co-required groups, nested groups and
  required arguments outside groups.
- Every violation of a parse is reported at once in one ConstraintError.

Conventions
- Test method names follow CamelCase per project convention.
- Violations are inspected through ConstraintError.exceptions.
"""
import math
import unittest
from unittest import TestCase

from argosy import (
    Arity,
    ArgGroup,
    BuildError,
    CommandSpec,
    ConstraintError,
    ExclusiveGroupError,
    GroupMultiplicityError,
    IncompleteGroupError,
    MissingArgumentError,
    MissingGroupError,
    Option,
    Parser,
    Positional,
)


class TestArgGroup(TestCase):
    """Construction of groups."""

    def testDefaultMultiplicity(self):
        x, y = Option("-x", type=bool), Option("-y", type=bool)
        self.assertEqual(ArgGroup(x, y).multiplicity, Arity(0, 1))
        self.assertEqual(ArgGroup(x, y, exclusive=False).multiplicity, Arity(0, math.inf))
        self.assertFalse(ArgGroup(x, y).required)

    def testRequiredRaisesMinimum(self):
        group = ArgGroup(Option("-x", type=bool), Option("-y", type=bool), required=True)
        self.assertTrue(group.required)
        self.assertEqual(group.multiplicity, Arity(1))
        self.assertTrue(ArgGroup(Option("-z", type=bool), multiplicity="1..3").required)

    def testOptionalMembers(self):
        user, password = Option("--user"), Option("--password")
        group = ArgGroup(user, password, exclusive=False, optional=[password])
        self.assertTrue(group.requires(user))
        self.assertFalse(group.requires(password))
        with self.assertRaises(BuildError):
            ArgGroup(user, exclusive=False, optional=[Option("--other")])

    def testExclusiveMembersAreNeverRequired(self):
        x = Option("-x", type=bool)
        self.assertFalse(ArgGroup(x).requires(x))

    def testNestingAndWalk(self):
        a, b, c = (Option(name, type=bool) for name in ("-a", "-b", "-c"))
        inner = ArgGroup(b, c, exclusive=False)
        outer = ArgGroup(a, inner)
        self.assertEqual(outer.arguments, (a,))
        self.assertEqual(outer.subgroups, (inner,))
        self.assertEqual(list(outer.walk()), [inner])
        self.assertEqual(list(outer.specs()), [a, b, c])

    def testDuplicateMemberRejected(self):
        x = Option("-x", type=bool)
        with self.assertRaises(BuildError):
            ArgGroup(x, x)

    def testMembersMustBeSpecsOrGroups(self):
        with self.assertRaises(TypeError):
            ArgGroup("-x")

    def testHeadingAndOrderValidated(self):
        with self.assertRaises(TypeError):
            ArgGroup(heading=3)
        with self.assertRaises(TypeError):
            ArgGroup(order=True)

    def testSealedGroupIsImmutable(self):
        group = ArgGroup(Option("-x", type=bool))
        group.seal()
        with self.assertRaises(BuildError):
            group.add(Option("-y", type=bool))

    def testDisplayString(self):
        x, y = Option("-x", type=bool), Option("-y", type=bool)
        self.assertEqual(str(ArgGroup(x, y)), "[-x | -y]")
        self.assertEqual(str(ArgGroup(x, y, exclusive=False, required=True)), "(-x -y)")


class TestExclusiveGroups(TestCase):
    """Mutually exclusive groups."""

    def setUp(self):
        self.x, self.y = Option("-x", type=bool), Option("-y", type=bool)
        self.group = ArgGroup(self.x, self.y)
        self.spec = CommandSpec("tool", self.x, self.y, groups=[self.group])
        self.parser = Parser(self.spec)

    def testBothGivenIsOneViolation(self):
        with self.assertRaises(ConstraintError) as raised:
            self.parser.parse(["-x", "-y"])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, ExclusiveGroupError)
        self.assertIs(violation.group, self.group)
        self.assertIs(raised.exception.options["command"], self.spec)

    def testClusteredConflictIsOneViolation(self):
        with self.assertRaises(ConstraintError) as raised:
            self.parser.parse(["-xy"])
        self.assertEqual(len(raised.exception.exceptions), 1)

    def testOneOrNoneSucceeds(self):
        self.assertTrue(self.parser.parse(["-x"])["-x"])
        self.assertFalse(self.parser.parse([])["-x"])

    def testRepeatingOneMemberIsOneKind(self):
        self.assertTrue(self.parser.parse(["-x", "-x"])["-x"])


class TestRequiredGroups(TestCase):
    """Groups whose multiplicity bounds how many times they are given."""

    def testMissingRequiredGroupIdentifiesIt(self):
        x, y = Option("-x", type=bool), Option("-y", type=bool)
        group = ArgGroup(x, y, required=True)
        parser = Parser(CommandSpec("tool", x, y, groups=[group]))
        with self.assertRaises(ConstraintError) as raised:
            parser.parse([])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, MissingGroupError)
        self.assertIs(violation.group, group)
        self.assertIn("-x | -y", violation.hint)
        self.assertTrue(parser.parse(["-y"])["-y"])

    def testCompleteCoRequiredGroupIsOneOccurrence(self):
        a, b, c = Option("-a"), Option("-b"), Option("-c")
        parser = Parser(CommandSpec("tool", a, b, c, groups=[ArgGroup(a, b, c, exclusive=False, multiplicity=1)]))
        result = parser.parse(["-a", "1", "-b", "2", "-c", "3"])
        self.assertEqual((result["-a"], result["-b"], result["-c"]), ("1", "2", "3"))

    def testCoRequiredGroupWithMultiplicityOneIsRequired(self):
        a, b = Option("-a"), Option("-b")
        parser = Parser(CommandSpec("tool", a, b, groups=[ArgGroup(a, b, exclusive=False, multiplicity=1)]))
        with self.assertRaises(ConstraintError) as raised:
            parser.parse([])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, MissingGroupError)

    def testRepeatedGroupOverflowsMultiplicity(self):
        a, b = Option("-a"), Option("-b")
        group = ArgGroup(a, b, exclusive=False, multiplicity=1)
        parser = Parser(CommandSpec("tool", a, b, groups=[group]))
        with self.assertRaises(ConstraintError) as raised:
            parser.parse(["-a", "1", "-b", "2", "-a", "3", "-b", "4"])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, GroupMultiplicityError)
        self.assertIs(violation.group, group)

    def testRepeatedGroupWithinMultiplicity(self):
        a, b = Option("-a"), Option("-b")
        parser = Parser(CommandSpec("tool", a, b, groups=[ArgGroup(a, b, exclusive=False, multiplicity="1..2")]))
        result = parser.parse(["-a", "1", "-b", "2", "-a", "3", "-b", "4"])
        self.assertEqual((result["-a"], result["-b"]), ("3", "4"))


class TestCoRequiredGroups(TestCase):
    """Groups whose members travel together."""

    def setUp(self):
        self.user, self.password = Option("--user"), Option("--password")
        self.group = ArgGroup(self.user, self.password, exclusive=False)
        self.parser = Parser(CommandSpec("login", self.user, self.password, groups=[self.group]))

    def testPartialGroupIsIncomplete(self):
        with self.assertRaises(ConstraintError) as raised:
            self.parser.parse(["--user", "me"])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, IncompleteGroupError)
        self.assertIn("--password", str(violation))

    def testCompleteOrAbsentSucceeds(self):
        result = self.parser.parse(["--user", "me", "--password", "pw"])
        self.assertEqual((result["--user"], result["--password"]), ("me", "pw"))
        self.assertNotIn("--user", self.parser.parse([]))

    def testOptionalMemberMayBeOmitted(self):
        user, host = Option("--user"), Option("--host")
        group = ArgGroup(user, host, exclusive=False, optional=[host])
        parser = Parser(CommandSpec("ssh", user, host, groups=[group]))
        self.assertEqual(parser.parse(["--user", "me"])["--user"], "me")


class TestNestedGroups(TestCase):
    """An exclusive choice between a token and a user/password pair."""

    def setUp(self):
        self.token = Option("--token")
        self.user, self.password = Option("--user"), Option("--password")
        self.credentials = ArgGroup(self.user, self.password, exclusive=False)
        self.auth = ArgGroup(self.token, self.credentials, required=True)
        spec = CommandSpec("api", self.token, self.user, self.password, groups=[self.auth])
        self.parser = Parser(spec)

    def testEitherBranchSucceeds(self):
        self.assertEqual(self.parser.parse(["--token", "t"])["--token"], "t")
        self.assertEqual(self.parser.parse(["--user", "u", "--password", "p"])["--user"], "u")

    def testBothBranchesConflict(self):
        with self.assertRaises(ConstraintError) as raised:
            self.parser.parse(["--token", "t", "--user", "u", "--password", "p"])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, ExclusiveGroupError)
        self.assertIs(violation.group, self.auth)

    def testIncompleteBranchReportsBoth(self):
        with self.assertRaises(ConstraintError) as raised:
            self.parser.parse(["--user", "u"])
        kinds = [type(violation) for violation in raised.exception.exceptions]
        self.assertEqual(kinds, [MissingGroupError, IncompleteGroupError])
        self.assertIs(raised.exception.exceptions[1].group, self.credentials)


class TestRequiredArguments(TestCase):
    """Required arguments outside groups."""

    def testMissingRequiredOption(self):
        name = Option("--name", required=True)
        with self.assertRaises(ConstraintError) as raised:
            Parser(CommandSpec("tool", name)).parse([])
        violation, = raised.exception.exceptions
        self.assertIsInstance(violation, MissingArgumentError)
        self.assertIs(violation.argument, name)
        self.assertIn("--name", violation.hint)

    def testDefaultSatisfiesRequirement(self):
        result = Parser(CommandSpec("tool", Option("--name", required=True, default="x"))).parse([])
        self.assertEqual(result["--name"], "x")

    def testTooFewPositionalValues(self):
        spec = CommandSpec("tool", Positional("FILES", type=list[str], arity="2..*"))
        with self.assertRaises(ConstraintError) as raised:
            Parser(spec).parse(["a"])
        self.assertIsInstance(raised.exception.exceptions[0], MissingArgumentError)

    def testEveryViolationReportedAtOnce(self):
        x, y = Option("-x", type=bool), Option("-y", type=bool)
        spec = CommandSpec("tool", x, y, Option("--name", required=True), Positional("FILE"), groups=[ArgGroup(x, y)])
        with self.assertRaises(ConstraintError) as raised:
            Parser(spec).parse(["-x", "-y"])
        self.assertEqual(len(raised.exception.exceptions), 3)
        self.assertEqual(str(raised.exception).split(" (")[0], "3 constraint violations")

    def testSubcommandArgumentsCheckedOnlyWhenMatched(self):
        child = CommandSpec("child", Positional("FILE"))
        parser = Parser(CommandSpec("root", subcommands=[child]))
        self.assertEqual(parser.parse([]).command.name, "root")
        with self.assertRaises(ConstraintError):
            parser.parse(["child"])


if __name__ == "__main__":
    unittest.main()
