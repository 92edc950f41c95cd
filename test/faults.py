"""
Faults module behavioral tests.

Scope
- Fault codes, titles and exit statuses of the error hierarchy.
- Read-only options and their shortcuts; __replace__ keeps the message.
- ConstraintError aggregation and summary message.
- trigger(): raising, warning, and shell-mode printing.
- Rich rendering of a fault with its hint.

Conventions
- Test method names follow CamelCase per project convention.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argosy import (
    ArgumentFileWarning,
    BuildError,
    ConstraintError,
    ConversionError,
    ExclusiveGroupError,
    FaultCode,
    MissingArgumentError,
    ParseError,
    UnknownOptionError,
    getdoc,
    trigger,
)


class TestFaultHierarchy(TestCase):
    """Codes, titles and statuses."""

    def testDefaultCodes(self):
        self.assertEqual(UnknownOptionError("x").code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(ExclusiveGroupError("x").code, FaultCode.EXCLUSIVE_GROUP)
        self.assertEqual(BuildError("x", code=FaultCode.CYCLIC_GROUP).code, FaultCode.CYCLIC_GROUP)

    def testBuildErrorIsValueError(self):
        self.assertIsInstance(BuildError("x"), ValueError)
        self.assertIsInstance(ConversionError("x"), ParseError)

    def testStatuses(self):
        self.assertEqual(BuildError.__status__, 1)
        self.assertEqual(UnknownOptionError.__status__, 2)
        self.assertEqual(ConstraintError.__status__, 2)

    def testCodesAreGroupedByDomain(self):
        self.assertEqual(FaultCode.DUPLICATE_NAME // 1000, 10)
        self.assertEqual(FaultCode.MISSING_VALUE // 1000, 11)
        self.assertEqual(FaultCode.MISSING_GROUP // 1000, 12)
        self.assertEqual(FaultCode.EXECUTION_FAILURE // 1000, 13)
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11001")


class TestFaultOptions(TestCase):
    """Keyword options carried by faults."""

    def testShortcuts(self):
        fault = UnknownOptionError("unknown option '--x'", token="--x", index=2, hint="try --y")
        self.assertEqual(str(fault), "unknown option '--x'")
        self.assertEqual((fault.token, fault.index, fault.hint), ("--x", 2, "try --y"))
        self.assertIsNone(fault.argument)

    def testOptionsAreReadOnly(self):
        fault = UnknownOptionError("x", token="--x")
        with self.assertRaises(TypeError):
            fault.options["token"] = "--y"

    def testReplaceMergesOptions(self):
        fault = UnknownOptionError("message", token="--x")
        replaced = fault.__replace__(hint="try again")
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(replaced.message, "message")
        self.assertEqual((replaced.token, replaced.hint), ("--x", "try again"))
        self.assertIsNone(fault.hint)

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.UNKNOWN_OPTION))
        with self.assertRaises(TypeError):
            getdoc(11001)


class TestConstraintError(TestCase):
    """Aggregated constraint violations."""

    def testSummaryMessage(self):
        one = ConstraintError([MissingArgumentError("missing FILE")])
        self.assertEqual(one.message, "1 constraint violation")
        many = ConstraintError([MissingArgumentError("a"), ExclusiveGroupError("b")], command=None)
        self.assertEqual(many.message, "2 constraint violations")
        self.assertEqual(len(many.exceptions), 2)

    def testReplaceKeepsViolations(self):
        error = ConstraintError([MissingArgumentError("a")])
        replaced = error.__replace__(shell=False)
        self.assertEqual(replaced.exceptions, error.exceptions)
        self.assertFalse(replaced.options["shell"])


class TestTrigger(TestCase):
    """Surfacing faults."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnknownOptionError) as raised:
            trigger(UnknownOptionError("x"), hint="extra")
        self.assertEqual(raised.exception.hint, "extra")

    def testWarnsOutsideShell(self):
        with self.assertWarns(ArgumentFileWarning):
            trigger(ArgumentFileWarning("cannot read"))

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("x"))

    def testShellModePrintsAndExits(self):
        buffer = io.StringIO()
        with mock.patch("argosy.faults.console", Console(file=buffer, width=100)):
            with self.assertRaises(SystemExit) as raised:
                trigger(UnknownOptionError("unknown option '--x'", hint="try --y"), shell=True, usage="Usage: tool")
        self.assertEqual(raised.exception.code, 2)
        printed = buffer.getvalue()
        self.assertIn("11001", printed)
        self.assertIn("unknown option '--x'", printed)
        self.assertIn("try --y", printed)
        self.assertTrue(printed.rstrip().endswith("Usage: tool"))


if __name__ == "__main__":
    unittest.main()
