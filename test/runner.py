"""
Runner behavioral tests (parse, report, dispatch).

Scope
- invoke() dispatches to the callback of the innermost matched command.
- Help and version options print instead of dispatching.
- Faults are raised with the failing command's synopsis attached, or printed
  with exit status 2 in shell mode.

Conventions
- Test method names follow CamelCase per project convention.
- Output goes to in-memory consoles; the fault console is patched in shell mode.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argosy import (
    CommandSpec,
    ConstraintError,
    ExecutionError,
    Option,
    ParseResult,
    Parser,
    Positional,
    UnknownOptionError,
    UsageSettings,
    invoke,
)


def console():
    return Console(file=io.StringIO(), width=80)


class TestDispatch(TestCase):
    """Callbacks receive the ParseResult."""

    def testCallbackReturnValue(self):
        spec = CommandSpec("tool", Option("-n", type=int), callback=lambda result: result["-n"] * 2)
        self.assertEqual(invoke(spec, ["-n", "3"]), 6)
        self.assertEqual(invoke(spec, "-n 4"), 8)

    def testInnermostCommandDispatched(self):
        calls = []
        child = CommandSpec("child", callback=lambda result: calls.append("child"))
        spec = CommandSpec("root", subcommands=[child], callback=lambda result: calls.append("root"))
        invoke(spec, ["child"])
        self.assertEqual(calls, ["child"])

    def testWithoutCallbackReturnsResult(self):
        spec = CommandSpec("tool", Positional("FILE"))
        result = invoke(Parser(spec), ["in.txt"])
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(result["FILE"], "in.txt")

    def testExecutionErrorsPassThrough(self):
        def fail(result):
            raise ExecutionError("boom")

        with self.assertRaises(ExecutionError):
            invoke(CommandSpec("tool", callback=fail), [])


class TestHelpAndVersion(TestCase):
    """Help and version options short-circuit dispatch."""

    def setUp(self):
        self.calls = []
        self.output = console()

    def testHelpPrinted(self):
        spec = CommandSpec("tool", Positional("FILE"), standard_help=True, callback=self.calls.append)
        result = invoke(spec, ["--help"], console=self.output, usage=UsageSettings(width=80))
        self.assertTrue(result.help_requested)
        self.assertEqual(self.calls, [])
        self.assertIn("Usage: tool [-hV] FILE", self.output.file.getvalue())

    def testVersionFromNearestCommand(self):
        child = CommandSpec("child", standard_help=True)
        spec = CommandSpec("tool", version=["tool 2.0", "MIT"], subcommands=[child], callback=self.calls.append)
        invoke(spec, ["child", "-V"], console=self.output)
        self.assertEqual(self.output.file.getvalue().splitlines(), ["tool 2.0", "MIT"])
        self.assertEqual(self.calls, [])


class TestFaultReporting(TestCase):
    """Faults raised or printed by invoke()."""

    def testFaultRaisedWithUsage(self):
        spec = CommandSpec("tool", Option("-v", type=bool))
        with self.assertRaises(UnknownOptionError) as raised:
            invoke(spec, ["--bogus"], console=console())
        self.assertEqual(raised.exception.options["usage"].plain, "Usage: tool [-v]")
        self.assertIs(raised.exception.options["command"], spec)

    def testConstraintErrorUsesFailingCommand(self):
        child = CommandSpec("child", Positional("FILE"))
        spec = CommandSpec("root", subcommands=[child])
        with self.assertRaises(ConstraintError) as raised:
            invoke(spec, ["child"], console=console())
        self.assertEqual(raised.exception.options["usage"].plain, "Usage: root child FILE")

    def testShellModeExitsWithStatusTwo(self):
        errors = console()
        spec = CommandSpec("tool", Option("-v", type=bool))
        with mock.patch("argosy.faults.console", errors), self.assertRaises(SystemExit) as raised:
            invoke(spec, ["--bogus"], shell=True, console=console())
        self.assertEqual(raised.exception.code, 2)
        printed = errors.file.getvalue()
        self.assertIn("unknown option '--bogus'", printed)
        self.assertIn("Usage: tool [-v]", printed)

    def testShellModeConstraintError(self):
        errors = console()
        with mock.patch("argosy.faults.console", errors), self.assertRaises(SystemExit) as raised:
            invoke(CommandSpec("tool", Positional("FILE")), [], shell=True, console=console())
        self.assertEqual(raised.exception.code, 2)
        self.assertIn("missing required positional FILE", errors.file.getvalue())


if __name__ == "__main__":
    unittest.main()
