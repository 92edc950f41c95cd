"""
Tests for the shared helpers.

Scope
- Unset: singleton identity, falsiness, representation, pickling, finality and
  use inside isinstance() unions.
- coalesce(), mirror(), pluralize() and ordinal().

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from argosy.utils import *


class UnsetTest(TestCase):
    """Guarantees of the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCopiesAndPicklePreserveIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, int | Unset)
        self.assertIsInstance(3, int | Unset)
        self.assertNotIsInstance("x", int | Unset)


class HelpersTest(TestCase):
    """coalesce, mirror, pluralize and ordinal."""

    def testCoalesceKeepsFalsyValues(self):
        self.assertEqual(coalesce(Unset, "x"), "x")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "x"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, [2, 3]]
                self._table = {"a": [1]}

        holder = Holder()
        self.assertEqual(holder.items, (1, (2, 3)))
        self.assertEqual(holder.table["a"], (1,))
        with self.assertRaises(TypeError):
            holder.table["b"] = 2
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testMirrorRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            mirror(1)

    def testRenameBothForms(self):
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__name__, "decorated")

    def testPluralize(self):
        self.assertEqual(pluralize("violation"), "violations")
        self.assertEqual(pluralize("constraint entry"), "constraint entries")
        self.assertEqual(pluralize("Value"), "Values")
        self.assertEqual(pluralize("VALUE"), "VALUES")
        self.assertEqual(pluralize("index"), "indices")
        self.assertEqual(pluralize("box"), "boxes")

    def testOrdinal(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(2), "second")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(103), "103rd")


if __name__ == "__main__":
    unittest.main()
