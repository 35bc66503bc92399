"""
Utils module behavioral tests (Unset sentinel, helpers, module globs).

Scope
- Unset: singleton, falsy, printable, usable in PEP 604 unions, final.
- coalesce/rename/mirror/ordinal: small helper contracts.
- mglob: module-glob expansion over the test fixtures package.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import threading
import unittest
from unittest import TestCase

from bindery.utils import Unset, UnsetType, coalesce, rename, mirror, ordinal, mglob


class TestUnset(TestCase):
    """Unset sentinel contract."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", Unset | str)
        self.assertNotIsInstance(1, str | Unset)

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            class Other(UnsetType):
                pass

    def testCopyPreservesSingleton(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testThreadSafetySingleton(self):
        seen = []

        def worker():
            seen.append(UnsetType())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertTrue(all(object is Unset for object in seen))


class TestHelpers(TestCase):
    """coalesce, rename, mirror and ordinal."""

    def testCoalesceReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameDirect(self):
        def function():
            pass

        self.assertIs(rename(function, "other"), function)
        self.assertEqual(function.__name__, "other")
        self.assertEqual(function.__qualname__, "other")

    def testRenameDecorator(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testRenameRejectsBadInput(self):
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(len, "other")

    def testMirrorIsReadOnly(self):
        class Record:
            value = mirror("value")

            def __init__(self):
                self._value = 3

        record = Record()
        self.assertEqual(record.value, 3)
        with self.assertRaises(AttributeError):
            record.value = 4

    def testMirrorRequiresString(self):
        with self.assertRaises(TypeError):
            mirror(1)

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")


class TestModuleGlob(TestCase):
    """mglob expansion."""

    def testConcreteNameReturnedAsIs(self):
        self.assertEqual(mglob("fixtures.servers"), ["fixtures.servers"])

    def testSingleStar(self):
        self.assertEqual(mglob("fixtures.*"), ["fixtures.servers", "fixtures.workers"])

    def testCharacterClass(self):
        self.assertEqual(mglob("fixtures.[w]*"), ["fixtures.workers"])

    def testDoubleStarIncludesPrefix(self):
        self.assertEqual(mglob("fixtures.**"), ["fixtures", "fixtures.servers", "fixtures.workers"])

    def testUnimportablePrefix(self):
        self.assertEqual(mglob("no_such_package_here.*"), [])

    def testInvalidPatterns(self):
        with self.assertRaises(TypeError):
            mglob(1)
        with self.assertRaises(ValueError):
            mglob("  ")
        with self.assertRaises(ValueError):
            mglob("*.cli")


if __name__ == "__main__":
    unittest.main()
