"""
Tokens module behavioral tests (normalization and name/value resolution).

Scope
- tokenize/delimiters: input normalization and validation.
- requested: help detection.
- resolve: spaced and inline values, faults reported through a callback.

Conventions
- Test method names follow CamelCase per project convention.
- Faults are collected with a list's append so resolution runs to the end.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from bindery import Argument, Registry, declare
from bindery.faults import (
    FaultCode,
    MalformedTokenError,
    UnrecognizedTokenError,
    MissingValueError,
    DuplicatedArgumentError,
)
from bindery.tokens import tokenize, delimiters, requested, strip, resolve
from bindery.utils import Unset


class Server:
    port: int = Argument("port", "p", default="8080")
    host: str = Argument("host", default="localhost")


class TestNormalization(TestCase):
    """tokenize and delimiters."""

    def testTokenizeNone(self):
        self.assertEqual(tokenize(None), ())

    def testTokenizeSplitsShellString(self):
        self.assertEqual(tokenize("--host 'my host' -p 1"), ("--host", "my host", "-p", "1"))

    def testTokenizeKeepsSequence(self):
        self.assertEqual(tokenize(["--port", "1"]), ("--port", "1"))

    def testTokenizeRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            tokenize(["--port", 1])
        with self.assertRaises(TypeError):
            tokenize(42)

    def testDelimitersSortedLongestFirst(self):
        self.assertEqual(delimiters(("-", "--", "/")), ("--", "-", "/"))

    def testDelimitersFromString(self):
        self.assertEqual(delimiters("--"), ("--",))

    def testDelimitersRejectEmpty(self):
        with self.assertRaises(ValueError):
            delimiters(("--", ""))

    def testDelimitersRejectNonStrings(self):
        with self.assertRaises(TypeError):
            delimiters((1,))

    def testStripLongestDelimiter(self):
        self.assertEqual(strip("--port", ("--", "-")), ("--", "port"))
        self.assertEqual(strip("-p", ("--", "-")), ("-", "p"))

    def testStripWithoutDelimiter(self):
        self.assertIs(strip("port", ("--", "-")), Unset)
        self.assertIs(strip("--", ("--",)), Unset)


class TestHelpDetection(TestCase):
    """requested(tokens, delimiters, help)."""

    def testAnyDelimiterMatches(self):
        self.assertTrue(requested(("-help",), ("--", "-"), "help"))
        self.assertTrue(requested(("--port", "1", "--help"), ("--", "-"), "help"))

    def testExactMatchOnly(self):
        self.assertFalse(requested(("--helpme",), ("--",), "help"))

    def testEmptyHelpMatchesBareDelimiter(self):
        self.assertTrue(requested(("--",), ("--",), ""))
        self.assertFalse(requested(("--port", "1"), ("--",), ""))
        self.assertFalse(requested(("--",), (), ""))

    def testNoHelpNeverMatches(self):
        self.assertFalse(requested(("--help",), ("--",), None))
        self.assertFalse(requested(("--",), ("--",), None))


class TestResolve(TestCase):
    """resolve(tokens, registry, delimiters, report)."""

    def setUp(self):
        self.registry = Registry(Server)
        self.faults = []

    def resolve(self, *tokens, delimiters=("--", "-")):
        return resolve(tokens, self.registry, delimiters, self.faults.append)

    def testSpacedValue(self):
        supplied = self.resolve("--port", "1")
        self.assertEqual(supplied, {declare(Server.port): ("1", 1, "--port")})
        self.assertEqual(self.faults, [])

    def testInlineValue(self):
        supplied = self.resolve("--port=1")
        self.assertEqual(supplied[declare(Server.port)][0], "1")

    def testInlineEmptyValue(self):
        supplied = self.resolve("--host=")
        self.assertEqual(supplied[declare(Server.host)][0], "")

    def testShortNameAnyDelimiter(self):
        self.assertIn(declare(Server.port), self.resolve("--p", "1"))
        self.assertIn(declare(Server.port), self.resolve("-port", "1"))

    def testValueTakenVerbatim(self):
        supplied = self.resolve("--host", "--port")
        self.assertEqual(supplied, {declare(Server.host): ("--port", 1, "--host")})

    def testMalformedToken(self):
        self.resolve("port", "1")
        self.assertIsInstance(self.faults[0], MalformedTokenError)
        self.assertEqual(self.faults[0].code, FaultCode.MALFORMED_TOKEN)
        self.assertEqual(self.faults[0].options["index"], 1)

    def testUnrecognizedTokenSuggests(self):
        self.resolve("--prot", "1")
        fault, = self.faults
        self.assertIsInstance(fault, UnrecognizedTokenError)
        self.assertEqual(fault.options["name"], "prot")
        self.assertEqual(fault.options["suggestions"][0], "port")
        self.assertIn("--port", fault.hint)

    def testMissingValue(self):
        supplied = self.resolve("--host", "x", "--port")
        self.assertIsInstance(self.faults[0], MissingValueError)
        self.assertEqual(self.faults[0].options["index"], 3)
        self.assertEqual(list(supplied), [declare(Server.host)])

    def testDuplicatedArgument(self):
        supplied = self.resolve("--port", "1", "-p", "2")
        self.assertIsInstance(self.faults[0], DuplicatedArgumentError)
        self.assertEqual(supplied[declare(Server.port)][0], "1")

    def testEveryFaultIsReported(self):
        self.resolve("stray", "--bogus", "1", "--port", "1", "--port", "2", "--host")
        self.assertEqual(
            [type(fault) for fault in self.faults],
            [MalformedTokenError, UnrecognizedTokenError, DuplicatedArgumentError, MissingValueError],
        )

    def testNoDelimitersMakesEveryTokenMalformed(self):
        self.resolve("--port", "1", delimiters=())
        self.assertEqual([type(fault) for fault in self.faults], [MalformedTokenError, MalformedTokenError])

    def testRaisingReportStopsAtFirstFault(self):
        def report(fault):
            raise fault

        with self.assertRaises(UnrecognizedTokenError):
            resolve(("--bogus", "1", "port"), self.registry, ("--",), report)


if __name__ == "__main__":
    unittest.main()
