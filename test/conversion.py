"""
Conversion module behavioral tests (scalar conversion onto slot types).

Scope
- Scalars: int, float, str, Decimal, Path and custom callables.
- bool spellings, Enum members, Optional/Union and Literal annotations.
- Rejections: None for required slots, generics, unparsable text.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import enum
import unittest
from decimal import Decimal
from pathlib import Path
from typing import Any, Literal, Optional
from unittest import TestCase

from bindery.conversion import ConversionError, convert, typename


class Level(enum.Enum):
    LOW = 1
    HIGH = 2


class Mode(enum.Enum):
    FAST = "fast"
    SAFE = "safe"


class TestConvert(TestCase):
    """convert(value, target) rules."""

    def testIntegerFromString(self):
        self.assertEqual(convert("42", int), 42)

    def testFloatAndDecimal(self):
        self.assertEqual(convert("2.5", float), 2.5)
        self.assertEqual(convert("2.5", Decimal), Decimal("2.5"))

    def testPath(self):
        self.assertEqual(convert("/tmp/x", Path), Path("/tmp/x"))

    def testAlreadyTypedValueUnchanged(self):
        value = Path("a")
        self.assertIs(convert(value, Path), value)

    def testBoolIsNotKeptForInt(self):
        result = convert(True, int)
        self.assertEqual(result, 1)
        self.assertIs(type(result), int)

    def testBoolSpellings(self):
        for text in ("true", "YES", "on", "1"):
            self.assertIs(convert(text, bool), True)
        for text in ("false", "No", "off", "0"):
            self.assertIs(convert(text, bool), False)

    def testBoolRejectsOtherText(self):
        with self.assertRaises(ConversionError):
            convert("maybe", bool)

    def testBoolRejectsOtherIntegers(self):
        with self.assertRaises(ConversionError):
            convert(2, bool)

    def testEnumByName(self):
        self.assertIs(convert("HIGH", Level), Level.HIGH)

    def testEnumByValue(self):
        self.assertIs(convert("safe", Mode), Mode.SAFE)
        self.assertIs(convert(1, Level), Level.LOW)

    def testEnumByValueText(self):
        self.assertIs(convert("2", Level), Level.HIGH)

    def testEnumRejectsUnknown(self):
        with self.assertRaises(ConversionError) as caught:
            convert("medium", Level)
        self.assertIn("LOW", caught.exception.reason)

    def testOptionalAcceptsNone(self):
        self.assertIsNone(convert(None, Optional[int]))
        self.assertIsNone(convert(None, int | None))

    def testOptionalConvertsMember(self):
        self.assertEqual(convert("7", int | None), 7)

    def testUnionTriesMembersInOrder(self):
        self.assertEqual(convert("7", int | str), 7)
        self.assertEqual(convert("seven", int | str), "seven")

    def testUnionRejectsWhenNoMemberFits(self):
        with self.assertRaises(ConversionError):
            convert("x", int | float)

    def testNoneRejectedForRequiredSlot(self):
        with self.assertRaises(ConversionError):
            convert(None, int)

    def testLiteral(self):
        self.assertEqual(convert("b", Literal["a", "b"]), "b")
        self.assertEqual(convert("3", Literal[1, 3]), 3)
        with self.assertRaises(ConversionError):
            convert("c", Literal["a", "b"])

    def testAnyPassesThrough(self):
        marker = object()
        self.assertIs(convert(marker, Any), marker)
        self.assertIs(convert(marker, object), marker)

    def testGenericsRejected(self):
        with self.assertRaises(ConversionError):
            convert("1,2", list[int])

    def testCallableConverter(self):
        self.assertEqual(convert("a,b", lambda value: value.split(",")), ["a", "b"])

    def testCallableConverterFailure(self):
        def positive(value):
            if int(value) <= 0:
                raise ValueError("must be positive")
            return int(value)

        with self.assertRaises(ConversionError) as caught:
            convert("-1", positive)
        self.assertEqual(caught.exception.reason, "must be positive")

    def testUnparsableIntegerCarriesContext(self):
        with self.assertRaises(ConversionError) as caught:
            convert("abc", int)
        self.assertEqual(caught.exception.value, "abc")
        self.assertIs(caught.exception.target, int)
        self.assertIsInstance(caught.exception, ValueError)


class TestTypename(TestCase):
    """typename(target) rendering."""

    def testPlainType(self):
        self.assertEqual(typename(int), "int")

    def testUnion(self):
        self.assertEqual(typename(int | None), "int | None")

    def testOptional(self):
        self.assertIn("int", typename(Optional[int]))


if __name__ == "__main__":
    unittest.main()
