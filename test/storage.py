"""
Storage module behavioral tests (conversion, targets, writes, release).

Scope
- Validate textual conversion per value type (prefix parsing, sign rules, float rounding).
- Validate the three targets (Scalar, Buffer, Pointer) once bound through a parser.
- Validate write_value bounds, truncation and count mirroring.
- Validate that release() is idempotent and restores each target kind.

Conventions
- Test method names follow CamelCase per project convention.
- Descriptors are always obtained through Parser.register() so storage is bound.
"""

from __future__ import annotations

import math
import unittest
from unittest import TestCase

from stowage import (
    Parser,
    ValueType,
    Scalar,
    Buffer,
    Pointer,
    Ownership,
    convert,
    write_value,
    release,
    InvalidValueError,
    TooManyValuesError,
)


class TestConvert(TestCase):
    """Behavioral tests for convert()."""

    def testIntegerPlain(self):
        self.assertEqual(convert(ValueType.INT, "42"), 42)

    def testIntegerLeadingWhitespaceAndSign(self):
        self.assertEqual(convert(ValueType.INT, "  -7"), -7)

    def testIntegerTrailingCharactersIgnored(self):
        self.assertEqual(convert(ValueType.INT, "12abc"), 12)

    def testIntegerNothingConsumedRejected(self):
        with self.assertRaises(ValueError):
            convert(ValueType.INT, "abc")

    def testIntegerEmptyRejected(self):
        with self.assertRaises(ValueError):
            convert(ValueType.INT, "")

    def testUnsignedRejectsMinus(self):
        with self.assertRaises(ValueError):
            convert(ValueType.UINT, "-1")

    def testUnsignedAcceptsPlus(self):
        self.assertEqual(convert(ValueType.UINT, "+5"), 5)

    def testDoublePrefixWithExponent(self):
        self.assertEqual(convert(ValueType.DOUBLE, " 2.5e1x"), 25.0)

    def testDoubleLeadingDot(self):
        self.assertEqual(convert(ValueType.DOUBLE, ".5"), 0.5)

    def testDoubleInfinityAndNan(self):
        self.assertEqual(convert(ValueType.DOUBLE, "-inf"), -math.inf)
        self.assertEqual(convert(ValueType.DOUBLE, "Infinity"), math.inf)
        self.assertTrue(math.isnan(convert(ValueType.DOUBLE, "nan")))

    def testDoubleRejectsGarbage(self):
        with self.assertRaises(ValueError):
            convert(ValueType.DOUBLE, "e5")

    def testFloatRoundedToSinglePrecision(self):
        value = convert(ValueType.FLOAT, "0.1")
        self.assertNotEqual(value, 0.1)
        self.assertAlmostEqual(value, 0.1, places=6)

    def testFloatOverflowBecomesInfinity(self):
        self.assertEqual(convert(ValueType.FLOAT, "1e40"), math.inf)
        self.assertEqual(convert(ValueType.FLOAT, "-1e40"), -math.inf)

    def testStringPassesThrough(self):
        self.assertEqual(convert(ValueType.STRING, " as is "), " as is ")

    def testBoolIgnoresToken(self):
        self.assertIs(convert(ValueType.BOOL, None), True)

    def testTypeMustBeValueType(self):
        with self.assertRaises(TypeError):
            convert("int", "1")


class TestTargets(TestCase):
    """Behavioral tests for Scalar, Buffer and Pointer."""

    def testOwnership(self):
        self.assertIs(Scalar().ownership, Ownership.CALLER)
        self.assertIs(Buffer(1).ownership, Ownership.CALLER)
        self.assertIs(Pointer().ownership, Ownership.ENGINE)

    def testScalarTakesZeroValueWhenBound(self):
        parser = Parser("prog")
        number = Scalar()
        parser.register("--number", ValueType.INT, target=number)
        self.assertEqual(number.value, 0)

    def testScalarKeepsDefaultWhenBound(self):
        parser = Parser("prog")
        number = Scalar(7)
        parser.register("--number", ValueType.INT, target=number)
        self.assertEqual(number.value, 7)

    def testBufferPrefilledWithZeros(self):
        parser = Parser("prog")
        values = Buffer(3)
        parser.register("--values", ValueType.DOUBLE, 3, values)
        self.assertEqual(values.values, [0.0, 0.0, 0.0])
        self.assertEqual(len(values), 3)

    def testBufferCapacityValidation(self):
        with self.assertRaises(ValueError):
            Buffer(0)
        with self.assertRaises(TypeError):
            Buffer(True)

    def testPointerEmptyUntilWritten(self):
        parser = Parser("prog")
        values = Pointer()
        parser.register("--values", ValueType.INT, "+", values)
        self.assertIsNone(values.value)

    def testOwnerTracksDescriptor(self):
        parser = Parser("prog")
        values = Pointer()
        descriptor = parser.register("--values", ValueType.INT, "+", values)
        self.assertIs(values.owner, descriptor)


class TestWriteValue(TestCase):
    """Behavioral tests for write_value() and release()."""

    def setUp(self):
        self.parser = Parser("prog")

    def testScalarWrite(self):
        number = Scalar()
        descriptor = self.parser.register("--number", ValueType.INT, target=number)
        write_value(descriptor, "42")
        self.assertEqual(number.value, 42)
        self.assertEqual(descriptor.consumed, 1)

    def testTooManyValues(self):
        descriptor = self.parser.register("--number", ValueType.INT, target=Scalar())
        write_value(descriptor, "1")
        with self.assertRaises(TooManyValuesError):
            write_value(descriptor, "2")

    def testInvalidValueCarriesContext(self):
        number = Scalar()
        descriptor = self.parser.register("--number", ValueType.INT, target=number)
        with self.assertRaises(InvalidValueError) as context:
            write_value(descriptor, "abc")
        self.assertEqual(context.exception.options["token"], "abc")
        self.assertEqual(context.exception.options["input"], "--number")
        self.assertIs(context.exception.options["type"], ValueType.INT)
        self.assertEqual(number.value, 0)
        self.assertEqual(descriptor.consumed, 0)

    def testBoolCountsOnce(self):
        flag = Scalar()
        descriptor = self.parser.register("--flag", ValueType.BOOL, target=flag)
        write_value(descriptor)
        write_value(descriptor)
        self.assertIs(flag.value, True)
        self.assertEqual(descriptor.consumed, 1)

    def testStringTruncatedToLength(self):
        name = Scalar()
        descriptor = self.parser.register("--name", ValueType.STRING, target=name, length=3)
        write_value(descriptor, "abcdef")
        self.assertEqual(name.value, "abc")

    def testStringLengthCountsBytes(self):
        for length, expected in ((4, "éé"), (5, "éé"), (1, ""), (8, "éééé")):
            with self.subTest(length=length):
                parser = Parser("prog")
                name = Pointer()
                descriptor = parser.register("--name", ValueType.STRING, target=name, length=length)
                write_value(descriptor, "éééé")
                self.assertEqual(name.value, expected)
                self.assertLessEqual(len(name.value.encode("utf-8")), length)

    def testPointerArrayGrowsAndCounts(self):
        values, count = Pointer(), Scalar()
        descriptor = self.parser.register("--values", ValueType.INT, "*", values, count)
        for token in ("1", "2", "3"):
            write_value(descriptor, token)
        self.assertEqual(values.value, [1, 2, 3])
        self.assertEqual(count.value, 3)

    def testPointerSingleString(self):
        name = Pointer()
        descriptor = self.parser.register("--name", ValueType.STRING, target=name)
        write_value(descriptor, "value")
        self.assertEqual(name.value, "value")

    def testReleaseIsIdempotent(self):
        values, count = Pointer(), Scalar()
        descriptor = self.parser.register("--values", ValueType.STRING, "+", values, count)
        write_value(descriptor, "a")
        descriptor._matched_at = 1
        release(descriptor)
        release(descriptor)
        self.assertIsNone(values.value)
        self.assertEqual(count.value, 0)
        self.assertEqual(descriptor.consumed, 0)
        self.assertFalse(descriptor.parsed)

    def testReleaseNeverWritten(self):
        descriptor = self.parser.register("--values", ValueType.STRING, "+", Pointer())
        release(descriptor)
        self.assertEqual(descriptor.consumed, 0)

    def testReleaseZeroesBufferRegion(self):
        values = Buffer(4)
        descriptor = self.parser.register("--values", ValueType.INT, 4, values)
        write_value(descriptor, "5")
        write_value(descriptor, "6")
        release(descriptor)
        self.assertEqual(values.values, [0, 0, 0, 0])

    def testReleaseRestoresScalarDefault(self):
        number = Scalar(9)
        descriptor = self.parser.register("--number", ValueType.INT, target=number)
        write_value(descriptor, "1")
        release(descriptor)
        self.assertEqual(number.value, 9)


if __name__ == "__main__":
    unittest.main()
