"""
Utilities module behavioral tests (sentinel, coalesce, rename, mirror, ordinal).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from stowage.utils import Unset, UnsetType, coalesce, rename, mirror, ordinal


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsey(self):
        self.assertFalse(Unset)
        self.assertIsNotNone(Unset)

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)


class TestRename(TestCase):

    def testDirect(self):
        def function():
            pass
        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecorator(self):
        @rename("renamed")
        def function():
            pass
        self.assertEqual(function.__name__, "renamed")

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):

    def testReadOnlyCopies(self):
        class Holder:
            names = mirror("names")
            label = mirror("label")

            def __init__(self):
                self._names = ["a", "b"]
                self._label = Unset

        holder = Holder()
        self.assertEqual(holder.names, ("a", "b"))
        self.assertIsNone(holder.label)
        with self.assertRaises(AttributeError):
            holder.names = ()

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            mirror(1)


class TestOrdinal(TestCase):

    def testWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self):
        for number, expected in ((11, "11th"), (12, "12th"), (13, "13th"), (21, "21st"),
                                 (22, "22nd"), (23, "23rd"), (101, "101st"), (111, "111th")):
            with self.subTest(number=number):
                self.assertEqual(ordinal(number), expected)


if __name__ == "__main__":
    unittest.main()
