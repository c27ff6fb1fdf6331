"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel (singleton identity, falsiness, unions, finality).
- coalesce() replacing only Unset.
- rename() in both call forms.
- mirror() returning container copies.
- dasherize() producing command-line names.
"""
import unittest
from unittest import TestCase

from halyard.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the module-level instance on every call.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self) -> None:
        """
        `X | Unset` builds a union usable with isinstance().
        """
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("text", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testCannotSubclass(self) -> None:
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class CoalesceTest(TestCase):

    def testReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testKeepsFalsyValues(self) -> None:
        for value in (None, 0, "", []):
            with self.subTest(value=value):
                self.assertIs(coalesce(value, "fallback"), value)


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(print, 1)
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):

    def testReturnsCopies(self) -> None:
        """
        Mutating a mirrored container leaves the backing attribute untouched.
        """
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a", ["b"]]

        holder = Holder()
        holder.items[1].append("c")
        self.assertEqual(holder.items, ["a", ["b"]])

    def testReadOnly(self) -> None:
        class Holder:
            name = mirror("name")
            _name = "fixed"

        with self.assertRaises(AttributeError):
            Holder().name = "other"


class DasherizeTest(TestCase):

    def testNames(self) -> None:
        cases = {
            "port": "port",
            "dry_run": "dry-run",
            "_Max__Age": "max-age",
            "retries_": "retries",
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(dasherize(text), expected)

    def testRejectsNonStrings(self) -> None:
        with self.assertRaises(TypeError):
            dasherize(1)


class PackageTest(TestCase):

    def testMetadata(self) -> None:
        """
        The package carries its own title and author.
        """
        import halyard

        self.assertEqual(halyard.__title__, "halyard")
        self.assertEqual(halyard.__author__, "The halyard developers")


if __name__ == "__main__":
    unittest.main()
