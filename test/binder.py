"""
Field binder tests (record declarations → bound fields).

Scope
- Field naming, value types, defaults and set counts.
- Shape errors: collisions, multiple cardinals, missing adapters.
- Declaration order across base classes.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from datetime import timedelta
from unittest import TestCase

from halyard import Command, ConfigShapeError, Option, Flag, Cardinal
from halyard.binder import bind


class Server:
    host = Option(default="localhost", descr="address to bind")
    port: int = Option("-p", env="PORT", default=8080, metavar="PORT")
    dry_run = Flag("-n")
    timeout = Option(type=timedelta, default=timedelta(seconds=30))
    tags: list[str] = Option("-t")


class TestBind(TestCase):

    def setUp(self):
        self.record = Server()
        self.fields, self.positional = bind(self.record)
        self.byname = {field.name: field for field in self.fields}

    def testFieldsFollowDeclarationOrder(self):
        self.assertEqual([field.name for field in self.fields], ["host", "port", "dry-run", "timeout", "tags"])

    def testLongNameDefaultsToDashedAttribute(self):
        self.assertEqual(self.byname["dry-run"].attribute, "dry_run")
        self.assertEqual(self.byname["dry-run"].short, "n")

    def testDefaultsAreWrittenToTheRecord(self):
        self.assertEqual(self.record.host, "localhost")
        self.assertEqual(self.record.port, 8080)
        self.assertIs(self.record.dry_run, False)
        self.assertEqual(self.record.timeout, timedelta(seconds=30))

    def testRepeatableDefaultsToEmptyList(self):
        self.assertEqual(self.record.tags, [])

    def testSetCountStartsAtZero(self):
        self.assertTrue(all(field.set_count == 0 for field in self.fields))

    def testSwitchHasNoArgument(self):
        self.assertFalse(self.byname["dry-run"].has_argument)
        self.assertTrue(self.byname["port"].has_argument)

    def testAnnotationSelectsAdapter(self):
        self.byname["port"].apply("9000")
        self.assertEqual(self.record.port, 9000)

    def testExplicitTypeSelectsAdapter(self):
        self.byname["timeout"].apply("2m")
        self.assertEqual(self.record.timeout, timedelta(minutes=2))

    def testApplyIncrementsSetCount(self):
        field = self.byname["host"]
        field.apply("0.0.0.0")
        field.apply("::")
        self.assertEqual(field.set_count, 2)
        self.assertEqual(field.value, "::")

    def testFailedApplyKeepsSetCount(self):
        field = self.byname["port"]
        with self.assertRaises(ValueError):
            field.apply("eighty")
        self.assertEqual(field.set_count, 0)
        self.assertEqual(self.record.port, 8080)

    def testRepeatableAccumulates(self):
        field = self.byname["tags"]
        field.apply("a")
        field.apply("b")
        self.assertEqual(self.record.tags, ["a", "b"])
        self.assertEqual(field.set_count, 2)

    def testRepeatableReplacesDefaultOnFirstApply(self):
        class Record:
            tags: list[str] = Option(default=["base"])

        record = Record()
        (field,), _ = bind(record)
        self.assertEqual(record.tags, ["base"])
        field.apply("x")
        self.assertEqual(record.tags, ["x"])

    def testMetavarAndDefaultFormatting(self):
        self.assertEqual(self.byname["port"].metavar, "PORT")
        self.assertEqual(self.byname["host"].metavar, "VALUE")
        self.assertEqual(self.byname["port"].format_default(), "8080")
        self.assertEqual(self.byname["timeout"].format_default(), "30s")
        self.assertEqual(self.byname["tags"].format_default(), "")

    def testNoPositionalDeclared(self):
        self.assertIsNone(self.positional)


class TestPositional(TestCase):

    def testCardinalCapturesList(self):
        class Copy:
            force = Flag("-f")
            files = Cardinal("FILE")

        record = Copy()
        fields, positional = bind(record)
        self.assertEqual(len(fields), 1)
        self.assertEqual(record.files, [])
        self.assertEqual(positional.metavar, "FILE")
        positional.apply(("a", "b"))
        self.assertEqual(record.files, ["a", "b"])

    def testCardinalMetavarDefault(self):
        class Record:
            rest = Cardinal()

        _, positional = bind(Record())
        self.assertEqual(positional.metavar, "ARGS")

    def testTwoCardinalsRejected(self):
        class Record:
            sources = Cardinal()
            targets = Cardinal()

        with self.assertRaises(ConfigShapeError):
            bind(Record())


class TestShapeErrors(TestCase):

    def testShortAliasCollision(self):
        class Record:
            port = Option("-p")
            path = Option("-p")

        with self.assertRaises(ConfigShapeError):
            bind(Record())

    def testLongNameCollidesWithDerivedName(self):
        class Record:
            dry_run = Flag()
            other = Flag("--dry-run")

        with self.assertRaises(ConfigShapeError):
            bind(Record())

    def testShortAliasCollidesWithLongName(self):
        class Record:
            x = Option()
            other = Option("-x")

        with self.assertRaises(ConfigShapeError):
            bind(Record())

    def testReservedHelpCollision(self):
        class Record:
            host = Option("-h")

        with self.assertRaises(ConfigShapeError):
            Command(Record)

    def testMissingAdapter(self):
        class Record:
            ratio = Option(type=complex)

        with self.assertRaises(ConfigShapeError):
            bind(Record())

    def testUnresolvableAnnotation(self):
        class Record:
            value: "Missing" = Option()  # NOQA: F-821

        with self.assertRaises(ConfigShapeError):
            bind(Record())


class TestInheritance(TestCase):

    def testBaseFieldsComeFirst(self):
        class Base:
            verbose = Flag("-v")

        class Child(Base):
            name = Option()

        fields, _ = bind(Child())
        self.assertEqual([field.name for field in fields], ["verbose", "name"])

    def testRedefinitionKeepsPositionAndWins(self):
        class Base:
            level: int = Option(default=1)
            name = Option()

        class Child(Base):
            level: int = Option(default=5)

        record = Child()
        fields, _ = bind(record)
        self.assertEqual([field.name for field in fields], ["level", "name"])
        self.assertEqual(record.level, 5)

    def testPlainAttributeHidesBaseSpec(self):
        class Base:
            level = Option()

        class Child(Base):
            level = 3

        fields, _ = bind(Child())
        self.assertEqual(fields, [])


if __name__ == "__main__":
    unittest.main()
