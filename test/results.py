"""
Run dispatcher tests (entry points, run modes, exit codes, signal cancellation).

Conventions
- Test method names follow CamelCase per project convention.
- Output sinks are StringIO buffers; nothing is written to the real stderr.
"""
import io
import signal
import unittest
from unittest import TestCase

from halyard import Command, Context, Option, background
from halyard.faults import HelpRequested, NoRunMethodError, UnknownSwitchError, MissingCommandError
from halyard.results import entrypoint


class Plain:
    """Plain entry point."""
    name = Option(default="world")

    def run(self):
        return f"hello {self.name}"


class Aware:
    """Context-aware entry point."""

    def run(self, context):
        return context


class Failing:
    def run(self):
        raise RuntimeError("boom")


class Coded(Exception):
    def exit_code(self):
        return 3


class Exiting:
    def run(self):
        raise Coded("disk full")


class Empty:
    pass


def node(record, /, **options):
    helpout, errout = io.StringIO(), io.StringIO()
    return Command(record, name="tool", environ={}, helpout=helpout, errout=errout, colorful=False, **options), helpout, errout


class TestEntrypoint(TestCase):

    def testPlainRun(self):
        entry = entrypoint(Plain())
        self.assertFalse(entry.contextual)

    def testContextAwareRun(self):
        self.assertTrue(entrypoint(Aware()).contextual)

    def testVariadicRunIsContextAware(self):
        class Record:
            def run(self, *args):
                return args

        self.assertTrue(entrypoint(Record()).contextual)

    def testNoRunMeansNoEntry(self):
        self.assertIsNone(entrypoint(Empty()))

    def testNonCallableRunIsIgnored(self):
        class Record:
            run = "fast"

        self.assertIsNone(entrypoint(Record()))


class TestRun(TestCase):

    def testPlainEntryIgnoresContext(self):
        command, _, _ = node(Plain)
        self.assertEqual(command.parse("--name you").run(), "hello you")

    def testContextIsPassedThrough(self):
        command, _, _ = node(Aware)
        context = Context()
        self.assertIs(command.parse([]).run(context), context)

    def testDefaultContextIsFresh(self):
        command, _, _ = node(Aware)
        context = command.parse([]).run()
        self.assertIsInstance(context, Context)
        self.assertFalse(context.cancelled)

    def testParseErrorIsRaised(self):
        command, _, _ = node(Plain)
        result = command.parse("--nope")
        self.assertFalse(result.ok)
        with self.assertRaises(UnknownSwitchError):
            result.run()

    def testNoRunMethod(self):
        command, _, _ = node(Empty)
        result = command.parse([])
        self.assertIsNone(result.error)
        with self.assertRaises(NoRunMethodError) as context:
            result.run()
        self.assertEqual(str(context.exception), "no run method implemented")
        self.assertIs(context.exception.options["tool"], command)

    def testExecutionErrorPropagates(self):
        command, helpout, errout = node(Failing)
        with self.assertRaises(RuntimeError):
            command.parse([]).run()
        self.assertEqual(errout.getvalue(), "")


class TestRunAndReport(TestCase):

    def testUsageErrorPrintsHelpAndErrorLine(self):
        command, helpout, errout = node(Plain)
        with self.assertRaises(UnknownSwitchError):
            command.parse("--nope").run_and_report()
        self.assertIn("USAGE:", helpout.getvalue())
        self.assertEqual(errout.getvalue(), "error: failed to parse args: flag provided but not defined: --nope\n")

    def testHelpRequestPrintsHelpOnly(self):
        command, helpout, errout = node(Plain)
        with self.assertRaises(HelpRequested):
            command.parse("-h").run_and_report()
        self.assertIn("tool [OPTIONS]", helpout.getvalue())
        self.assertEqual(errout.getvalue(), "")

    def testExecutionErrorPrintsErrorLineOnly(self):
        command, helpout, errout = node(Failing)
        with self.assertRaises(RuntimeError):
            command.parse([]).run_and_report()
        self.assertEqual(helpout.getvalue(), "")
        self.assertEqual(errout.getvalue(), "error: boom\n")

    def testHelpOfFailingNodeIsShown(self):
        helpout, errout = io.StringIO(), io.StringIO()
        root = Command(None, name="app", environ={}, helpout=helpout, errout=errout, colorful=False)
        child = root.command(None, name="group")
        child.command(Plain, name="leaf")
        with self.assertRaises(MissingCommandError):
            root.parse("group").run_and_report()
        self.assertIn("app [OPTIONS] group [OPTIONS] <COMMAND>", helpout.getvalue())
        self.assertIn("leaf", helpout.getvalue())
        self.assertEqual(errout.getvalue(), "error: no command specified\n")

    def testSilencedSinks(self):
        command = Command(Plain, environ={}, helpout=None, errout=None)
        with self.assertRaises(UnknownSwitchError):
            command.parse("--nope").run_and_report()

    def testSuccessReturnsValue(self):
        command, helpout, errout = node(Plain)
        self.assertEqual(command.parse([]).run_and_report(), "hello world")
        self.assertEqual(helpout.getvalue() + errout.getvalue(), "")


class TestRunFatal(TestCase):

    def assertExits(self, result, code):
        with self.assertRaises(SystemExit) as context:
            result.run_fatal()
        self.assertEqual(context.exception.code, code)

    def testSuccessExitsZero(self):
        command, _, _ = node(Plain)
        self.assertExits(command.parse([]), 0)

    def testHelpExitsOneWithoutErrorLine(self):
        command, helpout, errout = node(Plain)
        self.assertExits(command.parse("--help"), 1)
        self.assertIn("USAGE:", helpout.getvalue())
        self.assertEqual(errout.getvalue(), "")

    def testUsageErrorExitsOne(self):
        command, _, errout = node(Plain)
        self.assertExits(command.parse("extra"), 1)
        self.assertEqual(errout.getvalue(), "error: command does not take arguments\n")

    def testExitCodeCapability(self):
        command, _, errout = node(Exiting)
        self.assertExits(command.parse([]), 3)
        self.assertEqual(errout.getvalue(), "error: disk full\n")

    def testHelpRequestedHasNoExitCode(self):
        self.assertFalse(hasattr(HelpRequested(), "exit_code"))


class TestSigcancel(TestCase):

    def testPlainEntryInstallsNoHandler(self):
        seen = []

        class Record:
            def run(self):
                seen.append(signal.getsignal(signal.SIGINT))

        before = signal.getsignal(signal.SIGINT)
        command, _, _ = node(Record)
        command.parse([]).run(sigcancel=True)
        self.assertEqual(seen, [before])

    def testContextAwareEntryIsCancelledBySignal(self):
        class Record:
            def run(self, context):
                signal.raise_signal(signal.SIGINT)
                return context.cancelled, context.cause

        before = signal.getsignal(signal.SIGINT)
        command, _, _ = node(Record)
        parent = background()
        cancelled, cause = command.parse([]).run(parent, sigcancel=True)
        self.assertTrue(cancelled)
        self.assertEqual(cause.options["signal"], signal.SIGINT)
        self.assertFalse(parent.cancelled)
        self.assertEqual(signal.getsignal(signal.SIGINT), before)

    def testHandlersReleasedAfterRun(self):
        class Record:
            def run(self, context):
                return signal.getsignal(signal.SIGTERM)

        before = signal.getsignal(signal.SIGTERM)
        command, _, _ = node(Record)
        during = command.parse([]).run(sigcancel=True)
        self.assertNotEqual(during, before)
        self.assertEqual(signal.getsignal(signal.SIGTERM), before)

    def testRunFatalWithSigcancel(self):
        class Record:
            def run(self, context):
                signal.raise_signal(signal.SIGTERM)
                context.check()

        command, _, errout = node(Record)
        with self.assertRaises(SystemExit) as context:
            command.parse([]).run_fatal(sigcancel=True)
        self.assertEqual(context.exception.code, 1)
        self.assertEqual(errout.getvalue(), "error: received signal SIGTERM\n")


if __name__ == "__main__":
    unittest.main()
