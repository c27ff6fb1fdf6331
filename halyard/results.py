"""
Parse results and the run dispatcher.

What this module provides
- Entry: the bound entry point of a record, by capability.
  • run(self) is plain; it is wrapped so it ignores the context.
  • run(self, context) (or run(self, *args)) is context-aware.
  • no callable 'run' attribute means there is no entry point.
- ParseResult: the outcome of Command.parse(); holds the node where resolution ended
  (the failing node on error), the error (or None) and the entry point (or None).
- Run modes on ParseResult
  • run(context): raise the stored error, else call the entry point.
  • run_and_report(context): like run(), but on failure write help (usage errors and
    help requests) and the "error: <message>" line (anything but help requests)
    before re-raising.
  • run_fatal(context): like run_and_report(), then terminate the process: 0 on
    success, error.exit_code() when the error provides it, else 1.
  Every mode accepts sigcancel=True to derive a context that SIGINT/SIGTERM cancel
  (context-aware entry points only; plain ones never get a handler installed).
"""
import inspect
import logging
import sys
from inspect import Parameter

from . import contexts
from .faults import UsageError, HelpRequested, NoRunMethodError, report
from .utils import Unset

logger = logging.getLogger(__name__)


class Entry:
    """
    Entry point bound to a configuration record.
    """

    def __init__(self, callable, /, contextual):
        self._callable = callable
        self._contextual = bool(contextual)

    @property
    def contextual(self):
        return self._contextual

    def __call__(self, context, /):
        if self._contextual:
            return self._callable(context)
        return self._callable()

    def __repr__(self):
        return f"entry(callable={self._callable!r}, contextual={self._contextual!r})"


def entrypoint(record, /):
    """
    Return the Entry of a record, or None when it has no callable 'run' attribute.
    """
    if not callable(run := getattr(record, "run", None)):
        return None
    try:
        parameters = inspect.signature(run).parameters.values()
    except (TypeError, ValueError):
        return Entry(run, contextual=False)
    contextual = any(
        parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD, Parameter.VAR_POSITIONAL)
        for parameter in parameters
    )
    return Entry(run, contextual=contextual)


class ParseResult:
    """
    Outcome of parsing a prompt against a command tree.

    attributes
    - command: the node where resolution ended (the node that failed, on error).
    - error: the exception that stopped parsing, or None.
    - entry: the bound entry point of command's record, or None.
    """

    def __init__(self, command, /, error=None, entry=None):
        self._command = command
        self._error = error
        self._entry = entry
        # children only hold weak links to their parents
        self._path = command.path

    @property
    def command(self):
        return self._command

    @property
    def error(self):
        return self._error

    @property
    def entry(self):
        return self._entry

    @property
    def ok(self):
        return self._error is None

    def run(self, context=Unset, /, *, sigcancel=False):
        """
        Call the entry point with context (a fresh background context when Unset).

        raises
        - the parse error, unchanged, when parsing failed.
        - NoRunMethodError when the resolved node has no entry point.
        - whatever the entry point raises.
        """
        if self._error is not None:
            raise self._error
        if self._entry is None:
            self._command.trigger(NoRunMethodError("no run method implemented"))
        context = contexts.background() if context is Unset else context
        if sigcancel and self._entry.contextual:
            logger.debug("running %r with signal cancellation", self._command.name)
            with contexts.sigcancel(context) as context:
                return self._entry(context)
        logger.debug("running %r", self._command.name)
        return self._entry(context)

    def run_and_report(self, context=Unset, /, *, sigcancel=False):
        """
        Like run(), but failures are rendered before being re-raised.

        - UsageError / HelpRequested: help of the failing node goes to its helpout.
        - anything but HelpRequested: "error: <message>" goes to its errout.
        """
        try:
            return self.run(context, sigcancel=sigcancel)
        except (UsageError, HelpRequested) as error:
            if (helpout := self._command.helpout) is not None:
                self._command.write_help(helpout)
            if not isinstance(error, HelpRequested):
                self._report(error)
            raise
        except Exception as error:
            self._report(error)
            raise

    def run_fatal(self, context=Unset, /, *, sigcancel=False):
        """
        Like run_and_report(), then exit the process with the matching status.
        """
        try:
            self.run_and_report(context, sigcancel=sigcancel)
        except Exception as error:
            if callable(exit_code := getattr(error, "exit_code", None)):
                status = exit_code()
            else:
                status = 1
            logger.debug("exiting with status %d after %s", status, type(error).__name__)
            sys.exit(status)
        sys.exit(0)

    def _report(self, error):
        if (errout := self._command.errout) is not None:
            report(error, errout, colorful=self._command.colorful)

    def __repr__(self):
        return f"parse-result(command={self._command.name!r}, error={self._error!r}, entry={self._entry!r})"


__all__ = (
    "Entry",
    "ParseResult",
    "entrypoint",
)
