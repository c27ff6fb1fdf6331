"""
Halyard faults (errors and outcomes) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every runtime fault.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- ConfigShapeError: static misconfiguration of a record's fields, raised at build time.
- CommandException: base type for runtime faults; carries message + read-only options
  (title, code, hint, tool) and knows how to render itself as a single error line.
- UsageError family: the caller supplied bad input; reporting modes print help first.
- HelpRequested: not a failure, a sentinel outcome that also prints help.
- trigger(): raise a fault after merging runtime options into it.
- report(): write the one-line "error: <message>" form of any exception.

Integration
- The parse engine raises faults through Command.trigger(...), which attaches the node
  (tool=...) where the fault was detected; the parse entry point turns them into a
  ParseResult instead of letting them escape.
- The run dispatcher decides whether to render help, an error line, or both.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - outcomes (100xx)
      • HELP_REQUESTED
    - routing (1110x)
      • UNKNOWN_COMMAND, MISSING_COMMAND
    - switches (1111x)
      • MALFORMED_TOKEN, UNKNOWN_SWITCH, MISSING_VALUE, INVALID_VALUE
    - positionals (1112x)
      • UNEXPECTED_ARGUMENTS, MISSING_REQUIRED
    - environment (1115x)
      • ENVIRONMENT_VALUE
    - dispatch (1116x)
      • NO_RUN_METHOD, CONTEXT_CANCELLED

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired.
    """
    # --- outcomes (10xxx) ---
    HELP_REQUESTED              = 10001

    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    MISSING_COMMAND             = 11103

    # --- switch errors (11xxx) ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_SWITCH              = 11112
    MISSING_VALUE               = 11117
    INVALID_VALUE               = 11118

    # --- positional / requirement errors (11xxx) ---
    UNEXPECTED_ARGUMENTS        = 11121
    MISSING_REQUIRED            = 11125

    # --- environment errors (11xxx) ---
    ENVIRONMENT_VALUE           = 11151

    # --- dispatch errors (11xxx) ---
    NO_RUN_METHOD               = 11161
    CONTEXT_CANCELLED           = 11162

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConfigShapeError(TypeError):
    """
    A configuration record declares fields that cannot be bound.

    raised while building a command (never during parsing):
    - a long name or short alias collides with another field of the same record,
    - more than one positional (cardinal) field is declared,
    - a field's value type has no registered adapter,
    - a subcommand is attached to a command that captures positional arguments,
    - a subcommand name is already in use under the same parent.
    """


def _styles():
    return defaultdict(str, {
        "error-label": "bold #FF4DA6",  # friendly pinky label
        "error-message": "#C8C8D0",  # soft light gray message
    } | getattr(__import__("__main__"), "__styles__", {}))


def _line(message, *, colorful=True):
    styles = _styles()
    if not colorful:
        return Text.assemble("error: ", str(message))
    return Text.assemble(("error", styles["error-label"]), ": ", (str(message), styles["error-message"]))


class CommandException(Exception):
    """
    Base type for every runtime fault raised by the parse engine or the dispatcher.

    attributes
    - message: the one-line, lowercased description.
    - options: read-only mapping with at least 'code' and 'title'; the engine adds
      'tool' (the command node where the fault was detected) and, where useful, 'hint'.
    """
    code = Unset
    title = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType({"code": type(self).code, "title": type(self).title} | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _line(self.message, colorful=self.options.get("colorful", True))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class UsageError(CommandException):
    """The caller supplied bad input; help is shown alongside the message when reported."""
    title = "usage error"


class MalformedTokenError(UsageError):
    code = FaultCode.MALFORMED_TOKEN
    title = "malformed token"


class UnknownSwitchError(UsageError):
    code = FaultCode.UNKNOWN_SWITCH
    title = "unknown flag"


class MissingValueError(UsageError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class InvalidValueError(UsageError):
    code = FaultCode.INVALID_VALUE
    title = "invalid value"


class EnvironmentValueError(UsageError):
    code = FaultCode.ENVIRONMENT_VALUE
    title = "invalid environment value"


class UnknownCommandError(UsageError):
    code = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"


class MissingCommandError(UsageError):
    code = FaultCode.MISSING_COMMAND
    title = "missing command"


class UnexpectedArgumentsError(UsageError):
    code = FaultCode.UNEXPECTED_ARGUMENTS
    title = "unexpected arguments"


class MissingRequiredError(UsageError):
    code = FaultCode.MISSING_REQUIRED
    title = "missing required flag"


class HelpRequested(CommandException):
    """
    Sentinel outcome for -h/--help.

    never reported through the error sink. it has no exit-code capability, so
    run_fatal() exits with status 1 after printing help.
    """
    code = FaultCode.HELP_REQUESTED
    title = "help requested"

    def __init__(self, message="help requested", /, **options):
        super().__init__(message, **options)


class NoRunMethodError(CommandException):
    code = FaultCode.NO_RUN_METHOD
    title = "no run method"


class ContextCancelled(CommandException):
    """Raised by Context.check() once the context has been cancelled."""
    code = FaultCode.CONTEXT_CANCELLED
    title = "context cancelled"


def trigger(fault, /, **options):
    """
    raise a fault with the given runtime options merged in.

    contract
    - fault must provide a __replace__ method (see CommandException).
    - options are merged via copy.replace(fault, **options) and the copy is raised.
    """
    if not hasattr(fault, "__replace__") or not callable(fault.__replace__):
        raise TypeError("trigger() argument must have a __replace__ method")
    raise copy.replace(fault, **options)


def report(error, /, file, *, colorful=True):
    """
    write the single line "error: <message>" for any exception to file.
    """
    console = Console(file=file, no_color=not colorful, highlight=False, soft_wrap=True)
    if isinstance(error, CommandException):
        console.print(copy.replace(error, colorful=colorful))
    else:
        console.print(_line(error, colorful=colorful))


__all__ = (
    "FaultCode",
    "ConfigShapeError",
    "CommandException",
    "UsageError",
    "MalformedTokenError",
    "UnknownSwitchError",
    "MissingValueError",
    "InvalidValueError",
    "EnvironmentValueError",
    "UnknownCommandError",
    "MissingCommandError",
    "UnexpectedArgumentsError",
    "MissingRequiredError",
    "HelpRequested",
    "NoRunMethodError",
    "ContextCancelled",
    "trigger",
    "report",
)
