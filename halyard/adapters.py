"""
Value adapters: how a field's text input becomes a Python value.

Overview
- An Adapter pairs a parse callable (str -> value) with a format callable
  (value -> str, used for defaults in help) and two shape flags:
  • switch: the field is a presence-only boolean (no argument token is consumed).
  • multiple: the field is repeatable and accumulates into a list.
- The registry maps exact types to adapters. resolve(type) also understands
  Enum subclasses and list[T] for any registered T.
- An unregistered type is a ConfigShapeError at bind time.

Built-ins
- str, int (base prefixes like 0x/0o/0b accepted), float, bool,
  pathlib.Path, datetime.timedelta (durations such as "1h30m", "250ms", "1.5s").

Example
    >>> from decimal import Decimal
    >>> register(Decimal, Decimal)
"""
import builtins
import enum
import functools
import re
import typing
from datetime import timedelta
from pathlib import Path
from typing import NamedTuple

from .faults import ConfigShapeError

_TRUTHY = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSY = frozenset({"0", "f", "false", "n", "no", "off"})

_UNITS = {
    "ns": timedelta(microseconds=1e-3),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


class Adapter(NamedTuple):
    parse: typing.Callable[[str], typing.Any]
    format: typing.Callable[[typing.Any], str] = str
    switch: bool = False
    multiple: bool = False


_registry = {}


def register(type, parse, /, format=str):
    """
    Register (or replace) the adapter for an exact type.

    parse receives the raw text and must raise ValueError/TypeError on bad input;
    its message is shown to the user after "invalid value ...: ".
    """
    if not isinstance(type, builtins.type):
        raise TypeError("register() first argument must be a type")
    if not callable(parse) or not callable(format):
        raise TypeError("register() parse and format must be callable")
    _registry[type] = Adapter(parse, format, switch=type is bool)
    resolve.cache_clear()


def parse_bool(text, /):
    if (lowered := text.strip().lower()) in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"invalid boolean {text!r}")


def parse_int(text, /):
    try:
        return int(text, 0)
    except ValueError:
        raise ValueError(f"invalid integer {text!r}") from None


def parse_float(text, /):
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"invalid number {text!r}") from None


def parse_duration(text, /):
    """
    Parse a duration like "300ms", "1.5h" or "2h45m" into a timedelta.

    A sign is allowed in front; the bare string "0" is accepted without a unit.
    """
    if (stripped := text.strip()) in ("0", "+0", "-0"):
        return timedelta()
    match = re.fullmatch(r"([+-]?)((?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h|d))+", stripped)
    if not match:
        raise ValueError(f"invalid duration {text!r}")
    total = timedelta()
    for number, unit in re.findall(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h|d)", stripped):
        total += _UNITS[unit] * float(number)
    return -total if match.group(1) == "-" else total


def format_duration(value, /):
    seconds = value.total_seconds()
    if not seconds:
        return "0s"
    sign, seconds = ("-" if seconds < 0 else ""), abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    parts = [f"{int(hours)}h" if hours else "", f"{int(minutes)}m" if minutes else ""]
    if seconds:
        parts.append(f"{seconds:g}s")
    return sign + "".join(parts)


def _enum_adapter(type, /):
    def parse(text):
        for member in type:
            if member.name.lower() == text.lower() or str(member.value) == text:
                return member
        raise ValueError("must be one of %s" % ", ".join(member.name.lower() for member in type))
    return Adapter(parse, lambda member: member.name.lower())


@functools.cache
def resolve(type, /):
    """
    Return the Adapter for a field type.

    Rules
    - exact registered type wins;
    - Enum subclasses parse by member name (case-insensitive) or value;
    - list[T] becomes a repeatable adapter of T;
    - anything else raises ConfigShapeError.
    """
    if type in _registry:
        return _registry[type]

    if type is list or typing.get_origin(type) is list:
        item, = typing.get_args(type) or (str,)
        inner = resolve(item)
        if inner.switch or inner.multiple:
            raise ConfigShapeError(f"no value adapter registered for type {type!r}")
        return Adapter(inner.parse, lambda values: ",".join(map(inner.format, values)), multiple=True)

    if isinstance(type, builtins.type) and issubclass(type, enum.Enum):
        return _enum_adapter(type)

    raise ConfigShapeError(f"no value adapter registered for type {type!r}")


register(str, str)
register(int, parse_int)
register(float, parse_float)
register(bool, parse_bool, format=lambda value: str(value).lower())
register(Path, Path)
register(timedelta, parse_duration, format=format_duration)


__all__ = (
    "Adapter",
    "register",
    "resolve",
)
