"""
Small helpers shared by the halyard modules.

Contents
- Unset: the "argument not given" sentinel. It is falsy, distinct from None, prints as
  "Unset" and can appear in isinstance unions (str | Unset).
- coalesce(value, default): swap Unset for a default; None, 0 and "" pass through.
- rename(...): give generated functions a readable __name__ and __qualname__.
- mirror(name): read-only property over self._<name>, handing out container copies.
- dasherize(name): attribute name to command-line name.

    >>> coalesce(Unset, 8080)
    8080
    >>> dasherize("dry_run")
    'dry-run'
"""
import builtins
import functools
import re
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel. Only one instance ever exists and it cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        # lets "str | Unset" build the union str | UnsetType
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return default when object is Unset, object otherwise.
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) renames callable in place and returns it;
    rename(name) returns a decorator doing the same.
    """
    if len(parameters) not in (1, 2):
        raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))
    if not isinstance(name := parameters[-1], str):
        raise TypeError("rename() name must be a string")

    def apply(callable):
        if not builtins.callable(callable):
            raise TypeError("rename() target must be callable")
        try:
            callable.__name__ = callable.__qualname__ = name
        except (AttributeError, TypeError):
            raise TypeError(f"cannot rename {callable!r}") from None
        return callable

    if len(parameters) == 2:
        return apply(parameters[0])
    return apply


def _copied(object):
    match object:
        case str():
            return object
        case Mapping():
            return {key: _copied(value) for key, value in object.items()}
        case Set():
            return {_copied(value) for value in object}
        case Sequence():
            return [_copied(value) for value in object]
        case _:
            return coalesce(object)


def mirror(name, /):
    """
    Property exposing self._<name> read-only. Lists, tuples, mappings and sets come
    back as fresh copies so callers cannot reach the stored value; Unset reads as None.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    return property(rename(lambda self: _copied(getattr(self, "_" + name)), name))


@functools.cache
def dasherize(text, /):
    """
    "dry_run" -> "dry-run", "_Max__Age" -> "max-age".
    """
    if not isinstance(text, str):
        raise TypeError("dasherize() argument must be a string")
    return re.sub(r"_+", "-", text.strip("_")).lower()


__all__ = (
    "Unset",
    "UnsetType",
    "coalesce",
    "rename",
    "mirror",
    "dasherize",
)
