r"""
Halyard field specifications.

Overview
- Specs are declared as class attributes of a configuration record; the binder turns
  each into a bound field when a Command is built.
  • Option: named, value-bearing field (e.g., --port 8080, -p=8080).
  • Flag: named, presence-only boolean switch (e.g., -v/--verbose, --verbose=false).
  • Cardinal: captures every remaining positional token as a list of strings.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes selected
    fields via read-only properties declared in __introspectable__/__displayable__.

Metadata (sanitized on construction)
- Shared (all specs)
  • descr: Unset | str (short help), non-empty when provided.
  • hidden: bool (suppresses from help).
- Named (Option/Flag)
  • names: up to one long name ("--port") and up to one short alias ("-p"). When no long
    name is given, the binder derives one from the attribute name ("dry_run" → "--dry-run").
  • env: Unset | str, environment variable consulted when the flag was not given.
  • required: bool, the field must be set at least once (flag or environment).
  • default: any value written to the record before parsing.
- Option only
  • type: Unset | type (falls back to the record annotation, then str).
  • metavar: Unset | str (placeholder in help, e.g., "PORT" → <PORT>).
- Cardinal only
  • metavar: Unset | str (placeholder in help, defaults to "ARGS").

Validation highlights
- Long names must match r"--[^\W\d_](-?[^\W_]+)*", short aliases r"-[^\W_]".
- env must match r"[A-Za-z_][A-Za-z0-9_]*".

Quick example:
    >>> class Serve:
    ...     port: int = Option("-p", env="PORT", default=8080, descr="port to listen on")
    ...     verbose = Flag("-v", descr="log every request")
    ...     paths = Cardinal("PATH")

Public API
- Classes: Option, Flag, Cardinal
"""
import builtins
import functools
import operator
import re

from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for diagnostics.
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(long='port', short='p', env='PORT', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the 'descr' and 'metavar' fields shared by every spec.

    - descr: Unset becomes None; strings are trimmed and must stay non-empty.
    - metavar: Unset stays Unset (the binder/help pick a placeholder); strings are trimmed.

    Raises
    - TypeError: when a value is not a string.
    - ValueError: when a string is empty after trimming.
    """
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if "metavar" in metadata:
        if not isinstance(metavar := metadata["metavar"], str | Unset):
            raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
        metadata["metavar"] = metavar


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate names and environment metadata for named specs (Option, Flag).

    Responsibilities
    - names: at most one long name ("--name") and at most one short alias ("-n").
      Stored without dashes as 'long' (Unset when omitted) and 'short' (None when omitted).
    - env: Unset or a valid environment variable name; Unset becomes None.

    Raises
    - TypeError: when names or env are not strings.
    - ValueError: when a name is malformed or a kind (long/short) is given twice.
    """
    long, short = Unset, None
    for name in metadata.pop("names"):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", name):
            if long is not Unset:
                raise ValueError(f"{cls.__typename__} accepts a single long name")
            long = name[2:]
        elif re.fullmatch(r"-[^\W_]", name):
            if short is not None:
                raise ValueError(f"{cls.__typename__} accepts a single short alias")
            short = name[1:]
        else:
            raise ValueError(f"{cls.__typename__} names must be '--long' or '-s' shell-style names (unicodes are allowed)")

    metadata["long"] = long
    metadata["short"] = short

    if not isinstance(env := metadata["env"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'env' must be a string")
    elif isinstance(env, str) and not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", env := env.strip()):
        raise ValueError(f"{cls.__typename__} 'env' must be a valid environment variable name")
    metadata["env"] = coalesce(env)


class Option(metaclass=ArgumentType):
    """
    Named, value-bearing field specification.

    Highlights
    - Aliases via 'names': one long ("--output") and/or one short ("-o").
    - Value type from 'type', else the record annotation, else str. A bool type turns the
      option into a presence-only switch, exactly like Flag.
    - Sources, by precedence: command-line token, environment variable (env), default.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "long",
        "short",
        "type",
        "default",
        "env",
        "required",
        "metavar",
        "descr",
        "hidden",
    )

    def __init__(
            self,
            *names,
            type=Unset,
            default=None,
            env=Unset,
            required=False,
            metavar=Unset,
            descr=Unset,
            hidden=False,
    ):
        """
        Construct an Option spec with the provided metadata.

        Parameters
        - names: zero to two str
          "--long" and/or "-s". The long name defaults to the dashed attribute name.
        - type: Unset | type
          Value type; must have a registered adapter (checked when the record is bound).
        - default: Any
          Value written to the record before parsing. Never counts as "set".
        - env: Unset | str
          Environment variable consulted when the option was not given on the command line.
        - required: bool
          The option must be given (flag or environment) at least once.
        - metavar: Unset | str
          Placeholder shown in help (<METAVAR>); defaults to VALUE.
        - descr: Unset | str
          Short description for help. If Unset, becomes None.
        - hidden: bool
          Suppress from help output.
        """
        metadata = {
            "names": names,
            "type": type,
            "default": default,
            "env": env,
            "required": bool(required),
            "metavar": metavar,
            "descr": descr,
            "hidden": bool(hidden),
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)

        if type is not Unset and not callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be a type")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class Flag(metaclass=ArgumentType):
    """
    Named, presence-only boolean switch.

    Presence sets the record attribute to True; "--name=false" sets it to False. The
    environment variable (env), when given, accepts 1/0, true/false, yes/no, on/off.
    """

    __introspectable__ = (
        "long",
        "short",
        "default",
        "env",
        "required",
        "descr",
        "hidden",
    )

    def __init__(
            self,
            *names,
            default=False,
            env=Unset,
            required=False,
            descr=Unset,
            hidden=False,
    ):
        metadata = {
            "names": names,
            "default": bool(default),
            "env": env,
            "required": bool(required),
            "descr": descr,
            "hidden": bool(hidden),
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class Cardinal(metaclass=ArgumentType):
    """
    Positional capture: the remaining non-flag tokens, verbatim, as a list of strings.

    A record may declare at most one Cardinal, and a command that captures positionals
    cannot have subcommands.
    """

    __introspectable__ = (
        "metavar",
        "descr",
        "hidden",
    )

    def __init__(self, metavar=Unset, /, descr=Unset, *, hidden=False):
        metadata = {
            "metavar": metavar,
            "descr": descr,
            "hidden": bool(hidden),
        }
        _sanitize_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


__all__ = (
    # Classes (specifications)
    "Option",
    "Flag",
    "Cardinal",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
