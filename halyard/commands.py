"""
Halyard command layer: build command trees from configuration records, parse, dispatch.

What this module provides
- Command: a tree node pairing a name and a configuration record with:
  • Fields bound from the record's specs (Option, Flag, Cardinal), led by the
    reserved -h/--help switch.
  • A flag grammar (interspersed unless the node has subcommands).
  • Children (subcommands) registered by name, a weak link to the parent.
  • Runtime options (environ, helpout, errout, colorful) inherited down the tree.
  • Rich help and usage rendering (see halyard.help).

- The parse engine (Command.parse): one top-down pass per node
    1. flags (grammar), 2. help short-circuit, 3. environment fallback,
    4. leftovers (positional capture, subcommand lookup, or rejection),
    5. required check, 6. record.before() hook, 7. recurse or bind the entry point.
  Faults never escape parse(): they come back inside a ParseResult.

- Factories and helpers:
  • command(...): create a Command or a decorator that produces one.
  • invoke(obj, prompt): parse and run_fatal in one go.

Record capabilities (all optional, checked by attribute, never by base class)
- setup(command): called once when the node is built; may attach children.
- before(): pre-run hook, runs after validation and before any child is parsed.
- run() / run(context): entry point (see halyard.results).

Quick start
    from halyard import command, Option, Flag, invoke

    @command
    class Greet:
        \"\"\"Say hello.\"\"\"
        name = Option("-n", env="GREET_NAME", default="world", descr="who to greet")
        loud = Flag("-l", descr="shout")

        def run(self):
            print(f"hello {self.name}{'!' * self.loud}")

    if __name__ == "__main__":
        invoke(Greet, "--name=halyard -l")

Design notes
- Node state (set counts, record values) belongs to one parse; build a fresh tree to
  parse again.
- Structural mistakes raise ConfigShapeError while building, never while parsing.
"""
import difflib
import inspect
import logging
import os
import re
import shlex
import sys
import weakref
from collections.abc import Iterable, Mapping
from types import MappingProxyType, SimpleNamespace

from . import help as helper
from .arguments import Flag
from .binder import bind
from .faults import *
from .grammar import Grammar
from .results import ParseResult, entrypoint
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass that gives Command classes introspectable, stable representations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __introspectable__ names are mirrored into read-only properties.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__.
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
            return f"{type(self).__typename__}({
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__())
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class _Builtins:
    help = Flag("--help", "-h", descr="show usage help")


def _default_name(source):
    if source is None:
        return os.path.basename(sys.argv[0]) or "command"
    return re.sub(r"(?<!^)(?=[A-Z])", r"-", type(source).__name__).lower()


def _process_strings(cls, metadata):
    """
    Internal: validate the name, help and descr metadata.

    - name: non-empty string without whitespace, not starting with "-".
    - help, descr: None or a string; blank strings become None.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()) or re.search(r"\s", name) or name.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' must be a non-empty word not starting with '-'")
    metadata["name"] = name

    for key in ("help", "descr"):
        if not isinstance(value := metadata[key], str | None):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string")
        metadata[key] = value.strip() or None if value is not None else None


def _process_runtime(cls, metadata):
    """
    Internal: validate runtime options. Unset values are kept so they inherit from the parent.
    """
    if not isinstance(metadata["environ"], Mapping | Unset):
        raise TypeError(f"{cls.__typename__} 'environ' must be a mapping")
    for key in ("helpout", "errout"):
        if not isinstance(stream := metadata[key], Unset | None) and not callable(getattr(stream, "write", None)):
            raise TypeError(f"{cls.__typename__} {key!r} must be a text stream or None")
    if not isinstance(metadata["colorful"], bool | Unset):
        raise TypeError(f"{cls.__typename__} 'colorful' must be a boolean")


def _attach_to_parent(self, parent):
    """
    Register this command under its parent.

    Raises ConfigShapeError when the parent captures positional arguments, when the
    command already has a parent or is an ancestor of it, or when the name is taken.
    """
    if parent.cardinal is not None:
        raise ConfigShapeError(
            f"{type(self).__typename__} {parent.name!r} captures positional arguments and cannot have subcommands"
        )
    if self.parent is not None:
        raise ConfigShapeError(f"{type(self).__typename__} {self.name!r} is already attached to {self.parent.name!r}")
    if self in parent.path:
        raise ConfigShapeError(f"{type(self).__typename__} {self.name!r} cannot be attached below itself")
    if parent._children.setdefault(name := self.name, self) is not self:
        typeof = "subcommand" if parent.parent else "command"
        raise ConfigShapeError(f"{type(self).__typename__} {typeof} name {name!r} is already in use")

    self._parent = weakref.ref(parent)
    # a node with subcommands stops scanning at the first non-flag token
    parent._grammar = Grammar(parent._fields, interspersed=False)


def _tokenize(prompt):
    if prompt is Unset:
        return sys.argv[1:]
    elif isinstance(prompt, str):
        return shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


class Command(metaclass=CommandType):
    """
    Command node: a configuration record, its bound fields, and its subcommands.

    Construction
    - source: a record instance, a record class (instantiated with no arguments), or
      None for a node without fields of its own.
    - name: defaults to the dashed class name ("ServeHttp" → "serve-http"), or to the
      program name for a None source.
    - help, descr: default to the first line and the rest of the record class docstring.
    - parent: attach the new node under this command.
    - environ, helpout, errout, colorful: runtime options, inherited from the parent when
      Unset; root defaults are os.environ, sys.stderr, sys.stderr and True. Passing
      None as helpout/errout silences that output.

    Raises ConfigShapeError for records whose fields cannot be bound.
    """

    __introspectable__ = (
        "name",
        "help",
        "descr",
    )

    __displayable__ = (
        "name",
        "help",
        "fields",
        "cardinal",
        "children",
    )

    def __init__(
            self,
            source=None,
            /,
            parent=Unset,
            name=Unset,
            help=Unset,
            descr=Unset,
            *,
            environ=Unset,
            helpout=Unset,
            errout=Unset,
            colorful=Unset,
    ):
        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{type(self).__typename__} 'parent' must be a command")
        if isinstance(source, type):
            source = source()

        summary, _, rest = inspect.cleandoc(type(source).__doc__ or "").partition("\n") if source is not None else ("", "", "")
        metadata = {
            "record": SimpleNamespace() if source is None else source,
            "name": coalesce(name, _default_name(source)),
            "help": coalesce(help, summary),
            "descr": coalesce(descr, rest),
            "environ": environ,
            "helpout": helpout,
            "errout": errout,
            "colorful": colorful,
        }
        _process_strings(type(self), metadata)
        _process_runtime(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._parent = None
        self._children = {}
        self._builtins = _Builtins()
        builtins, _ = bind(self._builtins)
        fields, self._cardinal = bind(self._record, reserved=builtins)
        self._fields = tuple(builtins + fields)
        self._grammar = Grammar(self._fields)

        if parent:
            _attach_to_parent(self, parent)

        if callable(setup := getattr(self._record, "setup", None)):
            setup(self)

    @property
    def record(self):
        return self._record

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def children(self):
        return MappingProxyType(self._children)

    @property
    def fields(self):
        return self._fields

    @property
    def cardinal(self):
        return self._cardinal

    @property
    def grammar(self):
        return self._grammar

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def environ(self):
        if self._environ is not Unset:
            return self._environ
        return self.parent.environ if self.parent else os.environ

    @property
    def helpout(self):
        if self._helpout is not Unset:
            return self._helpout
        return self.parent.helpout if self.parent else sys.stderr

    @property
    def errout(self):
        if self._errout is not Unset:
            return self._errout
        return self.parent.errout if self.parent else sys.stderr

    @property
    def colorful(self):
        if self._colorful is not Unset:
            return self._colorful
        return self.parent.colorful if self.parent else True

    def add(self, child, /):
        """
        Attach an already built command as a subcommand of this one and return it.
        """
        if not isinstance(child, Command):
            raise TypeError(f"{type(self).__typename__} add() argument must be a command")
        _attach_to_parent(child, self)
        return child

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a subcommand under this command (or a decorator that will).

        Thin wrapper around the module-level command(...) factory that injects
        parent=self.
        """
        return command(source, self, *args, **kwargs)

    def usage(self, below=None, /):
        """
        Return the usage line: ancestors' usage, then "name [OPTIONS]", then
        " <COMMAND>" for nodes with subcommands or " [<METAVAR>...]" for nodes
        capturing positional arguments.
        """
        if self.parent is None:
            name = getattr(__import__("__main__"), "__prog__", self.name)
        else:
            name = self.name
        line = f"{name} [OPTIONS]"
        if self._children and below is None:
            line += " <COMMAND>"
        if self._cardinal is not None and not self._cardinal.hidden:
            line += f" [<{self._cardinal.metavar}>...]"
        if self.parent is not None:
            line = f"{self.parent.usage(self.name)} {line}"
        return line

    def _render_help(self, *, colorful):
        return helper.render(
            self.usage(),
            self.help,
            self.descr,
            self._fields,
            ((name, child.help) for name, child in self._children.items()),
            colorful=colorful,
        )

    def help_string(self):
        """
        Return the help screen as plain text.
        """
        return helper.format(self._render_help(colorful=False))

    def write_help(self, file=Unset, /):
        """
        Write the help screen to file (helpout when Unset; nothing when that is None).
        """
        if (file := coalesce(file, self.helpout)) is None:
            return
        helper.write(file, self._render_help(colorful=self.colorful), colorful=self.colorful)

    def trigger(self, fault, /, **options):
        """
        Raise fault with this node attached as its 'tool'.
        """
        if not hasattr(fault, "__replace__") or not callable(fault.__replace__):
            raise TypeError("trigger() argument must have a __replace__ method")
        trigger(fault, **options, tool=self, colorful=self.colorful)

    def parse(self, prompt=Unset, /):
        """
        Parse a prompt against the tree rooted at this command.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used verbatim.

        Returns
        - ParseResult: never raises for bad input; faults, help requests and hook
          errors are stored in the result for the run modes to act on.

        Raises
        - TypeError: when prompt is not Unset/str/Iterable[str].
        """
        tokens = _tokenize(prompt)
        logger.debug("parsing %d tokens with %r", len(tokens), self.name)
        try:
            return self._parseargs(tokens)
        except CommandException as fault:
            logger.debug("parse stopped: %s", fault.message)
            return ParseResult(fault.options.get("tool", self), error=fault)

    def _parseargs(self, tokens):
        logger.debug("descending into %r", self.name)

        # 1. flags
        try:
            leftovers = self._grammar.parse(tokens)
        except UsageError as fault:
            self.trigger(fault)

        # 2. help short-circuit
        if self._builtins.help:
            self.trigger(HelpRequested())

        # 3. environment fallback
        for field in self._fields:
            if not field.env or field.set_count:
                continue
            try:
                text = self.environ[field.env]
            except KeyError:
                continue
            except Exception as error:
                logger.debug("environment lookup of %s failed: %r", field.env, error)
                return ParseResult(self, error=error)
            logger.debug("field %r taken from environment variable %s", field.name, field.env)
            try:
                field.apply(text)
            except (ValueError, TypeError) as error:
                self.trigger(EnvironmentValueError(
                    "failed to parse environment variables: error parsing %s: %s" % (field.env, error),
                    input=field.env,
                    value=text,
                ))

        # 4. leftovers
        child = None
        if self._cardinal is not None:
            self._cardinal.apply(leftovers)
        elif self._children and leftovers:
            name, *leftovers = leftovers
            if (child := self._children.get(name)) is None:
                suggestions = difflib.get_close_matches(name, self._children.keys(), 3)
                route = " ".join(step.name for step in self.path)
                typeof = "subcommands" if self.parent else "commands"
                if suggestions:
                    hint = "did you mean %r? run '%s --help' to see available %s" % (suggestions[0], route, typeof)
                else:
                    hint = "run '%s --help' to see available %s" % (route, typeof)
                self.trigger(UnknownCommandError(
                    "unknown command: %s" % name,
                    input=name,
                    suggestions=suggestions,
                    hint=hint,
                ))
        elif leftovers:
            self.trigger(UnexpectedArgumentsError("command does not take arguments", leftover=list(leftovers)))

        # 5. required fields
        for field in self._fields:
            if field.required and field.set_count < 1:
                self.trigger(MissingRequiredError("required flag --%s not set" % field.name, input=field.name))

        # 6. pre-run hook
        if callable(before := getattr(self._record, "before", None)):
            logger.debug("running before() of %r", self.name)
            try:
                before()
            except Exception as error:
                return ParseResult(self, error=error)

        # 7. recurse or terminate
        if child is not None:
            return child._parseargs(leftovers)

        entry = entrypoint(self._record)
        if entry is None and self._children:
            self.trigger(MissingCommandError("no command specified"))
        return ParseResult(self, entry=entry)

    def __invoke__(self, prompt=Unset):
        """
        Parse prompt and run the result in fatal mode (the process exits).
        """
        self.parse(prompt).run_fatal()


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct: cmd = command(Serve, parent, name="serve") or command(Serve())
    - Decorator:
        @command(name="serve")
        class Serve: ...
      The decorated name is bound to the resulting Command.

    Parameters
    - source: Unset | type | object | None
      When Unset, a decorator is returned. Otherwise a Command is created.
    - *args, **kwargs: forwarded to Command (parent, name, help, descr, runtime options).
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, Command):
            raise TypeError("command() argument is already a command")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: parse prompt and run it in fatal mode.

    Parameters
    - object: a command (anything with __invoke__), a record class, or a record
      instance with a 'run' method (both wrapped into a root Command first).
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.

    Raises
    - TypeError: when object cannot be invoked.
    - SystemExit: always, on completion (see ParseResult.run_fatal).
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        object.__invoke__(prompt)
        return

    if isinstance(object, type) or callable(getattr(object, "run", None)):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "command",
    "invoke",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
