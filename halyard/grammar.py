"""
Flag grammar: recognize flag tokens for a list of bound fields.

Accepted forms (either prefix works for either kind of name)
- "--name value", "--name=value", "-n value", "-n=value" for value-bearing fields.
- "--name", "-n", "--name=false" for boolean switches (never consume the next token).
- "--" ends flag parsing; everything after it is left over untouched.
- "-" alone and any token not starting with "-" are positional.

Scanning
- interspersed=True: flags and positionals may be mixed (GNU style); positionals are
  collected in order.
- interspersed=False: scanning stops at the first positional, which becomes the first
  leftover together with every token after it (used for commands with subcommands, so a
  child's flags are never consumed by an ancestor).

Faults (all UsageError, raised on the first offending token)
- MalformedTokenError: "failed to parse args: bad flag syntax: ---x"
- UnknownSwitchError: "failed to parse args: flag provided but not defined: -x"
- MissingValueError: "failed to parse args: flag needs an argument: --name"
- InvalidValueError: 'failed to parse args: invalid value "v" for flag --name: reason'
"""
from collections import deque

from .faults import MalformedTokenError, UnknownSwitchError, MissingValueError, InvalidValueError


class Grammar:
    """
    Per-command flag grammar built once from the command's fields.
    """

    def __init__(self, fields, /, *, interspersed=True):
        self._fields = tuple(fields)
        self._interspersed = interspersed
        self._lookup = {}
        for field in self._fields:
            self._lookup[field.name] = field
            if field.short:
                self._lookup[field.short] = field
        self._leftovers = []

    @property
    def fields(self):
        return self._fields

    @property
    def interspersed(self):
        return self._interspersed

    @property
    def leftovers(self):
        return list(self._leftovers)

    def lookup(self, name, /):
        """
        Return the field registered under a long name or short alias (without dashes), or None.
        """
        return self._lookup.get(name)

    def parse(self, tokens, /):
        """
        Apply every flag token to its field and return the leftover (non-flag) tokens.
        """
        tokens = deque(tokens)
        leftovers = self._leftovers = []

        while tokens:
            token = tokens.popleft()
            if token == "--":
                leftovers.extend(tokens)
                break
            if len(token) < 2 or not token.startswith("-"):
                leftovers.append(token)
                if not self._interspersed:
                    leftovers.extend(tokens)
                    break
                continue
            self._parse_flag(token, tokens)

        return list(leftovers)

    def _parse_flag(self, token, tokens):
        dashes = 2 if token.startswith("--") else 1
        name, assigned, value = token[dashes:].partition("=")

        if not name or name.startswith("-"):
            raise MalformedTokenError(
                "failed to parse args: bad flag syntax: %s" % token,
                input=token,
                hint="flags look like --name, --name=value or -n",
            )

        if (field := self._lookup.get(name)) is None:
            raise UnknownSwitchError(
                "failed to parse args: flag provided but not defined: %s" % token.partition("=")[0],
                input=name,
            )

        flag = "-" * dashes + name
        if not field.has_argument:
            text = value if assigned else "true"
        elif assigned:
            text = value
        elif tokens:
            text = tokens.popleft()
        else:
            raise MissingValueError(
                "failed to parse args: flag needs an argument: %s" % flag,
                input=name,
            )

        try:
            field.apply(text)
        except (ValueError, TypeError) as error:
            raise InvalidValueError(
                'failed to parse args: invalid value "%s" for flag %s: %s' % (text, flag, error),
                input=name,
                value=text,
            ) from error


__all__ = (
    "Grammar",
)
