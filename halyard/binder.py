"""
Field binder: from a configuration record to bound field descriptors.

What this module provides
- Field: one bindable value (long name, short alias, environment variable, required,
  default, value adapter) plus its mutable set_count.
- Positional: the optional capture of remaining positional tokens.
- bind(record, reserved=()): walk the record's declared specs and produce
  (fields, positional). Pure apart from writing defaults onto the record.

Declaration order
- Classes are walked base-first along the MRO and attributes in definition order;
  a subclass redefinition keeps the position of the original declaration.

Shape errors (ConfigShapeError)
- a long name or short alias is used twice across the record (and the reserved fields),
- more than one Cardinal is declared,
- a value type without a registered adapter.
"""
import copy
import inspect

from .adapters import resolve
from .arguments import Option, Flag, Cardinal
from .faults import ConfigShapeError
from .utils import dasherize


class Field:
    """
    Bound, mutable descriptor for one named field of a record.

    set_count starts at zero and grows by exactly one for every successful apply(),
    whatever the source (long flag, short alias, environment). Default substitution
    happens at bind time and never touches it.
    """

    def __init__(self, record, attribute, spec, adapter, /):
        self._record = record
        self._attribute = attribute
        self._spec = spec
        self._adapter = adapter
        self._name = spec.long or dasherize(attribute)
        self._set_count = 0

    @property
    def name(self):
        return self._name

    @property
    def short(self):
        return self._spec.short

    @property
    def env(self):
        return self._spec.env

    @property
    def required(self):
        return self._spec.required

    @property
    def default(self):
        return self._spec.default

    @property
    def descr(self):
        return self._spec.descr

    @property
    def hidden(self):
        return self._spec.hidden

    @property
    def metavar(self):
        return getattr(self._spec, "metavar", None) or "VALUE"

    @property
    def attribute(self):
        return self._attribute

    @property
    def has_argument(self):
        return not self._adapter.switch

    @property
    def set_count(self):
        return self._set_count

    @property
    def value(self):
        return getattr(self._record, self._attribute)

    def format_default(self):
        """
        Return the default as shown in help, or an empty string when there is nothing to show.
        """
        if (default := self.default) is None or default == "" or default == [] or default is False:
            return ""
        return self._adapter.format(default)

    def apply(self, text, /):
        """
        Parse text with the value adapter and store the result on the record.

        Repeatable fields replace their default on the first application and append on
        later ones. Parse failures (ValueError/TypeError) propagate and leave set_count as is.
        """
        value = self._adapter.parse(text)
        if self._adapter.multiple:
            value = (list(self.value) if self._set_count else []) + [value]
        setattr(self._record, self._attribute, value)
        self._set_count += 1

    def __repr__(self):
        return f"field(name={self.name!r}, short={self.short!r}, env={self.env!r}, set_count={self.set_count!r})"


class Positional:
    """
    Bound capture of the leftover positional tokens of a command.
    """

    def __init__(self, record, attribute, spec, /):
        self._record = record
        self._attribute = attribute
        self._spec = spec

    @property
    def attribute(self):
        return self._attribute

    @property
    def metavar(self):
        return self._spec.metavar or "ARGS"

    @property
    def descr(self):
        return self._spec.descr

    @property
    def hidden(self):
        return self._spec.hidden

    @property
    def value(self):
        return getattr(self._record, self._attribute)

    def apply(self, tokens, /):
        setattr(self._record, self._attribute, list(tokens))

    def __repr__(self):
        return f"positional(attribute={self.attribute!r}, metavar={self.metavar!r})"


def _declarations(cls):
    """
    Yield (attribute, spec, annotation) for every spec declared on cls and its bases.
    """
    specs = {}
    annotations = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        try:
            annotations |= inspect.get_annotations(klass, eval_str=True)
        except NameError as error:
            raise ConfigShapeError(f"record {cls.__name__!r} annotation cannot be resolved: {error}") from None
        for attribute, value in vars(klass).items():
            if isinstance(value, Option | Flag | Cardinal):
                specs[attribute] = value
            elif attribute in specs:
                del specs[attribute]
    for attribute, spec in specs.items():
        yield attribute, spec, annotations.get(attribute)


def bind(record, /, reserved=()):
    """
    Derive the field descriptors of a configuration record.

    Parameters
    - record: any object whose class declares Option/Flag/Cardinal attributes.
    - reserved: already bound fields (e.g., the built-in help switch) whose names the
      record must not reuse; they are not part of the returned list.

    Returns
    - tuple[list[Field], Positional | None]

    Raises
    - ConfigShapeError on name collisions, multiple cardinals, or missing value adapters.
    """
    cls = type(record)
    names = {}
    for field in reserved:
        names[field.name] = field.attribute
        if field.short:
            names[field.short] = field.attribute

    fields = []
    positional = None

    for attribute, spec, annotation in _declarations(cls):
        if isinstance(spec, Cardinal):
            if positional is not None:
                raise ConfigShapeError(
                    f"record {cls.__name__!r} declares more than one positional field "
                    f"({positional.attribute!r} and {attribute!r})"
                )
            positional = Positional(record, attribute, spec)
            setattr(record, attribute, [])
            continue

        if isinstance(spec, Flag):
            kind = bool
        else:
            kind = spec.type or annotation or str
        adapter = resolve(kind)

        field = Field(record, attribute, spec, adapter)
        for name in filter(None, (field.name, field.short)):
            if name in names:
                raise ConfigShapeError(
                    f"record {cls.__name__!r} field {attribute!r} flag name {name!r} "
                    f"collides with field {names[name]!r}"
                )
            names[name] = attribute

        default = spec.default
        if adapter.multiple and default is None:
            default = []
        setattr(record, attribute, copy.copy(default))
        fields.append(field)

    return fields, positional


__all__ = (
    "Field",
    "Positional",
    "bind",
)
