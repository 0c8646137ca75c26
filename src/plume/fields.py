"""Field definitions — one named input with rules, value, and render hints.

Fields are built with ``make()`` and configured by chaining::

    EmailField.make("email", "Email address").required().max_length(120)

Each variant is a small subclass registered under a type tag. The set
is closed by default and extended explicitly::

    @register_field_type("color")
    class ColorField(Field):
        input_type = "color"

Once a ``Form`` registers a field, its configuration is locked; only
``apply()`` (driven by the form) may change it afterwards.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Self

from plume._internal.multimap import MultiValueMapping
from plume.errors import ConfigurationError
from plume.validation.rules import Rule, Validator

# Type alias for raw submitted values
type RawValue = str | list[str]

_FIELD_TYPES: dict[str, type[Field]] = {}

_TRUTHY = frozenset({"true", "1", "yes", "on"})


def register_field_type[F: type[Field]](kind: str) -> Callable[[F], F]:
    """Class decorator registering a field variant under *kind*.

    Raises ``ConfigurationError`` if *kind* is already taken.
    """

    def decorator(cls: F) -> F:
        if kind in _FIELD_TYPES:
            msg = f"Field type {kind!r} is already registered."
            raise ConfigurationError(msg)
        cls.kind = kind
        _FIELD_TYPES[kind] = cls
        return cls

    return decorator


def field_type(kind: str) -> type[Field]:
    """Look up a registered field variant by tag."""
    try:
        return _FIELD_TYPES[kind]
    except KeyError:
        known = ", ".join(sorted(_FIELD_TYPES))
        msg = f"Unknown field type {kind!r}. Known types: {known}"
        raise ConfigurationError(msg) from None


def field_types() -> Mapping[str, type[Field]]:
    """Return the registered variants keyed by tag."""
    return dict(_FIELD_TYPES)


def make_field(kind: str, name: str, label: str | None = None, **config: Any) -> Field:
    """Build a field by type tag: ``make_field("email", "email")``."""
    return field_type(kind).make(name, label, **config)


def _humanize(name: str) -> str:
    words = name.replace("_", " ").strip()
    return words[:1].upper() + words[1:]


@dataclass(slots=True, eq=False)
class Field:
    """A single form input.

    ``value`` is the current value: the default, the ``make_with()``
    prefill, or the last submitted raw value. ``errors`` holds the
    messages from the last validation, in rule order. ``metadata``
    carries render hints (placeholder, autocomplete, css, ...) that
    templates turn into HTML attributes.
    """

    kind: ClassVar[str] = "text"
    input_type: ClassVar[str] = "text"
    flash_old: ClassVar[bool] = True

    name: str
    label: str
    value: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    is_required: bool = False
    _rules: list[Rule] = field(default_factory=list, repr=False)
    _required_message: str | None = field(default=None, repr=False)
    _locked: bool = field(default=False, repr=False)

    # -- Construction --

    @classmethod
    def make(cls, name: str, label: str | None = None, **config: Any) -> Self:
        """Create a field.

        Args:
            name: Submitted key. Must be a valid Python identifier.
            label: Display label. Defaults to the humanised name.
            **config: ``value``/``default``, ``required``, ``placeholder``,
                ``rules`` (iterable of ``Rule``); anything else becomes
                render metadata.

        Raises:
            ConfigurationError: If *name* is empty or not an identifier.
        """
        if not isinstance(name, str) or not name.isidentifier():
            msg = f"Field name must be a non-empty identifier, got {name!r}."
            raise ConfigurationError(msg)
        instance = cls(name=name, label=label if label is not None else _humanize(name))
        instance._configure(config)
        return instance

    def _configure(self, config: dict[str, Any]) -> None:
        config = dict(config)
        if "value" in config:
            self.default(config.pop("value"))
        if "default" in config:
            self.default(config.pop("default"))
        if config.pop("required", False):
            self.required()
        if "placeholder" in config:
            self.placeholder(config.pop("placeholder"))
        for rule in config.pop("rules", ()):
            self.rule(rule)
        if config:
            self.meta(**config)

    # -- Chainable configuration --

    def _ensure_unlocked(self) -> None:
        if self._locked:
            msg = f"Field {self.name!r} is already registered on a form and cannot be reconfigured."
            raise ConfigurationError(msg)

    def required(self, message: str | None = None) -> Self:
        """Mark the field as required. Always checked before other rules."""
        self._ensure_unlocked()
        self.is_required = True
        self._required_message = message
        return self

    def rule(self, rule: Rule) -> Self:
        """Append a declared ``Rule``."""
        self._ensure_unlocked()
        if not isinstance(rule, Rule):
            msg = f"Field {self.name!r}: expected a Rule, got {type(rule).__name__}."
            raise ConfigurationError(msg)
        self._rules.append(rule)
        return self

    def check(self, fn: Validator, message: str | None = None, *, implicit: bool = False) -> Self:
        """Append a custom ``(str) -> str | None`` validator."""
        return self.rule(Rule.custom(fn, message, implicit=implicit))

    def email(self, message: str | None = None) -> Self:
        return self.rule(Rule("email", message=message))

    def url(self, message: str | None = None) -> Self:
        return self.rule(Rule("url", message=message))

    def integer(self, message: str | None = None) -> Self:
        return self.rule(Rule("integer", message=message))

    def number(self, message: str | None = None) -> Self:
        return self.rule(Rule("number", message=message))

    def max_length(self, n: int, message: str | None = None) -> Self:
        return self.rule(Rule("max_length", (n,), message=message))

    def min_length(self, n: int, message: str | None = None) -> Self:
        return self.rule(Rule("min_length", (n,), message=message))

    def matches(self, pattern: str, message: str | None = None) -> Self:
        return self.rule(Rule("matches", (pattern, message)))

    def one_of(self, *choices: str, message: str | None = None) -> Self:
        return self.rule(Rule("one_of", choices, message=message))

    def default(self, value: Any) -> Self:
        """Set the initial value shown before any submission."""
        self._ensure_unlocked()
        self.value = value
        return self

    def meta(self, **attrs: Any) -> Self:
        """Attach render metadata (becomes HTML attributes)."""
        self._ensure_unlocked()
        self.metadata.update(attrs)
        return self

    def placeholder(self, text: str) -> Self:
        return self.meta(placeholder=text)

    def lock(self) -> None:
        """Freeze configuration. Called by ``Form`` when registering."""
        self._locked = True

    # -- Validation capability --

    def inherent_rules(self) -> list[Rule]:
        """Rules implied by the variant itself (e.g. email format)."""
        return []

    def rules(self) -> list[Rule]:
        """Rules in evaluation order: required, inherent, then declared."""
        ordered: list[Rule] = []
        if self.is_required:
            ordered.append(Rule("required", message=self._required_message))
        ordered.extend(self.inherent_rules())
        ordered.extend(self._rules)
        return ordered

    def extract(self, source: Any) -> RawValue:
        """Read this field's raw submitted value from a request mapping.

        Repeated keys in a ``MultiValueMapping`` (``FormData``) come back
        as a list.
        """
        if isinstance(source, MultiValueMapping):
            values = source.get_list(self.name)
            if len(values) > 1:
                return list(values)
        raw = source.get(self.name)
        if raw is None:
            return ""
        if isinstance(raw, (list, tuple)):
            return [str(item) for item in raw]
        return raw if isinstance(raw, str) else str(raw)

    def normalize(self, raw: RawValue) -> RawValue:
        """Strip surrounding whitespace before rules run."""
        if isinstance(raw, list):
            return [item.strip() for item in raw]
        return raw.strip()

    def resolve(self, value: RawValue) -> Any:
        """Turn a value that passed validation into its data value."""
        return value

    def apply(self, submitted: Any, errors: Iterable[str] = ()) -> None:
        """Record a submitted value and the adapter's messages for it."""
        self.value = submitted
        self.errors = list(errors)

    # -- Display --

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def display_value(self) -> str:
        """The value as a string for an HTML ``value`` attribute."""
        if self.value is None:
            return ""
        return str(self.value)

    def to_dict(self) -> dict[str, Any]:
        """Plain data for templates and JSON responses."""
        return {
            "name": self.name,
            "label": self.label,
            "type": self.kind,
            "input_type": self.input_type,
            "value": self.value,
            "errors": list(self.errors),
            "required": self.is_required,
            "metadata": dict(self.metadata),
        }


# ---------------------------------------------------------------------------
# Built-in variants
# ---------------------------------------------------------------------------

register_field_type("text")(Field)


@register_field_type("email")
class EmailField(Field):
    __slots__ = ()

    input_type = "email"

    def inherent_rules(self) -> list[Rule]:
        return [Rule("email")]


@register_field_type("password")
class PasswordField(Field):
    """Never flashed back as old input, never stripped."""

    __slots__ = ()

    input_type = "password"
    flash_old = False

    def normalize(self, raw: RawValue) -> RawValue:
        return raw

    @property
    def display_value(self) -> str:
        return ""

    def to_dict(self) -> dict[str, Any]:
        data = Field.to_dict(self)
        data["value"] = None
        return data


@register_field_type("textarea")
class TextareaField(Field):
    __slots__ = ()

    input_type = "textarea"


@register_field_type("hidden")
class HiddenField(Field):
    __slots__ = ()

    input_type = "hidden"


@register_field_type("number")
class NumberField(Field):
    """Numeric input. Resolves to ``int`` when possible, else ``float``."""

    __slots__ = ()

    input_type = "number"

    def inherent_rules(self) -> list[Rule]:
        return [Rule("number")]

    def resolve(self, raw: RawValue) -> Any:
        if isinstance(raw, list):
            raw = raw[0] if raw else ""
        text = raw.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return float(text)


@register_field_type("checkbox")
class CheckboxField(Field):
    """A single on/off box. Missing from the submission means unchecked."""

    __slots__ = ()

    input_type = "checkbox"

    def resolve(self, raw: RawValue) -> Any:
        if isinstance(raw, list):
            raw = raw[0] if raw else ""
        return raw.strip().lower() in _TRUTHY

    @property
    def checked(self) -> bool:
        value = self.value
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return bool(value)


@register_field_type("select")
@dataclass(slots=True, eq=False)
class SelectField(Field):
    """A choice among ``(value, label)`` options.

    Submitted values outside the options fail validation.
    """

    input_type = "select"

    choices: list[tuple[str, str]] = field(default_factory=list)

    def _configure(self, config: dict[str, Any]) -> None:
        config = dict(config)
        if "options" in config:
            self.options(config.pop("options"))
        Field._configure(self, config)

    def options(self, options: Mapping[str, str] | Iterable[str | tuple[str, str]]) -> Self:
        """Set the choices from a mapping, plain strings, or pairs."""
        self._ensure_unlocked()
        if isinstance(options, Mapping):
            self.choices = [(str(k), str(v)) for k, v in options.items()]
        else:
            self.choices = [
                (str(opt), str(opt)) if isinstance(opt, str) else (str(opt[0]), str(opt[1]))
                for opt in options
            ]
        return self

    def inherent_rules(self) -> list[Rule]:
        if not self.choices:
            return []
        return [Rule("one_of", tuple(value for value, _ in self.choices))]

    def to_dict(self) -> dict[str, Any]:
        data = Field.to_dict(self)
        data["options"] = [{"value": v, "label": lbl} for v, lbl in self.choices]
        return data
