"""Built-in validation rules for plume forms.

Each validator is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factory functions that return a validator::

    def max_length(n: int) -> Callable[[str], str | None]:
        def check(value: str) -> str | None:
            if len(value) > n:
                return f"Must be at most {n} characters"
            return None
        return check

Fields never hold validators directly. They hold ``Rule`` records (a
tag plus parameters), and the adapter resolves each tag through the
rule registry at check time. Custom validators follow the same
``(str) -> str | None`` protocol and are wrapped with ``Rule.custom()``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from plume.errors import ConfigurationError

# Type alias for a validator function
type Validator = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str) -> str | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return "This field is required"
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: str) -> str | None:
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: str) -> str | None:
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Basic email pattern: checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: str) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


# Basic URL pattern: checks scheme + host structure
_URL_RE = re.compile(r"^https?://[^\s/$.?#].\S*$", re.IGNORECASE)


def url(value: str) -> str | None:
    """Value must be a valid URL (http/https)."""
    if not _URL_RE.match(value):
        return "Must be a valid URL"
    return None


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must match the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: str) -> str | None:
        if not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: str) -> Validator:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)

    def check(value: str) -> str | None:
        if value not in allowed:
            options = ", ".join(sorted(allowed))
            return f"Must be one of: {options}"
        return None

    return check


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------


def integer(value: str) -> str | None:
    """Value must be a valid integer."""
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None


def number(value: str) -> str | None:
    """Value must be a finite number (int or float)."""
    try:
        parsed = float(value)
    except (ValueError, TypeError, OverflowError):
        return "Must be a number"
    if not math.isfinite(parsed):
        return "Must be a number"
    return None


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

# kind -> factory(*params) returning a Validator
_RULES: dict[str, Callable[..., Validator]] = {
    "required": lambda: required,
    "email": lambda: email,
    "url": lambda: url,
    "integer": lambda: integer,
    "number": lambda: number,
    "max_length": max_length,
    "min_length": min_length,
    "matches": matches,
    "one_of": one_of,
    "custom": lambda fn: fn,
}

# Kinds that run even when the submitted value is blank
_IMPLICIT = frozenset({"required"})


def register_rule(kind: str, factory: Callable[..., Validator]) -> None:
    """Register a new rule kind.

    *factory* receives the rule's params and returns a validator::

        register_rule("slug", lambda: matches(r"^[a-z0-9-]+$", "Must be a slug"))
        Rule("slug")

    Raises ``ConfigurationError`` if *kind* is already registered.
    """
    if kind in _RULES:
        msg = f"Rule kind {kind!r} is already registered."
        raise ConfigurationError(msg)
    _RULES[kind] = factory


def rule_kinds() -> frozenset[str]:
    """Return every registered rule kind."""
    return frozenset(_RULES)


@dataclass(frozen=True, slots=True)
class Rule:
    """A declarative validation constraint.

    ``kind`` tags the constraint and selects the validator factory;
    ``params`` are passed to that factory. ``message`` replaces the
    validator's own text when the rule fails. ``implicit`` rules are
    evaluated even when the value is blank (``required`` always is).

    The validator is built eagerly so a malformed declaration fails
    where it is written, not on the first submission.
    """

    kind: str
    params: tuple[Any, ...] = ()
    message: str | None = None
    implicit: bool = False
    _check: Validator | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        factory = _RULES.get(self.kind)
        if factory is None:
            known = ", ".join(sorted(_RULES))
            msg = f"Unknown rule kind {self.kind!r}. Known kinds: {known}"
            raise ConfigurationError(msg)
        try:
            check = factory(*self.params)
        except (TypeError, ValueError, re.error) as exc:
            msg = f"Invalid params for rule {self.kind!r}: {self.params!r} ({exc})"
            raise ConfigurationError(msg) from exc
        if not callable(check):
            msg = f"Rule {self.kind!r} did not produce a callable validator."
            raise ConfigurationError(msg)
        object.__setattr__(self, "_check", check)
        if self.kind in _IMPLICIT:
            object.__setattr__(self, "implicit", True)

    @classmethod
    def custom(cls, fn: Validator, message: str | None = None, *, implicit: bool = False) -> Rule:
        """Wrap a ``(str) -> str | None`` callable as a rule."""
        return cls("custom", (fn,), message=message, implicit=implicit)

    @property
    def validator(self) -> Validator:
        """The resolved validator callable."""
        if self._check is None:
            msg = f"Rule {self.kind!r} has no resolved validator."
            raise ConfigurationError(msg)
        return self._check

    def __call__(self, value: str) -> str | None:
        error = self.validator(value)
        if error is not None and self.message is not None:
            return self.message
        return error
