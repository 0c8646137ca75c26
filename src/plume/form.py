"""Form — field registry, validation lifecycle, and display state.

Subclass ``Form``, declare fields, and construct through ``make()``::

    class ContactForm(Form):
        success_message = "Thanks, we'll be in touch."

        def declare_fields(self):
            return [
                Field.make("firstname").required(),
                EmailField.make("email").required(),
            ]

    form = ContactForm.make().validate(form_data)
    if form.failed():
        return Redirect("/contact").with_form(form, flash)
    save(form.data())

Hooks are supplied at class definition and run at fixed points in the
lifecycle::

    class SignupForm(Form, before=[must_be_open], after=[passwords_match]):
        ...

A ``before`` hook receives the raw submission and may return a message
to fail the form without running field rules. An ``after`` hook
receives the resolved values as a mutable dict (transform it in place)
and may return a form-level message or a ``{field: [messages]}``
mapping to fail the form.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Self

from plume.config import DEFAULT_CONFIG, FormsConfig
from plume.errors import ConfigurationError, FormStateError
from plume.fields import Field, RawValue
from plume.state import FormState, FormStatus
from plume.validation.adapter import check

if TYPE_CHECKING:
    from plume.flash import FlashBridge

logger = logging.getLogger("plume.forms")

type BeforeHook = Callable[[Form, Mapping[str, RawValue]], str | None]
type AfterHook = Callable[[Form, dict[str, Any]], str | Mapping[str, Sequence[str]] | None]

# Only make()/make_with() hold this
_MAKE_TOKEN = object()


@dataclass(frozen=True, slots=True)
class ValidationHooks:
    """Callbacks invoked around field-level validation."""

    before: tuple[BeforeHook, ...] = ()
    after: tuple[AfterHook, ...] = ()

    def extend(
        self,
        before: Iterable[BeforeHook] = (),
        after: Iterable[AfterHook] = (),
    ) -> ValidationHooks:
        """Return hooks with *before*/*after* appended after these."""
        before, after = tuple(before), tuple(after)
        for hook in (*before, *after):
            if not callable(hook):
                msg = f"Validation hooks must be callable, got {hook!r}."
                raise ConfigurationError(msg)
        return ValidationHooks(before=(*self.before, *before), after=(*self.after, *after))


class Form:
    """Base class for declared forms.

    Construct only through ``make()`` or ``make_with()``. Calling the
    class directly raises ``ConfigurationError``.
    """

    config: ClassVar[FormsConfig] = DEFAULT_CONFIG
    form_key: ClassVar[str | None] = None
    success_message: ClassVar[str | None] = None
    error_message: ClassVar[str | None] = None
    hooks: ClassVar[ValidationHooks] = ValidationHooks()

    __slots__ = ("_data", "_fields", "_state", "_validated")

    def __init_subclass__(
        cls,
        *,
        before: Iterable[BeforeHook] = (),
        after: Iterable[AfterHook] = (),
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        cls.hooks = cls.hooks.extend(before, after)

    def __init__(self, *, _token: object = None) -> None:
        if _token is not _MAKE_TOKEN:
            name = type(self).__name__
            msg = f"Create forms with {name}.make() or {name}.make_with(), not {name}()."
            raise ConfigurationError(msg)
        self._fields: dict[str, Field] = {}
        self._state = FormState()
        self._data: dict[str, Any] = {}
        self._validated = False
        self._register(self.declare_fields())

    # -- Construction --

    @classmethod
    def make(cls, *, flash: FlashBridge | None = None) -> Self:
        """Create a form, restoring any flashed state for this class."""
        form = cls(_token=_MAKE_TOKEN)
        if flash is not None:
            form._restore_from(flash)
        return form

    @classmethod
    def make_with(cls, initial: Mapping[str, Any], *, flash: FlashBridge | None = None) -> Self:
        """Create a form pre-populated with *initial* values.

        Keys that match no field are ignored, so a whole record can be
        passed for an edit form. Flashed old input, when restored,
        takes precedence over *initial*.
        """
        form = cls(_token=_MAKE_TOKEN)
        for name, value in initial.items():
            fld = form._fields.get(name)
            if fld is not None:
                fld.apply(value)
        if flash is not None:
            form._restore_from(flash)
        return form

    @classmethod
    def flash_key(cls) -> str:
        """Identity under which this form's state is flashed."""
        return cls.form_key or f"{cls.__module__}.{cls.__qualname__}"

    def declare_fields(self) -> Sequence[Field]:
        """Return this form's fields in display order.

        Called once per instance, at construction. Must build new
        ``Field`` objects on every call.
        """
        msg = f"{type(self).__name__} must implement declare_fields()."
        raise ConfigurationError(msg)

    def _register(self, declared: Sequence[Field]) -> None:
        if declared is None or isinstance(declared, (str, bytes, Mapping)):
            msg = f"{type(self).__name__}.declare_fields() must return a sequence of Field objects."
            raise ConfigurationError(msg)
        for fld in declared:
            if not isinstance(fld, Field):
                msg = f"{type(self).__name__}.declare_fields() returned {fld!r}, not a Field."
                raise ConfigurationError(msg)
            if fld.name in self._fields:
                msg = f"Duplicate field name {fld.name!r} in {type(self).__name__}."
                raise ConfigurationError(msg)
            if fld._locked:
                msg = (
                    f"Field {fld.name!r} already belongs to a form. "
                    "declare_fields() must build new Field objects on every call."
                )
                raise ConfigurationError(msg)
            fld.lock()
            self._fields[fld.name] = fld

    def _restore_from(self, flash: FlashBridge) -> None:
        state = flash.restore(type(self))
        if state is not None:
            self.rehydrate(state)

    def rehydrate(self, state: FormState) -> None:
        """Adopt a previously flashed state for display.

        Old input and errors are copied onto the matching fields. A
        rehydrated form may still be validated once.
        """
        if self._validated:
            msg = f"{type(self).__name__} was already validated; cannot rehydrate."
            raise FormStateError(msg)
        for name, fld in self._fields.items():
            if name in state.old_input:
                fld.apply(state.old_input[name], state.errors.get(name, ()))
            elif name in state.errors:
                fld.errors = list(state.errors[name])
        self._state = state

    # -- Validation --

    def validate(self, source: Any) -> Self:
        """Validate submitted values and move to a terminal state.

        *source* is any request-like mapping with ``get(name)``:
        ``FormData``, a ``dict``, or parsed JSON. Validation failures
        never raise; read them with ``failed()`` and ``errors``.

        Raises:
            FormStateError: If this instance was already validated.
        """
        if self._validated:
            msg = (
                f"{type(self).__name__} was already validated. "
                "Create a new instance with make() for each submission."
            )
            raise FormStateError(msg)
        self._validated = True

        raw = {name: fld.extract(source) for name, fld in self._fields.items()}
        strip = self.config.strip_whitespace
        values = {
            name: fld.normalize(raw[name]) if strip else raw[name]
            for name, fld in self._fields.items()
        }

        for hook in self.hooks.before:
            message = hook(self, MappingProxyType(raw))
            if not message:
                continue
            if not isinstance(message, str):
                msg = (
                    f"Before-validation hook {hook!r} returned {message!r}; "
                    "expected None or a message."
                )
                raise ConfigurationError(msg)
            return self._fail({}, raw, message)

        errors: dict[str, list[str]] = {}
        for name, fld in self._fields.items():
            field_errors = check(values[name], fld.rules())
            if field_errors:
                errors[name] = field_errors
        if errors:
            return self._fail(errors, raw)

        resolved = {name: fld.resolve(values[name]) for name, fld in self._fields.items()}
        for hook in self.hooks.after:
            outcome = hook(self, resolved)
            if not outcome:
                continue
            if isinstance(outcome, str):
                return self._fail({}, raw, outcome)
            if not isinstance(outcome, Mapping):
                msg = (
                    f"After-validation hook {hook!r} returned {outcome!r}; "
                    "expected None, a message, or a {field: [messages]} mapping."
                )
                raise ConfigurationError(msg)
            cross = {name: list(msgs) for name, msgs in outcome.items() if msgs}
            if cross:
                return self._fail(cross, raw)

        for name, fld in self._fields.items():
            fld.apply(resolved.get(name))
        self._data = resolved
        self._state = FormState.succeeded(self.success_message)
        logger.debug("%s validated: successful", type(self).__name__)
        return self

    async def validate_request(self, request: Any) -> Self:
        """Read ``await request.form()`` and validate it."""
        return self.validate(await request.form())

    def _fail(
        self,
        errors: Mapping[str, list[str]],
        raw: Mapping[str, RawValue],
        message: str | None = None,
    ) -> Self:
        for name, fld in self._fields.items():
            fld.apply(raw.get(name, ""), errors.get(name, ()))
        old_input = {name: raw[name] for name, fld in self._fields.items() if fld.flash_old}
        self._state = FormState.failed(errors, old_input, message or self.error_message)
        logger.debug(
            "%s validated: failed (%s)",
            type(self).__name__,
            ", ".join(errors) or message or "no field errors",
        )
        return self

    # -- State queries --

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def status(self) -> FormStatus:
        return self._state.status

    @property
    def errors(self) -> dict[str, list[str]]:
        """Field name → messages from the latest validation or restore.

        A copy; the underlying state is read-only.
        """
        return {name: list(msgs) for name, msgs in self._state.errors.items()}

    @property
    def old_input(self) -> dict[str, Any]:
        old = self._state.old_input
        return {name: list(v) if isinstance(v, list) else v for name, v in old.items()}

    def pending(self) -> bool:
        return self._state.status is FormStatus.PENDING

    def failed(self) -> bool:
        return self._state.status is FormStatus.FAILED

    def successful(self) -> bool:
        return self._state.status is FormStatus.SUCCESSFUL

    def error(self, fallback: str | None = None) -> str:
        """The form-level error message, else *fallback*, else the default."""
        if self._state.error_message:
            return self._state.error_message
        if fallback is not None:
            return fallback
        return self.config.default_error_message

    def success(self, fallback: str | None = None) -> str:
        """The success message, else *fallback*, else the default."""
        if self._state.success_message:
            return self._state.success_message
        if fallback is not None:
            return fallback
        return self.config.default_success_message

    def data(self) -> dict[str, Any]:
        """Validated values by field name. Empty unless ``successful()``.

        A form restored as successful from a flash carries no data.
        Only this request's ``validate()`` produces it.
        """
        if not self.successful():
            return {}
        return dict(self._data)

    # -- Field access --

    def fields(self) -> list[Field]:
        """Registered fields in declaration order, with values and errors."""
        return list(self._fields.values())

    def field(self, name: str) -> Field:
        try:
            return self._fields[name]
        except KeyError:
            msg = f"{type(self).__name__} has no field {name!r}."
            raise KeyError(msg) from None

    def errors_for(self, name: str) -> list[str]:
        return list(self._state.errors.get(name, ()))

    def old(self, name: str, default: Any = "") -> Any:
        """Flashed old input for *name*, or *default*."""
        return self._state.old_input.get(name, default)

    def __getitem__(self, name: str) -> Field:
        return self.field(name)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.status.value} fields={list(self._fields)}>"

    # -- Serialization --

    def to_dict(self) -> dict[str, Any]:
        """Plain data for JSON responses and template context.

        Password values are left out of both ``fields`` and ``data``.
        """
        hidden = {name for name, fld in self._fields.items() if not fld.flash_old}
        return {
            "form": self.flash_key(),
            "status": self.status.value,
            "fields": [fld.to_dict() for fld in self._fields.values()],
            "state": self._state.to_dict(),
            "data": {name: value for name, value in self.data().items() if name not in hidden},
        }
