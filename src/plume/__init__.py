"""Plume — declarative forms with validation and flash state.

Declare fields, validate a submission, carry the outcome across a
redirect, and render it back with kida.

Basic usage::

    from plume import EmailField, Field, Form

    class ContactForm(Form):
        def declare_fields(self):
            return [
                Field.make("firstname").required(),
                EmailField.make("email").required(),
            ]

    form = ContactForm.make().validate({"firstname": "Jane", "email": "jane@example.com"})
    form.successful()  # True
    form.data()        # {"firstname": "Jane", "email": "jane@example.com"}
"""

from importlib import import_module

__version__ = "0.1.0"
__all__ = [
    "CheckboxField",
    "ConfigurationError",
    "CookieSessions",
    "EmailField",
    "Field",
    "FieldRenderer",
    "FlashBridge",
    "Form",
    "FormData",
    "FormState",
    "FormStateError",
    "FormStatus",
    "FormsConfig",
    "HiddenField",
    "NumberField",
    "PasswordField",
    "PlumeError",
    "Redirect",
    "Response",
    "Rule",
    "SelectField",
    "SessionConfig",
    "SessionStore",
    "TextareaField",
    "ValidationHooks",
    "make_field",
    "register_field_type",
    "register_rule",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "CheckboxField": "plume.fields",
    "ConfigurationError": "plume.errors",
    "CookieSessions": "plume.sessions",
    "EmailField": "plume.fields",
    "Field": "plume.fields",
    "FieldRenderer": "plume.templating.integration",
    "FlashBridge": "plume.flash",
    "Form": "plume.form",
    "FormData": "plume.http.forms",
    "FormState": "plume.state",
    "FormStateError": "plume.errors",
    "FormStatus": "plume.state",
    "FormsConfig": "plume.config",
    "HiddenField": "plume.fields",
    "NumberField": "plume.fields",
    "PasswordField": "plume.fields",
    "PlumeError": "plume.errors",
    "Redirect": "plume.http.response",
    "Response": "plume.http.response",
    "Rule": "plume.validation.rules",
    "SelectField": "plume.fields",
    "SessionConfig": "plume.sessions",
    "SessionStore": "plume.flash",
    "TextareaField": "plume.fields",
    "ValidationHooks": "plume.form",
    "make_field": "plume.fields",
    "register_field_type": "plume.fields",
    "register_rule": "plume.validation.rules",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import plume`` fast: kida and itsdangerous load only when
    the renderer or sessions are used.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)
