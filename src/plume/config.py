"""Forms configuration.

FormsConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FormsConfig:
    """Form behaviour and rendering configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        class ContactForm(Form):
            config = FormsConfig(default_error_message="Whoops.")
    """

    # Flash
    flash_key_prefix: str = "_plume.form:"

    # Messages
    default_success_message: str = "Form submitted successfully."
    default_error_message: str = "Please correct the errors below."

    # Input handling
    strip_whitespace: bool = True

    # Rendering
    field_class: str = "field"
    invalid_class: str = "field--invalid"
    error_class: str = "field-error"
    autoescape: bool = True


DEFAULT_CONFIG = FormsConfig()
