"""Plume exception hierarchy.

Only programmer mistakes raise. Invalid user input never does; it is
captured into ``FormState`` and read back through ``Form.failed()``.
"""


class PlumeError(Exception):
    """Base for all plume-specific errors."""


class ConfigurationError(PlumeError):
    """Raised when a form, field, or rule is declared incorrectly.

    Duplicate field names, invalid identifiers, unknown rule kinds, and
    direct ``Form()`` construction all land here, at declaration or
    construction time.
    """


class FormStateError(PlumeError):
    """Raised when a form is driven through an invalid lifecycle step.

    For example, calling ``validate()`` twice on the same instance.
    """
