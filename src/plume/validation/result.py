"""Validation result — immutable container for validated data or errors."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating a mapping against a set of rules.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validate(form_data, rules)
        if not result:
            return render(errors=result.errors)

    ``data`` contains the values of every field that passed. Fields
    with errors are left out.

    ``errors`` maps field names to lists of error messages, in rule
    declaration order::

        {"title": ["This field is required"],
         "email": ["Must be a valid email address"]}
    """

    data: dict[str, str]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        """Falsy when invalid, so ``if not result:`` pattern."""
        return self.is_valid
