"""Form validation — composable rules, clean results.

Two entry points share the same rules:

``check(value, rules)`` — the adapter ``Form.validate()`` uses per field::

    from plume.validation import Rule, check

    check("", [Rule("required"), Rule("email")])
    # ["This field is required"]

``validate(data, rules)`` — validate a whole mapping at once::

    from plume.validation import validate, required, max_length, email

    result = validate(form_data, {
        "title": [required, max_length(200)],
        "email": [required, email],
    })
    if not result:
        ...  # result.errors == {"email": ["Must be a valid email address"]}
"""

from collections.abc import Mapping, Sequence

from plume.validation.adapter import check, is_blank
from plume.validation.result import ValidationResult
from plume.validation.rules import (
    Rule,
    Validator,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    register_rule,
    required,
    rule_kinds,
    url,
)

__all__ = [
    "Rule",
    "ValidationResult",
    "Validator",
    "check",
    "email",
    "integer",
    "is_blank",
    "matches",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "register_rule",
    "required",
    "rule_kinds",
    "url",
    "validate",
]


def validate(
    data: Mapping[str, str] | dict[str, str],
    rules: Mapping[str, Sequence[Rule | Validator]],
) -> ValidationResult:
    """Validate data against a set of rules.

    Args:
        data: Any mapping of field names to string values,
            ``FormData`` or a plain ``dict``.
        rules: A dict mapping field names to lists of ``Rule`` records
            or bare validator functions. Each validator returns an
            error message string on failure, or ``None`` on success.

    Returns:
        A ``ValidationResult`` with ``.data`` (values that passed) and
        ``.errors`` (field → list of error messages).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, str] = {}

    for field_name, field_rules in rules.items():
        value = data.get(field_name) or ""

        field_errors = check(value, field_rules)
        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)
