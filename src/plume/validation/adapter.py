"""Validator adapter — runs a field's declared rules against one value.

Pure with respect to form state: takes a value and an ordered rule
sequence, returns the ordered error messages. ``Form.validate()`` calls
``check()`` once per field.
"""

from collections.abc import Iterable

from plume.validation.rules import Rule, Validator, required


def is_blank(value: object) -> bool:
    """True for ``None``, empty strings, whitespace, and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


def check(value: str | list[str] | None, rules: Iterable[Rule | Validator]) -> list[str]:
    """Evaluate *rules* against *value* and return error messages.

    Messages come back in rule order. A failing ``required`` stops the
    chain; there is no point running ``max_length`` on an empty
    string. Blank values skip every non-implicit rule, so optional
    fields only get format checks when something was entered.

    Multi-valued submissions (``list[str]``) are checked item by item;
    each distinct message is reported once.
    """
    blank = is_blank(value)
    errors: list[str] = []

    for rule in rules:
        implicit = rule.implicit if isinstance(rule, Rule) else rule is required
        if blank and not implicit:
            continue

        for message in _run(rule, value):
            if message not in errors:
                errors.append(message)
                if implicit and blank:
                    return errors

    return errors


def _run(rule: Rule | Validator, value: str | list[str] | None) -> list[str]:
    if value is None:
        value = ""
    if isinstance(value, (list, tuple)):
        if not value:
            error = rule("")
            return [error] if error is not None else []
        found = (rule(item) for item in value)
        return [error for error in found if error is not None]
    error = rule(value)
    return [error] if error is not None else []
