"""Template filters for rendering plume fields.

Registered on every environment a ``FieldRenderer`` uses, and on an
application's own kida environment by ``install()``.
"""

import html
from collections.abc import Mapping
from typing import Any

from kida.template import Markup


def attr(value: Any, name: str) -> str | Markup:
    """Output an HTML attribute when value is truthy, else empty string.

    Example:
        <input name="q"{{ placeholder | attr("placeholder") }}>
        → <input name="q" placeholder="Search">   (when placeholder is "Search")
        → <input name="q">                        (when placeholder is None or "")

    """
    if not value:
        return ""
    return Markup(f' {name}="{html.escape(str(value))}"')


def html_attrs(attrs: Mapping[str, Any] | None) -> Markup:
    """Render a mapping as HTML attributes, each with a leading space.

    ``True`` renders a bare boolean attribute, ``False``/``None`` are
    skipped, and underscores in names become hyphens::

        {{ {"data_role": "x", "required": True} | html_attrs }}
        → ' data-role="x" required'
    """
    if not attrs:
        return Markup("")
    parts: list[str] = []
    for name, value in attrs.items():
        if value is None or value is False:
            continue
        key = html.escape(str(name).replace("_", "-"))
        if value is True:
            parts.append(f" {key}")
        else:
            parts.append(f' {key}="{html.escape(str(value))}"')
    return Markup("".join(parts))


def field_errors(errors: Any, field_name: str) -> list[str]:
    """Extract validation errors for a single form field.

    Safely navigates a ``{field: [messages]}`` dict, returning an
    empty list when *errors* is None, missing, or the field has no
    errors.

    Example:
        {% for msg in form.errors | field_errors("email") %}
          <span class="error">{{ msg }}</span>
        {% end %}

    """
    if errors is None:
        return []
    if isinstance(errors, dict):
        val = errors.get(field_name, [])
        return list(val) if val else []
    return []


BUILTIN_FILTERS: dict[str, Any] = {
    "attr": attr,
    "field_errors": field_errors,
    "html_attrs": html_attrs,
}
