"""Kida rendering for fields and form feedback.

A ``FieldRenderer`` holds one template per field type and renders any
field from its structured data alone, with no per-type special-casing in
callers. Override a type's markup with ``register()``::

    renderer = FieldRenderer()
    renderer.register("checkbox", '<label><input type="checkbox" name="{{ name }}"{{ checked }}> {{ label }}</label>')

Bind the renderer into an application's kida environment with
``install()`` and render from templates::

    {{ form_feedback(form) }}
    {% for field in form.fields() %}{{ form_field(field) }}{% end %}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kida import Environment
from kida.template import Markup

from plume.config import DEFAULT_CONFIG, FormsConfig
from plume.fields import CheckboxField, Field, SelectField
from plume.templating.filters import BUILTIN_FILTERS, html_attrs

if TYPE_CHECKING:
    from plume.form import Form

INPUT_TEMPLATE = """\
<div class="{{ css_class }}">
{% if label %}<label for="{{ field_id }}">{{ label }}</label>{% end %}
<input type="{{ input_type }}" name="{{ name }}" id="{{ field_id }}" value="{{ value }}"{{ attrs }}>
{% for msg in errors %}<p class="{{ error_class }}">{{ msg }}</p>{% end %}
</div>"""

TEXTAREA_TEMPLATE = """\
<div class="{{ css_class }}">
{% if label %}<label for="{{ field_id }}">{{ label }}</label>{% end %}
<textarea name="{{ name }}" id="{{ field_id }}"{{ attrs }}>{{ value }}</textarea>
{% for msg in errors %}<p class="{{ error_class }}">{{ msg }}</p>{% end %}
</div>"""

SELECT_TEMPLATE = """\
<div class="{{ css_class }}">
{% if label %}<label for="{{ field_id }}">{{ label }}</label>{% end %}
<select name="{{ name }}" id="{{ field_id }}"{{ attrs }}>
{% for opt in options %}<option value="{{ opt.value }}"{{ opt.selected }}>{{ opt.label }}</option>{% end %}
</select>
{% for msg in errors %}<p class="{{ error_class }}">{{ msg }}</p>{% end %}
</div>"""

CHECKBOX_TEMPLATE = """\
<div class="{{ css_class }}">
<input type="checkbox" name="{{ name }}" id="{{ field_id }}" value="1"{{ checked }}{{ attrs }}>
{% if label %}<label for="{{ field_id }}">{{ label }}</label>{% end %}
{% for msg in errors %}<p class="{{ error_class }}">{{ msg }}</p>{% end %}
</div>"""

HIDDEN_TEMPLATE = """\
<input type="hidden" name="{{ name }}" id="{{ field_id }}" value="{{ value }}"{{ attrs }}>"""

FEEDBACK_TEMPLATE = """\
{% if message %}<div class="alert alert--{{ variant }}" role="{{ role }}">{{ message }}</div>{% end %}"""

# Template key for the success/error banner
FEEDBACK = "__feedback__"

DEFAULT_TEMPLATES: dict[str, str] = {
    "text": INPUT_TEMPLATE,
    "email": INPUT_TEMPLATE,
    "password": INPUT_TEMPLATE,
    "number": INPUT_TEMPLATE,
    "textarea": TEXTAREA_TEMPLATE,
    "select": SELECT_TEMPLATE,
    "checkbox": CHECKBOX_TEMPLATE,
    "hidden": HIDDEN_TEMPLATE,
    FEEDBACK: FEEDBACK_TEMPLATE,
}


@dataclass(frozen=True, slots=True)
class _Option:
    value: str
    label: str
    selected: Markup


class FieldRenderer:
    """Renders fields and form feedback through a kida Environment.

    Field types without a registered template fall back to the plain
    ``<input>`` template, using the variant's ``input_type``.
    """

    __slots__ = ("_compiled", "_config", "_env", "_sources")

    def __init__(
        self,
        config: FormsConfig | None = None,
        *,
        env: Environment | None = None,
        templates: dict[str, str] | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        if env is None:
            env = Environment(autoescape=self._config.autoescape)
        env.update_filters(BUILTIN_FILTERS)
        self._env = env
        self._sources: dict[str, str] = {**DEFAULT_TEMPLATES, **(templates or {})}
        self._compiled: dict[str, Any] = {}

    @property
    def env(self) -> Environment:
        return self._env

    def register(self, kind: str, source: str) -> None:
        """Use *source* as the template for fields of type *kind*.

        Register under ``FEEDBACK`` to replace the success/error banner.
        """
        self._sources[kind] = source
        self._compiled.pop(kind, None)

    def _template(self, kind: str) -> Any:
        template = self._compiled.get(kind)
        if template is None:
            source = self._sources.get(kind, INPUT_TEMPLATE)
            template = self._env.from_string(source)
            self._compiled[kind] = template
        return template

    def field_context(self, field: Field) -> dict[str, Any]:
        """Template context for *field*, built from ``Field.to_dict()``."""
        cfg = self._config
        data = field.to_dict()
        attrs = dict(data["metadata"])
        attrs.setdefault("required", data["required"])
        if data["errors"]:
            attrs.setdefault("aria_invalid", "true")
        css_class = cfg.field_class
        if data["errors"]:
            css_class = f"{css_class} {cfg.invalid_class}"

        context: dict[str, Any] = {
            **data,
            "field_id": attrs.pop("id", data["name"]),
            "value": field.display_value,
            "attrs": html_attrs(attrs),
            "css_class": css_class,
            "error_class": cfg.error_class,
            "checked": Markup(""),
            "options": [],
        }
        if isinstance(field, CheckboxField) and field.checked:
            context["checked"] = Markup(" checked")
        if isinstance(field, SelectField):
            current = field.display_value
            context["options"] = [
                _Option(value, label, Markup(" selected") if value == current else Markup(""))
                for value, label in field.choices
            ]
        return context

    def render_field(self, field: Field) -> Markup:
        """Render one field's markup: label, control, and errors."""
        template = self._template(field.kind)
        return Markup(template.render(self.field_context(field)))

    def render_fields(self, form: Form) -> Markup:
        """Render every field of *form* in declaration order."""
        return Markup("\n".join(self.render_field(fld) for fld in form.fields()))

    def render_feedback(self, form: Form) -> Markup:
        """Render the success or error banner. Empty while pending."""
        if form.failed():
            context = {"message": form.error(), "variant": "error", "role": "alert"}
        elif form.successful():
            context = {"message": form.success(), "variant": "success", "role": "status"}
        else:
            context = {"message": "", "variant": "", "role": ""}
        template = self._template(FEEDBACK)
        return Markup(template.render(context))


def install(env: Environment, renderer: FieldRenderer | None = None) -> FieldRenderer:
    """Expose plume rendering on an application's kida environment.

    Registers the ``form_field``, ``form_fields`` and ``form_feedback``
    globals plus the plume filters. Returns the renderer in use.
    """
    renderer = renderer or FieldRenderer()
    env.update_filters(BUILTIN_FILTERS)
    env.add_global("form_field", renderer.render_field)
    env.add_global("form_fields", renderer.render_fields)
    env.add_global("form_feedback", renderer.render_feedback)
    return renderer
