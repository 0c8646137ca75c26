"""Shared form declarations for the plume test suite."""

import pytest

from plume.fields import EmailField, Field
from plume.form import Form


class ContactForm(Form):
    success_message = "Thanks, we'll be in touch."

    def declare_fields(self):
        return [
            Field.make("firstname", "First name").required(),
            EmailField.make("email", "Email").required(),
        ]


@pytest.fixture
def contact_form() -> type[ContactForm]:
    return ContactForm


@pytest.fixture
def invalid_submission() -> dict[str, str]:
    return {"firstname": "", "email": "not-an-email"}


@pytest.fixture
def valid_submission() -> dict[str, str]:
    return {"firstname": "Jane", "email": "jane@example.com"}
