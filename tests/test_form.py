"""Tests for plume.form — construction guard, lifecycle, hooks, data."""

import pytest

from plume.config import FormsConfig
from plume.errors import ConfigurationError, FormStateError
from plume.fields import CheckboxField, EmailField, Field, NumberField, PasswordField, SelectField
from plume.form import Form, ValidationHooks
from plume.http.forms import FormData
from plume.state import FormStatus


class ProfileForm(Form):
    def declare_fields(self):
        return [
            Field.make("username").required().min_length(3),
            NumberField.make("age"),
            SelectField.make("plan", options=["free", "pro"]).required(),
            CheckboxField.make("newsletter"),
        ]


def _require_open(form, raw):
    return None if raw.get("username") != "blocked" else "Sign-ups are closed."


def _lowercase_username(form, values):
    values["username"] = values["username"].lower()


def _passwords_match(form, values):
    if values["password"] != values["confirm"]:
        return {"confirm": ["Passwords must match"]}
    return None


class SignupForm(Form, before=[_require_open], after=[_lowercase_username, _passwords_match]):
    error_message = "Could not sign you up."

    def declare_fields(self):
        return [
            Field.make("username").required(),
            PasswordField.make("password").required(),
            PasswordField.make("confirm").required(),
        ]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_direct_instantiation_rejected(self, contact_form) -> None:
        with pytest.raises(ConfigurationError, match=r"ContactForm\.make\(\)"):
            contact_form()

    def test_make_registers_fields_in_order(self, contact_form) -> None:
        form = contact_form.make()
        assert [f.name for f in form.fields()] == ["firstname", "email"]
        assert len(form) == 2
        assert "email" in form
        assert form["email"].label == "Email"

    def test_base_form_has_no_fields(self) -> None:
        with pytest.raises(ConfigurationError, match="must implement declare_fields"):
            Form.make()

    def test_duplicate_names_rejected(self) -> None:
        class Duplicated(Form):
            def declare_fields(self):
                return [Field.make("name"), Field.make("name")]

        with pytest.raises(ConfigurationError, match="Duplicate field name 'name'"):
            Duplicated.make()

    def test_non_field_rejected(self) -> None:
        class Broken(Form):
            def declare_fields(self):
                return [Field.make("name"), "email"]

        with pytest.raises(ConfigurationError, match="not a Field"):
            Broken.make()

    def test_mapping_rejected(self) -> None:
        class Broken(Form):
            def declare_fields(self):
                return {"name": Field.make("name")}

        with pytest.raises(ConfigurationError, match="sequence of Field"):
            Broken.make()

    def test_shared_field_objects_rejected(self) -> None:
        shared = Field.make("name")

        class Shared(Form):
            def declare_fields(self):
                return [shared]

        Shared.make()
        with pytest.raises(ConfigurationError, match="already belongs to a form"):
            Shared.make()

    def test_fields_locked_after_registration(self, contact_form) -> None:
        form = contact_form.make()
        with pytest.raises(ConfigurationError):
            form.field("firstname").max_length(3)

    def test_make_with_prefills_and_ignores_unknown(self) -> None:
        form = ProfileForm.make_with({"username": "ada", "age": 36, "id": 7})
        assert form.field("username").value == "ada"
        assert form.field("age").value == 36
        assert form.pending()

    def test_unknown_field_lookup(self, contact_form) -> None:
        with pytest.raises(KeyError, match="no field 'phone'"):
            contact_form.make().field("phone")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestPending:
    def test_fresh_form_is_neither_terminal(self, contact_form) -> None:
        form = contact_form.make()
        assert form.pending()
        assert not form.failed()
        assert not form.successful()
        assert form.status is FormStatus.PENDING

    def test_data_empty_before_validation(self, contact_form) -> None:
        assert contact_form.make().data() == {}


class TestValidate:
    def test_invalid_submission(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        assert form.failed()
        assert not form.successful()
        assert form.errors == {
            "firstname": ["This field is required"],
            "email": ["Must be a valid email address"],
        }
        assert form.old_input == invalid_submission
        assert form.data() == {}

    def test_valid_submission(self, contact_form, valid_submission) -> None:
        form = contact_form.make().validate(valid_submission)
        assert form.successful()
        assert not form.failed()
        assert form.data() == {"firstname": "Jane", "email": "jane@example.com"}
        assert form.errors == {}

    def test_validate_returns_form(self, contact_form, valid_submission) -> None:
        form = contact_form.make()
        assert form.validate(valid_submission) is form

    def test_all_fields_checked(self, contact_form) -> None:
        form = contact_form.make().validate({})
        assert set(form.errors) == {"firstname", "email"}

    def test_field_errors_and_values_attached(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        email = form.field("email")
        assert email.value == "not-an-email"
        assert email.errors == ["Must be a valid email address"]
        assert form.errors_for("email") == ["Must be a valid email address"]
        assert form.errors_for("missing") == []

    def test_whitespace_stripped(self, contact_form) -> None:
        form = contact_form.make().validate({"firstname": "  Jane ", "email": " jane@example.com"})
        assert form.data()["firstname"] == "Jane"

    def test_whitespace_kept_when_configured(self) -> None:
        class RawForm(Form):
            config = FormsConfig(strip_whitespace=False)

            def declare_fields(self):
                return [Field.make("note")]

        assert RawForm.make().validate({"note": " x "}).data() == {"note": " x "}

    def test_resolved_types(self) -> None:
        form = ProfileForm.make().validate(
            {"username": "ada", "age": "36", "plan": "pro", "newsletter": "on"}
        )
        assert form.successful()
        assert form.data() == {"username": "ada", "age": 36, "plan": "pro", "newsletter": True}

    def test_optional_fields_resolve_empty(self) -> None:
        form = ProfileForm.make().validate({"username": "ada", "plan": "free"})
        assert form.data() == {"username": "ada", "age": None, "plan": "free", "newsletter": False}

    def test_variant_rules_enforced(self) -> None:
        form = ProfileForm.make().validate({"username": "ad", "age": "old", "plan": "gold"})
        assert form.errors == {
            "username": ["Must be at least 3 characters"],
            "age": ["Must be a number"],
            "plan": ["Must be one of: free, pro"],
        }

    @pytest.mark.parametrize("age", ["nan", "inf", "1e400"])
    def test_non_finite_numbers_rejected(self, age: str) -> None:
        form = ProfileForm.make().validate({"username": "ada", "age": age, "plan": "free"})
        assert form.failed()
        assert form.errors == {"age": ["Must be a number"]}

    def test_state_views_are_copies(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        form.errors["email"].append("tampered")
        form.errors.pop("firstname")
        form.old_input["email"] = "tampered"
        assert form.errors_for("email") == ["Must be a valid email address"]
        assert "firstname" in form.errors
        assert form.old("email") == "not-an-email"
        assert form.state.errors["email"] == ["Must be a valid email address"]

    def test_accepts_form_data(self, contact_form) -> None:
        data = FormData({"firstname": ["Jane"], "email": ["jane@example.com"]})
        assert contact_form.make().validate(data).successful()

    def test_second_validate_rejected(self, contact_form, valid_submission) -> None:
        form = contact_form.make().validate(valid_submission)
        with pytest.raises(FormStateError, match="already validated"):
            form.validate(valid_submission)
        assert form.successful()

    async def test_validate_request(self, contact_form, valid_submission) -> None:
        class FakeRequest:
            async def form(self) -> FormData:
                return FormData.from_mapping(valid_submission)

        form = await contact_form.make().validate_request(FakeRequest())
        assert form.successful()


class TestMessages:
    def test_success_message_from_class(self, contact_form, valid_submission) -> None:
        form = contact_form.make().validate(valid_submission)
        assert form.success() == "Thanks, we'll be in touch."

    def test_error_falls_back(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        assert form.error("Nope") == "Nope"
        assert form.error() == "Please correct the errors below."

    def test_success_default(self) -> None:
        form = ProfileForm.make().validate({"username": "ada", "plan": "pro"})
        assert form.success() == "Form submitted successfully."

    def test_class_error_message(self) -> None:
        form = SignupForm.make().validate({})
        assert form.error("ignored") == "Could not sign you up."


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    def test_hooks_collected_at_definition(self) -> None:
        assert SignupForm.hooks.before == (_require_open,)
        assert SignupForm.hooks.after == (_lowercase_username, _passwords_match)
        assert Form.hooks == ValidationHooks()

    def test_before_hook_short_circuits(self) -> None:
        form = SignupForm.make().validate({"username": "blocked"})
        assert form.failed()
        assert form.error() == "Sign-ups are closed."
        assert form.errors == {}
        assert form.old_input == {"username": "blocked"}

    def test_after_hook_transforms(self) -> None:
        form = SignupForm.make().validate({"username": "ADA", "password": "pw", "confirm": "pw"})
        assert form.successful()
        assert form.data()["username"] == "ada"

    def test_after_hook_cross_field_failure(self) -> None:
        form = SignupForm.make().validate({"username": "ada", "password": "a", "confirm": "b"})
        assert form.failed()
        assert form.errors == {"confirm": ["Passwords must match"]}
        assert form.field("confirm").errors == ["Passwords must match"]

    def test_passwords_not_flashed(self) -> None:
        form = SignupForm.make().validate({"username": "ada", "password": "a", "confirm": "b"})
        assert form.old_input == {"username": "ada"}

    def test_after_hooks_skipped_on_field_errors(self) -> None:
        calls = []

        class Tracked(Form, after=[lambda form, values: calls.append(values)]):
            def declare_fields(self):
                return [Field.make("name").required()]

        Tracked.make().validate({})
        assert calls == []

    def test_after_hook_message(self) -> None:
        class Closed(Form, after=[lambda form, values: "Try again later."]):
            def declare_fields(self):
                return [Field.make("name")]

        form = Closed.make().validate({"name": "x"})
        assert form.failed()
        assert form.error() == "Try again later."

    @pytest.mark.parametrize("outcome", ["", {}, {"name": []}, False])
    def test_falsy_after_hook_result_passes(self, outcome) -> None:
        class Lenient(Form, after=[lambda form, values: outcome]):
            def declare_fields(self):
                return [Field.make("name")]

        form = Lenient.make().validate({"name": "x"})
        assert form.successful()
        assert form.data() == {"name": "x"}

    def test_empty_before_hook_message_passes(self) -> None:
        class Open(Form, before=[lambda form, raw: ""]):
            def declare_fields(self):
                return [Field.make("name")]

        assert Open.make().validate({"name": "x"}).successful()

    @pytest.mark.parametrize("outcome", [True, 1, ["Passwords must match"]])
    def test_unexpected_after_hook_result_rejected(self, outcome) -> None:
        class Confused(Form, after=[lambda form, values: outcome]):
            def declare_fields(self):
                return [Field.make("name")]

        with pytest.raises(ConfigurationError, match="After-validation hook"):
            Confused.make().validate({"name": "x"})

    def test_unexpected_before_hook_result_rejected(self) -> None:
        class Confused(Form, before=[lambda form, raw: True]):
            def declare_fields(self):
                return [Field.make("name")]

        with pytest.raises(ConfigurationError, match="Before-validation hook"):
            Confused.make().validate({"name": "x"})

    def test_subclass_inherits_hooks(self) -> None:
        def extra(form, values):
            return None

        class Extended(SignupForm, after=[extra]):
            pass

        assert Extended.hooks.after == (_lowercase_username, _passwords_match, extra)

    def test_non_callable_hook_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="callable"):

            class Bad(Form, before=["nope"]):  # type: ignore[list-item]
                pass


class TestSerialization:
    def test_to_dict(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        data = form.to_dict()
        assert data["status"] == "failed"
        assert data["form"] == contact_form.flash_key()
        assert [f["name"] for f in data["fields"]] == ["firstname", "email"]
        assert data["state"]["errors"]["firstname"] == ["This field is required"]
        assert data["data"] == {}

    def test_password_values_absent_from_to_dict(self) -> None:
        form = SignupForm.make().validate({"username": "ada", "password": "a", "confirm": "b"})
        fields = {f["name"]: f for f in form.to_dict()["fields"]}
        assert fields["username"]["value"] == "ada"
        assert fields["password"]["value"] is None
        assert fields["confirm"]["value"] is None
        assert fields["confirm"]["errors"] == ["Passwords must match"]

    def test_password_values_absent_after_success(self) -> None:
        form = SignupForm.make().validate({"username": "ada", "password": "pw", "confirm": "pw"})
        assert form.successful()
        assert [f["value"] for f in form.to_dict()["fields"]] == ["ada", None, None]
        assert form.to_dict()["data"] == {"username": "ada"}
        assert form.data()["password"] == "pw"

    def test_flash_key_override(self) -> None:
        class Keyed(Form):
            form_key = "contact"

            def declare_fields(self):
                return []

        assert Keyed.flash_key() == "contact"

    def test_old_accessor(self, contact_form, invalid_submission) -> None:
        form = contact_form.make().validate(invalid_submission)
        assert form.old("email") == "not-an-email"
        assert form.old("phone", "n/a") == "n/a"
