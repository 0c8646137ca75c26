"""Form state — the outcome snapshot of the most recent validation.

``FormState`` is frozen. ``Form`` replaces it on each transition; views
only read it. ``to_dict()``/``from_dict()`` convert to plain,
JSON-compatible data so the snapshot can cross a redirect in a session.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from plume.errors import ConfigurationError


class FormStatus(StrEnum):
    """Lifecycle status. Moves one way: pending → successful | failed."""

    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not FormStatus.PENDING


@dataclass(frozen=True, slots=True)
class FormState:
    """Status, per-field errors, old input, and messages."""

    status: FormStatus = FormStatus.PENDING
    errors: dict[str, list[str]] = field(default_factory=dict)
    old_input: dict[str, Any] = field(default_factory=dict)
    success_message: str | None = None
    error_message: str | None = None

    @classmethod
    def succeeded(cls, message: str | None = None) -> FormState:
        return cls(status=FormStatus.SUCCESSFUL, success_message=message)

    @classmethod
    def failed(
        cls,
        errors: Mapping[str, list[str]],
        old_input: Mapping[str, Any],
        message: str | None = None,
    ) -> FormState:
        return cls(
            status=FormStatus.FAILED,
            errors={name: list(msgs) for name, msgs in errors.items()},
            old_input=dict(old_input),
            error_message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain key/value structure."""
        return {
            "status": self.status.value,
            "errors": {name: list(msgs) for name, msgs in self.errors.items()},
            "old_input": dict(self.old_input),
            "success_message": self.success_message,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FormState:
        """Rebuild a state from ``to_dict()`` output.

        Raises ``ConfigurationError`` if *data* is not a valid snapshot.
        """
        try:
            status = FormStatus(data["status"])
            errors = {str(k): [str(m) for m in v] for k, v in dict(data.get("errors") or {}).items()}
            old_input = dict(data.get("old_input") or {})
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            msg = f"Invalid form state snapshot: {exc}"
            raise ConfigurationError(msg) from exc
        return cls(
            status=status,
            errors=errors,
            old_input=old_input,
            success_message=data.get("success_message"),
            error_message=data.get("error_message"),
        )
