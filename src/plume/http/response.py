"""Responses with a chainable .with_*() transformation API.

Each transformation returns a new response. Immutable by convention,
built incrementally by design. ``with_form()`` is the redirect
integration point: it flashes a validated form's state so the next
request can restore it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Self

from plume.http.cookies import SetCookie

if TYPE_CHECKING:
    from plume.flash import FlashBridge
    from plume.form import Form


class _Chainable:
    """Shared ``with_*`` transformations for Response and Redirect."""

    __slots__ = ()

    headers: tuple[tuple[str, str], ...]
    cookies: tuple[SetCookie, ...]

    def with_status(self, status: int) -> Self:
        """Return a copy with a different status code."""
        return replace(self, status=status)  # type: ignore[type-var]

    def with_header(self, name: str, value: str) -> Self:
        """Return a copy with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))  # type: ignore[type-var]

    def with_headers(self, headers: Mapping[str, str]) -> Self:
        """Return a copy with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))  # type: ignore[type-var]

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Self:
        """Return a copy with an additional Set-Cookie."""
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        return replace(self, cookies=(*self.cookies, cookie))  # type: ignore[type-var]

    def without_cookie(self, name: str, path: str = "/", domain: str | None = None) -> Self:
        """Return a copy that deletes a cookie (Max-Age=0)."""
        cookie = SetCookie.expired(name, path, domain)
        return replace(self, cookies=(*self.cookies, cookie))  # type: ignore[type-var]

    def with_form(self, form: Form, flash: FlashBridge) -> Self:
        """Flash *form*'s outcome for the next request.

        No-op for a pending form. The session holding the snapshot
        still has to be saved (``CookieSessions.save()``).
        """
        return flash.attach(self, form)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Response(_Chainable):
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status, headers, cookies, and flashed form state.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class Redirect(_Chainable):
    """A redirect response, the usual carrier for a flashed form."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()
