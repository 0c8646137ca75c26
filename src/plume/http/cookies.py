"""Cookie parsing and SetCookie serialization.

``parse_cookies`` feeds ``CookieSessions.load()``; ``SetCookie`` is what
``Response.with_cookie()`` and ``CookieSessions.save()`` attach.
"""

from __future__ import annotations

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Pairs without ``=`` are skipped and double-quoted values are
    unquoted. When a name repeats, the first value wins: browsers send
    the most specific path first.
    """
    cookies: dict[str, str] = {}
    if not header:
        return cookies
    for chunk in header.split(";"):
        name, sep, value = chunk.partition("=")
        name = name.strip()
        if not sep or not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = value
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @classmethod
    def expired(cls, name: str, path: str = "/", domain: str | None = None) -> SetCookie:
        """A directive telling the browser to drop cookie *name*."""
        return cls(name=name, value="", max_age=0, path=path, domain=domain)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        attributes: list[tuple[str, object]] = [
            ("Max-Age", self.max_age),
            ("Path", self.path or None),
            ("Domain", self.domain),
            ("Secure", self.secure),
            ("HttpOnly", self.httponly),
            ("SameSite", self.samesite or None),
        ]
        parts = [f"{self.name}={self.value}"]
        for key, value in attributes:
            if value is None or value is False:
                continue
            parts.append(key if value is True else f"{key}={value}")
        return "; ".join(parts)
