"""Signed cookie sessions — the default store behind ``FlashBridge``.

Session data is serialized as JSON and signed using ``itsdangerous``.
``load()`` turns an incoming cookie into a plain dict; ``save()`` signs
the dict back onto a response. The dict itself is the ``SessionStore``
handed to ``FlashBridge``::

    sessions = CookieSessions(SessionConfig(secret_key="s3cr3t"))

    session = sessions.load(cookie_header)
    flash = FlashBridge(session)
    ...
    return sessions.save(response, session)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from time import time
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from plume.errors import ConfigurationError
from plume.http.cookies import parse_cookies
from plume.http.response import Redirect, Response

logger = logging.getLogger("plume.sessions")


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session configuration.

    ``secret_key`` is required. Sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "plume_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    idle_timeout_seconds: int | None = None
    absolute_timeout_seconds: int | None = None
    created_at_key: str = "__created_at"
    last_seen_at_key: str = "__last_seen_at"


class CookieSessions:
    """Loads and saves signed-cookie session dicts.

    Tampered, expired, or timed-out cookies load as an empty session.
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key)

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, cookies: Mapping[str, str] | str | None) -> dict[str, Any]:
        """Deserialize and verify the session cookie.

        *cookies* is either a parsed cookie mapping or a raw ``Cookie``
        header value.
        """
        if isinstance(cookies, str):
            cookies = parse_cookies(cookies)
        cookie_value = (cookies or {}).get(self._config.cookie_name)
        if not cookie_value:
            return self._touch({})

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            logger.debug("Ignoring session cookie with a bad or expired signature")
            return self._touch({})

        if not isinstance(data, dict) or self._timed_out(data):
            return self._touch({})
        return self._touch(data)

    def _timed_out(self, data: dict[str, Any]) -> bool:
        cfg = self._config
        if cfg.idle_timeout_seconds is None and cfg.absolute_timeout_seconds is None:
            return False
        now = time()
        try:
            created_ts = float(data.get(cfg.created_at_key, now))
            last_seen_ts = float(data.get(cfg.last_seen_at_key, now))
        except (TypeError, ValueError):
            return True

        if cfg.absolute_timeout_seconds is not None and now - created_ts > cfg.absolute_timeout_seconds:
            logger.debug("Session exceeded absolute timeout")
            return True
        if cfg.idle_timeout_seconds is not None and now - last_seen_ts > cfg.idle_timeout_seconds:
            logger.debug("Session exceeded idle timeout")
            return True
        return False

    def _touch(self, session: dict[str, Any]) -> dict[str, Any]:
        cfg = self._config
        if cfg.idle_timeout_seconds is not None or cfg.absolute_timeout_seconds is not None:
            now = time()
            session.setdefault(cfg.created_at_key, now)
            session[cfg.last_seen_at_key] = now
        return session

    def save[R: (Response, Redirect)](self, response: R, session: Mapping[str, Any]) -> R:
        """Serialize *session* and set the cookie on *response*."""
        cfg = self._config
        value = self._serializer.dumps(dict(session))
        return response.with_cookie(
            name=cfg.cookie_name,
            value=value,
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )
