"""Tests for plume.sessions — signed cookie session load/save."""

from time import time

import pytest

from plume.errors import ConfigurationError
from plume.http.response import Redirect, Response
from plume.sessions import CookieSessions, SessionConfig


def _cookie_value(response: Response | Redirect) -> str:
    return response.cookies[-1].value


class TestSessionConfig:
    def test_default_config(self) -> None:
        config = SessionConfig(secret_key="secret")
        assert config.cookie_name == "plume_session"
        assert config.max_age == 86400
        assert config.httponly is True
        assert config.samesite == "lax"

    def test_empty_secret_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret_key must not be empty"):
            CookieSessions(SessionConfig(secret_key=""))


class TestLoadSave:
    def test_round_trip(self) -> None:
        sessions = CookieSessions(SessionConfig(secret_key="test-secret"))
        response = sessions.save(Response("ok"), {"name": "alice"})
        assert sessions.load({"plume_session": _cookie_value(response)}) == {"name": "alice"}

    def test_load_from_cookie_header(self) -> None:
        sessions = CookieSessions(SessionConfig(secret_key="test-secret"))
        value = _cookie_value(sessions.save(Response(), {"n": 1}))
        assert sessions.load(f"other=1; plume_session={value}") == {"n": 1}

    def test_missing_cookie_is_empty(self) -> None:
        sessions = CookieSessions(SessionConfig(secret_key="test-secret"))
        assert sessions.load({}) == {}
        assert sessions.load(None) == {}
        assert sessions.load("") == {}

    def test_tampered_cookie_is_empty(self) -> None:
        sessions = CookieSessions(SessionConfig(secret_key="test-secret"))
        value = _cookie_value(sessions.save(Response(), {"role": "user"}))
        assert sessions.load({"plume_session": value[:-2] + "xx"}) == {}

    def test_other_secret_rejected(self) -> None:
        ours = CookieSessions(SessionConfig(secret_key="ours"))
        theirs = CookieSessions(SessionConfig(secret_key="theirs"))
        value = _cookie_value(theirs.save(Response(), {"role": "admin"}))
        assert ours.load({"plume_session": value}) == {}

    def test_cookie_attributes(self) -> None:
        config = SessionConfig(secret_key="s", cookie_name="sid", secure=True, max_age=60)
        cookie = CookieSessions(config).save(Redirect("/"), {}).cookies[-1]
        assert cookie.name == "sid"
        header = cookie.to_header_value()
        assert "Max-Age=60" in header
        assert "Secure" in header
        assert "HttpOnly" in header


class TestTimeouts:
    def test_absolute_timeout(self) -> None:
        config = SessionConfig(secret_key="s", absolute_timeout_seconds=10)
        sessions = CookieSessions(config)
        stale = {"user": "ada", config.created_at_key: time() - 100, config.last_seen_at_key: time()}
        loaded = sessions.load({"plume_session": _cookie_value(sessions.save(Response(), stale))})
        assert "user" not in loaded

    def test_idle_timeout(self) -> None:
        config = SessionConfig(secret_key="s", idle_timeout_seconds=10)
        sessions = CookieSessions(config)
        idle = {"user": "ada", config.created_at_key: time(), config.last_seen_at_key: time() - 100}
        loaded = sessions.load({"plume_session": _cookie_value(sessions.save(Response(), idle))})
        assert "user" not in loaded

    def test_fresh_session_is_stamped(self) -> None:
        config = SessionConfig(secret_key="s", idle_timeout_seconds=10)
        loaded = CookieSessions(config).load(None)
        assert config.created_at_key in loaded
        assert config.last_seen_at_key in loaded

    def test_active_session_kept(self) -> None:
        config = SessionConfig(secret_key="s", idle_timeout_seconds=10)
        sessions = CookieSessions(config)
        active = {"user": "ada", config.created_at_key: time(), config.last_seen_at_key: time()}
        loaded = sessions.load({"plume_session": _cookie_value(sessions.save(Response(), active))})
        assert loaded["user"] == "ada"
