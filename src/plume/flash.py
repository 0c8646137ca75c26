"""Flash bridge — carries a form's outcome across a redirect.

The bridge is handed a session store explicitly; it never reaches for
ambient global state. Any ``dict`` works, including the session dict
returned by ``CookieSessions.load()``::

    session = sessions.load(request.cookies)
    flash = FlashBridge(session)

    # POST /contact
    form = ContactForm.make().validate(form_data)
    if form.failed():
        response = Redirect("/contact").with_form(form, flash)
        return sessions.save(response, session)

    # GET /contact, next request, restored once
    form = ContactForm.make(flash=flash)
    form.failed()  # True, errors and old input are back

Snapshots are consumed with a single ``pop`` so a restored state never
reappears on a later request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from plume.config import DEFAULT_CONFIG, FormsConfig
from plume.errors import ConfigurationError
from plume.state import FormState

if TYPE_CHECKING:
    from plume.form import Form

logger = logging.getLogger("plume.flash")


@runtime_checkable
class SessionStore(Protocol):
    """The session capability the bridge needs. ``dict`` satisfies it."""

    def get(self, key: str, default: Any = None, /) -> Any: ...
    def pop(self, key: str, default: Any = None, /) -> Any: ...
    def __setitem__(self, key: str, value: Any, /) -> None: ...
    def __contains__(self, key: object, /) -> bool: ...


class FlashBridge:
    """Stores and restores ``FormState`` snapshots in a session store."""

    __slots__ = ("_config", "_store")

    def __init__(self, store: SessionStore, config: FormsConfig | None = None) -> None:
        if not isinstance(store, SessionStore):
            msg = f"FlashBridge needs a session store with get/pop/__setitem__, got {type(store).__name__}."
            raise ConfigurationError(msg)
        self._store = store
        self._config = config or DEFAULT_CONFIG

    @property
    def store(self) -> SessionStore:
        return self._store

    def key_for(self, form_cls: type[Form]) -> str:
        """Session key holding the snapshot for *form_cls*."""
        return f"{self._config.flash_key_prefix}{form_cls.flash_key()}"

    def attach[R](self, response: R, form: Form) -> R:
        """Flash *form*'s state and return *response* unchanged.

        No-op while the form is still pending.
        """
        if form.pending():
            logger.debug("Not flashing %s: still pending", type(form).__name__)
            return response
        key = self.key_for(type(form))
        self._store[key] = form.state.to_dict()
        logger.debug("Flashed %s state under %s", form.status.value, key)
        return response

    def has(self, form_cls: type[Form]) -> bool:
        """True if a snapshot for *form_cls* is waiting to be restored."""
        return self.key_for(form_cls) in self._store

    def restore(self, form_cls: type[Form]) -> FormState | None:
        """Consume and return the snapshot for *form_cls*, if any.

        A snapshot is returned at most once. Malformed snapshots are
        dropped and treated as absent.
        """
        key = self.key_for(form_cls)
        snapshot = self._store.pop(key, None)
        if snapshot is None:
            return None
        try:
            state = FormState.from_dict(snapshot)
        except ConfigurationError:
            logger.warning("Discarding malformed flash snapshot under %s", key)
            return None
        logger.debug("Restored %s state from %s", state.status.value, key)
        return state

    def discard(self, form_cls: type[Form]) -> None:
        """Drop any pending snapshot for *form_cls* without restoring it."""
        self._store.pop(self.key_for(form_cls), None)
