"""Process-wide holder of the current session and the auth modal state.

set_session replaces the value, persists it under AUTH_SESSION_KEY and
notifies subscribers synchronously, exactly once per call. Storage failures
are logged and swallowed: the in-memory value stays authoritative.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from roadwell.application.dtos.session import AuthModalState, Session
from roadwell.application.interfaces.storage import ISecureStore
from roadwell.domain.enums import AuthModalMode
from roadwell.infrastructure.storage.keys import AUTH_SESSION_KEY

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session | None], None]
ModalListener = Callable[[AuthModalState], None]


class ReentrantSessionWriteError(RuntimeError):
    """set_session was called from inside a session subscriber."""


class SessionStore:
    """Single source of truth for "who is signed in"."""

    def __init__(self, secure_store: ISecureStore) -> None:
        self._store = secure_store
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []
        self._modal = AuthModalState()
        self._modal_listeners: list[ModalListener] = []
        self._notifying = False

    def get_session(self) -> Session | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def _persist(self, session: Session | None) -> None:
        try:
            if session is None:
                self._store.delete_item(AUTH_SESSION_KEY)
            else:
                self._store.set_item(AUTH_SESSION_KEY, json.dumps(session.to_dict()))
        except (OSError, ValueError):
            logger.exception("Failed to persist session; keeping in-memory value")

    def set_session(self, session: Session | None) -> None:
        """Replace the session, persist it and notify subscribers.

        Raises:
            ReentrantSessionWriteError: If called from inside a subscriber callback.
        """
        if self._notifying:
            raise ReentrantSessionWriteError("set_session called from a session subscriber")
        self._session = session
        self._persist(session)
        self._notifying = True
        try:
            for listener in list(self._listeners):
                try:
                    listener(session)
                except ReentrantSessionWriteError:
                    raise
                except Exception:
                    logger.exception("Session subscriber failed")
        finally:
            self._notifying = False

    def clear(self) -> None:
        self.set_session(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def restore(self) -> Session | None:
        """Load the persisted session at startup. Corrupt data is cleared.

        Restoring does not notify subscribers.
        """
        try:
            raw = self._store.get_item(AUTH_SESSION_KEY)
        except (OSError, ValueError):
            logger.exception("Failed to read persisted session")
            return None
        if not raw:
            return None
        try:
            session = Session.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable persisted session: %s", e)
            self._persist(None)
            return None
        self._session = session
        return session

    # Auth modal
    @property
    def modal(self) -> AuthModalState:
        return self._modal

    def _set_modal(self, state: AuthModalState) -> None:
        self._modal = state
        for listener in list(self._modal_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Modal subscriber failed")

    def open_modal(self, mode: AuthModalMode = AuthModalMode.SIGN_IN) -> None:
        self._set_modal(AuthModalState(is_open=True, mode=mode))

    def close_modal(self) -> None:
        self._set_modal(AuthModalState(is_open=False, mode=self._modal.mode))

    def subscribe_modal(self, listener: ModalListener) -> Callable[[], None]:
        self._modal_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._modal_listeners:
                self._modal_listeners.remove(listener)

        return unsubscribe
