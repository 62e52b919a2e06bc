"""Session context: the current principal, passed explicitly instead of global state."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from ..users.model import Principal

logger = logging.getLogger(__name__)

PrincipalCallback = Callable[[Optional[Principal]], None]
Unsubscribe = Callable[[], None]


class AuthProvider(Protocol):
    """The external authentication collaborator (consumed, not implemented here)."""

    def current_principal(self) -> Optional[Principal]:
        raise NotImplementedError

    def on_principal_change(self, callback: PrincipalCallback) -> Unsubscribe:
        """Fires on login, logout and session restore."""

        raise NotImplementedError

    def login(self) -> None:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError


class SessionContext:
    """Holds the current principal and fans changes out to subscribers.

    Create one per session and hand it to whoever needs the principal; call
    ``close()`` to detach from the provider.
    """

    def __init__(self, provider: AuthProvider):
        self._provider = provider
        self._principal: Optional[Principal] = provider.current_principal()
        self._subscribers: List[PrincipalCallback] = []
        self._detach: Optional[Unsubscribe] = provider.on_principal_change(self._on_change)

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    def subscribe(self, callback: PrincipalCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _on_change(self, principal: Optional[Principal]) -> None:
        self._principal = principal
        logger.info("Session principal changed (authenticated=%s)", principal is not None)
        for callback in list(self._subscribers):
            callback(principal)

    def login(self) -> None:
        self._provider.login()

    def logout(self) -> None:
        self._provider.logout()

    def close(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._subscribers.clear()
