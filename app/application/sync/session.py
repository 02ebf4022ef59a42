"""In-process holder of the authenticated identity."""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

IdentityListener = Callable[[str, Optional[str]], None]


class AuthSession:
    """Track the current user and notify listeners when it changes.

    Listeners are called with ``(event, user_id)`` where ``event`` is
    ``SIGNED_IN`` or ``SIGNED_OUT``.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: list[IdentityListener] = []

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id is required to sign in")
        self._user_id = user_id
        self._notify(SIGNED_IN, user_id)

    def sign_out(self) -> None:
        self._user_id = None
        self._notify(SIGNED_OUT, None)

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener`` and return an idempotent unsubscribe callable."""

        self._listeners.append(listener)
        released = False

        def unsubscribe() -> None:
            nonlocal released
            if released:
                return
            released = True
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, user_id: str | None) -> None:
        logger.debug("Identity change %s for user %s", event, user_id)
        for listener in list(self._listeners):
            listener(event, user_id)


__all__ = ["AuthSession", "IdentityListener", "SIGNED_IN", "SIGNED_OUT"]
