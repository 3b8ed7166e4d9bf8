from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Callable

logger = logging.getLogger(__name__)

SIGNED_IN = "signed_in"
SIGNED_OUT = "signed_out"
UPDATED = "updated"


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str | None = None
    role: str = "user"  # user | admin

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class AuthEvent:
    kind: str  # signed_in | signed_out | updated
    identity: Identity


AuthListener = Callable[[AuthEvent], None]


class AuthContext:
    """Who is signed in, passed explicitly to whoever needs to know.

    Created when the application starts and closed when it stops. Consumers
    that keep per-user state subscribe to sign-in/sign-out changes.
    """

    def __init__(self) -> None:
        self._identities: dict[int, Identity] = {}
        self._listeners: list[AuthListener] = []
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("auth context is closed")

    def _emit(self, kind: str, identity: Identity) -> None:
        event = AuthEvent(kind, identity)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("auth_listener_failed kind=%s user_id=%s", kind, identity.user_id)

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._ensure_open()
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def sign_in(self, identity: Identity) -> Identity:
        self._ensure_open()
        previous = self._identities.get(identity.user_id)
        self._identities[identity.user_id] = identity
        if previous is None:
            logger.info("auth: signed_in user_id=%s role=%s", identity.user_id, identity.role)
            self._emit(SIGNED_IN, identity)
        elif previous != identity:
            self._emit(UPDATED, identity)
        return identity

    def sign_out(self, user_id: int) -> bool:
        self._ensure_open()
        identity = self._identities.pop(user_id, None)
        if identity is None:
            return False
        logger.info("auth: signed_out user_id=%s", user_id)
        self._emit(SIGNED_OUT, identity)
        return True

    def current(self, user_id: int) -> Identity | None:
        self._ensure_open()
        return self._identities.get(user_id)

    def is_signed_in(self, user_id: int) -> bool:
        return self.current(user_id) is not None

    def is_admin(self, user_id: int) -> bool:
        identity = self.current(user_id)
        return identity is not None and identity.is_admin

    def close(self) -> None:
        if self._closed:
            return
        self._identities.clear()
        self._listeners.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
