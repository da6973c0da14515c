"""Session and identity state.

Holds at most one `Identity` for the running process. The identity and the
persisted token change together: there is no suspension point between
persisting the token and publishing the identity, so no reader can observe a
half-updated pair. Session mutations are serialized with an `asyncio.Lock`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from adapters.resources.auth import AuthApi
from core.domain.models import LoginForm, RegisterForm, Role, User
from core.errors import AccessDeniedError, AuthenticationError, MarketplaceError, NotAuthenticatedError
from core.interfaces.token_store import TokenStore

logger = logging.getLogger(__name__)

IdentityListener = Callable[["Identity | None"], None]


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: Role
    token: str
    user: User

    @classmethod
    def from_user(cls, user: User, token: str) -> "Identity":
        return cls(user_id=user.id, role=user.role, token=token, user=user)


class SessionState:
    """Process-wide authenticated identity bound to a `TokenStore`."""

    def __init__(self, auth: AuthApi, store: TokenStore) -> None:
        self._auth = auth
        self._store = store
        self._identity: Identity | None = None
        self._lock = asyncio.Lock()
        self._listeners: list[IdentityListener] = []

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def current_token(self) -> str | None:
        """Token for outgoing requests: the identity's, else the persisted one."""

        if self._identity is not None:
            return self._identity.token
        return self._store.get_token()

    # ---------- lifecycle ----------

    async def start(self) -> Identity | None:
        """Restore the session from a persisted token, if any."""

        if self._store.get_token() is None:
            return None
        return await self.refresh()

    async def refresh(self) -> Identity | None:
        """Re-resolve the identity via "who am I".

        Any failure (envelope `success=False`, HTTP error, network error) clears
        the persisted token and leaves the session empty.
        """

        async with self._lock:
            token = self.current_token()
            if token is None:
                self._publish(None)
                return None
            try:
                envelope = await self._auth.me()
            except MarketplaceError as exc:
                logger.info("Discarding stored token, identity refresh failed: %s", exc)
                self._clear()
                return None
            if not envelope.success or envelope.data is None:
                logger.info("Discarding stored token, backend rejected it: %s", envelope.message)
                self._clear()
                return None
            identity = Identity.from_user(envelope.data, token)
            self._publish(identity)
            return identity

    async def login(self, form: LoginForm | Mapping[str, Any]) -> Identity:
        async with self._lock:
            envelope = await self._auth.login(form)
            if not envelope.success or envelope.data is None:
                raise AuthenticationError(envelope.message or "Login failed")
            return self._establish(envelope.data.user, envelope.data.token)

    async def register(self, form: RegisterForm | Mapping[str, Any]) -> Identity:
        async with self._lock:
            envelope = await self._auth.register(form)
            if not envelope.success or envelope.data is None:
                raise AuthenticationError(envelope.message or "Registration failed")
            return self._establish(envelope.data.user, envelope.data.token)

    async def logout(self) -> None:
        """Log out remotely, then always clear local state.

        A failing remote call is logged and not re-raised: local state never
        stays authenticated after a logout request.
        """

        async with self._lock:
            try:
                await self._auth.logout()
            except Exception as exc:
                logger.warning("Remote logout failed, clearing local session anyway: %s", exc)
            finally:
                self._clear()

    def _establish(self, user: User, token: str) -> Identity:
        identity = Identity.from_user(user, token)
        # If persisting fails nothing has been published yet.
        self._store.set_token(token)
        self._publish(identity)
        return identity

    def _clear(self) -> None:
        self._store.remove_token()
        self._publish(None)

    # ---------- access control ----------

    def has_role(self, *roles: Role | str) -> bool:
        """True when authenticated with one of `roles`. Admin passes every gate."""

        if self._identity is None:
            return False
        if self._identity.role is Role.ADMIN:
            return True
        return self._identity.role in {Role(r) for r in roles}

    def require_role(self, *roles: Role | str) -> Identity:
        if self._identity is None:
            raise NotAuthenticatedError("authentication required")
        if not self.has_role(*roles):
            raise AccessDeniedError(self._identity.role.value, tuple(Role(r).value for r in roles))
        return self._identity

    # ---------- observers ----------

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, identity: Identity | None) -> None:
        changed = identity != self._identity
        self._identity = identity
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                logger.exception("session listener failed")
