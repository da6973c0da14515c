"""Startup wiring for the marketplace services.

Everything process-wide (HTTP client, cache, session) is built here once and
handed to callers; nothing lives in module-level singletons.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from adapters.http_client import RequestClient, build_async_client
from adapters.resources import ResourceClients
from adapters.token_store import FileTokenStore
from core.config import AppSettings
from core.interfaces.token_store import TokenStore
from core.services.cache_store import CacheStore, Clock
from core.services.mutations import MutationCoordinator
from core.services.queries import MarketplaceQueries
from core.services.session import Identity, SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketplaceContext:
    settings: AppSettings
    apis: ResourceClients
    cache: CacheStore
    mutations: MutationCoordinator
    session: SessionState
    queries: MarketplaceQueries


@asynccontextmanager
async def open_marketplace(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    token_store: TokenStore | None = None,
    clock: Clock | None = None,
    restore_session: bool = True,
) -> AsyncIterator[MarketplaceContext]:
    """Build every service over one `httpx.AsyncClient` and close it on exit.

    With `restore_session`, a persisted token is validated against the backend
    before the context is yielded (an invalid token is discarded).
    """

    settings = settings or AppSettings()
    store = token_store or FileTokenStore(settings.resolved_token_path())
    cache = CacheStore(default_stale_window=settings.default_stale_seconds, clock=clock)

    async with build_async_client(settings, transport=transport) as client:
        # `session` is bound below, before any request can be sent.
        sender = RequestClient(client, token_provider=lambda: session.current_token())
        apis = ResourceClients.from_sender(sender)
        session = SessionState(apis.auth, store)

        def _on_identity(identity: Identity | None) -> None:
            # Cached data is user-scoped.
            cache.clear()
            logger.debug("identity changed (%s), cache cleared", identity.user_id if identity else "anonymous")

        session.subscribe(_on_identity)

        coordinator = MutationCoordinator(cache)
        ctx = MarketplaceContext(
            settings=settings,
            apis=apis,
            cache=cache,
            mutations=coordinator,
            session=session,
            queries=MarketplaceQueries(cache, coordinator, apis),
        )
        if restore_session:
            await session.start()
        yield ctx
