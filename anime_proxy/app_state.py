"""
Application state container.

Holds the process-wide collaborators that every request shares: the HTTP
clients for AniList and DeepL and the search event logger. The container is
created in the FastAPI lifespan and handed to endpoints through a dependency,
so nothing here is a module-level client.

Usage:
    # In lifespan function:
    state = init_app_state(settings)
    app.state.app_state = state
    ...
    await state.aclose()

    # In endpoints (via dependency):
    def get_app_state(request: Request) -> AppState:
        return request.app.state.app_state
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import httpx

from anime_proxy.clients.anilist import AniListClient
from anime_proxy.clients.deepl import DeepLTranslator
from anime_proxy.config import VERSION
from anime_proxy.monitoring import SearchEventLogger

if TYPE_CHECKING:
    from anime_proxy.settings import Settings

logger = logging.getLogger(__name__)

USER_AGENT = "anime-proxy/1.0"


@dataclass
class AppState:
    """
    Container for all application runtime state.

    Attributes:
        anilist: AniList GraphQL client
        translator: DeepL translation adapter
        event_logger: JSON Lines search event logger
        target_language: DeepL target language code
        backfill_lightweight_rows: detail lookups skip title-only rows
        match_order: ordering of fuzzy title matches
        is_initialized: Whether all components have been created
    """

    anilist: AniListClient
    translator: DeepLTranslator
    event_logger: SearchEventLogger = field(default_factory=SearchEventLogger)
    target_language: str = "PT-BR"
    backfill_lightweight_rows: bool = True
    match_order: str = "storage"
    is_initialized: bool = False
    http_clients: list[httpx.AsyncClient] = field(default_factory=list)

    async def aclose(self) -> None:
        """Close every HTTP client owned by this state."""
        for client in self.http_clients:
            await client.aclose()
        self.http_clients.clear()

    def get_health_status(self, database_ok: bool, database_error: Optional[str] = None) -> dict[str, Any]:
        """
        Generate health check status for all components.

        Args:
            database_ok: result of the database round-trip probe
            database_error: probe failure message, if any

        Returns:
            Dictionary with status of database, upstream and translation services
        """
        status = {
            "status": "ok" if self.is_initialized else "starting",
            "version": VERSION,
            "initialized": self.is_initialized,
            "services": {}
        }

        if database_ok:
            status["services"]["database"] = {"status": "ok"}
        else:
            status["services"]["database"] = {"status": "error", "error": database_error or "unreachable"}
            status["status"] = "degraded"

        status["services"]["anilist"] = {"status": "ok", "url": self.anilist.url}

        if self.translator.configured:
            status["services"]["translation"] = {"status": "ok", "target_language": self.target_language}
        else:
            # Requests still succeed, descriptions fall back to the placeholder
            status["services"]["translation"] = {"status": "error", "error": "DEEPL_API_KEY not set"}
            status["status"] = "degraded"

        status["services"]["search_log"] = {"status": "ok" if self.event_logger.enabled else "disabled"}
        return status


def init_app_state(settings: "Settings") -> AppState:
    """
    Create the AppState with its HTTP clients.

    Both upstream clients share the single configured timeout.
    """
    timeout = httpx.Timeout(settings.upstream_timeout_seconds)
    headers = {"User-Agent": USER_AGENT}
    anilist_http = httpx.AsyncClient(timeout=timeout, headers=headers)
    deepl_http = httpx.AsyncClient(timeout=timeout, headers=headers)

    state = AppState(
        anilist=AniListClient(anilist_http, url=settings.anilist_url),
        translator=DeepLTranslator(deepl_http, settings.deepl_api_url, settings.deepl_api_key),
        event_logger=SearchEventLogger(settings.search_log_dir),
        target_language=settings.target_language,
        backfill_lightweight_rows=settings.backfill_lightweight_rows,
        match_order=settings.match_order,
        http_clients=[anilist_http, deepl_http],
    )
    state.is_initialized = True
    logger.info(
        f"AppState initialized (timeout={settings.upstream_timeout_seconds}s, "
        f"target_language={settings.target_language}, match_order={settings.match_order})"
    )
    return state
