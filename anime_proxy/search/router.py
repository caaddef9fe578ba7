"""Anime search endpoints: cache-only titles, upstream page, and cache-or-fetch detail."""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from anime_proxy.app_state import AppState
from anime_proxy.cache_store import CacheStore
from anime_proxy.config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, INTERNAL_ERROR_MESSAGE
from anime_proxy.database import get_db
from anime_proxy.exceptions import NotFoundError, ProxyError, ValidationError
from anime_proxy.search.schemas import DetailSearchResponse, ErrorResponse, TitleSearchResponse
from anime_proxy.search.service import SearchService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/anime", tags=["Anime"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_app_state(request: Request) -> AppState:
    """Dependency injection for application state."""
    return request.app.state.app_state


def get_search_service(
    db: Session = Depends(get_db),
    app_state: AppState = Depends(get_app_state),
) -> SearchService:
    """Build the search service for this request's session."""
    return SearchService(
        store=CacheStore(db, match_order=app_state.match_order),
        anilist=app_state.anilist,
        translator=app_state.translator,
        target_language=app_state.target_language,
        backfill_lightweight_rows=app_state.backfill_lightweight_rows,
    )


def _record(
    app_state: AppState,
    endpoint: str,
    query: Optional[str],
    started: float,
    source: str = "none",
    result_count: int = 0,
    error: Optional[str] = None,
) -> None:
    event_logger = app_state.event_logger
    event_logger.log(event_logger.create_event(
        endpoint=endpoint,
        query=query,
        latency_ms=(time.time() - started) * 1000,
        source=source,
        result_count=result_count,
        success=error is None,
        error_message=error,
    ))


@router.get(
    "/search-titles",
    response_model=TitleSearchResponse,
    response_model_exclude_unset=True,
    responses=ERROR_RESPONSES,
)
async def search_titles(
    query: Optional[str] = None,
    service: SearchService = Depends(get_search_service),
    app_state: AppState = Depends(get_app_state),
):
    """Search cached titles only; never calls AniList."""
    started = time.time()
    try:
        response = service.search_titles(query)
    except ValidationError as e:
        _record(app_state, "search-titles", query, started, error=e.message)
        raise
    except Exception as e:
        logger.exception(f"Error searching cached titles for: {query}")
        _record(app_state, "search-titles", query, started, error=str(e))
        raise ProxyError(INTERNAL_ERROR_MESSAGE)

    _record(app_state, "search-titles", query, started, response.source, len(response.results))
    return response


@router.get(
    "/search-api",
    response_model=TitleSearchResponse,
    response_model_exclude_unset=True,
    responses=ERROR_RESPONSES,
)
async def search_api(
    query: Optional[str] = None,
    page: int = DEFAULT_PAGE,
    per_page: int = Query(DEFAULT_PAGE_SIZE, alias="perPage"),
    service: SearchService = Depends(get_search_service),
    app_state: AppState = Depends(get_app_state),
):
    """Search AniList directly with pagination and cache the returned titles."""
    started = time.time()
    try:
        response = await service.search_upstream(query, page=page, per_page=per_page)
    except (ValidationError, NotFoundError) as e:
        _record(app_state, "search-api", query, started, error=e.message)
        raise
    except Exception as e:
        logger.exception(f"Error searching AniList for: {query}")
        _record(app_state, "search-api", query, started, error=str(e))
        raise ProxyError(INTERNAL_ERROR_MESSAGE)

    _record(app_state, "search-api", query, started, response.source, len(response.results))
    return response


@router.get(
    "/name",
    response_model=DetailSearchResponse,
    responses=ERROR_RESPONSES,
)
async def search_by_name(
    query: Optional[str] = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_PAGE_SIZE,
    service: SearchService = Depends(get_search_service),
    app_state: AppState = Depends(get_app_state),
):
    """Return cached anime with episodes, fetching and caching from AniList on a miss."""
    started = time.time()
    try:
        response = await service.search_with_episodes(query, page=page, limit=limit)
    except (ValidationError, NotFoundError) as e:
        _record(app_state, "name", query, started, error=e.message)
        raise
    except Exception as e:
        logger.exception(f"Error processing /anime/name for: {query}")
        _record(app_state, "name", query, started, error=str(e))
        raise ProxyError(INTERNAL_ERROR_MESSAGE)

    _record(app_state, "name", query, started, response.source, len(response.results))
    return response
