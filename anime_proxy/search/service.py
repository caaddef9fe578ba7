"""Cache-or-fetch search flows.

`SearchService` backs the three search endpoints:

* `search_titles` answers from the cache only and never calls AniList.
* `search_upstream` always calls AniList and caches the ids and titles it sees.
* `search_with_episodes` is the cache-or-fetch flow: a cache hit returns the
  stored anime with their episodes; a miss fetches the best AniList match,
  translates and strips its description and episode titles, upserts the anime
  and then its episodes, and returns what was stored.
"""
from __future__ import annotations

import asyncio
import logging
import unicodedata
from typing import Any, Optional

from anime_proxy.cache_store import CacheStore
from anime_proxy.clients.anilist import AniListClient
from anime_proxy.clients.deepl import DeepLTranslator
from anime_proxy.config import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DESCRIPTION_FALLBACK,
    ENGLISH_TITLE_FALLBACK,
    EPISODE_TITLE_FALLBACK,
    GENRE_SEPARATOR,
    GENRES_FALLBACK,
    MAX_PAGE_SIZE,
    NO_TITLES_MESSAGE,
    SOURCE_API,
    SOURCE_DATABASE,
)
from anime_proxy.exceptions import NotFoundError, UpstreamError, ValidationError
from anime_proxy.sanitizer import strip_markup
from anime_proxy.search.schemas import (
    AnimeOut,
    AnimeWithEpisodes,
    DetailSearchResponse,
    EpisodeOut,
    TitleResult,
    TitleSearchResponse,
)

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "The query must be a non-empty string."
UNUSABLE_QUERY_MESSAGE = "The query must contain at least one letter or number."


def normalize_query(query: Optional[str]) -> str:
    """Validate a search query and drop everything but letters, numbers and whitespace.

    Letters and numbers of any script are kept.

    Raises:
        ValidationError: query is missing, blank, or has no letter or number left.
    """
    if not isinstance(query, str) or not query.strip():
        raise ValidationError(EMPTY_QUERY_MESSAGE)

    cleaned = "".join(
        ch for ch in query
        if ch.isspace() or unicodedata.category(ch)[0] in ("L", "N")
    ).strip()
    if not cleaned:
        raise ValidationError(UNUSABLE_QUERY_MESSAGE)
    return cleaned


def _validate_paging(page: int, size: int, size_name: str) -> None:
    if page < 1:
        raise ValidationError("page must be a positive integer.")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise ValidationError(f"{size_name} must be between 1 and {MAX_PAGE_SIZE}.")


def _titles(media: dict[str, Any]) -> dict[str, Optional[str]]:
    title = media.get("title") or {}
    return {
        "romaji": title.get("romaji"),
        "english": title.get("english"),
        "native": title.get("native"),
    }


class SearchService:
    """Search flows over one request's cache session and the shared upstream clients."""

    def __init__(
        self,
        store: CacheStore,
        anilist: AniListClient,
        translator: DeepLTranslator,
        target_language: str,
        backfill_lightweight_rows: bool = True,
    ):
        self.store = store
        self.anilist = anilist
        self.translator = translator
        self.target_language = target_language
        self.backfill_lightweight_rows = backfill_lightweight_rows

    # ------------------------------------------------------------------ titles
    def search_titles(self, query: Optional[str]) -> TitleSearchResponse:
        """Cache-only title lookup."""
        term = normalize_query(query)
        rows = self.store.find_titles(term)
        if rows:
            return TitleSearchResponse(
                source=SOURCE_DATABASE,
                results=[TitleResult.model_validate(row) for row in rows],
            )
        return TitleSearchResponse(source=SOURCE_DATABASE, results=[], message=NO_TITLES_MESSAGE)

    # ---------------------------------------------------------------- upstream
    async def search_upstream(
        self,
        query: Optional[str],
        page: int = DEFAULT_PAGE,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> TitleSearchResponse:
        """One AniList page of title matches; ids and titles are upserted into the cache."""
        term = normalize_query(query)
        _validate_paging(page, per_page, "perPage")

        media = await self.anilist.fetch_page(term, page=page, per_page=per_page)
        if not media:
            raise NotFoundError("No anime found on AniList.")

        results = []
        records = []
        for item in media:
            titles = _titles(item)
            results.append(TitleResult(
                id=item["id"],
                title_romaji=titles["romaji"],
                title_english=titles["english"],
                title_native=titles["native"],
            ))
            records.append({
                "id": item["id"],
                "title_romaji": titles["romaji"],
                "title_english": titles["english"] or ENGLISH_TITLE_FALLBACK,
                "title_native": titles["native"],
            })

        self.store.upsert_titles(records)
        logger.info(f"Cached titles for {len(records)} AniList matches of '{term}' (page {page})")
        return TitleSearchResponse(source=SOURCE_API, results=results)

    # ------------------------------------------------------------------ detail
    async def search_with_episodes(
        self,
        query: Optional[str],
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> DetailSearchResponse:
        """Cache-or-fetch lookup of anime with their episodes."""
        term = normalize_query(query)
        _validate_paging(page, limit, "limit")
        offset = (page - 1) * limit

        rows = self.store.find_by_title(
            term,
            limit=limit,
            offset=offset,
            detailed_only=self.backfill_lightweight_rows,
        )
        if rows:
            results = [
                AnimeWithEpisodes(
                    anime=AnimeOut.model_validate(row),
                    episodes=[EpisodeOut.model_validate(ep) for ep in self.store.find_episodes(row.id)],
                )
                for row in rows
            ]
            logger.info(f"Cache hit for '{term}': {len(results)} anime")
            return DetailSearchResponse(source=SOURCE_DATABASE, results=results, page=page, limit=limit)

        logger.info(f"Cache miss for '{term}', querying AniList")
        media = await self.anilist.fetch_best_match(term)
        if not media:
            raise NotFoundError("Anime not found on the AniList API.")

        anime, episodes = await self._enrich(media)

        # Anime first (episodes reference it); the two commits are independent
        self.store.upsert_anime(anime)
        self.store.upsert_episodes(episodes)
        logger.info(f"Cached anime {anime['id']} with {len(episodes)} episodes")

        return DetailSearchResponse(
            source=SOURCE_API,
            results=[AnimeWithEpisodes(
                anime=AnimeOut(**anime),
                episodes=[EpisodeOut(**ep) for ep in episodes],
            )],
            page=1,
            limit=1,
        )

    async def _localize(self, text: str) -> str:
        """Translate into the target language, then strip markup."""
        result = await self.translator.translate(text, self.target_language)
        return strip_markup(result.text)

    async def _enrich(self, media: dict[str, Any]) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Build the anime and episode records for an AniList media object."""
        anime_id = media.get("id")
        if anime_id is None:
            raise UpstreamError("AniList media has no id")

        description = await self._localize(media.get("description") or "")

        # Upstream episodes carry no number: position in the listing is the number
        episodes = [
            {
                "anime_id": anime_id,
                "episode_number": index,
                "title_romaji": (entry or {}).get("title") or None,
                "thumbnail_image": (entry or {}).get("thumbnail") or None,
            }
            for index, entry in enumerate(media.get("streamingEpisodes") or [], start=1)
        ]

        translated_titles = await asyncio.gather(
            *(self._localize(ep["title_romaji"] or "") for ep in episodes)
        )
        for ep, title in zip(episodes, translated_titles):
            ep["title_translated"] = title or EPISODE_TITLE_FALLBACK

        titles = _titles(media)
        genres = media.get("genres") or []
        anime = {
            "id": anime_id,
            "title_romaji": titles["romaji"],
            "title_english": titles["english"] or ENGLISH_TITLE_FALLBACK,
            "title_native": titles["native"],
            "description": description or DESCRIPTION_FALLBACK,
            "genres": GENRE_SEPARATOR.join(genres) if genres else GENRES_FALLBACK,
            "cover_image": (media.get("coverImage") or {}).get("extraLarge"),
            "banner_image": media.get("bannerImage"),
            "episodes": media.get("episodes") or 0,
        }
        return anime, episodes
