"""AniList GraphQL client (httpx)."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from anime_proxy.exceptions import UpstreamError

logger = logging.getLogger(__name__)

ANILIST_URL = "https://graphql.anilist.co"

MEDIA_DETAIL_FIELDS = """
      id
      title { romaji english native }
      description
      genres
      episodes
      coverImage { extraLarge }
      bannerImage
      streamingEpisodes { title thumbnail }
"""

MEDIA_TITLE_FIELDS = """
      id
      title { romaji english native }
"""

BEST_MATCH_QUERY = """
query ($search: String) {
  Media(search: $search, type: ANIME) {%s  }
}
""" % MEDIA_DETAIL_FIELDS

PAGE_QUERY = """
query ($search: String, $page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    media(search: $search, type: ANIME) {%s    }
  }
}
"""


def _is_not_found(errors: list[dict]) -> bool:
    """AniList reports an unmatched `Media(search:)` as a 404 GraphQL error."""
    return any(err.get("status") == 404 for err in errors if isinstance(err, dict))


class AniListClient:
    """Search AniList media.

    The two call shapes request different field sets: `fetch_best_match`
    always asks for full detail including streaming episodes, `fetch_page`
    asks for ids and titles unless `detailed=True`.
    """

    def __init__(self, client: httpx.AsyncClient, url: str = ANILIST_URL):
        self.client = client
        self.url = url

    async def _query(self, query: str, variables: dict[str, Any]) -> Optional[dict]:
        """POST a GraphQL query; returns `data`, or None when AniList reports not found."""
        response = await self.client.post(
            self.url,
            json={"query": query, "variables": variables},
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        try:
            payload = response.json()
        except ValueError:
            response.raise_for_status()
            raise UpstreamError(f"AniList returned a non-JSON body (status {response.status_code})")

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            if _is_not_found(errors):
                logger.debug(f"AniList found no match for {variables}")
                return None
            messages = "; ".join(str(err.get("message")) for err in errors if isinstance(err, dict))
            raise UpstreamError(f"AniList error (status {response.status_code}): {messages}")

        response.raise_for_status()
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamError("AniList response is missing 'data'")
        return data

    async def fetch_best_match(self, search: str) -> Optional[dict]:
        """Fetch the single best match for `search` with full detail, or None."""
        data = await self._query(BEST_MATCH_QUERY, {"search": search})
        if data is None:
            return None
        return data.get("Media") or None

    async def fetch_page(
        self,
        search: str,
        page: int = 1,
        per_page: int = 10,
        detailed: bool = False,
    ) -> list[dict]:
        """Fetch one page of matches; lightweight (ids + titles) unless `detailed`.

        The search flows only request the lightweight page; `detailed=True` is
        for callers that want full media in one paged call.
        """
        fields = MEDIA_DETAIL_FIELDS if detailed else MEDIA_TITLE_FIELDS
        data = await self._query(
            PAGE_QUERY % fields,
            {"search": search, "page": page, "perPage": per_page},
        )
        if data is None:
            return []
        media = (data.get("Page") or {}).get("media")
        if media is None:
            raise UpstreamError("AniList page response is missing 'media'")
        return [item for item in media if item]
