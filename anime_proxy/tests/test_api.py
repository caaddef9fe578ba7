"""Endpoint tests against an in-memory cache and scripted upstream services."""
import httpx
import pytest

from anime_proxy.cache_store import CacheStore
from anime_proxy.models import Anime, AnimeEpisode


class TestHealth:

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["initialized"] is True
        assert data["services"]["database"]["status"] == "ok"
        assert data["services"]["translation"]["target_language"] == "PT-BR"

    def test_root_returns_health(self, client):
        assert client.get("/").json()["status"] == "ok"


class TestSearchByName:
    """GET /anime/name"""

    def test_miss_fetches_and_caches(self, client, upstream, media_factory):
        upstream.media = media_factory()

        response = client.get("/anime/name", params={"query": "Naruto"})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "api"
        assert len(data["results"]) == 1
        anime = data["results"][0]["anime"]
        assert anime["id"] == 20
        assert "<" not in anime["description"]
        episodes = data["results"][0]["episodes"]
        assert [ep["episode_number"] for ep in episodes] == [1, 2]
        assert len(upstream.anilist_calls) == 1

    def test_second_request_is_served_from_cache(self, client, upstream, media_factory):
        upstream.media = media_factory()
        first = client.get("/anime/name", params={"query": "Naruto"}).json()

        second = client.get("/anime/name", params={"query": "naruto"})

        assert second.status_code == 200
        data = second.json()
        assert data["source"] == "database"
        assert data["page"] == 1
        assert data["limit"] == 10
        assert data["results"][0]["anime"] == first["results"][0]["anime"]
        assert data["results"][0]["episodes"] == first["results"][0]["episodes"]
        assert len(upstream.anilist_calls) == 1

    def test_translation_failure_still_succeeds(self, client, upstream, media_factory):
        upstream.media = media_factory()
        upstream.deepl_status = 456

        response = client.get("/anime/name", params={"query": "Naruto"})

        assert response.status_code == 200
        assert response.json()["results"][0]["anime"]["description"] == "translation unavailable"

    def test_malformed_translation_body_still_succeeds(self, client, upstream, media_factory):
        upstream.media = media_factory()
        upstream.deepl_body = {"translations": [{"text": 5}]}

        response = client.get("/anime/name", params={"query": "Naruto"})

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["anime"]["description"] == "translation unavailable"
        assert all(ep["title_translated"] == "translation unavailable" for ep in result["episodes"])

    def test_episode_write_failure_keeps_anime_row(
        self, client, upstream, media_factory, session_factory, monkeypatch
    ):
        upstream.media = media_factory()

        def fail_episodes(self, records):
            raise RuntimeError("episode batch rejected")

        monkeypatch.setattr(CacheStore, "upsert_episodes", fail_episodes)

        response = client.get("/anime/name", params={"query": "Naruto"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        db = session_factory()
        try:
            assert db.get(Anime, 20) is not None
            assert db.query(AnimeEpisode).count() == 0
        finally:
            db.close()

    def test_not_found_upstream(self, client, upstream):
        upstream.media = None

        response = client.get("/anime/name", params={"query": "zzzzzz"})

        assert response.status_code == 404
        assert "error" in response.json()

    def test_upstream_failure_is_generic_500(self, client, upstream):
        upstream.anilist_error = httpx.Response(
            400, json={"errors": [{"message": "Syntax Error", "status": 400}]}
        )

        response = client.get("/anime/name", params={"query": "Naruto"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_non_integer_page_is_rejected(self, client, upstream):
        response = client.get("/anime/name", params={"query": "Naruto", "page": "abc"})

        assert response.status_code == 400
        assert "page" in response.json()["error"]
        assert upstream.anilist_calls == []

    def test_limit_out_of_range(self, client):
        response = client.get("/anime/name", params={"query": "Naruto", "limit": 500})
        assert response.status_code == 400


class TestSearchTitles:
    """GET /anime/search-titles"""

    def test_empty_cache_message(self, client, upstream):
        response = client.get("/anime/search-titles", params={"query": "Naruto"})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "database"
        assert data["results"] == []
        assert "search-api" in data["message"]
        assert upstream.anilist_calls == []

    def test_returns_titles_cached_by_detail_lookup(self, client, upstream, media_factory):
        upstream.media = media_factory()
        client.get("/anime/name", params={"query": "Naruto"})

        response = client.get("/anime/search-titles", params={"query": "ナルト"})

        data = response.json()
        assert "message" not in data
        assert data["results"] == [{
            "id": 20,
            "title_romaji": "Naruto",
            "title_english": "Naruto",
            "title_native": "ナルト",
        }]


class TestSearchApi:
    """GET /anime/search-api"""

    def test_page_is_cached(self, client, upstream):
        upstream.page_media = [
            {"id": 1, "title": {"romaji": "Gintama", "english": "Gintama", "native": "銀魂"}},
            {"id": 2, "title": {"romaji": "Gintama'", "english": None, "native": "銀魂'"}},
        ]

        response = client.get("/anime/search-api", params={"query": "gintama", "page": 1, "perPage": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "api"
        assert [r["id"] for r in data["results"]] == [1, 2]
        assert upstream.anilist_calls[0]["variables"] == {"search": "gintama", "page": 1, "perPage": 2}

        cached = client.get("/anime/search-titles", params={"query": "gintama"}).json()
        assert {r["id"] for r in cached["results"]} == {1, 2}

    def test_empty_page_is_404(self, client, upstream):
        upstream.page_media = []

        response = client.get("/anime/search-api", params={"query": "x", "page": 2, "perPage": 5})

        assert response.status_code == 404
        assert response.json() == {"error": "No anime found on AniList."}


@pytest.mark.parametrize("path", ["/anime/name", "/anime/search-titles", "/anime/search-api"])
@pytest.mark.parametrize("params", [{}, {"query": ""}, {"query": "   "}, {"query": "!!!"}])
def test_empty_query_is_400(client, upstream, path, params):
    response = client.get(path, params=params)

    assert response.status_code == 400
    assert set(response.json()) == {"error"}
    assert upstream.anilist_calls == []
