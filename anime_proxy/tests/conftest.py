"""
Pytest configuration - runs before any test imports.

Environment variables are set here before the settings module is imported.
Tests use an in-memory SQLite database shared through a StaticPool, and
`httpx.MockTransport` stand-ins for AniList and DeepL.
"""
import json
import os
import sys
from urllib.parse import parse_qs

import httpx
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, PROJECT_ROOT)

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEEPL_API_KEY", "test-deepl-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from anime_proxy.app_state import AppState  # noqa: E402
from anime_proxy.clients.anilist import AniListClient  # noqa: E402
from anime_proxy.clients.deepl import DeepLTranslator  # noqa: E402
from anime_proxy.database import Base, get_db  # noqa: E402
from anime_proxy.search.router import get_app_state  # noqa: E402

ANILIST_TEST_URL = "https://graphql.anilist.test"
DEEPL_TEST_URL = "https://deepl.test/v2/translate"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_media(anime_id=20, romaji="Naruto", english="Naruto", native="ナルト", episodes=None, **extra):
    """AniList `Media` payload with full detail."""
    media = {
        "id": anime_id,
        "title": {"romaji": romaji, "english": english, "native": native},
        "description": "Naruto Uzumaki wants to be <i>Hokage</i>.<br><br>(Source: Anime News Network)",
        "genres": ["Action", "Adventure"],
        "episodes": 220,
        "coverImage": {"extraLarge": "https://img.anili.st/cover/20.jpg"},
        "bannerImage": "https://img.anili.st/banner/20.jpg",
        "streamingEpisodes": episodes if episodes is not None else [
            {"title": "Episode 1 - Enter: Naruto Uzumaki!", "thumbnail": "https://img.test/ep1.jpg"},
            {"title": "Episode 2 - My Name is Konohamaru!", "thumbnail": "https://img.test/ep2.jpg"},
        ],
    }
    media.update(extra)
    return media


class FakeUpstream:
    """Scriptable AniList + DeepL backends that record every call."""

    def __init__(self):
        self.anilist_calls = []
        self.deepl_calls = []
        self.media = None
        self.page_media = []
        self.anilist_error = None
        self.deepl_status = 200
        self.deepl_body = None

    # --- AniList --------------------------------------------------------------
    def anilist_handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.anilist_calls.append(body)
        if self.anilist_error is not None:
            return self.anilist_error
        if "Page(" in body["query"]:
            return httpx.Response(200, json={"data": {"Page": {"media": self.page_media}}})
        if self.media is None:
            return httpx.Response(
                404,
                json={"errors": [{"message": "Not Found.", "status": 404}], "data": {"Media": None}},
            )
        return httpx.Response(200, json={"data": {"Media": self.media}})

    # --- DeepL ----------------------------------------------------------------
    def deepl_handler(self, request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode(), keep_blank_values=True)
        text = form.get("text", [""])[0]
        target = form.get("target_lang", [""])[0]
        self.deepl_calls.append({
            "text": text,
            "target_lang": target,
            "authorization": request.headers.get("Authorization"),
        })
        if self.deepl_status != 200:
            return httpx.Response(self.deepl_status, json={"message": "Quota exceeded"})
        if self.deepl_body is not None:
            return httpx.Response(200, json=self.deepl_body)
        return httpx.Response(200, json={"translations": [{"detected_source_language": "EN", "text": f"[{target}] {text}"}]})


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def anilist(upstream):
    return AniListClient(
        httpx.AsyncClient(transport=httpx.MockTransport(upstream.anilist_handler)),
        url=ANILIST_TEST_URL,
    )


@pytest.fixture
def translator(upstream):
    return DeepLTranslator(
        httpx.AsyncClient(transport=httpx.MockTransport(upstream.deepl_handler)),
        DEEPL_TEST_URL,
        "test-deepl-key",
    )


@pytest.fixture
def app_state(anilist, translator):
    return AppState(anilist=anilist, translator=translator, target_language="PT-BR", is_initialized=True)


@pytest.fixture
def db_session():
    """Fresh schema and a session bound to the shared in-memory database."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(app_state):
    """Create test client with the database and upstream services replaced."""
    Base.metadata.create_all(bind=engine)

    from anime_proxy.main import app

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_state] = lambda: app_state

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


@pytest.fixture
def media_factory():
    """`make_media` for tests that build their own payloads."""
    return make_media


@pytest.fixture
def session_factory():
    """Sessions on the database the `client` fixture serves."""
    return TestingSessionLocal
