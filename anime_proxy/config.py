"""Application configuration constants."""
from __future__ import annotations

HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_ERROR = 500

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SOURCE_DATABASE = "database"
SOURCE_API = "api"

# Stored/returned in place of missing upstream or translated text
TRANSLATION_FALLBACK = "translation unavailable"
EPISODE_TITLE_FALLBACK = "no title"
DESCRIPTION_FALLBACK = "no description"
GENRES_FALLBACK = "unknown genres"
ENGLISH_TITLE_FALLBACK = "N/A"

GENRE_SEPARATOR = ", "

NO_TITLES_MESSAGE = "No titles found in the database. Try searching the AniList API via /anime/search-api."

MATCH_ORDERS = frozenset({"storage", "id", "title"})

INTERNAL_ERROR_MESSAGE = "Internal server error"

VERSION = "1.0.0"
