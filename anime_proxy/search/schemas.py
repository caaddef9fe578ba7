"""Pydantic schemas for the anime search API."""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

Source = Literal["database", "api"]


class TitleResult(BaseModel):
    """Id and the three title scripts of one anime."""
    id: int
    title_romaji: Optional[str] = None
    title_english: Optional[str] = None
    title_native: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TitleSearchResponse(BaseModel):
    """Title-only search response; `message` is set when nothing matched."""
    source: Source
    results: list[TitleResult]
    message: Optional[str] = None


class AnimeOut(BaseModel):
    """A cached anime row."""
    id: int
    title_romaji: Optional[str] = None
    title_english: Optional[str] = None
    title_native: Optional[str] = None
    description: Optional[str] = None
    genres: Optional[str] = None
    cover_image: Optional[str] = None
    banner_image: Optional[str] = None
    episodes: int = 0

    model_config = ConfigDict(from_attributes=True)


class EpisodeOut(BaseModel):
    """A cached episode row."""
    episode_number: int
    title_romaji: Optional[str] = None
    title_translated: Optional[str] = None
    thumbnail_image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AnimeWithEpisodes(BaseModel):
    anime: AnimeOut
    episodes: list[EpisodeOut]


class DetailSearchResponse(BaseModel):
    """Combined detail lookup response."""
    source: Source
    results: list[AnimeWithEpisodes]
    page: int
    limit: int


class ErrorResponse(BaseModel):
    error: str
