from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from anime_proxy.database import Base


class Anime(Base):
    __tablename__ = "animes"

    # AniList id, never generated locally
    id = Column(Integer, primary_key=True, autoincrement=False)

    title_romaji = Column(String(255), nullable=True, index=True)

    title_english = Column(String(255), nullable=True, index=True)

    title_native = Column(String(255), nullable=True, index=True)

    description = Column(Text, nullable=True)

    genres = Column(String(512), nullable=True)

    cover_image = Column(String(512), nullable=True)

    banner_image = Column(String(512), nullable=True)

    episodes = Column(Integer, default=0, server_default="0", nullable=False)

    episode_rows = relationship(
        "AnimeEpisode",
        back_populates="anime",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Anime(id={self.id}, title_romaji={self.title_romaji})>"


class AnimeEpisode(Base):
    __tablename__ = "anime_episodes"

    id = Column(Integer, primary_key=True, autoincrement=True)

    anime_id = Column(Integer, ForeignKey("animes.id", ondelete="CASCADE"), nullable=False, index=True)

    episode_number = Column(Integer, nullable=False)

    title_romaji = Column(String(512), nullable=True)

    title_translated = Column(String(512), nullable=True)

    thumbnail_image = Column(String(512), nullable=True)

    anime = relationship("Anime", back_populates="episode_rows")

    __table_args__ = (
        UniqueConstraint("anime_id", "episode_number", name="uix_anime_episode"),
    )

    def __repr__(self):
        return f"<AnimeEpisode(anime_id={self.anime_id}, episode_number={self.episode_number})>"


ANIME_COLUMNS = (
    "id",
    "title_romaji",
    "title_english",
    "title_native",
    "description",
    "genres",
    "cover_image",
    "banner_image",
    "episodes",
)

TITLE_COLUMNS = ("id", "title_romaji", "title_english", "title_native")
