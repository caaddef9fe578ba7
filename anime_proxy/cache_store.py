"""Relational cache access for anime and episode rows."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import Table, or_
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from anime_proxy.models import ANIME_COLUMNS, TITLE_COLUMNS, Anime, AnimeEpisode

logger = logging.getLogger(__name__)

EPISODE_UPDATE_COLUMNS = ("title_romaji", "title_translated", "thumbnail_image")


def _title_filter(term: str):
    like = f"%{term}%"
    return or_(
        Anime.title_romaji.ilike(like),
        Anime.title_english.ilike(like),
        Anime.title_native.ilike(like),
    )


def _ordering(match_order: str):
    if match_order == "id":
        return [Anime.id.asc()]
    if match_order == "title":
        return [Anime.title_romaji.asc(), Anime.id.asc()]
    # "storage": no ORDER BY, rows come back in whatever order the engine yields
    return []


class CacheStore:
    """Read and upsert cached AniList records through one SQLAlchemy session.

    Every upsert commits on its own; callers that write an anime and then its
    episodes get two independent commits.
    """

    def __init__(self, db: Session, match_order: str = "storage"):
        self.db = db
        self.match_order = match_order

    # --- reads ---------------------------------------------------------------
    def find_by_title(
        self,
        term: str,
        limit: Optional[int] = None,
        offset: int = 0,
        detailed_only: bool = False,
    ) -> list[Anime]:
        """Anime rows whose romaji, English or native title contains `term` (case-insensitive)."""
        query = self.db.query(Anime).filter(_title_filter(term))
        if detailed_only:
            query = query.filter(Anime.description.isnot(None))
        query = query.order_by(*_ordering(self.match_order))
        if limit is not None:
            query = query.limit(limit).offset(offset)
        return query.all()

    def find_titles(self, term: str) -> list[Any]:
        """Like `find_by_title` but only the id and title columns."""
        columns = [getattr(Anime, name) for name in TITLE_COLUMNS]
        return (
            self.db.query(*columns)
            .filter(_title_filter(term))
            .order_by(*_ordering(self.match_order))
            .all()
        )

    def find_episodes(self, anime_id: int) -> list[AnimeEpisode]:
        """Episode rows of one anime in storage (insertion) order."""
        return (
            self.db.query(AnimeEpisode)
            .filter(AnimeEpisode.anime_id == anime_id)
            .order_by(AnimeEpisode.id)
            .all()
        )

    # --- writes --------------------------------------------------------------
    def upsert_anime(self, record: dict[str, Any]) -> None:
        """Insert the anime or update every column on a conflicting id."""
        row = {name: record.get(name) for name in ANIME_COLUMNS}
        if row["episodes"] is None:
            row["episodes"] = 0
        self._upsert(
            Anime.__table__,
            [row],
            conflict_columns=("id",),
            update_columns=[c for c in ANIME_COLUMNS if c != "id"],
        )
        logger.debug(f"Upserted anime {row['id']}")

    def upsert_titles(self, records: Iterable[dict[str, Any]]) -> int:
        """Batch upsert of ids and titles; other columns are left untouched."""
        rows = [{name: record.get(name) for name in TITLE_COLUMNS} for record in records]
        self._upsert(
            Anime.__table__,
            rows,
            conflict_columns=("id",),
            update_columns=[c for c in TITLE_COLUMNS if c != "id"],
        )
        logger.debug(f"Upserted titles for {len(rows)} anime")
        return len(rows)

    def upsert_episodes(self, records: Iterable[dict[str, Any]]) -> int:
        """Batch upsert keyed by (anime_id, episode_number)."""
        rows = [
            {
                "anime_id": record["anime_id"],
                "episode_number": record["episode_number"],
                **{name: record.get(name) for name in EPISODE_UPDATE_COLUMNS},
            }
            for record in records
        ]
        self._upsert(
            AnimeEpisode.__table__,
            rows,
            conflict_columns=("anime_id", "episode_number"),
            update_columns=EPISODE_UPDATE_COLUMNS,
        )
        logger.debug(f"Upserted {len(rows)} episodes")
        return len(rows)

    def _upsert(
        self,
        table: Table,
        rows: list[dict[str, Any]],
        conflict_columns: Sequence[str],
        update_columns: Sequence[str],
    ) -> None:
        if not rows:
            return

        dialect = self.db.get_bind().dialect.name
        if dialect in ("mysql", "mariadb"):
            stmt = mysql_insert(table).values(rows)
            stmt = stmt.on_duplicate_key_update({name: stmt.inserted[name] for name in update_columns})
        elif dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(table).values(rows)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(conflict_columns),
                set_={name: stmt.excluded[name] for name in update_columns},
            )
        else:
            raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

        try:
            self.db.execute(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
