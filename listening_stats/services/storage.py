"""Database access for listening history and artist images"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from listening_stats.config import settings
from listening_stats.date_ranges import DateRange, ensure_utc
from listening_stats.models.db import ArtistImage, ListeningHistory
from listening_stats.models.listening import PlayEvent, Source

logger = logging.getLogger(__name__)

def row_to_event(row: ListeningHistory) -> PlayEvent:
    """Convert a stored play into a PlayEvent"""
    source = Source.from_label(row.source)
    if source is None:
        logger.warning(f"Unrecognised source '{row.source}' on listening history row {row.id}")
    return PlayEvent(
        event_id=row.id,
        track_id=str(row.track_id),
        raw_artist_credit=row.artist_name or '',
        source=source,
        played_at=ensure_utc(row.played_at),
        payload=row.track_data,
        popularity_payload=row.popularity_data,
        genre_ids=frozenset(genre.name for genre in row.genres),
        track_name=row.track_name,
        album_name=row.album_name,
    )

class HistoryStore:
    """Reads a user's play events and cached artist images"""

    def __init__(self, session: Session):
        self.session = session

    def fetch_events(self, user_id: int, date_range: Optional[DateRange] = None,
                     search: Optional[str] = None, track_ids: Optional[Iterable[str]] = None,
                     limit: Optional[int] = None) -> List[PlayEvent]:
        """
        Load play events for one user, newest first.

        Args:
            user_id: Owner of the history
            date_range: Inclusive window on played_at
            search: Case-insensitive match on track, artist or album name. SQLite
                only folds ASCII case, so there a non-ASCII term is left to the
                caller's own filtering and does not narrow the rows
            track_ids: Only plays of these tracks
            limit: Maximum events, ``settings.MAX_EVENTS_PER_REQUEST`` by default (0 = no cap)
        """
        limit = settings.MAX_EVENTS_PER_REQUEST if limit is None else limit
        try:
            query = self.session.query(ListeningHistory).filter(ListeningHistory.user_id == user_id)

            if track_ids is not None:
                query = query.filter(ListeningHistory.track_id.in_([str(track_id) for track_id in track_ids]))

            if date_range is not None:
                if date_range.start is not None:
                    query = query.filter(ListeningHistory.played_at >= date_range.start)
                if date_range.end is not None:
                    query = query.filter(ListeningHistory.played_at <= date_range.end)

            if search and self._can_prefilter(search):
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(
                    ListeningHistory.track_name.ilike(pattern),
                    ListeningHistory.artist_name.ilike(pattern),
                    ListeningHistory.album_name.ilike(pattern),
                ))

            query = query.order_by(ListeningHistory.played_at.desc(), ListeningHistory.id.desc())
            if limit:
                query = query.limit(limit)

            rows = query.all()
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching listening history for user {user_id}: {e}")
            raise

        if limit and len(rows) == limit:
            logger.info(f"Listening history for user {user_id} truncated to {limit} events")
        return [row_to_event(row) for row in rows]

    def _can_prefilter(self, search: str) -> bool:
        if search.isascii():
            return True
        return self.session.get_bind().dialect.name != 'sqlite'

    def image_lookup(self, names: Iterable[str]) -> Dict[str, str]:
        """Map artist names to cached image URLs (exact name match)"""
        names = list({name for name in names if name})
        if not names:
            return {}
        try:
            rows = (
                self.session.query(ArtistImage.artist_name, ArtistImage.image_url)
                .filter(ArtistImage.artist_name.in_(names))
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error loading artist images: {e}")
            raise
        return {artist_name: image_url for artist_name, image_url in rows}

    def missing_image_names(self, names: Iterable[str]) -> List[str]:
        """Names, trimmed and de-duplicated in order, that have no cached image"""
        ordered: List[str] = []
        for name in names:
            name = (name or '').strip()
            if name and name not in ordered:
                ordered.append(name)
        cached = self.image_lookup(ordered)
        return [name for name in ordered if name not in cached]

    def save_image(self, artist_name: str, image_url: str) -> None:
        """Store or replace the image for an artist"""
        try:
            image = self.session.query(ArtistImage).filter_by(artist_name=artist_name).first()
            if image:
                image.image_url = image_url
            else:
                self.session.add(ArtistImage(artist_name=artist_name, image_url=image_url))
            self.session.commit()
            logger.debug(f"Cached image for artist {artist_name}")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error saving image for artist {artist_name}: {e}")
            raise
