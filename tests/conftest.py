"""Shared fixtures for listening_stats tests."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from listening_stats.models.db import Base, Genre, ListeningHistory
from listening_stats.models.listening import PlayEvent, Source


def make_event(
    credit: str,
    track_id: str = "t1",
    source: Source | None = Source.SPOTIFY,
    played_at: datetime | None = None,
    payload=None,
    popularity_payload=None,
    genres=(),
    event_id: int | None = None,
    track_name: str | None = None,
) -> PlayEvent:
    """Build a PlayEvent with sensible defaults."""
    return PlayEvent(
        track_id=track_id,
        raw_artist_credit=credit,
        source=source,
        played_at=played_at or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
        payload=payload,
        popularity_payload=popularity_payload,
        genre_ids=frozenset(genres),
        event_id=event_id,
        track_name=track_name,
    )


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def session():
    """In-memory SQLite session with the schema created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def add_play(session):
    """Insert a listening history row and return it."""
    genres: dict[str, Genre] = {}

    def _add(
        artist_name: str,
        track_id: str = "t1",
        user_id: int = 1,
        source: str = "spotify",
        played_at: datetime | None = None,
        track_data=None,
        popularity_data=None,
        track_name: str = "Track",
        album_name: str | None = None,
        genre_names=(),
    ) -> ListeningHistory:
        row = ListeningHistory(
            user_id=user_id,
            track_id=track_id,
            track_name=track_name,
            artist_name=artist_name,
            album_name=album_name,
            source=source,
            played_at=played_at or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
            track_data=track_data,
            popularity_data=popularity_data,
        )
        for name in genre_names:
            if name not in genres:
                genres[name] = Genre(name=name)
                session.add(genres[name])
            row.genres.append(genres[name])
        session.add(row)
        session.commit()
        return row

    return _add
