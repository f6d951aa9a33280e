"""SQLAlchemy database models for listening history and cached artist images"""
import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Table
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

listening_history_genre = Table(
    'listening_history_genre',
    Base.metadata,
    Column('listening_history_id', Integer, ForeignKey('listening_history.id', ondelete='CASCADE'), primary_key=True),
    Column('genre_id', Integer, ForeignKey('genres.id', ondelete='CASCADE'), primary_key=True),
)

class ListeningHistory(Base):
    """
    One play of a track by a user.
    Multiple plays of the same track are separate rows sharing track_id.
    """
    __tablename__ = 'listening_history'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    track_id = Column(String, nullable=False, index=True)
    track_name = Column(String, nullable=False)
    artist_name = Column(String, nullable=False)
    album_name = Column(String, nullable=True)
    source = Column(String(25), nullable=True) # 'spotify', 'apple_music' or legacy 'Apple Music'
    played_at = Column(DateTime(timezone=True), nullable=False, index=True)
    # Raw track object as returned by the source API
    track_data = Column(JSON, nullable=True)
    # Out-of-band popularity lookup for Apple Music tracks
    popularity_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.datetime.now(datetime.UTC))

    genres = relationship('Genre', secondary=listening_history_genre, lazy='selectin')

class Genre(Base):
    """Genre label attached to plays"""
    __tablename__ = 'genres'

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

class ArtistImage(Base):
    """
    Display image for a canonical artist name.
    Looked up by exact name match.
    """
    __tablename__ = 'artist_images'

    id = Column(Integer, primary_key=True)
    artist_name = Column(String, unique=True, nullable=False, index=True)
    image_url = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.datetime.now(datetime.UTC))
