"""Response models handed to the view layer"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

class ArtistSummary(BaseModel):
    """One row of the artists list"""
    artist_name: str
    track_count: int = Field(description="Distinct tracks credited to the artist")
    play_count: int = Field(description="Plays credited to the artist")
    total_minutes: float = Field(description="Listening time in minutes, two decimals")
    average_popularity: Optional[float] = Field(None, description="Mean popularity over plays that report one")
    latest_played_at: Optional[datetime] = None
    genres: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None

class PageMeta(BaseModel):
    """Pagination details for a list response"""
    current_page: int
    last_page: int
    per_page: int
    total: int

class ArtistPage(BaseModel):
    data: List[ArtistSummary] = Field(default_factory=list)
    meta: PageMeta

class TopArtist(BaseModel):
    artist_name: str
    play_count: int = Field(description="Plays credited to the artist in the range, not distinct tracks")
    image_url: Optional[str] = None

class ArtistSearchResult(BaseModel):
    id: str = Field(description="URL-encoded artist name")
    name: str
    type: str = 'artist'
    image: Optional[str] = None

class LatestTrack(BaseModel):
    track_name: Optional[str] = None
    played_at: datetime

class Collaborator(BaseModel):
    """An artist credited on a shared set of tracks"""
    name: str
    shared_tracks_count: int
    image_url: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    latest_track: Optional[LatestTrack] = None

class TrackSummary(BaseModel):
    id: Optional[int] = None
    track_id: str
    track_name: Optional[str] = None
    artist_name: str
    album_name: Optional[str] = None
    played_at: datetime
    duration_ms: int = 0
    source: Optional[str] = None
    genres: List[str] = Field(default_factory=list)

class GenreShare(BaseModel):
    count: int
    minutes: float

class ArtistStats(BaseModel):
    total_tracks: int
    total_minutes: float
    genre_breakdown: Dict[str, GenreShare] = Field(default_factory=dict)

class ArtistProfile(BaseModel):
    name: str
    image_url: Optional[str] = None

class ArtistDetail(BaseModel):
    """
    Everything shown on a single artist's page.

    Attributes:
        artist: Name and image
        stats: Play totals and per-genre split
        tracks: Most recent plays, newest first
    """
    artist: ArtistProfile
    stats: ArtistStats
    tracks: List[TrackSummary] = Field(default_factory=list)
