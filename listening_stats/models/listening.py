"""Domain models for listening history and per-artist aggregates"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Set

from listening_stats.date_ranges import DateRange, ensure_utc

class Source(str, Enum):
    """Streaming service a play event came from"""
    SPOTIFY = 'spotify'
    APPLE_MUSIC = 'apple_music'

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional['Source']:
        """Map a stored source label to a Source, None when unrecognised"""
        if isinstance(label, cls):
            return label
        if not isinstance(label, str):
            return None
        normalized = label.strip().lower().replace(' ', '_')
        for source in cls:
            if source.value == normalized:
                return source
        return None

@dataclass(frozen=True)
class PlayEvent:
    """One listen from a user's history. Payloads keep the shape the source returned."""
    track_id: str
    raw_artist_credit: str
    source: Optional[Source]
    played_at: datetime
    payload: Any = None
    popularity_payload: Any = None
    genre_ids: FrozenSet[str] = frozenset()
    event_id: Optional[int] = None
    track_name: Optional[str] = None
    album_name: Optional[str] = None

@dataclass(frozen=True)
class ArtistFilter:
    """Optional narrowing applied while aggregating"""
    search: Optional[str] = None
    date_range: Optional[DateRange] = None

@dataclass
class ArtistAggregate:
    """Running roll-up of plays credited to one canonical artist"""
    artist_name: str
    play_count: int = 0
    total_duration_ms: int = 0
    popularity_sum: float = 0.0
    popularity_count: int = 0
    latest_played_at: Optional[datetime] = None
    track_ids: Set[str] = field(default_factory=set)
    genre_ids: Set[str] = field(default_factory=set)
    genre_limit: Optional[int] = None

    @property
    def track_count(self) -> int:
        return len(self.track_ids)

    @property
    def total_minutes(self) -> float:
        return self.total_duration_ms / 60000

    @property
    def average_popularity(self) -> Optional[float]:
        if not self.popularity_count:
            return None
        return self.popularity_sum / self.popularity_count

    @property
    def genres(self) -> List[str]:
        """Sorted genre union, capped at the display limit"""
        ordered = sorted(self.genre_ids, key=str)
        if self.genre_limit is not None:
            return ordered[:self.genre_limit]
        return ordered

    def add_play(self, event: PlayEvent, duration_ms: Optional[int], popularity: Optional[float]) -> None:
        """Fold one event into the aggregate"""
        self.play_count += 1
        self.track_ids.add(event.track_id)
        if duration_ms:
            self.total_duration_ms += duration_ms
        if popularity is not None:
            self.popularity_sum += popularity
            self.popularity_count += 1
        played_at = ensure_utc(event.played_at)
        if self.latest_played_at is None or played_at > self.latest_played_at:
            self.latest_played_at = played_at
        self.genre_ids.update(event.genre_ids)
