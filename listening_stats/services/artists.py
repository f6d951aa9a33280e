"""Artist analytics for one user's listening history"""
import logging
import math
from typing import Iterable, List, Optional
from urllib.parse import quote

from listening_stats.aggregation import (
    AggregationDiagnostics,
    aggregate_by_artist,
    collaborators as collect_collaborators,
    event_metrics,
    events_for_artist,
    genre_breakdown,
    search_artists,
    sort_by_track_count,
    top_artists as rank_top_artists,
)
from listening_stats.config import settings
from listening_stats.date_ranges import DateLike, resolve_range
from listening_stats.models.listening import ArtistFilter, PlayEvent
from listening_stats.models.view import (
    ArtistDetail,
    ArtistPage,
    ArtistProfile,
    ArtistSearchResult,
    ArtistStats,
    ArtistSummary,
    Collaborator,
    LatestTrack,
    PageMeta,
    TopArtist,
    TrackSummary,
)
from listening_stats.resolver import ArtistNameResolver, default_resolver
from listening_stats.services.storage import HistoryStore

logger = logging.getLogger(__name__)

class ArtistInsights:
    """Builds artist views from the history store"""

    def __init__(self, store: HistoryStore, resolver: Optional[ArtistNameResolver] = None):
        self.store = store
        self.resolver = resolver or default_resolver

    def list_artists(self, user_id: int, search: str = '', range_name: str = 'all',
                     start: Optional[DateLike] = None, end: Optional[DateLike] = None,
                     page: int = 1, per_page: Optional[int] = None) -> ArtistPage:
        """
        One page of the user's artists, most distinct tracks first.

        Raises:
            ValueError: If page or per_page is below 1
        """
        per_page = settings.DEFAULT_PER_PAGE if per_page is None else per_page
        if page < 1 or per_page < 1:
            raise ValueError(f"page and per_page must be positive, got page={page} per_page={per_page}")

        date_range = resolve_range(range_name, start, end)
        search = (search or '').strip()
        events = self.store.fetch_events(user_id, date_range=date_range, search=search or None)

        diagnostics = AggregationDiagnostics()
        aggregates = aggregate_by_artist(
            events,
            ArtistFilter(search=search or None, date_range=date_range),
            resolver=self.resolver,
            diagnostics=diagnostics,
        )
        if diagnostics.counts:
            logger.info(f"Artist aggregation for user {user_id} degraded: {diagnostics.summary()}")

        ranked = sort_by_track_count(aggregates)
        total = len(ranked)
        offset = (page - 1) * per_page
        page_items = ranked[offset:offset + per_page]
        images = self.store.image_lookup(aggregate.artist_name for aggregate in page_items)

        data = [
            ArtistSummary(
                artist_name=aggregate.artist_name,
                track_count=aggregate.track_count,
                play_count=aggregate.play_count,
                total_minutes=round(aggregate.total_minutes, 2),
                average_popularity=(
                    round(aggregate.average_popularity, 2) if aggregate.average_popularity is not None else None
                ),
                latest_played_at=aggregate.latest_played_at,
                genres=aggregate.genres,
                image_url=images.get(aggregate.artist_name),
            )
            for aggregate in page_items
        ]
        meta = PageMeta(
            current_page=page,
            last_page=max(1, math.ceil(total / per_page)),
            per_page=per_page,
            total=total,
        )
        return ArtistPage(data=data, meta=meta)

    def top_artists(self, user_id: int, range_name: str = 'all', start: Optional[DateLike] = None,
                    end: Optional[DateLike] = None, limit: int = 10) -> List[TopArtist]:
        """Most played artists in a range"""
        date_range = resolve_range(range_name, start, end)
        events = self.store.fetch_events(user_id, date_range=date_range)
        ranked = rank_top_artists(events, limit=limit, resolver=self.resolver)
        images = self.store.image_lookup(name for name, _ in ranked)
        return [TopArtist(artist_name=name, play_count=count, image_url=images.get(name)) for name, count in ranked]

    def artist_detail(self, user_id: int, artist_name: str) -> Optional[ArtistDetail]:
        """Stats and recent plays for one artist, None when the user never played them"""
        artist_name = (artist_name or '').strip()
        if not artist_name:
            return None

        candidates = self.store.fetch_events(user_id, search=artist_name)
        events = events_for_artist(candidates, artist_name, resolver=self.resolver)
        if not events:
            logger.info(f"Artist '{artist_name}' not found in listening history of user {user_id}")
            return None

        tracks = [self._track_summary(event) for event in events]
        total_ms = sum(track.duration_ms for track in tracks)
        tracks.sort(key=lambda track: track.played_at, reverse=True)

        images = self.store.image_lookup([artist_name])
        return ArtistDetail(
            artist=ArtistProfile(name=artist_name, image_url=images.get(artist_name)),
            stats=ArtistStats(
                total_tracks=len(events),
                total_minutes=round(total_ms / 60000, 2),
                genre_breakdown=genre_breakdown(events),
            ),
            tracks=tracks[:settings.RECENT_TRACKS_LIMIT],
        )

    def search(self, user_id: int, query: str) -> List[ArtistSearchResult]:
        """Artists in the user's history whose name contains ``query``"""
        query = (query or '').strip()
        if len(query) < settings.SEARCH_MIN_LENGTH:
            return []

        events = self.store.fetch_events(user_id, search=query)
        names = search_artists(events, query, resolver=self.resolver)
        images = self.store.image_lookup(names)
        return [
            ArtistSearchResult(id=quote(name, safe=''), name=name, image=images.get(name))
            for name in names
        ]

    def collaborators(self, user_id: int, track_ids: Iterable[str]) -> List[Collaborator]:
        """Artists credited across the given tracks, such as one producer's catalogue"""
        track_ids = list(track_ids)
        if not track_ids:
            return []

        events = self.store.fetch_events(user_id, track_ids=track_ids)
        stats = collect_collaborators(events, resolver=self.resolver)
        images = self.store.image_lookup(entry.name for entry in stats)
        return [
            Collaborator(
                name=entry.name,
                shared_tracks_count=entry.shared_tracks_count,
                image_url=images.get(entry.name),
                genres=entry.genres,
                latest_track=LatestTrack(
                    track_name=entry.latest_event.track_name,
                    played_at=entry.latest_event.played_at,
                ) if entry.latest_event else None,
            )
            for entry in stats
        ]

    @staticmethod
    def _track_summary(event: PlayEvent) -> TrackSummary:
        return TrackSummary(
            id=event.event_id,
            track_id=event.track_id,
            track_name=event.track_name,
            artist_name=event.raw_artist_credit,
            album_name=event.album_name,
            played_at=event.played_at,
            duration_ms=event_metrics(event).duration_ms or 0,
            source=event.source.value if event.source else None,
            genres=sorted(event.genre_ids, key=str),
        )
