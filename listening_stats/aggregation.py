"""Per-artist roll-ups over a user's play events.

Every roll-up keys on canonical artist names from the resolver, so the
artists list, the top-artists chart, search and collaborator views all agree
on who an artist is. Dirty data degrades per event and never aborts a run.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from listening_stats.config import settings
from listening_stats.date_ranges import ensure_utc
from listening_stats.extraction import MalformedPayload, TrackMetrics, extract_metrics
from listening_stats.models.listening import ArtistAggregate, ArtistFilter, PlayEvent
from listening_stats.resolver import ArtistNameResolver, default_resolver

logger = logging.getLogger(__name__)

EMPTY_METRICS = TrackMetrics()


class AggregationDiagnostics:
    """Counts data problems seen during a run and keeps a few sample event ids"""

    CATEGORIES = ('malformed_payloads', 'unknown_sources', 'empty_credits')

    def __init__(self, sample_size: Optional[int] = None):
        self.sample_size = settings.DIAGNOSTIC_SAMPLE_SIZE if sample_size is None else sample_size
        self.counts: Counter = Counter()
        self.samples: Dict[str, List] = {category: [] for category in self.CATEGORIES}

    def record(self, category: str, event: PlayEvent) -> None:
        self.counts[category] += 1
        samples = self.samples.setdefault(category, [])
        if len(samples) < self.sample_size:
            samples.append(event.event_id if event.event_id is not None else event.track_id)

    def summary(self) -> Dict[str, Dict]:
        return {
            category: {'count': self.counts[category], 'samples': list(self.samples.get(category, []))}
            for category in self.CATEGORIES
        }


def event_metrics(event: PlayEvent, diagnostics: Optional[AggregationDiagnostics] = None) -> TrackMetrics:
    """Duration and popularity for one event, empty when the track payload is unusable"""
    if event.source is None:
        logger.warning(f"Play event {event.event_id} for track {event.track_id} has an unknown source")
        if diagnostics:
            diagnostics.record('unknown_sources', event)
        return EMPTY_METRICS
    try:
        metrics = extract_metrics(event)
    except MalformedPayload as e:
        logger.warning(f"Malformed payload on play event {event.event_id} (track {event.track_id}): {e}")
        if diagnostics:
            diagnostics.record('malformed_payloads', event)
        return EMPTY_METRICS
    if metrics.popularity_error and diagnostics:
        diagnostics.record('malformed_payloads', event)
    return metrics


def _require_events(events) -> None:
    if events is None:
        raise TypeError("events must be a list of PlayEvent, not None")


def aggregate_by_artist(events: Iterable[PlayEvent], filter: Optional[ArtistFilter] = None,
                        resolver: Optional[ArtistNameResolver] = None,
                        diagnostics: Optional[AggregationDiagnostics] = None,
                        genre_limit: Optional[int] = None) -> Dict[str, ArtistAggregate]:
    """
    Group play events by canonical artist.

    Args:
        events: Play events already narrowed to one user
        filter: Optional search term (matched against individual artist names)
            and date range
        resolver: Credit splitter, the default exception list when omitted
        diagnostics: Collector for malformed payloads and empty credits
        genre_limit: Genres shown per artist, ``settings.GENRE_DISPLAY_LIMIT`` by default

    Returns:
        Aggregates keyed by artist name in first-seen order

    Raises:
        TypeError: If events is None
    """
    _require_events(events)
    resolver = resolver or default_resolver
    genre_limit = settings.GENRE_DISPLAY_LIMIT if genre_limit is None else genre_limit
    search = (filter.search or '').strip().casefold() if filter else ''
    date_range = filter.date_range if filter else None

    aggregates: Dict[str, ArtistAggregate] = {}
    for event in events:
        if date_range is not None and not date_range.contains(event.played_at):
            continue

        names = resolver.canonical_names(event.raw_artist_credit or '')
        if not names:
            if diagnostics:
                diagnostics.record('empty_credits', event)
            continue
        if search:
            names = [name for name in names if search in name.casefold()]
            if not names:
                continue

        metrics = event_metrics(event, diagnostics)
        for name in names:
            aggregate = aggregates.get(name)
            if aggregate is None:
                aggregate = aggregates[name] = ArtistAggregate(artist_name=name, genre_limit=genre_limit)
            aggregate.add_play(event, metrics.duration_ms, metrics.popularity)

    logger.debug(f"Aggregated {len(aggregates)} artists")
    return aggregates


def sort_by_track_count(aggregates: Dict[str, ArtistAggregate]) -> List[ArtistAggregate]:
    """Order aggregates by distinct track count, ties keep first-seen order"""
    return sorted(aggregates.values(), key=lambda aggregate: aggregate.track_count, reverse=True)


def top_artists(events: Iterable[PlayEvent], limit: int = 10,
                resolver: Optional[ArtistNameResolver] = None) -> List[Tuple[str, int]]:
    """Count plays per canonical artist and return the ``limit`` most played"""
    _require_events(events)
    resolver = resolver or default_resolver
    counts: Dict[str, int] = {}
    for event in events:
        for name in resolver.canonical_names(event.raw_artist_credit or ''):
            counts[name] = counts.get(name, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def events_for_artist(events: Iterable[PlayEvent], artist_name: str,
                      resolver: Optional[ArtistNameResolver] = None) -> List[PlayEvent]:
    """Events whose credit resolves to ``artist_name`` among its artists"""
    _require_events(events)
    resolver = resolver or default_resolver
    artist_name = artist_name.strip()
    return [
        event for event in events
        if artist_name in resolver.canonical_names(event.raw_artist_credit or '')
    ]


def genre_breakdown(events: Iterable[PlayEvent],
                    diagnostics: Optional[AggregationDiagnostics] = None) -> Dict[str, Dict[str, float]]:
    """Plays and minutes per genre, minutes rounded to two decimals"""
    _require_events(events)
    breakdown: Dict[str, Dict[str, float]] = {}
    durations: Dict[str, int] = {}
    for event in events:
        if not event.genre_ids:
            continue
        duration_ms = event_metrics(event, diagnostics).duration_ms or 0
        for genre in event.genre_ids:
            entry = breakdown.setdefault(genre, {'count': 0, 'minutes': 0.0})
            entry['count'] += 1
            durations[genre] = durations.get(genre, 0) + duration_ms
    for genre, entry in breakdown.items():
        entry['minutes'] = round(durations[genre] / 60000, 2)
    return breakdown


@dataclass
class CollaboratorStats:
    """One artist credited on a set of tracks"""
    name: str
    shared_tracks_count: int = 0
    genre_ids: set = field(default_factory=set)
    latest_event: Optional[PlayEvent] = None

    @property
    def genres(self) -> List[str]:
        return sorted(self.genre_ids, key=str)


def collaborators(events: Iterable[PlayEvent],
                  resolver: Optional[ArtistNameResolver] = None) -> List[CollaboratorStats]:
    """
    Artists credited across a set of tracks, such as everything one producer
    worked on. Each track counts once, using its first play in ``events``.
    """
    _require_events(events)
    resolver = resolver or default_resolver

    unique_tracks: Dict[str, PlayEvent] = {}
    for event in events:
        unique_tracks.setdefault(event.track_id, event)

    stats: Dict[str, CollaboratorStats] = {}
    for event in unique_tracks.values():
        for name in resolver.canonical_names(event.raw_artist_credit or ''):
            entry = stats.get(name)
            if entry is None:
                entry = stats[name] = CollaboratorStats(name=name)
            entry.shared_tracks_count += 1
            entry.genre_ids.update(event.genre_ids)
            if entry.latest_event is None or ensure_utc(event.played_at) > ensure_utc(entry.latest_event.played_at):
                entry.latest_event = event

    return sorted(stats.values(), key=lambda entry: entry.shared_tracks_count, reverse=True)


def search_artists(events: Iterable[PlayEvent], query: str, limit: Optional[int] = None,
                   min_length: Optional[int] = None,
                   resolver: Optional[ArtistNameResolver] = None) -> List[str]:
    """Distinct canonical artist names containing ``query``, first-seen order"""
    _require_events(events)
    resolver = resolver or default_resolver
    limit = settings.SEARCH_RESULT_LIMIT if limit is None else limit
    min_length = settings.SEARCH_MIN_LENGTH if min_length is None else min_length

    query = (query or '').strip()
    if len(query) < min_length:
        return []

    needle = query.casefold()
    matches: List[str] = []
    for event in events:
        for name in resolver.canonical_names(event.raw_artist_credit or ''):
            if needle in name.casefold() and name not in matches:
                matches.append(name)
                if len(matches) >= limit:
                    return matches
    return matches
