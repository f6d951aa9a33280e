"""Duration and popularity extraction from stored track payloads.

Spotify and Apple Music payloads differ in shape, so each value is read with a
per-source rule. Extractors return None when a value is absent, keeping
"missing" distinct from zero so averages only count real observations.
"""
import json
import logging
import re
from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, Optional

from listening_stats.models.listening import PlayEvent, Source
from listening_stats.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

DURATION_TOKEN = re.compile(r'"durationInMillis"\s*:\s*(\d+)')


class MalformedPayload(ValueError):
    """A stored payload could not be decoded or has an unexpected shape"""


@dataclass(frozen=True)
class TrackMetrics:
    duration_ms: Optional[int] = None
    popularity: Optional[float] = None
    # set when the side popularity lookup could not be read
    popularity_error: Optional[str] = None


def decode_payload(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Decode a stored payload into a dict.

    Args:
        raw: A dict, JSON text (str or bytes), or None

    Returns:
        The decoded object, or None when nothing was stored

    Raises:
        MalformedPayload: If the text is not JSON or does not decode to an object
    """
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8', errors='replace')
    if not isinstance(raw, str):
        raise MalformedPayload(f"Unsupported payload type: {type(raw).__name__}")
    if not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"Payload is not valid JSON: {e}") from e
    if decoded is None:
        return None
    if not isinstance(decoded, dict):
        raise MalformedPayload(f"Payload decoded to {type(decoded).__name__}, expected an object")
    return decoded


def _dig(payload: Any, *path) -> Any:
    current = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[key] if isinstance(key, int) else current.get(key)
        if current is None:
            return None
    return current


def _as_duration(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedPayload(f"Invalid duration {value!r}")
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise MalformedPayload(f"Invalid duration {value!r}")
    if duration < 0:
        raise MalformedPayload(f"Negative duration {duration}")
    return duration


def _as_popularity(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def extract_duration_ms(source: Optional[Source], payload: Optional[Dict[str, Any]]) -> Optional[int]:
    """
    Read the track duration in milliseconds.

    Spotify keeps it at ``duration_ms``. Apple Music nests it under
    ``attributes`` or ``data[0].attributes``; as a last resort the serialized
    payload is scanned for a ``"durationInMillis": <int>`` token.

    Raises:
        MalformedPayload: If a duration is present but not a non-negative integer
    """
    if not payload:
        return None

    if source is Source.SPOTIFY:
        value = payload.get('duration_ms')
        return None if value is None else _as_duration(value)

    if source is Source.APPLE_MUSIC:
        for path in (('attributes', 'durationInMillis'), ('data', 0, 'attributes', 'durationInMillis')):
            value = _dig(payload, *path)
            if value is not None:
                return _as_duration(value)
        match = DURATION_TOKEN.search(json_dumps(payload))
        return int(match.group(1)) if match else None

    return None


def extract_popularity(source: Optional[Source], payload: Optional[Dict[str, Any]],
                       popularity_payload: Optional[Dict[str, Any]] = None) -> Optional[float]:
    """Read popularity inline for Spotify, from the side lookup for Apple Music"""
    if source is Source.SPOTIFY:
        return _as_popularity(payload.get('popularity')) if payload else None
    if source is Source.APPLE_MUSIC:
        return _as_popularity(popularity_payload.get('popularity')) if popularity_payload else None
    return None


def extract_metrics(event: PlayEvent) -> TrackMetrics:
    """
    Extract duration and popularity for one event.

    A corrupt Apple Music popularity lookup only loses the popularity; the
    duration is kept and the problem is reported in ``popularity_error``.

    Raises:
        MalformedPayload: If the track payload cannot be decoded or read
    """
    payload = decode_payload(event.payload)
    duration_ms = extract_duration_ms(event.source, payload)

    if event.source is not Source.APPLE_MUSIC:
        return TrackMetrics(duration_ms=duration_ms, popularity=extract_popularity(event.source, payload))

    try:
        popularity_payload = decode_payload(event.popularity_payload)
    except MalformedPayload as e:
        logger.warning(f"Malformed popularity payload on play event {event.event_id} (track {event.track_id}): {e}")
        return TrackMetrics(duration_ms=duration_ms, popularity_error=str(e))
    popularity = extract_popularity(event.source, payload, popularity_payload)
    return TrackMetrics(duration_ms=duration_ms, popularity=popularity)
