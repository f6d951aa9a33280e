"""Tests for catalog image lookups with the HTTP layer mocked."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from listening_stats.services.catalog import (
    ArtistImageCache,
    SpotifyCatalog,
    clean_artist_name,
    is_similar_name,
)
from listening_stats.services.storage import HistoryStore


def _response(status: int = 200, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.headers = {}
    response.json.return_value = payload or {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


def _artist_hit(name: str, url: str = "https://img/artist.jpg") -> dict:
    return {"artists": {"items": [{"name": name, "images": [{"url": url}]}]}}


class TestNameMatching:
    """Tests for clean_artist_name and is_similar_name."""

    def test_clean(self) -> None:
        assert clean_artist_name("The Weeknd (Deluxe) feat. Daft Punk") == "weeknd"
        assert clean_artist_name("  Sly & The Family Stone!! ") == "sly the family stone"

    @pytest.mark.parametrize(
        "searched,found",
        [
            ("Drake", "drake"),
            ("The Beatles", "Beatles"),
            ("Beyonce", "Beyoncé"),
        ],
    )
    def test_similar(self, searched: str, found: str) -> None:
        assert is_similar_name(searched, found)

    def test_dissimilar(self) -> None:
        assert not is_similar_name("Drake", "Kendrick Lamar")


class TestSpotifyCatalog:
    """Tests for SpotifyCatalog.search_artist_image."""

    def test_requires_token(self) -> None:
        with pytest.raises(ValueError):
            SpotifyCatalog(token="")

    def test_returns_first_image(self) -> None:
        catalog = SpotifyCatalog(token="token")
        with patch.object(catalog.session, "get", return_value=_response(payload=_artist_hit("Drake"))) as get:
            assert catalog.search_artist_image("Drake") == "https://img/artist.jpg"
        _, kwargs = get.call_args
        assert kwargs["params"] == {"q": "Drake", "type": "artist", "limit": 1}

    def test_name_mismatch(self) -> None:
        catalog = SpotifyCatalog(token="token")
        with patch.object(catalog.session, "get", return_value=_response(payload=_artist_hit("Kendrick Lamar"))):
            assert catalog.search_artist_image("Drake") is None

    def test_no_results(self) -> None:
        catalog = SpotifyCatalog(token="token")
        with patch.object(catalog.session, "get", return_value=_response(payload={"artists": {"items": []}})):
            assert catalog.search_artist_image("Drake") is None

    def test_unauthorized_raises(self) -> None:
        catalog = SpotifyCatalog(token="token")
        with patch.object(catalog.session, "get", return_value=_response(status=401)):
            with pytest.raises(requests.exceptions.HTTPError):
                catalog.search_artist_image("Drake")

    @patch("listening_stats.services.catalog.time.sleep")
    def test_retries_server_errors(self, sleep) -> None:
        catalog = SpotifyCatalog(token="token")
        responses = [_response(status=502), _response(payload=_artist_hit("Drake"))]
        with patch.object(catalog.session, "get", side_effect=responses):
            assert catalog.search_artist_image("Drake") == "https://img/artist.jpg"
        assert sleep.call_count == 1


class TestArtistImageCache:
    """Tests for ArtistImageCache.cache_missing."""

    def test_caches_only_missing(self, session) -> None:
        store = HistoryStore(session)
        store.save_image("Drake", "https://img/drake.jpg")
        catalog = MagicMock()
        catalog.search_artist_image.side_effect = lambda name: f"https://img/{name}.jpg" if name == "SZA" else None

        cached = ArtistImageCache(store, catalog, delay_seconds=0).cache_missing(["Drake", "SZA", "Nobody"])

        assert cached == 1
        assert [call.args[0] for call in catalog.search_artist_image.call_args_list] == ["SZA", "Nobody"]
        assert store.image_lookup(["SZA"]) == {"SZA": "https://img/SZA.jpg"}

    def test_request_failures_are_skipped(self, session) -> None:
        store = HistoryStore(session)
        catalog = MagicMock()
        catalog.search_artist_image.side_effect = [requests.exceptions.ConnectionError("down"), "https://img/b.jpg"]

        cached = ArtistImageCache(store, catalog, delay_seconds=0).cache_missing(["A", "B"])

        assert cached == 1
        assert store.image_lookup(["A", "B"]) == {"B": "https://img/b.jpg"}
