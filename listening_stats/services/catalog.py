"""Artist image lookups against the Spotify catalog"""
import logging
import re
import time
from typing import Dict, Iterable, List, Optional

import requests
from rapidfuzz import fuzz

from listening_stats.config import settings
from listening_stats.services.storage import HistoryStore

logger = logging.getLogger(__name__)

# --- Constants for request control ---
MAX_RETRIES = 3
RATE_LIMIT_RETRY_BASE_DELAY = 2
REQUEST_TIMEOUT_SECONDS = 10
# ------------------------------------

_BRACKETED = re.compile(r'\s*\(.*?\)|\s*\[.*?\]')
_LEADING_THE = re.compile(r'^the\s+', re.IGNORECASE)
_FEATURED = re.compile(r'\s+(feat\.|featuring|ft\.|with)\s+.*', re.IGNORECASE)
_PUNCTUATION = re.compile(r'[^\w\s]|_')
_WHITESPACE = re.compile(r'\s+')

def clean_artist_name(name: str) -> str:
    """Lowercase and strip qualifiers, a leading 'the', featured credits and punctuation"""
    name = name.lower()
    name = _BRACKETED.sub('', name)
    name = _LEADING_THE.sub('', name.strip())
    name = _FEATURED.sub('', name)
    name = _PUNCTUATION.sub('', name)
    return _WHITESPACE.sub(' ', name).strip()

def is_similar_name(searched: str, found: str, threshold: Optional[int] = None) -> bool:
    """Whether a catalog hit plausibly names the artist that was searched for"""
    threshold = settings.IMAGE_MATCH_THRESHOLD if threshold is None else threshold
    searched = searched.strip().lower()
    found = found.strip().lower()
    if searched == found:
        return True

    clean_searched = clean_artist_name(searched)
    clean_found = clean_artist_name(found)
    if clean_searched == clean_found:
        return True

    # "Beatles" vs "The Beatles"
    if len(searched) > 3 and len(found) > 3 and (searched in found or found in searched):
        return True

    return fuzz.ratio(clean_searched, clean_found) >= threshold


class SpotifyCatalog:
    """Searches the Spotify catalog for artist images"""

    def __init__(self, token: str, base_url: str = "https://api.spotify.com/v1"):
        if not token:
            raise ValueError("Spotify token cannot be empty")
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    def _make_request(self, endpoint: str, params: Dict, retries: int = MAX_RETRIES) -> Dict:
        """Make an authenticated GET with retries on rate limits and server errors"""
        url = f'{self.base_url}/{endpoint}'
        last_exception = None

        for attempt in range(1, retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
                response.raise_for_status()
                try:
                    data = response.json()
                except ValueError:
                    logger.error(f"Failed to decode JSON response from {url}. Status: {response.status_code}")
                    return {}
                return data if isinstance(data, dict) else {}
            except requests.exceptions.HTTPError as e:
                last_exception = e
                status = e.response.status_code if e.response is not None else None
                if status in (401, 403):
                    logger.error(f"Spotify rejected the token ({status}) for {url}")
                    raise
                if status == 429:
                    retry_after = e.response.headers.get('Retry-After')
                    delay = int(retry_after) if retry_after and retry_after.isdigit() else RATE_LIMIT_RETRY_BASE_DELAY * attempt
                    delay = max(1, min(delay, 60))
                    logger.warning(f"Rate limit hit (429) for {url}. Retrying after {delay} seconds...")
                    if attempt < retries:
                        time.sleep(delay)
                    continue
                if status is not None and status >= 500:
                    logger.warning(f"Spotify server error ({status}) for {url}. Retrying...")
                else:
                    logger.error(f"Client error ({status}) for {url}. Aborting request.")
                    raise
            except requests.exceptions.RequestException as e:
                last_exception = e
                logger.warning(f"Request error on attempt {attempt} for {url}: {e}. Retrying...")

            if attempt < retries:
                time.sleep(RATE_LIMIT_RETRY_BASE_DELAY * (1.5 ** (attempt - 1)))

        logger.error(f"Request failed after {retries} attempts for {url}.")
        raise last_exception or requests.exceptions.RetryError(f"Request failed after {retries} attempts for {url}")

    def search_artist_image(self, artist_name: str) -> Optional[str]:
        """Return the largest image of the best matching artist, if the names agree"""
        data = self._make_request('search', {'q': artist_name, 'type': 'artist', 'limit': 1})
        items = (data.get('artists') or {}).get('items') or []
        if not items or not isinstance(items[0], dict):
            return None

        artist = items[0]
        found_name = artist.get('name') or ''
        if not is_similar_name(artist_name, found_name):
            logger.debug(f"Spotify artist name mismatch: searched '{artist_name}', found '{found_name}'")
            return None

        images = artist.get('images') or []
        if images and isinstance(images[0], dict) and images[0].get('url'):
            logger.info(f"Found artist image on Spotify for '{artist_name}' ('{found_name}')")
            return images[0]['url']
        return None


class ArtistImageCache:
    """Fills the artist image table from the catalog for names that lack one"""

    def __init__(self, store: HistoryStore, catalog: SpotifyCatalog, delay_seconds: Optional[float] = None):
        self.store = store
        self.catalog = catalog
        self.delay_seconds = settings.IMAGE_FETCH_DELAY_SECONDS if delay_seconds is None else delay_seconds

    def cache_missing(self, artist_names: Iterable[str]) -> int:
        """
        Look up and store images for artists without a cached one.

        Returns:
            Number of images stored
        """
        missing: List[str] = self.store.missing_image_names(artist_names)
        logger.info(f"Caching artist images for {len(missing)} artists")

        cached = 0
        for index, artist_name in enumerate(missing):
            try:
                image_url = self.catalog.search_artist_image(artist_name)
            except requests.exceptions.RequestException as e:
                logger.warning(f"Failed to fetch image for artist '{artist_name}': {e}")
                image_url = None

            if image_url:
                self.store.save_image(artist_name, image_url)
                cached += 1

            if self.delay_seconds and index < len(missing) - 1:
                time.sleep(self.delay_seconds)

        logger.info(f"Artist image caching completed: {cached} cached of {len(missing)} missing")
        return cached
