"""Entry point for the artist report"""
import logging
import os
import sys
import traceback

from listening_stats.config import settings
from listening_stats.db import db
from listening_stats.services.artists import ArtistInsights
from listening_stats.services.catalog import ArtistImageCache, SpotifyCatalog
from listening_stats.services.storage import HistoryStore
from listening_stats.utils.json_encoder import json_dumps

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format='%(message)s')
logger = logging.getLogger(__name__)

def build_report(insights: ArtistInsights, user_id: int, range_name: str) -> dict:
    """Artists page and top-artists chart for one user"""
    artists = insights.list_artists(user_id, range_name=range_name)
    top = insights.top_artists(user_id, range_name=range_name)
    return {
        'user_id': user_id,
        'range': range_name,
        'artists': artists.model_dump(),
        'top_artists': [artist.model_dump() for artist in top],
    }

def run() -> None:
    """Write the artist report for the configured user."""
    try:
        if settings.REPORT_USER_ID is None:
            raise ValueError("REPORT_USER_ID setting is required")

        db.init()

        # Log config (excluding sensitive data)
        logger.info("Using configuration:")
        logger.info(json_dumps(settings.model_dump(exclude={'SPOTIFY_TOKEN', 'DATABASE_URL'}), indent=2))

        with db.session() as session:
            insights = ArtistInsights(HistoryStore(session))
            report = build_report(insights, settings.REPORT_USER_ID, settings.REPORT_RANGE)

            if settings.SPOTIFY_TOKEN:
                names = [artist['artist_name'] for artist in report['artists']['data']]
                names += [artist['artist_name'] for artist in report['top_artists']]
                catalog = SpotifyCatalog(token=settings.SPOTIFY_TOKEN, base_url=settings.SPOTIFY_API_URL)
                if ArtistImageCache(insights.store, catalog).cache_missing(names):
                    report = build_report(insights, settings.REPORT_USER_ID, settings.REPORT_RANGE)

        os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
        output_path = os.path.join(settings.OUTPUT_DIR, "results.json")
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(json_dumps(report, indent=2, ensure_ascii=False))

        logger.info(f"Artist report written to {output_path} ({report['artists']['meta']['total']} artists)")

    except Exception as e:
        logger.error(f"Error building artist report: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.dispose()

if __name__ == "__main__":
    run()
