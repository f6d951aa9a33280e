"""Application configuration and environment settings"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Storage
    DATABASE_URL: str = Field("sqlite:///listening_stats.db", description="SQLAlchemy database URL")

    # Catalog metadata source
    SPOTIFY_TOKEN: Optional[str] = Field(None, description="Spotify API access token used for artist image search")
    SPOTIFY_API_URL: str = Field("https://api.spotify.com/v1", description="Spotify Web API base URL")
    IMAGE_MATCH_THRESHOLD: int = Field(85, description="Minimum name similarity (0-100) to accept a catalog image")
    IMAGE_FETCH_DELAY_SECONDS: float = Field(0.1, description="Pause between catalog lookups")

    # Aggregation and presentation
    GENRE_DISPLAY_LIMIT: int = Field(10, description="Maximum genres shown per artist")
    DEFAULT_PER_PAGE: int = Field(15, description="Artists per page")
    MAX_EVENTS_PER_REQUEST: int = Field(50000, description="Cap on play events read per request (0 disables)")
    SEARCH_MIN_LENGTH: int = Field(2, description="Shortest query accepted by artist search")
    SEARCH_RESULT_LIMIT: int = Field(5, description="Maximum artists returned by search")
    RECENT_TRACKS_LIMIT: int = Field(50, description="Recent tracks listed on an artist page")
    DIAGNOSTIC_SAMPLE_SIZE: int = Field(3, description="Sample event ids kept per diagnostic category")

    # Report entry point
    LOG_LEVEL: str = Field("INFO", description="Root log level for the report entry point")
    REPORT_USER_ID: Optional[int] = Field(None, description="User whose listening history is reported")
    REPORT_RANGE: str = Field("all", description="Named date range for the report")
    OUTPUT_DIR: str = Field("/output", description="Directory for output files")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()
