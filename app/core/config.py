import os
from typing import Optional

class Settings:
    # Database
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/cache.sqlite")

    # Fetching
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "15"))
    USER_AGENT: str = os.getenv("USER_AGENT", "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36")
    # Responses kept in the in-memory HTTP cache per fetcher
    HTTP_CACHE_CAPACITY: int = int(os.getenv("HTTP_CACHE_CAPACITY", "256"))

    # Concurrency limits.
    # The fetch gate leaves room for several clients each using the request gate.
    FETCH_CONCURRENCY: int = int(os.getenv("FETCH_CONCURRENCY", "9"))
    REQUEST_CONCURRENCY: int = int(os.getenv("REQUEST_CONCURRENCY", "3"))

    # Cache retention
    CACHE_RETENTION_DAYS: int = int(os.getenv("CACHE_RETENTION_DAYS", "7"))
    CACHE_SWEEP_INTERVAL_HOURS: float = float(os.getenv("CACHE_SWEEP_INTERVAL_HOURS", "24"))

    # Providers
    DEFAULT_LANG: str = os.getenv("DEFAULT_LANG", "en")
    TWITTER_OEMBED_URL: str = os.getenv("TWITTER_OEMBED_URL", "https://publish.twitter.com/oembed")

    # Client side
    RESOLVER_BASE_URL: str = os.getenv("RESOLVER_BASE_URL", "http://127.0.0.1:8000")
    MAX_TITLE_LENGTH: int = int(os.getenv("MAX_TITLE_LENGTH", "500"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: Optional[str] = os.getenv("LOG_FORMAT")

settings = Settings()
