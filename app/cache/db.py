import logging
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.core.errors import PersistenceFailure

logger = logging.getLogger(__name__)

DATABASE_PATH = settings.DATABASE_PATH


@dataclass
class CacheEntry:
    url: str
    title: Optional[str]
    created_at: datetime


def _to_iso(moment: datetime) -> str:
    """Normalize to UTC so stored timestamps compare correctly as text."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _connect() -> sqlite3.Connection:
    return sqlite3.connect(DATABASE_PATH)


def init_db():
    """Initialize SQLite database with the title cache table"""
    directory = os.path.dirname(DATABASE_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)

    try:
        with _connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS title_cache (
                    url TEXT PRIMARY KEY,
                    title TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_title_cache_created_at ON title_cache(created_at)")
            conn.commit()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to initialize cache at {DATABASE_PATH}: {e}") from e


def get(url: str) -> Optional[CacheEntry]:
    """Get the cached entry for a URL. The entry's title may itself be None."""
    try:
        with _connect() as conn:
            cursor = conn.execute(
                "SELECT url, title, created_at FROM title_cache WHERE url = ?",
                (url,)
            )
            row = cursor.fetchone()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to read cache for {url}: {e}") from e

    if row is None:
        return None
    try:
        created_at = datetime.fromisoformat(row[2])
    except (TypeError, ValueError) as e:
        raise PersistenceFailure(f"Corrupted cache entry for {url}: {e}") from e
    return CacheEntry(url=row[0], title=row[1], created_at=created_at)


def set(url: str, title: Optional[str], created_at: Optional[datetime] = None):
    """Store the title for a URL, replacing any previous entry"""
    created = _to_iso(created_at or datetime.now(timezone.utc))
    try:
        with _connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO title_cache (url, title, created_at) VALUES (?, ?, ?)",
                (url, title, created)
            )
            conn.commit()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to write cache for {url}: {e}") from e


def purge_old(cutoff: datetime) -> int:
    """Remove entries created before cutoff. Returns the number removed."""
    try:
        with _connect() as conn:
            cursor = conn.execute("DELETE FROM title_cache WHERE created_at < ?", (_to_iso(cutoff),))
            conn.commit()
            return cursor.rowcount
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to purge cache: {e}") from e


def count() -> int:
    try:
        with _connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM title_cache").fetchone()[0]
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to count cache entries: {e}") from e


def clear_all():
    """Clear all cache entries"""
    try:
        with _connect() as conn:
            conn.execute("DELETE FROM title_cache")
            conn.commit()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to clear cache: {e}") from e


def get_stats() -> dict:
    """Get cache statistics"""
    try:
        with _connect() as conn:
            total_entries = conn.execute("SELECT COUNT(*) FROM title_cache").fetchone()[0]
            untitled_entries = conn.execute(
                "SELECT COUNT(*) FROM title_cache WHERE title IS NULL"
            ).fetchone()[0]
            oldest = conn.execute("SELECT MIN(created_at) FROM title_cache").fetchone()[0]
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Failed to read cache statistics: {e}") from e

    return {
        "total_entries": total_entries,
        "untitled_entries": untitled_entries,
        "oldest_entry": oldest,
        "database_path": DATABASE_PATH
    }
