"""File-backed cache of event bundles keyed by day."""
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from processor.errors import CacheCorrupt
from processor.models import EventBundle, HistoricalEvent, bundle_to_dict

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
FILE_MODE = 0o644


class CacheStore:
    """Cache of validated event bundles, one JSON file per day key."""

    def __init__(
        self,
        cache_dir: Path,
        ttl_days: float = 30,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the cache store.

        Args:
            cache_dir: Directory holding cache files
            ttl_days: Days a cache entry stays valid after being written
            clock: Returns the current Unix time (default: time.time)
        """
        self.cache_dir = Path(cache_dir)
        self.ttl_days = ttl_days
        self.clock = clock or time.time

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def is_valid(self, key: str) -> bool:
        """
        Check whether an entry exists and is younger than the TTL.

        Args:
            key: Day key

        Returns:
            True if the entry can be reused
        """
        path = self.path_for(key)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return False

        age_days = (self.clock() - mtime) / SECONDS_PER_DAY
        return age_days < self.ttl_days

    def read(self, key: str) -> EventBundle:
        """
        Read a cached bundle.

        Args:
            key: Day key

        Returns:
            Event bundle

        Raises:
            CacheCorrupt: If the entry is missing, unreadable or mis-shaped
        """
        path = self.path_for(key)
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise CacheCorrupt(key, str(e)) from e

        if not isinstance(data, dict):
            raise CacheCorrupt(key, "top level is not an object")

        bundle = {}
        for language, events in data.items():
            if not isinstance(events, list):
                raise CacheCorrupt(key, f"events for '{language}' are not a list")
            try:
                bundle[language] = [HistoricalEvent.from_dict(item) for item in events]
            except (KeyError, TypeError, ValueError) as e:
                raise CacheCorrupt(key, f"invalid event for '{language}': {e}") from e

        logger.info(f"Loaded cached events for {key}")
        return bundle

    def write(self, key: str, bundle: EventBundle) -> Path:
        """
        Write a bundle, replacing any existing entry and refreshing its mtime.

        Args:
            key: Day key
            bundle: Validated event bundle

        Returns:
            Path of the cache file
        """
        path = self.path_for(key)
        write_json_atomic(path, bundle_to_dict(bundle))
        logger.info(f"Cached events for {key}")
        return path


def write_json_atomic(path: Path, data) -> None:
    """Write JSON to a temporary file and move it over `path`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.chmod(tmp_name, FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
