"""Event output files consumed by the static frontend."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from processor.models import EventBundle, bundle_to_dict
from storage.cache_store import write_json_atomic

logger = logging.getLogger(__name__)

LAYOUT_PER_DAY = 'per-day'
LAYOUT_AGGREGATE = 'aggregate'
LAYOUTS = (LAYOUT_PER_DAY, LAYOUT_AGGREGATE)

AGGREGATE_FILENAME = 'events.json'
LAST_UPDATED_FORMAT = '%Y-%m-%d %H:%M'


class EventFileWriter:
    """Writes event bundles and the last-updated marker."""

    def __init__(
        self,
        data_dir: Path,
        last_updated_file: Path,
        layout: str = LAYOUT_PER_DAY,
        now: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the writer.

        Args:
            data_dir: Directory holding event files
            last_updated_file: Path of the last-updated marker
            layout: 'per-day' for one file per day key, 'aggregate' for a
                single file mapping day keys to bundles
            now: Returns the current local time (default: datetime.now)
        """
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown events layout: {layout}")
        self.data_dir = Path(data_dir)
        self.last_updated_file = Path(last_updated_file)
        self.layout = layout
        self.now = now or datetime.now

    def ensure_directories(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.last_updated_file.parent.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if self.layout == LAYOUT_AGGREGATE:
            return self.data_dir / AGGREGATE_FILENAME
        return self.data_dir / f"events-{key}.json"

    def write(self, key: str, bundle: EventBundle) -> Path:
        """
        Write the bundle for a day key.

        In aggregate layout the existing file is read, the key replaced and
        the file written back.

        Args:
            key: Day key
            bundle: Event bundle

        Returns:
            Path of the written file
        """
        path = self.path_for(key)
        data = bundle_to_dict(bundle)

        if self.layout == LAYOUT_AGGREGATE:
            aggregate = self._read_aggregate(path)
            aggregate[key] = data
            data = aggregate

        write_json_atomic(path, data)
        logger.info(f"Wrote events for {key} to {path}")
        return path

    def touch_last_updated(self) -> str:
        """Record the time of the latest successful generation."""
        stamp = self.now().strftime(LAST_UPDATED_FORMAT)
        self.last_updated_file.write_text(stamp, encoding='utf-8')
        return stamp

    def _read_aggregate(self, path: Path) -> dict:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except ValueError as e:
            logger.error(f"Aggregate events file {path} is not valid JSON: {e}")
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Aggregate events file {path} is not a JSON object")
        return data
