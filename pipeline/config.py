"""Pipeline configuration read from environment variables."""
import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Mapping, Optional, Tuple

from generator.prompt_builder import MAX_EVENT_COUNT, MIN_EVENT_COUNT
from processor.errors import ConfigurationError
from processor.languages import SUPPORTED_LANGUAGES
from storage.event_files import LAYOUTS, LAYOUT_PER_DAY

DAY_KEY_DATE = 'date'
DAY_KEY_MONTH_DAY = 'month-day'
DAY_KEY_FORMATS = {
    DAY_KEY_DATE: '%Y-%m-%d',
    DAY_KEY_MONTH_DAY: '%m-%d',
}

_NUMBERED_KEY = re.compile(r'^GEMINI_API_KEY_(\d+)$')


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one deployment of the events pipeline."""
    api_keys: Tuple[str, ...]
    model: str = 'gemini-2.0-flash'
    languages: Tuple[str, ...] = ('zh', 'en')
    data_dir: Path = Path('data')
    cache_dir: Path = Path('cache')
    last_updated_file: Path = Path('last-updated.txt')
    day_key_format: str = DAY_KEY_DATE
    events_layout: str = LAYOUT_PER_DAY
    retries_per_key: int = 3
    api_timeout_seconds: float = 30.0
    cache_ttl_days: float = 30.0
    min_events: int = 5
    max_events: int = 10

    def __post_init__(self):
        object.__setattr__(self, 'languages', tuple(dict.fromkeys(self.languages)))
        if not self.api_keys:
            raise ConfigurationError("No valid Gemini API key configured")
        unsupported = [lang for lang in self.languages if lang not in SUPPORTED_LANGUAGES]
        if not self.languages or unsupported:
            raise ConfigurationError(
                f"Unsupported languages {unsupported or list(self.languages)}; "
                f"supported: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        if self.day_key_format not in DAY_KEY_FORMATS:
            raise ConfigurationError(f"Unknown DAY_KEY_FORMAT: {self.day_key_format}")
        if self.events_layout not in LAYOUTS:
            raise ConfigurationError(f"Unknown EVENTS_LAYOUT: {self.events_layout}")
        if self.retries_per_key < 1:
            raise ConfigurationError("RETRIES_PER_KEY must be at least 1")
        if self.api_timeout_seconds <= 0 or self.cache_ttl_days <= 0:
            raise ConfigurationError("API_TIMEOUT_SECONDS and CACHE_TTL_DAYS must be positive")
        if not MIN_EVENT_COUNT <= self.min_events <= self.max_events <= MAX_EVENT_COUNT:
            raise ConfigurationError(
                f"Event count bounds must satisfy "
                f"{MIN_EVENT_COUNT} <= MIN_EVENTS <= MAX_EVENTS <= {MAX_EVENT_COUNT}"
            )

    def day_key(self, day: date) -> str:
        """Format a calendar day as this deployment's day key."""
        return day.strftime(DAY_KEY_FORMATS[self.day_key_format])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'PipelineConfig':
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            PipelineConfig

        Raises:
            ConfigurationError: If a value is missing or invalid
        """
        env = os.environ if environ is None else environ

        try:
            return cls(
                api_keys=api_keys_from_env(env),
                model=env.get('GEMINI_MODEL', 'gemini-2.0-flash'),
                languages=tuple(
                    lang.strip() for lang in env.get('LANGUAGES', 'zh,en').split(',')
                    if lang.strip()
                ),
                data_dir=Path(env.get('DATA_DIR', 'data')),
                cache_dir=Path(env.get('CACHE_DIR', 'cache')),
                last_updated_file=Path(env.get('LAST_UPDATED_FILE', 'last-updated.txt')),
                day_key_format=env.get('DAY_KEY_FORMAT', DAY_KEY_DATE),
                events_layout=env.get('EVENTS_LAYOUT', LAYOUT_PER_DAY),
                retries_per_key=int(env.get('RETRIES_PER_KEY', '3')),
                api_timeout_seconds=float(env.get('API_TIMEOUT_SECONDS', '30')),
                cache_ttl_days=float(env.get('CACHE_TTL_DAYS', '30')),
                min_events=int(env.get('MIN_EVENTS', '5')),
                max_events=int(env.get('MAX_EVENTS', '10'))
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e


def api_keys_from_env(env: Mapping[str, str]) -> Tuple[str, ...]:
    """
    Collect API keys from GEMINI_API_KEY_<n> variables ordered by n,
    followed by GEMINI_API_KEY if set. Empty and duplicate values are skipped.
    """
    numbered = []
    for name, value in env.items():
        match = _NUMBERED_KEY.match(name)
        if match:
            numbered.append((int(match.group(1)), value))

    keys = [value for _, value in sorted(numbered)]
    keys.append(env.get('GEMINI_API_KEY', ''))

    unique = []
    for key in keys:
        key = key.strip()
        if key and key not in unique:
            unique.append(key)
    return tuple(unique)
