"""Coordinates cache lookup, generation and persistence for one day."""
import logging
import threading
from datetime import date
from typing import Callable, Dict, Optional

from generator.credentials import CredentialRotator
from generator.gemini_client import GeminiClient
from generator.prompt_builder import build_prompt
from generator.retry import RetryOrchestrator
from pipeline.config import PipelineConfig
from processor.errors import CacheCorrupt
from processor.event_processor import EventProcessor
from processor.models import EventBundle, RunResult
from storage.cache_store import CacheStore
from storage.event_files import EventFileWriter

logger = logging.getLogger(__name__)

SOURCE_CACHE = 'cache'
SOURCE_GENERATED = 'generated'


class PipelineCoordinator:
    """Produces the event bundle for a day, from cache or by generation."""

    def __init__(
        self,
        config: PipelineConfig,
        client=None,
        cache_store: Optional[CacheStore] = None,
        event_writer: Optional[EventFileWriter] = None,
        processor: Optional[EventProcessor] = None,
        today: Optional[Callable[[], date]] = None
    ):
        """
        Initialize the coordinator and its collaborators.

        Args:
            config: Deployment configuration
            client: Generation client (default: GeminiClient for config.model)
            cache_store: Cache store (default: file cache in config.cache_dir)
            event_writer: Output writer (default: files in config.data_dir)
            processor: Response parser/validator
            today: Returns the current local date (default: date.today)
        """
        self.config = config
        self.rotator = CredentialRotator(config.api_keys)
        self.orchestrator = RetryOrchestrator(
            client=client or GeminiClient(model=config.model),
            rotator=self.rotator,
            retries_per_credential=config.retries_per_key,
            timeout=config.api_timeout_seconds
        )
        self.cache_store = cache_store or CacheStore(
            config.cache_dir, ttl_days=config.cache_ttl_days
        )
        self.event_writer = event_writer or EventFileWriter(
            config.data_dir,
            config.last_updated_file,
            layout=config.events_layout
        )
        self.processor = processor or EventProcessor()
        self.today = today or date.today

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def run(self, day: Optional[date] = None) -> RunResult:
        """
        Produce and persist the event bundle for a day.

        Runs for the same day key are serialized within this coordinator.
        On the generate path the event file is written before the cache, so
        a failed output write leaves no fresh cache entry behind.

        Args:
            day: Calendar day (default: today)

        Returns:
            RunResult describing the persisted bundle

        Raises:
            AllCredentialsExhausted: If any language could not be generated;
                nothing is persisted in that case
        """
        day = day or self.today()
        key = self.config.day_key(day)

        with self._lock_for(key):
            logger.info(f"Processing historical events for {key}")
            self.event_writer.ensure_directories()

            bundle = self._load_cached(key)
            if bundle is not None:
                events_file = self.event_writer.write(key, bundle)
                logger.info(f"Using cached events for {key}")
                return self._result(key, SOURCE_CACHE, bundle, str(events_file))

            logger.info(f"Generating new events for {key}")
            bundle = self.generate_bundle(day)

            events_file = self.event_writer.write(key, bundle)
            self.cache_store.write(key, bundle)
            stamp = self.event_writer.touch_last_updated()
            logger.info(f"Events generated for {key}, last updated {stamp}")
            return self._result(key, SOURCE_GENERATED, bundle, str(events_file))

    def generate_bundle(self, day: date) -> EventBundle:
        """
        Generate, parse and validate events for every configured language.

        Languages are processed in configuration order, one at a time.
        """
        current_year = self.today().year
        bundle = {}

        for language in self.config.languages:
            prompt = build_prompt(
                day.month,
                day.day,
                language,
                current_year,
                min_events=self.config.min_events,
                max_events=self.config.max_events
            )
            raw_text = self.orchestrator.generate(prompt, language)
            bundle[language] = self.processor.process_response(
                raw_text, language, current_year
            )

        return bundle

    def _load_cached(self, key: str) -> Optional[EventBundle]:
        if not self.cache_store.is_valid(key):
            return None

        try:
            bundle = self.cache_store.read(key)
        except CacheCorrupt as e:
            logger.warning(f"Ignoring cache for {key}: {e}")
            return None

        missing = [lang for lang in self.config.languages if lang not in bundle]
        if missing:
            logger.warning(f"Cached events for {key} lack languages {missing}, regenerating")
            return None

        return {lang: bundle[lang] for lang in self.config.languages}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _result(self, key: str, source: str, bundle: EventBundle, events_file: str) -> RunResult:
        return RunResult(
            day_key=key,
            source=source,
            bundle=bundle,
            events_file=events_file,
            event_counts={lang: len(events) for lang, events in bundle.items()}
        )
