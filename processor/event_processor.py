"""Event processor for parsing and validating generated event data."""
import logging
from datetime import datetime
from typing import List, Optional

from processor.languages import YEAR_SPAN, categories_for, fallback_for
from processor.models import HistoricalEvent, RawEvent

logger = logging.getLogger(__name__)

FIELD_DELIMITER = '|'


class EventProcessor:
    """Processor for turning raw model output into validated events."""

    def process_response(
        self,
        raw_text: str,
        language: str,
        current_year: Optional[int] = None
    ) -> List[HistoricalEvent]:
        """
        Parse and validate a raw model response.

        Args:
            raw_text: Pipe-delimited text returned by the model
            language: Language code of the response
            current_year: Upper bound of the valid year range (default: now)

        Returns:
            List of validated HistoricalEvent objects
        """
        raw_events = self.parse_response(raw_text)
        events = self.validate_events(raw_events, language, current_year)

        logger.info(
            f"Processed {len(events)} valid '{language}' events out of "
            f"{len(raw_events)} parsed lines"
        )
        return events

    def parse_response(self, raw_text: str) -> List[RawEvent]:
        """
        Parse `year|description|category` lines into raw events.

        Blank lines are ignored and lines without exactly three fields
        are skipped with a warning.

        Args:
            raw_text: Raw model output

        Returns:
            List of unvalidated RawEvent objects
        """
        events = []

        for line in raw_text.split('\n'):
            line = line.strip()
            if not line:
                continue

            parts = line.split(FIELD_DELIMITER)
            if len(parts) != 3:
                logger.warning(f"Skipping malformed line: {line}")
                continue

            events.append(
                RawEvent(
                    year=self._parse_year(parts[0]),
                    title=parts[1].strip(),
                    category=parts[2].strip()
                )
            )

        return events

    def validate_events(
        self,
        events: List[RawEvent],
        language: str,
        current_year: Optional[int] = None
    ) -> List[HistoricalEvent]:
        """
        Validate raw events against the year range and category vocabulary.

        Records with an invalid year or an empty title are dropped. Records
        with an unknown category are kept with the fallback category.

        Args:
            events: Parsed RawEvent objects
            language: Language code whose vocabulary applies
            current_year: Upper bound of the valid year range (default: now)

        Returns:
            List of HistoricalEvent objects in input order
        """
        if current_year is None:
            current_year = datetime.now().year
        valid_categories = categories_for(language)
        fallback = fallback_for(language)

        valid_events = []

        for event in events:
            if not self._year_in_range(event.year, current_year):
                logger.info(f"Dropping event with invalid year: {event.year} {event.title}")
                continue

            category = event.category
            if category not in valid_categories:
                logger.info(
                    f"Repairing invalid category for event: {event.year} "
                    f"{event.title} ({category} -> {fallback})"
                )
                category = fallback

            if not event.title or not event.title.strip():
                logger.info(f"Dropping event with empty title: {event.year}")
                continue

            valid_events.append(
                HistoricalEvent(year=event.year, title=event.title, category=category)
            )

        return valid_events

    def _parse_year(self, value: str) -> Optional[int]:
        """
        Parse a year field, returning None when it is not an integer.

        Leading digits are accepted so that "1969年" still yields 1969.
        """
        value = value.strip()
        digits = ''
        for index, char in enumerate(value):
            if char.isdigit() or (index == 0 and char in '+-'):
                digits += char
            else:
                break

        try:
            return int(digits)
        except ValueError:
            return None

    def _year_in_range(self, year: Optional[int], current_year: int) -> bool:
        if year is None:
            return False
        return current_year - YEAR_SPAN <= year <= current_year
