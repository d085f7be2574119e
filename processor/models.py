"""Data models for historical event generation."""
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional


@dataclass
class RawEvent:
    """Unvalidated event parsed from model output."""
    year: Optional[int]
    title: str
    category: str


@dataclass
class HistoricalEvent:
    """Validated event ready to be persisted."""
    year: int
    title: str
    category: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'HistoricalEvent':
        return cls(
            year=int(data['year']),
            title=str(data['title']),
            category=str(data['category'])
        )


# Language code -> ordered events
EventBundle = Dict[str, List[HistoricalEvent]]


def bundle_to_dict(bundle: EventBundle) -> Dict[str, List[dict]]:
    """Convert a bundle to plain JSON-serializable data."""
    return {
        language: [event.to_dict() for event in events]
        for language, events in bundle.items()
    }


@dataclass
class RunResult:
    """Result of one pipeline run for a day key."""
    day_key: str
    source: str
    bundle: EventBundle
    events_file: str
    event_counts: Dict[str, int] = field(default_factory=dict)
