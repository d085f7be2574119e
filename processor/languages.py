"""Supported languages and their category vocabularies."""
from typing import Dict, List

CATEGORIES: Dict[str, List[str]] = {
    'zh': ['政治', '经济', '科技', '文化', '体育', '灾害', '其他'],
    'en': ['Politics', 'Economy', 'Technology', 'Culture', 'Sports', 'Disaster', 'Other'],
}

FALLBACK_CATEGORY: Dict[str, str] = {
    'zh': '其他',
    'en': 'Other',
}

SUPPORTED_LANGUAGES = tuple(CATEGORIES)

YEAR_SPAN = 50


def categories_for(language: str) -> List[str]:
    """Return the category vocabulary for a language."""
    try:
        return CATEGORIES[language]
    except KeyError:
        raise ValueError(f"Unsupported language: {language}") from None


def fallback_for(language: str) -> str:
    """Return the category used to repair unknown categories."""
    try:
        return FALLBACK_CATEGORY[language]
    except KeyError:
        raise ValueError(f"Unsupported language: {language}") from None
