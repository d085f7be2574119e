"""Prompt templates for historical event generation."""
from processor.languages import YEAR_SPAN, categories_for

MIN_EVENT_COUNT = 1
MAX_EVENT_COUNT = 10

_TEMPLATES = {
    'zh': (
        "【强制格式要求，不遵守则无效】请列出过去{span}年中，{month}月{day}日发生的"
        "{min_events}-{max_events}个重要历史事件（每年1个，年份范围：{start_year} - {end_year}）。"
        "必须严格按以下格式返回，不允许任何额外文字、标题、解释：\n"
        "年份|事件简述（20字以内）|分类（从[{categories}]选一个）\n"
        "示例：\n"
        "2020|新冠疫苗首次临床试验|科技\n"
        "2015|巴黎气候协定签署|政治\n"
        "确保事件真实，分类准确，仅返回符合格式的内容。"
    ),
    'en': (
        "【Mandatory Format - Invalid if not followed】Please list {min_events}-{max_events} "
        "important historical events that occurred on {month}/{day} over the past {span} years "
        "(one per year, year range: {start_year} - {end_year}).\n"
        "Return strictly in the following format without any additional text, titles, or explanations:\n"
        "Year|Event description (within 15 words)|Category (choose from [{categories}])\n"
        "Examples:\n"
        "2020|First COVID-19 vaccine trial|Technology\n"
        "2015|Paris Climate Agreement signed|Politics\n"
        "Ensure events are true and accurate with appropriate categorization. "
        "Only return content that matches the format."
    ),
}

_CATEGORY_SEPARATORS = {
    'zh': '、',
    'en': ', ',
}


def build_prompt(
    month: int,
    day: int,
    language: str,
    current_year: int,
    min_events: int = 5,
    max_events: int = 10
) -> str:
    """
    Build the generation prompt for one day and language.

    Args:
        month: Month of the target day (1-12)
        day: Day of month of the target day
        language: Language code with a known template
        current_year: Last year of the requested range
        min_events: Lower bound of requested event count
        max_events: Upper bound of requested event count

    Returns:
        Prompt string

    Raises:
        ValueError: If the language is unsupported or the bounds are invalid
    """
    if language not in _TEMPLATES:
        raise ValueError(f"No prompt template for language: {language}")
    if not MIN_EVENT_COUNT <= min_events <= max_events <= MAX_EVENT_COUNT:
        raise ValueError(
            f"Invalid event count bounds: {min_events}-{max_events} "
            f"(allowed {MIN_EVENT_COUNT}-{MAX_EVENT_COUNT})"
        )

    categories = _CATEGORY_SEPARATORS[language].join(categories_for(language))

    return _TEMPLATES[language].format(
        span=YEAR_SPAN,
        month=month,
        day=day,
        min_events=min_events,
        max_events=max_events,
        start_year=current_year - YEAR_SPAN,
        end_year=current_year,
        categories=categories
    )
