"""Client-side filtering and sorting of article lists."""

import unicodedata
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import Article, ArticleStatus, ContentType


class SortOption(str, Enum):
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    READING_TIME = "reading-time"
    PROGRESS = "progress"
    RATING_DESC = "rating-desc"
    RATING_ASC = "rating-asc"


def title_sort_key(title: str) -> tuple[str, str]:
    """Locale-aware key: accents and case only break ties."""
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), title


_SORT_KEYS: dict[SortOption, tuple[Callable[[Article], Any], bool]] = {
    SortOption.DATE_DESC: (lambda a: a.created_at, True),
    SortOption.DATE_ASC: (lambda a: a.created_at, False),
    SortOption.TITLE_ASC: (lambda a: title_sort_key(a.display_title), False),
    SortOption.TITLE_DESC: (lambda a: title_sort_key(a.display_title), True),
    SortOption.READING_TIME: (lambda a: a.effective_reading_time, True),
    SortOption.PROGRESS: (lambda a: a.progress, True),
    SortOption.RATING_DESC: (lambda a: a.effective_rating, True),
    SortOption.RATING_ASC: (lambda a: a.effective_rating, False),
}


def sort_articles(articles: Iterable[Article], option: SortOption) -> list[Article]:
    """Return a new, stably sorted list. Equal keys keep their input order."""
    key, reverse = _SORT_KEYS[SortOption(option)]
    return sorted(articles, key=key, reverse=reverse)


@dataclass
class ListFilters:
    """User-chosen filters. ``None`` means "all" for status and content type."""

    status: ArticleStatus | None = None
    content_type: ContentType | None = None
    min_rating: int | None = None

    def __post_init__(self) -> None:
        if self.min_rating is not None and not 1 <= self.min_rating <= 5:
            raise ValueError(f"Minimum rating must be between 1 and 5, got {self.min_rating}")

    def matches(self, article: Article, include_status: bool = True) -> bool:
        if include_status and self.status is not None and article.status != self.status:
            return False
        if self.content_type is not None and article.content_type != self.content_type:
            return False
        if self.min_rating is not None and article.effective_rating < self.min_rating:
            return False
        return True


def filter_articles(
    articles: Iterable[Article],
    filters: ListFilters,
    include_status: bool = True,
) -> list[Article]:
    """Keep the articles satisfying every active filter.

    Pass ``include_status=False`` when the status was already applied
    server-side.
    """
    return [a for a in articles if filters.matches(a, include_status=include_status)]
