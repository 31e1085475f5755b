"""Data models for the read-it-later widgets."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .text import extract_text_from_html


class ArticleStatus(str, Enum):
    """Place of an article in the reading lifecycle."""

    UNREAD = "UNREAD"
    READING = "READING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"
    ARCHIVED = "ARCHIVED"


class ContentType(str, Enum):
    """Medium classification of an article's source."""

    ARTICLE = "ARTICLE"
    BLOG = "BLOG"
    PDF = "PDF"
    YOUTUBE = "YOUTUBE"
    TWITTER = "TWITTER"
    NEWSLETTER = "NEWSLETTER"
    BOOK = "BOOK"
    EBOOK = "EBOOK"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"

    @property
    def filename(self) -> str:
        return f"articles.{self.value}"


def parse_status_filter(value: str | None) -> ArticleStatus | None:
    """Parse a user-facing status filter. "all" (or empty) means no filter.

    Raises:
        ValueError: If the value names no known status
    """
    if not value or value.lower() == "all":
        return None
    return ArticleStatus(value.upper())


def parse_content_type_filter(value: str | None) -> ContentType | None:
    """Parse a user-facing content-type filter. "all" (or empty) means no filter.

    Raises:
        ValueError: If the value names no known content type
    """
    if not value or value.lower() == "all":
        return None
    return ContentType(value.upper())


@dataclass
class Tag:
    id: str
    name: str


@dataclass
class Article:
    """A saved piece of content tracked by status and reading progress.

    Optional numeric fields stay None when the server omits them. The
    ``effective_*`` properties and ``progress`` map absence to one canonical
    value so every comparator treats it the same way.
    """

    id: str
    url: str
    title: str | None
    status: ArticleStatus
    content_type: ContentType
    created_at: datetime
    description: str | None = None
    is_favorited: bool = False
    rating: int | None = None
    reading_progress: float | None = None
    current_page: int | None = None
    total_pages: int | None = None
    reading_time: int | None = None
    last_read_at: datetime | None = None
    tags: list[Tag] = field(default_factory=list)

    @property
    def display_title(self) -> str:
        return extract_text_from_html(self.title) or self.url

    @property
    def display_description(self) -> str:
        return extract_text_from_html(self.description)

    @property
    def effective_rating(self) -> int:
        """Rating with absence below the lowest real star."""
        return self.rating if self.rating is not None else 0

    @property
    def effective_reading_time(self) -> int:
        return self.reading_time if self.reading_time is not None else 0

    @property
    def progress(self) -> float:
        """Reading progress ratio in [0, 1].

        An explicit ratio wins; otherwise page counts are used; otherwise 0.
        """
        if self.reading_progress is not None:
            ratio = self.reading_progress
        elif self.total_pages and self.current_page is not None:
            ratio = self.current_page / self.total_pages
        else:
            ratio = 0.0
        return min(max(ratio, 0.0), 1.0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.display_title,
            "description": self.display_description,
            "status": self.status.value,
            "content_type": self.content_type.value,
            "is_favorited": self.is_favorited,
            "rating": self.rating,
            "progress": round(self.progress, 4),
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "reading_time": self.reading_time,
            "last_read_at": self.last_read_at.isoformat() if self.last_read_at else None,
            "created_at": self.created_at.isoformat(),
            "tags": [t.name for t in self.tags],
        }


@dataclass
class Note:
    id: str
    content: str
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class Highlight:
    """A user-selected excerpt of an article, optionally annotated with notes."""

    id: str
    article_id: str
    text: str
    created_at: datetime
    article_title: str | None = None
    article_url: str = ""
    notes: list[Note] = field(default_factory=list)

    def matches(self, query: str) -> bool:
        """Case-insensitive match on text, article title or any note."""
        if not query:
            return True
        needle = query.lower()
        return (
            needle in self.text.lower()
            or needle in extract_text_from_html(self.article_title).lower()
            or any(needle in note.content.lower() for note in self.notes)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "article_id": self.article_id,
            "article_title": extract_text_from_html(self.article_title) or self.article_url,
            "text": self.text,
            "notes": [n.to_dict() for n in self.notes],
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Analytics:
    """Read-only aggregate snapshot, recomputed server-side."""

    total_saved: int = 0
    total_read: int = 0
    total_finished: int = 0
    total_archived: int = 0
    total_favorited: int = 0
    total_highlights: int = 0
    total_collections: int = 0
    total_tags: int = 0
    completion_rate: float = 0.0
    reading_time_today: int = 0
    articles_by_status: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_saved": self.total_saved,
            "total_read": self.total_read,
            "total_finished": self.total_finished,
            "total_archived": self.total_archived,
            "total_favorited": self.total_favorited,
            "total_highlights": self.total_highlights,
            "total_collections": self.total_collections,
            "total_tags": self.total_tags,
            "completion_rate": self.completion_rate,
            "reading_time_today": self.reading_time_today,
            "articles_by_status": dict(self.articles_by_status),
        }


@dataclass
class StatusCounts:
    """Global tally per status, fetched independently of the article list.

    The sum of the per-status counts need not match a filtered list length.
    """

    counts: dict[ArticleStatus, int] = field(default_factory=dict)
    total: int = 0

    def get(self, status: ArticleStatus) -> int:
        return self.counts.get(status, 0)

    def to_dict(self) -> dict:
        result = {status.value: self.get(status) for status in ArticleStatus}
        result["total"] = self.total
        return result
