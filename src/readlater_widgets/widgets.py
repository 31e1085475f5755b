"""Embeddable widgets: inbox, reading now, favorites, highlights, analytics.

Each widget owns its own state and toaster. Read failures keep the last
known state and show an error toast; a missing or rejected token puts the
widget into a blocking state instead.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from .card import ArticleCard
from .client import ArticleServiceClient
from .config import Config
from .controller import ListController
from .models import Analytics, Article, ArticleStatus, ExportFormat, Highlight, Note
from .session import AuthenticationError
from .text import validate_page_change, validate_pages
from .toast import Toaster

logger = logging.getLogger(__name__)

T = TypeVar("T")

BLOCKED_HINT = "Check the token in the URL (?token=...)"


class Widget(ABC):
    def __init__(self, client: ArticleServiceClient, config: Config):
        self._client = client
        self._config = config
        self.toaster = Toaster(config.toast_duration, config.error_toast_duration)
        self.loading = False
        self._auth_error: str | None = None
        if not client.session.is_authenticated:
            self._auth_error = "Missing token"

    @property
    def blocked(self) -> str | None:
        """Explanation shown instead of the widget when the token is unusable."""
        if self._auth_error is None:
            return None
        return f"{self._auth_error}. {BLOCKED_HINT}"

    async def _call(self, action: str, call: Callable[[], Awaitable[T]], error_text: str) -> T | None:
        """Run one remote call at the operation boundary; never raises."""
        try:
            result = await call()
        except AuthenticationError as e:
            logger.error("Authentication failed while %s: %s", action, e)
            self._auth_error = str(e)
            return None
        except Exception as e:
            logger.error("Error %s: %s", action, e, exc_info=True)
            self.toaster.error(error_text)
            return None
        self._auth_error = None
        return result

    def card(self, article: Article) -> ArticleCard:
        return ArticleCard(article, self._client, on_update=self.refresh, notifier=self.toaster)

    @abstractmethod
    async def refresh(self) -> None:
        """Reload the widget state from the service."""


class InboxWidget(Widget):
    """Saved articles with filters, sort, debounced search and status counts."""

    def __init__(self, client: ArticleServiceClient, config: Config):
        super().__init__(client, config)
        self.controller = ListController(
            client,
            self.toaster,
            limit=config.list_limit,
            debounce=config.search_debounce,
        )
        self.saving = False

    @property
    def blocked(self) -> str | None:
        if self.controller.auth_error is not None:
            return f"{self.controller.auth_error}. {BLOCKED_HINT}"
        return super().blocked

    @property
    def articles(self) -> list[Article]:
        return self.controller.articles

    @property
    def unread_count(self) -> int:
        counts = self.controller.counts
        if counts is not None:
            return counts.get(ArticleStatus.UNREAD)
        return sum(1 for a in self.articles if a.status is ArticleStatus.UNREAD)

    @property
    def reading_session(self) -> Article | None:
        """The READING article read most recently, if any."""
        reading = [a for a in self.articles if a.status is ArticleStatus.READING]
        if not reading:
            return None
        return max(reading, key=lambda a: a.last_read_at.timestamp() if a.last_read_at else 0.0)

    async def refresh(self) -> None:
        await self.controller.refresh_all()

    def cards(self) -> list[ArticleCard]:
        return [self.card(a) for a in self.articles]

    async def save_url(self, url: str) -> Article | None:
        url = url.strip()
        if not url:
            self.toaster.error("Please enter a URL")
            return None
        return await self._save("saving article", lambda: self._client.create_article(url=url))

    async def save_file(self, path: Path) -> Article | None:
        return await self._save("uploading file", lambda: self._client.create_article(file_path=path))

    async def _save(self, action: str, call: Callable[[], Awaitable[Article]]) -> Article | None:
        if self.saving:
            return None
        self.saving = True
        try:
            article = await call()
        except AuthenticationError as e:
            logger.error("Authentication failed while %s: %s", action, e)
            self._auth_error = str(e)
            return None
        except Exception as e:
            logger.error("Error %s: %s", action, e, exc_info=True)
            self.toaster.error(str(e) or "Error saving article")
            return None
        finally:
            self.saving = False

        self._auth_error = None
        self.toaster.success("Article saved!")
        await self.refresh()
        return article

    async def export(self, fmt: ExportFormat, directory: Path) -> Path | None:
        """Download all articles and save them under the fixed per-format name."""
        fmt = ExportFormat(fmt)
        payload = await self._call("exporting", lambda: self._client.export_articles(fmt), "Error exporting")
        if payload is None:
            return None
        target = Path(directory) / fmt.filename
        try:
            target.write_bytes(payload)
        except OSError as e:
            logger.error("Error writing export to %s: %s", target, e, exc_info=True)
            self.toaster.error("Error exporting")
            return None
        logger.info("Exported %d bytes to %s", len(payload), target)
        self.toaster.success("Exported successfully!")
        return target

    def close(self) -> None:
        self.controller.close()


class _ArticleListWidget(Widget):
    def __init__(self, client: ArticleServiceClient, config: Config):
        super().__init__(client, config)
        self.articles: list[Article] = []

    @abstractmethod
    async def _fetch(self) -> list[Article]: ...

    async def refresh(self) -> None:
        self.loading = True
        try:
            articles = await self._call("loading articles", self._fetch, "Error loading articles")
        finally:
            self.loading = False
        if articles is not None:
            self.articles = articles

    def cards(self) -> list[ArticleCard]:
        return [self.card(a) for a in self.articles]


class ReadingNowWidget(_ArticleListWidget):
    """Articles currently being read, with page tracking."""

    limit = 100

    async def _fetch(self) -> list[Article]:
        return await self._client.list_articles(status=ArticleStatus.READING, limit=self.limit)

    async def update_pages(self, article: Article, current_page: int | None, total_pages: int | None) -> bool:
        error = validate_pages(total_pages, current_page)
        if error:
            self.toaster.error(error)
            return False
        return await self._update_pages(article, current_page=current_page, total_pages=total_pages)

    async def set_page(self, article: Article, page: int) -> bool:
        error = validate_page_change(page, article.total_pages)
        if error:
            self.toaster.error(error)
            return False
        return await self._update_pages(article, current_page=page)

    async def set_progress(self, article: Article, progress: float) -> bool:
        if not 0.0 <= progress <= 1.0:
            self.toaster.error("Progress must be a ratio between 0 and 1")
            return False
        done = await self._call(
            "updating progress",
            lambda: self._client.update_reading_progress(article.id, progress),
            "Error updating progress",
        )
        if done is None:
            return False
        await self.refresh()
        return True

    async def _update_pages(self, article: Article, **pages: int | None) -> bool:
        updated = await self._call(
            "updating pages",
            lambda: self._client.update_article(article.id, **pages),
            "Error updating pages",
        )
        if updated is None:
            return False
        await self.refresh()
        return True


class FavoritesWidget(_ArticleListWidget):
    limit = 200

    async def _fetch(self) -> list[Article]:
        return await self._client.list_articles(is_favorited=True, limit=self.limit)


class HighlightsWidget(Widget):
    """All highlights, searchable by text, article title and notes."""

    def __init__(self, client: ArticleServiceClient, config: Config):
        super().__init__(client, config)
        self.highlights: list[Highlight] = []
        self.query = ""

    @property
    def visible(self) -> list[Highlight]:
        query = self.query.strip()
        return [h for h in self.highlights if h.matches(query)]

    async def refresh(self) -> None:
        self.loading = True
        try:
            highlights = await self._call("loading highlights", self._client.list_highlights, "Error loading highlights")
        finally:
            self.loading = False
        if highlights is not None:
            self.highlights = highlights

    async def delete_highlight(self, highlight_id: str) -> bool:
        deleted = await self._call(
            "deleting highlight",
            lambda: self._client.delete_highlight(highlight_id),
            "Error deleting highlight",
        )
        if not deleted:
            return False
        await self.refresh()
        return True

    async def add_note(self, highlight_id: str, content: str) -> Note | None:
        content = content.strip()
        if not content:
            self.toaster.error("Note cannot be empty")
            return None
        note = await self._call(
            "adding note",
            lambda: self._client.create_note(highlight_id, content),
            "Error adding note",
        )
        if note is not None:
            await self.refresh()
        return note


class AnalyticsWidget(Widget):
    def __init__(self, client: ArticleServiceClient, config: Config):
        super().__init__(client, config)
        self.analytics: Analytics | None = None

    async def refresh(self) -> None:
        self.loading = True
        try:
            analytics = await self._call("loading analytics", self._client.get_analytics, "Error loading analytics")
        finally:
            self.loading = False
        if analytics is not None:
            self.analytics = analytics
