"""One article's summary card and its mutation controls."""

import logging
from collections.abc import Awaitable, Callable

from .client import ArticleServiceClient
from .models import Article, ArticleStatus
from .text import format_reading_time
from .toast import Toaster

logger = logging.getLogger(__name__)


class ArticleCard:
    """Renders one article and forwards its mutations to the service.

    The card never changes ``article`` itself: after a successful mutation it
    calls ``on_update`` and the owning widget re-fetches. While a mutation is
    in flight every other mutation is dropped, not queued.
    """

    def __init__(
        self,
        article: Article,
        client: ArticleServiceClient,
        on_update: Callable[[], Awaitable[object]] | None = None,
        notifier: Toaster | None = None,
        navigate: Callable[[str], object] | None = None,
    ):
        self.article = article
        self._client = client
        self._on_update = on_update
        self._notifier = notifier
        self._navigate = navigate
        self.updating = False
        self.menu_open = False
        self.confirm_open = False
        self.last_error: str | None = None

    # --- Rendering ---

    @property
    def title(self) -> str:
        return self.article.display_title

    @property
    def reading_time_label(self) -> str:
        return format_reading_time(self.article.reading_time)

    @property
    def progress_percent(self) -> int:
        return round(self.article.progress * 100)

    @property
    def stars(self) -> list[bool]:
        rating = self.article.effective_rating
        return [star <= rating for star in range(1, 6)]

    @property
    def reader_path(self) -> str:
        return f"/reader/{self.article.id}"

    def open_reader(self) -> str:
        """Navigate to the full reader. Not a mutation."""
        if self._navigate is not None:
            self._navigate(self.reader_path)
        return self.reader_path

    # --- Status menu ---

    def toggle_menu(self) -> None:
        self.menu_open = not self.menu_open

    def close_menu(self) -> None:
        self.menu_open = False

    async def select_status(self, status: ArticleStatus) -> bool:
        self.close_menu()
        return await self.change_status(status)

    # --- Mutations ---

    async def change_status(self, status: ArticleStatus) -> bool:
        return await self._mutate(
            "updating article",
            lambda: self._client.update_article(self.article.id, status=ArticleStatus(status)),
        )

    async def toggle_favorite(self) -> bool:
        return await self._mutate(
            "updating article",
            lambda: self._client.update_article(
                self.article.id, is_favorited=not self.article.is_favorited
            ),
        )

    async def set_rating(self, star: int) -> bool:
        """Set the rating to ``star``; clicking the current rating clears it."""
        if not 1 <= star <= 5:
            raise ValueError(f"Rating must be between 1 and 5, got {star}")
        new_rating = None if self.article.rating == star else star
        return await self._mutate(
            "updating rating",
            lambda: self._client.update_article(self.article.id, rating=new_rating),
        )

    async def toggle_archive(self) -> bool:
        if self.article.status is ArticleStatus.ARCHIVED:
            return await self.change_status(ArticleStatus.UNREAD)
        return await self.change_status(ArticleStatus.ARCHIVED)

    def request_delete(self) -> None:
        self.confirm_open = True

    def cancel_delete(self) -> None:
        self.confirm_open = False

    async def confirm_delete(self) -> bool:
        if not self.confirm_open or self.updating:
            return False
        try:
            return await self._mutate(
                "deleting article", lambda: self._client.delete_article(self.article.id)
            )
        finally:
            self.confirm_open = False

    async def _mutate(self, action: str, call: Callable[[], Awaitable[object]]) -> bool:
        if self.updating:
            logger.debug("Ignoring action on article %s: update in flight", self.article.id)
            return False
        self.updating = True
        self.last_error = None
        try:
            await call()
        except Exception as e:
            logger.error("Error %s %s: %s", action, self.article.id, e, exc_info=True)
            self.last_error = str(e) or f"Error {action}"
            if self._notifier is not None:
                self._notifier.error(self.last_error)
            return False
        finally:
            self.updating = False

        if self._on_update is not None:
            await self._on_update()
        return True
