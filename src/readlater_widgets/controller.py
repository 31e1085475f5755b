"""List controller: turns filters, sort and search input into the visible list.

Retrieval policy:

* non-empty query: server-side search, then status, content-type and
  minimum-rating filters applied locally;
* empty query: server-side list scoped to the status filter, then
  content-type and minimum-rating filters applied locally.

Either way the result is sorted locally. Typing in the search box is
debounced, and every refresh carries a sequence number so a slow response
to an older request never overwrites a newer one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from .client import ArticleServiceClient
from .listing import ListFilters, SortOption, filter_articles, sort_articles
from .models import Article, ArticleStatus, ContentType, StatusCounts
from .session import AuthenticationError
from .toast import Toaster

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Debouncer:
    """Runs the latest scheduled call after a quiet period.

    Each ``schedule`` cancels whatever is still pending.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, func: Callable[[], Awaitable[object]]) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.create_task(self._run(func))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, func: Callable[[], Awaitable[object]]) -> None:
        await asyncio.sleep(self.delay)
        await func()


class ListController:
    """Owns one widget's list state: filters, sort, query, results and counts."""

    def __init__(
        self,
        client: ArticleServiceClient,
        toaster: Toaster | None = None,
        *,
        status: ArticleStatus | None = ArticleStatus.UNREAD,
        content_type: ContentType | None = None,
        min_rating: int | None = None,
        sort: SortOption = SortOption.DATE_DESC,
        limit: int = 200,
        debounce: float = 0.5,
    ):
        self._client = client
        self._toaster = toaster
        self.filters = ListFilters(status=status, content_type=content_type, min_rating=min_rating)
        self.sort = SortOption(sort)
        self.query = ""
        self.limit = limit
        self.debouncer = Debouncer(debounce)

        self.articles: list[Article] = []
        self.counts: StatusCounts | None = None
        self.loading = False
        self.searching = False
        self.auth_error: str | None = None
        self._sequence = 0

    @property
    def search_active(self) -> bool:
        return bool(self.query.strip())

    @property
    def empty_message(self) -> str | None:
        if self.articles:
            return None
        if self.search_active:
            return "No articles found for this search"
        return "No articles"

    async def fetch(self) -> list[Article]:
        """Run the retrieval pipeline once. Remote failures propagate."""
        query = self.query.strip()
        if query:
            results = await self._client.search(query, scope="articles")
            visible = filter_articles(results, self.filters)
        else:
            results = await self._client.list_articles(status=self.filters.status, limit=self.limit)
            visible = filter_articles(results, self.filters, include_status=False)
        return sort_articles(visible, self.sort)

    async def refresh(self) -> bool:
        """Recompute the visible list.

        On failure the previous list is kept and an error toast is shown.
        Returns True if this call's result was applied.
        """
        self._sequence += 1
        sequence = self._sequence
        searching = self.search_active
        self.loading = True
        self.searching = searching
        try:
            articles = await self.fetch()
        except AuthenticationError as e:
            if sequence != self._sequence:
                return False
            logger.error("Authentication failed while loading articles: %s", e)
            self.auth_error = str(e)
            return False
        except Exception as e:
            if sequence != self._sequence:
                logger.debug("Dropping failure of superseded request %d", sequence)
                return False
            logger.error("Error %s articles: %s", "searching" if searching else "loading", e, exc_info=True)
            self._notify_error("Error searching articles" if searching else "Error loading articles")
            return False
        finally:
            if sequence == self._sequence:
                self.loading = False
                self.searching = False

        if sequence != self._sequence:
            logger.debug("Discarding stale response for request %d", sequence)
            return False
        self.auth_error = None
        self.articles = articles
        return True

    async def refresh_counts(self) -> bool:
        """Fetch global status counts. Previous counts are kept on failure."""
        try:
            self.counts = await self._client.get_status_counts()
        except AuthenticationError as e:
            logger.error("Authentication failed while loading counts: %s", e)
            self.auth_error = str(e)
            return False
        except Exception as e:
            logger.error("Error loading status counts: %s", e, exc_info=True)
            self._notify_error("Error loading counts")
            return False
        return True

    async def refresh_all(self) -> None:
        """List and counts refresh concurrently; neither waits for the other."""
        await asyncio.gather(self.refresh(), self.refresh_counts())

    async def set_query(self, query: str) -> None:
        self.query = query
        await self._inputs_changed()

    async def set_filters(
        self,
        status: ArticleStatus | None = _UNSET,
        content_type: ContentType | None = _UNSET,
        min_rating: int | None = _UNSET,
    ) -> None:
        """Change some filters; omitted ones keep their value, None means "all"."""
        changes = {
            name: value
            for name, value in (("status", status), ("content_type", content_type), ("min_rating", min_rating))
            if value is not _UNSET
        }
        self.filters = replace(self.filters, **changes)
        await self._inputs_changed()

    async def set_sort(self, sort: SortOption) -> None:
        self.sort = SortOption(sort)
        await self._inputs_changed()

    async def clear_search(self) -> None:
        await self.set_query("")

    async def _inputs_changed(self) -> None:
        if self.search_active:
            self.debouncer.schedule(self.refresh)
        else:
            self.debouncer.cancel()
            await self.refresh()

    def close(self) -> None:
        self.debouncer.cancel()

    def _notify_error(self, text: str) -> None:
        if self._toaster is not None:
            self._toaster.error(text)
