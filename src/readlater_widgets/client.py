"""Async client for the read-it-later article service REST API."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from .config import Config
from .models import (
    Analytics,
    Article,
    ArticleStatus,
    ContentType,
    ExportFormat,
    Highlight,
    Note,
    StatusCounts,
    Tag,
)
from .session import AuthenticationError, Session

logger = logging.getLogger(__name__)

_UNSET: Any = object()
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ArticleServiceError(Exception):
    """Raised when the article service answers with an error or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ArticleServiceClient:
    """Async client for the article service.

    Designed for single-instance lifecycle: create once at startup with the
    process session, then reuse for every widget and tool call.
    """

    def __init__(self, config: Config, session: Session):
        self._config = config
        self.session = session
        self.api_url = config.api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=config.request_timeout,
            follow_redirects=True,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request and translate failures.

        Raises:
            AuthenticationError: If there is no token or the service rejects it
            ArticleServiceError: On any other failure
        """
        headers = self.session.auth_headers()
        try:
            response = await self._client.request(
                method, f"{self.api_url}{path}", headers=headers, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = self._error_message(e.response)
            if status in (401, 403):
                raise AuthenticationError(f"Invalid or expired token: {message}") from e
            raise ArticleServiceError(message, status) from e
        except httpx.HTTPError as e:
            raise ArticleServiceError(f"Request failed: {e}") from e
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Pull the server's own message out of an error response when it has one."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("error", "message"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
                if isinstance(value, dict) and value.get("message"):
                    return str(value["message"])
        return f"HTTP {response.status_code}"

    @staticmethod
    def _data(response: httpx.Response) -> Any:
        payload = response.json()
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    # --- Articles ---

    async def list_articles(
        self,
        status: ArticleStatus | None = None,
        is_favorited: bool | None = None,
        limit: int | None = None,
    ) -> list[Article]:
        """List articles, optionally scoped by status or favorite flag."""
        params: dict[str, str | int] = {"limit": limit or self._config.list_limit}
        if status is not None:
            params["status"] = status.value
        if is_favorited is not None:
            params["isFavorited"] = "true" if is_favorited else "false"

        response = await self._request("GET", "/articles", params=params)
        articles = self._parse_articles(self._data(response) or [])
        logger.info("Retrieved %d articles", len(articles))
        return articles

    async def get_article(self, article_id: str) -> Article:
        response = await self._request("GET", f"/articles/{article_id}")
        article = self._parse_article(self._data(response) or {})
        if article is None:
            raise ArticleServiceError(f"Article {article_id} could not be parsed")
        return article

    async def get_status_counts(self) -> StatusCounts:
        """Get the global tally of articles per status."""
        response = await self._request("GET", "/articles/counts")
        data = self._data(response) or {}

        counts: dict[ArticleStatus, int] = {}
        for status in ArticleStatus:
            counts[status] = int(data.get(status.value, 0) or 0)
        total = int(data.get("total", sum(counts.values())) or 0)
        return StatusCounts(counts=counts, total=total)

    async def create_article(self, url: str | None = None, file_path: Path | None = None) -> Article:
        """Save a new article from a source URL or an uploaded file.

        Exactly one of ``url`` and ``file_path`` must be given.
        """
        if (url is None) == (file_path is None):
            raise ValueError("Provide either a URL or a file, not both")

        if url is not None:
            response = await self._request("POST", "/articles", json={"url": url})
        else:
            path = Path(file_path)
            with path.open("rb") as fh:
                response = await self._request(
                    "POST", "/articles/upload", files={"file": (path.name, fh.read())}
                )

        article = self._parse_article(self._data(response) or {})
        if article is None:
            raise ArticleServiceError("Service returned an unreadable article")
        logger.info("Saved article %s", article.id)
        return article

    async def update_article(
        self,
        article_id: str,
        *,
        status: ArticleStatus | None = None,
        is_favorited: bool | None = None,
        rating: int | None = _UNSET,
        current_page: int | None = _UNSET,
        total_pages: int | None = _UNSET,
    ) -> Article:
        """Apply a partial update. ``rating=None`` clears the rating."""
        body: dict[str, Any] = {}
        if status is not None:
            body["status"] = status.value
        if is_favorited is not None:
            body["isFavorited"] = is_favorited
        if rating is not _UNSET:
            if rating is not None and not 1 <= rating <= 5:
                raise ValueError(f"Rating must be between 1 and 5, got {rating}")
            body["rating"] = rating
        if current_page is not _UNSET:
            body["currentPage"] = current_page
        if total_pages is not _UNSET:
            body["totalPages"] = total_pages
        if not body:
            raise ValueError("Nothing to update")

        response = await self._request("PATCH", f"/articles/{article_id}", json=body)
        article = self._parse_article(self._data(response) or {})
        if article is None:
            raise ArticleServiceError("Service returned an unreadable article")
        logger.info("Updated article %s (%s)", article_id, ", ".join(body))
        return article

    async def update_reading_progress(self, article_id: str, progress: float) -> bool:
        if not 0.0 <= progress <= 1.0:
            raise ValueError(f"Progress must be within [0, 1], got {progress}")
        await self._request("POST", f"/articles/{article_id}/read", json={"progress": progress})
        return True

    async def delete_article(self, article_id: str) -> bool:
        await self._request("DELETE", f"/articles/{article_id}")
        logger.info("Deleted article %s", article_id)
        return True

    async def search(self, query: str, scope: str = "articles") -> list[Article]:
        """Server-side full-text search over articles."""
        response = await self._request("GET", "/search", params={"q": query, "type": scope})
        data = self._data(response) or {}
        articles = self._parse_articles(data.get("articles", []))
        logger.info("Search %r matched %d articles", query, len(articles))
        return articles

    async def export_articles(self, fmt: ExportFormat) -> bytes:
        """Download every article as a JSON or CSV payload.

        The service also expects the token as a query parameter here.
        """
        params = {"format": fmt.value, "token": self.session.token()}
        response = await self._request("GET", "/articles/export", params=params)
        return response.content

    # --- Highlights & analytics ---

    async def list_highlights(self, article_id: str | None = None) -> list[Highlight]:
        params = {"articleId": article_id} if article_id else None
        response = await self._request("GET", "/highlights", params=params)
        highlights = []
        for item in self._data(response) or []:
            highlight = self._parse_highlight(item)
            if highlight:
                highlights.append(highlight)
        logger.info("Retrieved %d highlights", len(highlights))
        return highlights

    async def delete_highlight(self, highlight_id: str) -> bool:
        await self._request("DELETE", f"/highlights/{highlight_id}")
        return True

    async def create_note(self, highlight_id: str, content: str) -> Note:
        response = await self._request(
            "POST", f"/highlights/{highlight_id}/notes", json={"content": content}
        )
        data = self._data(response) or {}
        return Note(
            id=str(data.get("id", "")),
            content=data.get("content", content),
            created_at=self._parse_datetime(data.get("createdAt")),
        )

    async def get_analytics(self) -> Analytics:
        response = await self._request("GET", "/analytics")
        data = self._data(response) or {}
        return Analytics(
            total_saved=data.get("totalSaved", 0),
            total_read=data.get("totalRead", 0),
            total_finished=data.get("totalFinished", 0),
            total_archived=data.get("totalArchived", 0),
            total_favorited=data.get("totalFavorited", 0),
            total_highlights=data.get("totalHighlights", 0),
            total_collections=data.get("totalCollections", 0),
            total_tags=data.get("totalTags", 0),
            completion_rate=float(data.get("completionRate", 0) or 0),
            reading_time_today=data.get("readingTimeToday", 0) or 0,
            articles_by_status=dict(data.get("articlesByStatus") or {}),
        )

    # --- Parsing ---

    def _parse_articles(self, items: list[dict]) -> list[Article]:
        articles = []
        for item in items:
            article = self._parse_article(item)
            if article:
                articles.append(article)
        return articles

    def _parse_article(self, item: dict) -> Article | None:
        """Parse an API article into an Article model.

        Items with an unknown status or content type are skipped.
        """
        try:
            attributes = item.get("attributes") or {}
            tags = [
                Tag(id=str(entry["tag"]["id"]), name=entry["tag"]["name"])
                for entry in item.get("articleTags") or []
                if entry.get("tag")
            ]
            return Article(
                id=str(item["id"]),
                url=item.get("url") or item.get("fileName") or "",
                title=item.get("title"),
                description=item.get("description"),
                status=ArticleStatus(item.get("status")),
                content_type=ContentType(item.get("contentType", "ARTICLE")),
                created_at=self._parse_datetime(item.get("createdAt")) or _EPOCH,
                is_favorited=bool(item.get("isFavorited", False)),
                rating=item.get("rating"),
                reading_progress=item.get("readingProgress"),
                current_page=item.get("currentPage", attributes.get("currentPage")),
                total_pages=item.get("totalPages", attributes.get("totalPages")),
                reading_time=item.get("readingTime"),
                last_read_at=self._parse_datetime(item.get("lastReadAt")),
                tags=tags,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable article %r: %s", item.get("id"), e)
            return None

    def _parse_highlight(self, item: dict) -> Highlight | None:
        try:
            article = item.get("article") or {}
            return Highlight(
                id=str(item["id"]),
                article_id=str(article.get("id") or item.get("articleId") or ""),
                article_title=article.get("title"),
                article_url=article.get("url", ""),
                text=item.get("text", ""),
                created_at=self._parse_datetime(item.get("createdAt")) or _EPOCH,
                notes=[
                    Note(
                        id=str(note.get("id", "")),
                        content=note.get("content", ""),
                        created_at=self._parse_datetime(note.get("createdAt")),
                    )
                    for note in item.get("notes") or []
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable highlight %r: %s", item.get("id"), e)
            return None

    @staticmethod
    def _parse_datetime(value: str | None) -> datetime | None:
        """Parse an ISO-8601 timestamp. Returns None for missing or malformed values."""
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (TypeError, ValueError, AttributeError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
