"""MCP tool definitions for the read-it-later service.

Each tool does exactly one thing. All exceptions are caught at the
tool boundary and returned as "Error: ..." strings so the MCP protocol
never sees an uncaught exception.
"""

import logging
from pathlib import Path

from fastmcp import FastMCP

from .card import ArticleCard
from .client import ArticleServiceClient
from .config import Config
from .controller import ListController
from .listing import SortOption
from .models import ArticleStatus, ExportFormat, parse_content_type_filter, parse_status_filter
from .session import AuthenticationError

logger = logging.getLogger(__name__)


def _truncate(text: str, max_length: int) -> str:
    """Truncate text to max_length at a word boundary."""
    if len(text) <= max_length:
        return text
    return text[:max_length].rsplit(" ", 1)[0] + "..."


def _error(tool: str, e: Exception) -> str:
    logger.error("%s failed: %s", tool, e, exc_info=not isinstance(e, AuthenticationError))
    return f"Error: {e}"


def _outcome(card: ArticleCard, ok: bool) -> str:
    return "OK" if ok else f"Error: {card.last_error}"


def register_tools(mcp: FastMCP, client: ArticleServiceClient, config: Config) -> None:
    """Register all article tools on the given MCP server instance."""

    async def _card(article_id: str) -> ArticleCard:
        article = await client.get_article(article_id)
        return ArticleCard(article, client)

    @mcp.tool()
    async def list_articles(
        status: str = "UNREAD",
        content_type: str = "all",
        min_rating: int | None = None,
        query: str = "",
        sort: str = "date-desc",
        limit: int = 20,
        max_description_length: int = 300,
    ) -> str:
        """List saved articles, filtered and sorted.

        Args:
            status: UNREAD, READING, PAUSED, FINISHED, ARCHIVED or "all" (default UNREAD).
            content_type: ARTICLE, BLOG, PDF, YOUTUBE, TWITTER, NEWSLETTER, BOOK, EBOOK or "all".
            min_rating: Only articles rated at least this many stars (1-5).
            query: Free-text search; empty lists without searching.
            sort: date-desc, date-asc, title-asc, title-desc, reading-time,
                progress, rating-desc or rating-asc (default date-desc).
            limit: Maximum number of articles to return (default 20).
            max_description_length: Maximum characters for descriptions (default 300).

        Returns a JSON-formatted list of articles.
        """
        try:
            controller = ListController(
                client,
                status=parse_status_filter(status),
                content_type=parse_content_type_filter(content_type),
                min_rating=min_rating,
                sort=SortOption(sort),
                limit=config.list_limit,
            )
            controller.query = query
            articles = await controller.fetch()

            result = []
            for article in articles[:limit]:
                d = article.to_dict()
                d["description"] = _truncate(d["description"], max_description_length)
                result.append(d)
            return str(result)
        except Exception as e:
            return _error("list_articles", e)

    @mcp.tool()
    async def get_status_counts() -> str:
        """Get the number of articles per status plus the total."""
        try:
            counts = await client.get_status_counts()
            return str(counts.to_dict())
        except Exception as e:
            return _error("get_status_counts", e)

    @mcp.tool()
    async def set_article_status(article_id: str, status: str) -> str:
        """Change an article's status.

        Args:
            article_id: ID of the article.
            status: UNREAD, READING, PAUSED, FINISHED or ARCHIVED.

        Returns "OK" on success or an error message.
        """
        try:
            new_status = ArticleStatus(status.upper())
            card = await _card(article_id)
            return _outcome(card, await card.change_status(new_status))
        except Exception as e:
            return _error("set_article_status", e)

    @mcp.tool()
    async def toggle_favorite(article_id: str) -> str:
        """Flip an article's favorite flag.

        Returns "OK" on success or an error message.
        """
        try:
            card = await _card(article_id)
            return _outcome(card, await card.toggle_favorite())
        except Exception as e:
            return _error("toggle_favorite", e)

    @mcp.tool()
    async def rate_article(article_id: str, stars: int) -> str:
        """Rate an article 1-5 stars. Rating it with its current value clears the rating.

        Returns "OK" on success or an error message.
        """
        try:
            card = await _card(article_id)
            return _outcome(card, await card.set_rating(stars))
        except Exception as e:
            return _error("rate_article", e)

    @mcp.tool()
    async def archive_article(article_id: str) -> str:
        """Archive an article, or move an archived one back to UNREAD.

        Returns "OK" on success or an error message.
        """
        try:
            card = await _card(article_id)
            return _outcome(card, await card.toggle_archive())
        except Exception as e:
            return _error("archive_article", e)

    @mcp.tool()
    async def delete_article(article_id: str) -> str:
        """Delete an article permanently.

        Returns "OK" on success or an error message.
        """
        try:
            await client.delete_article(article_id)
            return "OK"
        except Exception as e:
            return _error("delete_article", e)

    @mcp.tool()
    async def save_article(url: str = "", file_path: str = "") -> str:
        """Save a new article from a URL or a local file (give exactly one).

        Returns the saved article or an error message.
        """
        try:
            url = url.strip()
            file_path = file_path.strip()
            if url and file_path:
                return "Error: Provide either a URL or a file, not both"
            if not url and not file_path:
                return "Error: Please provide a URL"
            if url:
                article = await client.create_article(url=url)
            else:
                article = await client.create_article(file_path=Path(file_path))
            return str(article.to_dict())
        except Exception as e:
            return _error("save_article", e)

    @mcp.tool()
    async def list_highlights(query: str = "", limit: int = 50) -> str:
        """List highlights, optionally filtered by text, article title or notes.

        Returns a JSON-formatted list of highlights with their notes.
        """
        try:
            highlights = await client.list_highlights()
            matching = [h for h in highlights if h.matches(query.strip())]
            return str([h.to_dict() for h in matching[:limit]])
        except Exception as e:
            return _error("list_highlights", e)

    @mcp.tool()
    async def get_analytics() -> str:
        """Get reading analytics: totals, completion rate and today's reading time."""
        try:
            analytics = await client.get_analytics()
            return str(analytics.to_dict())
        except Exception as e:
            return _error("get_analytics", e)

    @mcp.tool()
    async def export_articles(format: str = "json", directory: str = ".") -> str:
        """Export all articles as JSON or CSV into a directory.

        The file is always named articles.json or articles.csv.

        Returns the path written or an error message.
        """
        try:
            fmt = ExportFormat(format.lower())
            payload = await client.export_articles(fmt)
            target = Path(directory).expanduser() / fmt.filename
            target.write_bytes(payload)
            return str(target)
        except Exception as e:
            return _error("export_articles", e)
