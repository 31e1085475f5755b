"""Read-it-later widgets: inbox, reading now, favorites, highlights and analytics."""

from .card import ArticleCard
from .client import ArticleServiceClient, ArticleServiceError
from .controller import ListController
from .listing import ListFilters, SortOption
from .models import Article, ArticleStatus, ContentType, Highlight
from .server import main
from .session import AuthenticationError, Session, SessionProvider
from .toast import Toaster

__all__ = [
    "main",
    "ArticleServiceClient",
    "ArticleServiceError",
    "AuthenticationError",
    "Session",
    "SessionProvider",
    "ListController",
    "ListFilters",
    "SortOption",
    "ArticleCard",
    "Toaster",
    "Article",
    "ArticleStatus",
    "ContentType",
    "Highlight",
]

__version__ = "0.1.0"
