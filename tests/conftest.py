"""Shared fixtures: config, session, client and an article factory."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from readlater_widgets.client import ArticleServiceClient
from readlater_widgets.config import Config
from readlater_widgets.models import Article, ArticleStatus, ContentType
from readlater_widgets.session import Session

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def config(tmp_path):
    return Config(
        READLATER_API_URL="https://api.readlater.test/api",
        READLATER_TOKEN_FILE=str(tmp_path / "token"),
        READLATER_SEARCH_DEBOUNCE=0.05,
    )


@pytest.fixture
def session():
    return Session("tok")


@pytest.fixture
def client(config, session):
    return ArticleServiceClient(config, session)


@pytest.fixture
def make_article():
    counter = iter(range(1, 10_000))

    def factory(**overrides) -> Article:
        n = next(counter)
        fields = {
            "id": f"a{n}",
            "url": f"https://example.com/{n}",
            "title": f"Article {n}",
            "status": ArticleStatus.UNREAD,
            "content_type": ContentType.ARTICLE,
            "created_at": BASE_TIME + timedelta(days=n),
        }
        fields.update(overrides)
        return Article(**fields)

    return factory


def json_response(payload, status_code=200):
    """A MagicMock standing in for an httpx.Response with a JSON body."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response
