"""Tests for client.py — article service client with mocked HTTP."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from conftest import json_response

from readlater_widgets.client import ArticleServiceClient, ArticleServiceError
from readlater_widgets.models import ArticleStatus, ContentType, ExportFormat
from readlater_widgets.session import AuthenticationError, Session

SAMPLE_ITEM = {
    "id": "art-1",
    "url": "https://example.com/post",
    "title": "<span>Test</span> Article",
    "description": "A <b>bold</b> summary",
    "status": "READING",
    "contentType": "PDF",
    "isFavorited": True,
    "rating": 4,
    "readingProgress": 0.25,
    "readingTime": 420,
    "lastReadAt": "2024-02-01T10:00:00Z",
    "createdAt": "2024-01-15T08:30:00.000Z",
    "articleTags": [{"tag": {"id": "t1", "name": "python"}}],
}


def http_error(status_code, payload=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    response.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError("error", request=MagicMock(), response=response)
    )
    return response


# --- Authentication ---


@pytest.mark.asyncio
async def test_requests_carry_bearer_token(client):
    mock_request = AsyncMock(return_value=json_response({"data": []}))
    with patch.object(client._client, "request", mock_request):
        await client.list_articles()

    assert mock_request.call_args[1]["headers"] == {"Authorization": "Bearer tok"}


@pytest.mark.asyncio
async def test_missing_token_blocks_requests(config):
    client = ArticleServiceClient(config, Session(None))
    mock_request = AsyncMock()
    with (
        patch.object(client._client, "request", mock_request),
        pytest.raises(AuthenticationError, match="Missing token"),
    ):
        await client.list_articles()
    mock_request.assert_not_called()


@pytest.mark.asyncio
async def test_unauthorized_raises_authentication_error(client):
    with (
        patch.object(client._client, "request", new_callable=AsyncMock, return_value=http_error(401)),
        pytest.raises(AuthenticationError, match="Invalid or expired token"),
    ):
        await client.list_articles()


@pytest.mark.asyncio
async def test_server_message_is_surfaced(client):
    response = http_error(422, {"error": "URL already saved"})
    with (
        patch.object(client._client, "request", new_callable=AsyncMock, return_value=response),
        pytest.raises(ArticleServiceError, match="URL already saved") as excinfo,
    ):
        await client.create_article(url="https://example.com")
    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_error_without_body_uses_status(client):
    with (
        patch.object(client._client, "request", new_callable=AsyncMock, return_value=http_error(500)),
        pytest.raises(ArticleServiceError, match="HTTP 500"),
    ):
        await client.delete_article("art-1")


@pytest.mark.asyncio
async def test_transport_error_wrapped(client):
    mock_request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
    with (
        patch.object(client._client, "request", mock_request),
        pytest.raises(ArticleServiceError, match="connection refused"),
    ):
        await client.get_analytics()


# --- Articles ---


@pytest.mark.asyncio
async def test_list_articles_parses_items(client):
    mock_request = AsyncMock(return_value=json_response({"data": [SAMPLE_ITEM]}))
    with patch.object(client._client, "request", mock_request):
        articles = await client.list_articles(status=ArticleStatus.READING, limit=50)

    assert len(articles) == 1
    article = articles[0]
    assert article.id == "art-1"
    assert article.display_title == "Test Article"
    assert article.display_description == "A bold summary"
    assert article.status is ArticleStatus.READING
    assert article.content_type is ContentType.PDF
    assert article.rating == 4
    assert article.reading_time == 420
    assert article.created_at.year == 2024
    assert article.created_at.tzinfo is not None
    assert [t.name for t in article.tags] == ["python"]

    method, url = mock_request.call_args[0]
    assert method == "GET"
    assert url.endswith("/articles")
    assert mock_request.call_args[1]["params"] == {"limit": 50, "status": "READING"}


@pytest.mark.asyncio
async def test_list_articles_defaults_to_config_limit(client):
    mock_request = AsyncMock(return_value=json_response({"data": []}))
    with patch.object(client._client, "request", mock_request):
        await client.list_articles(is_favorited=True)

    assert mock_request.call_args[1]["params"] == {"limit": 200, "isFavorited": "true"}


@pytest.mark.asyncio
async def test_unknown_status_is_skipped(client):
    bad = dict(SAMPLE_ITEM, id="art-2", status="SNOOZED")
    worse = dict(SAMPLE_ITEM, id="art-3", contentType="PODCAST")
    mock_request = AsyncMock(return_value=json_response({"data": [SAMPLE_ITEM, bad, worse]}))
    with patch.object(client._client, "request", mock_request):
        articles = await client.list_articles()

    assert [a.id for a in articles] == ["art-1"]


@pytest.mark.asyncio
async def test_get_status_counts(client):
    payload = {"data": {"UNREAD": 5, "READING": 2, "FINISHED": 7, "total": 14}}
    with patch.object(client._client, "request", new_callable=AsyncMock, return_value=json_response(payload)):
        counts = await client.get_status_counts()

    assert counts.get(ArticleStatus.UNREAD) == 5
    assert counts.get(ArticleStatus.PAUSED) == 0
    assert counts.total == 14


@pytest.mark.asyncio
async def test_create_article_from_url(client):
    mock_request = AsyncMock(return_value=json_response({"data": SAMPLE_ITEM}))
    with patch.object(client._client, "request", mock_request):
        article = await client.create_article(url="https://example.com/post")

    assert article.id == "art-1"
    assert mock_request.call_args[1]["json"] == {"url": "https://example.com/post"}


@pytest.mark.asyncio
async def test_create_article_from_file(client, tmp_path):
    upload = tmp_path / "paper.pdf"
    upload.write_bytes(b"%PDF-1.4")
    mock_request = AsyncMock(return_value=json_response({"data": SAMPLE_ITEM}))
    with patch.object(client._client, "request", mock_request):
        await client.create_article(file_path=upload)

    assert mock_request.call_args[0][1].endswith("/articles/upload")
    assert mock_request.call_args[1]["files"] == {"file": ("paper.pdf", b"%PDF-1.4")}


@pytest.mark.asyncio
async def test_create_article_requires_exactly_one_source(client, tmp_path):
    with pytest.raises(ValueError):
        await client.create_article()
    with pytest.raises(ValueError):
        await client.create_article(url="https://x.com", file_path=tmp_path / "f.pdf")


@pytest.mark.asyncio
async def test_update_article_partial_body(client):
    mock_request = AsyncMock(return_value=json_response({"data": SAMPLE_ITEM}))
    with patch.object(client._client, "request", mock_request):
        await client.update_article("art-1", status=ArticleStatus.FINISHED)

    assert mock_request.call_args[0][0] == "PATCH"
    assert mock_request.call_args[1]["json"] == {"status": "FINISHED"}


@pytest.mark.asyncio
async def test_update_article_can_clear_rating(client):
    mock_request = AsyncMock(return_value=json_response({"data": SAMPLE_ITEM}))
    with patch.object(client._client, "request", mock_request):
        await client.update_article("art-1", rating=None)

    assert mock_request.call_args[1]["json"] == {"rating": None}


@pytest.mark.asyncio
async def test_update_article_validates(client):
    with pytest.raises(ValueError, match="between 1 and 5"):
        await client.update_article("art-1", rating=6)
    with pytest.raises(ValueError, match="Nothing to update"):
        await client.update_article("art-1")


@pytest.mark.asyncio
async def test_search(client):
    payload = {"data": {"articles": [SAMPLE_ITEM], "highlights": []}}
    mock_request = AsyncMock(return_value=json_response(payload))
    with patch.object(client._client, "request", mock_request):
        articles = await client.search("python")

    assert [a.id for a in articles] == ["art-1"]
    assert mock_request.call_args[1]["params"] == {"q": "python", "type": "articles"}


@pytest.mark.asyncio
async def test_export_sends_token_twice(client):
    response = json_response(None)
    response.content = b'[{"id": "art-1"}]'
    mock_request = AsyncMock(return_value=response)
    with patch.object(client._client, "request", mock_request):
        payload = await client.export_articles(ExportFormat.CSV)

    assert payload == b'[{"id": "art-1"}]'
    assert mock_request.call_args[1]["params"] == {"format": "csv", "token": "tok"}
    assert mock_request.call_args[1]["headers"]["Authorization"] == "Bearer tok"


# --- Highlights & analytics ---


@pytest.mark.asyncio
async def test_list_highlights(client):
    payload = {
        "data": [
            {
                "id": "h1",
                "text": "An excerpt",
                "createdAt": "2024-03-01T00:00:00Z",
                "article": {"id": "art-1", "title": "<i>Source</i>", "url": "https://x.com"},
                "notes": [{"id": "n1", "content": "Remember this"}],
            }
        ]
    }
    with patch.object(client._client, "request", new_callable=AsyncMock, return_value=json_response(payload)):
        highlights = await client.list_highlights()

    assert len(highlights) == 1
    assert highlights[0].article_id == "art-1"
    assert highlights[0].notes[0].content == "Remember this"


@pytest.mark.asyncio
async def test_get_analytics(client):
    payload = {
        "data": {
            "totalSaved": 40,
            "totalFinished": 10,
            "completionRate": 25,
            "readingTimeToday": 900,
            "articlesByStatus": {"UNREAD": 30},
        }
    }
    with patch.object(client._client, "request", new_callable=AsyncMock, return_value=json_response(payload)):
        analytics = await client.get_analytics()

    assert analytics.total_saved == 40
    assert analytics.completion_rate == 25.0
    assert analytics.reading_time_today == 900
    assert analytics.total_tags == 0


# --- Parsing edge cases ---


class TestParseArticle:
    def test_missing_optional_fields(self, client):
        article = client._parse_article({"id": 7, "url": "u", "status": "UNREAD"})
        assert article is not None
        assert article.id == "7"
        assert article.content_type is ContentType.ARTICLE
        assert article.rating is None
        assert article.progress == 0.0
        assert article.created_at.year == 1970

    def test_missing_id_is_skipped(self, client):
        assert client._parse_article({"status": "UNREAD"}) is None

    def test_pages_from_attributes(self, client):
        item = dict(SAMPLE_ITEM, readingProgress=None, attributes={"currentPage": 3, "totalPages": 12})
        article = client._parse_article(item)
        assert article.current_page == 3
        assert article.progress == 0.25


class TestParseDatetime:
    def test_naive_timestamp_becomes_utc(self):
        parsed = ArticleServiceClient._parse_datetime("2024-01-01T00:00:00")
        assert parsed.tzinfo is not None

    def test_garbage(self):
        assert ArticleServiceClient._parse_datetime("not a date") is None
        assert ArticleServiceClient._parse_datetime(None) is None


# --- Lifecycle ---


@pytest.mark.asyncio
async def test_aclose(client):
    await client.aclose()
    assert client._client.is_closed


@pytest.mark.asyncio
async def test_update_reading_progress(client):
    mock_request = AsyncMock(return_value=json_response({"data": None}))
    with patch.object(client._client, "request", mock_request):
        assert await client.update_reading_progress("art-1", 0.5) is True

    assert mock_request.call_args[0][1].endswith("/articles/art-1/read")
    assert mock_request.call_args[1]["json"] == {"progress": 0.5}

    with pytest.raises(ValueError):
        await client.update_reading_progress("art-1", 1.2)
