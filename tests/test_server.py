"""Tests for server.py — session resolution and tool wiring."""

from readlater_widgets.server import build_server


def test_build_server_uses_token_from_widget_url(config):
    config = config.model_copy(update={"widget_url": "https://widgets.test/inbox?token=from-url"})

    mcp, client = build_server(config)

    assert mcp.name == "readlater-widgets"
    assert client.session.token() == "from-url"
    assert config.token_file.read_text() == "from-url"


def test_build_server_without_token(config, monkeypatch):
    monkeypatch.delenv("READLATER_TOKEN", raising=False)
    config = config.model_copy(update={"token": None, "widget_url": None})

    _, client = build_server(config)

    assert not client.session.is_authenticated
