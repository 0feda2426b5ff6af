from __future__ import annotations

from datetime import UTC, datetime

import pytest
from aiohttp.test_utils import TestClient, TestServer

from roadwatch.config import RoadWatchConfig
from roadwatch.exceptions import ConfigurationError
from roadwatch.models import FeedItem, Override
from roadwatch.web import create_app, format_published

_LINK = "http://localhost/alert"


def _config(feed_url: str, **kwargs: object) -> RoadWatchConfig:
    kwargs.setdefault("road", "124th")
    kwargs.setdefault("time_zone", "America/Los_Angeles")
    return RoadWatchConfig(feed_url=feed_url, **kwargs)  # type: ignore[arg-type]


def test_format_published_uses_display_zone() -> None:
    config = _config("http://localhost/rss")
    value = datetime(2026, 1, 1, 20, 0, tzinfo=UTC)

    assert format_published(value, config.zone()) == "Thu, 01 Jan 2026 12:00:00 PST"
    assert format_published(None, config.zone()) == ""


@pytest.mark.asyncio
async def test_page_shows_closed_with_detail(feed_server) -> None:
    server = await feed_server(
        [FeedItem(title="Closed - 124th", link=_LINK, published_at=datetime(2026, 1, 1, 20, 0, tzinfo=UTC))]
    )
    app = create_app(_config(server.url))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        body = await resp.text()

    assert resp.status == 200
    assert "124th is Closed" in body
    assert "Closed - 124th" in body
    assert _LINK in body
    assert "Updated at Thu, 01 Jan 2026 12:00:00 PST" in body


@pytest.mark.asyncio
async def test_page_defaults_to_open(feed_server) -> None:
    server = await feed_server([FeedItem(title="Closed - Some other road", link=_LINK)])
    app = create_app(_config(server.url))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/", headers={"X-Forwarded-For": "203.0.113.7"})
        body = await resp.text()

    assert resp.status == 200
    assert "124th is Open" in body
    assert "Updated at" not in body


@pytest.mark.asyncio
async def test_feed_failure_is_500(feed_server) -> None:
    server = await feed_server(status=502, body="bad gateway")
    app = create_app(_config(server.url))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        body = await resp.text()

    assert resp.status == 500
    assert "failed to fetch the road alert feed" in body


@pytest.mark.asyncio
async def test_json_reflects_analysis(feed_server, camera_server, fake_model) -> None:
    server = await feed_server([FeedItem(title="Open - 124th", link=_LINK)])
    cameras = await camera_server()
    fake_model.reply = "CLOSED: Flood water across the road."
    app = create_app(_config(server.url, camera_urls=(cameras.url("cam1.jpg"),)), vision_model=fake_model)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/status.json")
        payload = await resp.json()

    assert resp.status == 200
    assert payload["road"] == "124th"
    assert payload["open"] is False
    assert payload["detail"] == "✨ Analysis: Flood water across the road."
    assert payload["link"] == ""
    assert payload["published_at"] is not None


@pytest.mark.asyncio
async def test_override_page_skips_feed(feed_server) -> None:
    server = await feed_server([FeedItem(title="Closed - 124th", link=_LINK)])
    app = create_app(_config(server.url, override=Override.OPEN))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        body = await resp.text()

    assert "124th is Open" in body
    assert "Closed - 124th" not in body
    assert server.hits == 0


def test_invalid_config_fails_before_start() -> None:
    with pytest.raises(ConfigurationError):
        create_app(_config("http://localhost/rss", time_zone="Nowhere/Special"))
