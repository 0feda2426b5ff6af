from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from email.utils import format_datetime
from xml.sax.saxutils import escape

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from roadwatch.models import FeedItem, VisionRequest

ServeFn = Callable[[web.Application], Awaitable[TestServer]]


def rss_document(items: Iterable[FeedItem]) -> str:
    entries: list[str] = []
    for item in items:
        parts = [f"<title>{escape(item.title)}</title>"]
        if item.link:
            parts.append(f"<link>{escape(item.link)}</link>")
        if item.published_at is not None:
            parts.append(f"<pubDate>{format_datetime(item.published_at)}</pubDate>")
        entries.append("<item>" + "".join(parts) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>test feed</title><link>http://localhost</link>'
        + "".join(entries)
        + "</channel></rss>"
    )


@dataclass
class FakeVisionModel:
    reply: str = "OPEN: Traffic is moving normally."
    error: Exception | None = None
    delay: float = 0.0
    requests: list[VisionRequest] = field(default_factory=list)

    async def generate(self, request: VisionRequest) -> str:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass
class FeedServer:
    url: str = ""
    hits: int = 0


@dataclass
class CameraServer:
    base_url: str = ""
    hits: dict[str, int] = field(default_factory=dict)
    slow_delay: float = 1.0

    def url(self, name: str) -> str:
        return self.base_url + name

    @property
    def total_hits(self) -> int:
        return sum(self.hits.values())


@pytest_asyncio.fixture
async def http_session() -> AsyncIterator[aiohttp.ClientSession]:
    async with aiohttp.ClientSession() as session:
        yield session


@pytest_asyncio.fixture
async def serve() -> AsyncIterator[ServeFn]:
    servers: list[TestServer] = []

    async def _serve(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield _serve
    for server in servers:
        await server.close()


@pytest.fixture
def feed_server(serve: ServeFn) -> Callable[..., Awaitable[FeedServer]]:
    async def _start(
        items: Iterable[FeedItem] = (),
        *,
        status: int = 200,
        body: str | None = None,
        delay: float = 0.0,
    ) -> FeedServer:
        state = FeedServer()
        document = body if body is not None else rss_document(items)

        async def handler(_request: web.Request) -> web.Response:
            state.hits += 1
            if delay:
                await asyncio.sleep(delay)
            return web.Response(status=status, text=document, content_type="application/rss+xml")

        app = web.Application()
        app.router.add_get("/rss", handler)
        server = await serve(app)
        state.url = str(server.make_url("/rss"))
        return state

    return _start


@pytest.fixture
def camera_server(serve: ServeFn) -> Callable[[], Awaitable[CameraServer]]:
    """Serves ``/cam/<name>``: ``missing*`` is 404, ``broken*`` is 500, ``slow*`` stalls, the rest are images."""

    async def _start() -> CameraServer:
        state = CameraServer()

        async def image(request: web.Request) -> web.Response:
            name = request.match_info["name"]
            state.hits[name] = state.hits.get(name, 0) + 1
            if name.startswith("missing"):
                return web.Response(status=404)
            if name.startswith("slow"):
                await asyncio.sleep(state.slow_delay)
            if name.startswith("broken"):
                return web.Response(status=500)
            if name.endswith(".png"):
                content_type = "image/png"
            elif name.endswith(".bin"):
                content_type = "application/octet-stream"
            else:
                content_type = "image/jpeg"
            return web.Response(body=f"fake image data {name}".encode(), content_type=content_type)

        app = web.Application()
        app.router.add_get("/cam/{name}", image)
        server = await serve(app)
        state.base_url = str(server.make_url("/cam/"))
        return state

    return _start


@pytest.fixture
def fake_model() -> FakeVisionModel:
    return FakeVisionModel()
