"""aiohttp front end: one status page and a JSON view of the same record."""

from __future__ import annotations

import html
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime
from zoneinfo import ZoneInfo

import aiohttp
from aiohttp import web

from roadwatch.config import RoadWatchConfig
from roadwatch.exceptions import FeedFetchError
from roadwatch.merger import StatusMerger, build_merger
from roadwatch.models.status import StatusRecord
from roadwatch.vision import VisionModel

_logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", RoadWatchConfig)
HTTP_SESSION_KEY = web.AppKey("http_session", aiohttp.ClientSession)
MERGER_KEY = web.AppKey("merger", StatusMerger)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Is {road} open?</title>
</head>
<body class="{css_class}">
<h1>{road} is {state}</h1>
{detail}
</body>
</html>
"""


def format_published(value: datetime | None, zone: ZoneInfo) -> str:
    """RFC 1123 timestamp in the display zone, or ``""``."""
    if value is None:
        return ""
    return value.astimezone(zone).strftime("%a, %d %b %Y %H:%M:%S %Z")


def render_status_page(road: str, record: StatusRecord, zone: ZoneInfo) -> str:
    lines: list[str] = []
    if record.detail:
        text = html.escape(record.detail)
        if record.link:
            text = f'<a href="{html.escape(record.link, quote=True)}">{text}</a>'
        lines.append(f"<p>{text}</p>")
    published = format_published(record.published_at, zone)
    if published:
        lines.append(f"<p>Updated at {html.escape(published)}</p>")
    return _PAGE.format(
        road=html.escape(road),
        state="Open" if record.open else "Closed",
        css_class="open" if record.open else "closed",
        detail="\n".join(lines),
    )


@web.middleware
async def request_logger(request: web.Request, handler: _Handler) -> web.StreamResponse:
    """Log each request, preferring X-Forwarded-For when behind a proxy."""
    remote = " ".join(request.headers.getall("X-Forwarded-For", [])) or request.remote or ""
    _logger.info("%s %s %s %s", remote, request.method, request.rel_url, request.headers.get("User-Agent", ""))
    return await handler(request)


def _feed_failure(exc: FeedFetchError) -> web.Response:
    message = f"failed to fetch the road alert feed: {exc}"
    _logger.error(message)
    return web.Response(status=500, text=message)


async def handle_status_page(request: web.Request) -> web.StreamResponse:
    app = request.app
    merger = app[MERGER_KEY]
    try:
        record = await merger.current_status(app[HTTP_SESSION_KEY])
    except FeedFetchError as exc:
        return _feed_failure(exc)
    body = render_status_page(merger.road, record, app[CONFIG_KEY].zone())
    return web.Response(text=body, content_type="text/html")


async def handle_status_json(request: web.Request) -> web.StreamResponse:
    app = request.app
    merger = app[MERGER_KEY]
    try:
        record = await merger.current_status(app[HTTP_SESSION_KEY])
    except FeedFetchError as exc:
        return _feed_failure(exc)
    return web.json_response({"road": merger.road, **record.model_dump(mode="json")})


def _lifecycle(vision_model: VisionModel | None) -> Callable[[web.Application], AsyncIterator[None]]:
    async def ctx(app: web.Application) -> AsyncIterator[None]:
        async with aiohttp.ClientSession() as session:
            app[HTTP_SESSION_KEY] = session
            app[MERGER_KEY] = build_merger(app[CONFIG_KEY], session, vision_model=vision_model)
            yield

    return ctx


def create_app(config: RoadWatchConfig, *, vision_model: VisionModel | None = None) -> web.Application:
    """Build the web application.

    Raises
    ------
    ConfigurationError
        If *config* is invalid; nothing is started in that case.
    """
    config.validate()
    app = web.Application(middlewares=[request_logger])
    app[CONFIG_KEY] = config
    app.cleanup_ctx.append(_lifecycle(vision_model))
    app.router.add_get("/", handle_status_page)
    app.router.add_get("/status.json", handle_status_json)
    return app
