"""Road alert feed fetching and status extraction.

The feed is expected to be RSS 2.0, RSS 1.0 (RDF) or Atom. Only item
titles carry meaning: by convention they start with ``"Open"``,
``"Closed"`` or ``"Restricted"``, followed by the road name.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from datetime import datetime
from email.utils import parsedate_to_datetime

import aiohttp

from roadwatch._constants import CLOSED_PREFIX, DEFAULT_FEED_TIMEOUT_S, USER_AGENT
from roadwatch.exceptions import FeedFetchError
from roadwatch.models.feed import FeedItem, FeedMatch

_logger = logging.getLogger(__name__)

_FEED_ROOT_TAGS = frozenset({"rss", "RDF", "feed"})
_ITEM_TAGS = frozenset({"item", "entry"})
_ERROR_BODY_LIMIT = 200
_DATE_TAGS = ("pubDate", "published", "updated", "date")


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _item_link(element: ET.Element) -> str:
    # Atom carries the link in href; prefer rel="alternate" (the default rel).
    fallback = ""
    for child in element:
        if _local_name(child.tag) != "link":
            continue
        href = child.get("href")
        if href is None:
            return (child.text or "").strip()
        if child.get("rel", "alternate") == "alternate":
            return href.strip()
        fallback = fallback or href.strip()
    return fallback


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 822 or ISO 8601 feed timestamp; ``None`` if neither fits."""
    text = value.strip()
    if not text:
        return None
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _item_timestamp(element: ET.Element) -> datetime | None:
    for name in _DATE_TAGS:
        text = _child_text(element, name)
        parsed = parse_timestamp(text) if text else None
        if parsed is not None:
            return parsed
    return None


def parse_feed(document: bytes | str) -> list[FeedItem]:
    """Parse a syndication document into items, in document order.

    Raises
    ------
    FeedFetchError
        If the document is not well-formed XML, or is not RSS, RDF or Atom.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise FeedFetchError(f"Feed is not valid XML: {exc}") from exc

    root_name = _local_name(root.tag)
    if root_name not in _FEED_ROOT_TAGS:
        raise FeedFetchError(f"Failed to detect feed type: unexpected root element <{root_name}>")

    items: list[FeedItem] = []
    for element in root.iter():
        if _local_name(element.tag) not in _ITEM_TAGS:
            continue
        items.append(
            FeedItem(
                title=_child_text(element, "title"),
                link=_item_link(element),
                published_at=_item_timestamp(element),
            )
        )
    return items


def is_open_title(title: str) -> bool:
    """Default-open policy: only an explicit ``"Closed"`` prefix means closed."""
    return not title.startswith(CLOSED_PREFIX)


def find_first_mention(items: Iterable[FeedItem], road: str) -> FeedMatch | None:
    """Return the first item whose title contains *road*, or ``None``.

    Matching is case-sensitive and unanchored. Later mentions are ignored
    even if they disagree with the first one.
    """
    for item in items:
        if road in item.title:
            return FeedMatch(item=item, open=is_open_title(item.title))
    return None


class FeedStatusExtractor:
    """Stateless reader that finds the latest mention of one road in a feed."""

    def __init__(
        self,
        feed_url: str,
        road: str,
        *,
        timeout: float = DEFAULT_FEED_TIMEOUT_S,
    ) -> None:
        self._feed_url = feed_url
        self._road = road
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def road(self) -> str:
        return self._road

    async def fetch_items(self, session: aiohttp.ClientSession) -> Sequence[FeedItem]:
        """Fetch and parse the feed. Failures are never retried."""
        url = self._feed_url
        _logger.debug("GET %s", url)
        try:
            async with session.get(url, headers={"user-agent": USER_AGENT}, timeout=self._timeout) as resp:
                if resp.status != 200:
                    prefix = await resp.content.read(_ERROR_BODY_LIMIT)
                    raise FeedFetchError(
                        f"HTTP {resp.status} from feed {url}: {prefix.decode(errors='replace')}",
                        status_code=resp.status,
                        url=url,
                    )
                body = await resp.read()
        except FeedFetchError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FeedFetchError(f"Request to feed {url} failed: {exc!r}", url=url) from exc

        try:
            items = parse_feed(body)
        except FeedFetchError as exc:
            raise FeedFetchError(str(exc), url=url) from exc
        _logger.debug("Feed %s returned %d items", url, len(items))
        return items

    async def latest(self, session: aiohttp.ClientSession) -> FeedMatch | None:
        """Return the first feed item mentioning the tracked road, or ``None``."""
        items = await self.fetch_items(session)
        return find_first_mention(items, self._road)
