"""Camera-based road closure analysis with a rate-limited vision model.

The feed is slow to reflect reality, so live camera images are sent to a
vision model as a second opinion. Model calls are expensive and rate
limited: one verdict is cached for ``ttl`` and shared by every request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import aiohttp

from roadwatch._constants import (
    DEFAULT_ANALYSIS_TTL_S,
    DEFAULT_CAMERA_TIMEOUT_S,
    DEFAULT_IMAGE_MIME_TYPE,
    USER_AGENT,
)
from roadwatch.exceptions import (
    AnalysisUnavailable,
    AnalyzerNotConfiguredError,
    ImageAcquisitionError,
    VisionModelError,
)
from roadwatch.models.analysis import AnalysisResult, ImagePart, VisionRequest
from roadwatch.vision import VisionModel

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def parse_verdict(text: str) -> tuple[bool, str]:
    """Split a ``CLOSED: <reason>`` / ``OPEN: <reason>`` reply.

    Anything not starting with ``CLOSED`` (any case) counts as open. The
    detail is the text after the first colon, or the whole reply when
    there is no colon.
    """
    reply = text.strip()
    is_open = not reply.upper().startswith("CLOSED")
    _, sep, reason = reply.partition(":")
    detail = reason.strip() if sep else reply
    return is_open, detail


def _image_mime_type(content_type: str) -> str:
    if content_type.startswith("image/"):
        return content_type
    return DEFAULT_IMAGE_MIME_TYPE


class TrafficAnalyzer:
    """Ask a vision model whether the road looks closed on the cameras.

    Parameters
    ----------
    model : VisionModel or None
        The model to query. ``None`` disables analysis; every check then
        fails with :class:`AnalyzerNotConfiguredError`.
    camera_urls : sequence of str
        Image URLs, sent to the model in this order.
    prompt : str
        Instruction placed before the images.
    ttl : timedelta
        How long a successful verdict is reused without any network access.
    camera_timeout : float
        Per-camera fetch timeout in seconds.
    clock : callable
        Returns the current aware datetime.
    """

    def __init__(
        self,
        model: VisionModel | None,
        camera_urls: Sequence[str],
        *,
        prompt: str,
        ttl: timedelta = timedelta(seconds=DEFAULT_ANALYSIS_TTL_S),
        camera_timeout: float = DEFAULT_CAMERA_TIMEOUT_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._model = model
        self._camera_urls = tuple(camera_urls)
        self._prompt = prompt
        self._ttl = ttl
        self._camera_timeout = aiohttp.ClientTimeout(total=camera_timeout)
        self._clock = clock
        # Replaced as a whole under _lock; never mutated in place.
        self._cache: AnalysisResult | None = None
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    @property
    def camera_urls(self) -> tuple[str, ...]:
        return self._camera_urls

    @property
    def cached(self) -> AnalysisResult | None:
        """Most recent successful verdict, regardless of age."""
        return self._cache

    async def check_status(
        self,
        session: aiohttp.ClientSession,
        now: datetime | None = None,
    ) -> AnalysisResult:
        """Return a fresh or cached verdict.

        The lock is held across the whole check-and-refresh, so concurrent
        callers during a cache miss wait for the single in-flight analysis
        instead of starting their own.

        Raises
        ------
        AnalyzerNotConfiguredError
            No model configured.
        ImageAcquisitionError
            Every camera fetch failed.
        VisionModelError
            The model call failed or returned nothing usable.
        """
        model = self._model
        if model is None:
            raise AnalyzerNotConfiguredError("AI client not initialized")

        async with self._lock:
            current = now if now is not None else self._clock()
            cached = self._cache
            if cached is not None and current - cached.checked_at < self._ttl:
                _logger.debug("Reusing camera verdict from %s", cached.checked_at.isoformat())
                return cached

            images = await self._fetch_images(session)
            if not images:
                raise ImageAcquisitionError("no images could be fetched")

            request = VisionRequest(prompt=self._prompt, images=tuple(images))
            try:
                reply = await model.generate(request)
            except AnalysisUnavailable:
                raise
            except Exception as exc:
                raise VisionModelError(f"vision model call failed: {exc!r}") from exc
            if not reply or not reply.strip():
                raise VisionModelError("empty response from vision model")

            is_open, detail = parse_verdict(reply)
            checked_at = now if now is not None else self._clock()
            if cached is not None and checked_at < cached.checked_at:
                checked_at = cached.checked_at
            result = AnalysisResult(open=is_open, detail=detail, checked_at=checked_at)
            self._cache = result
            _logger.info("Camera verdict from %d image(s): open=%s (%s)", len(images), is_open, detail)
            return result

    async def _fetch_images(self, session: aiohttp.ClientSession) -> list[ImagePart]:
        results = await asyncio.gather(*(self._fetch_image(session, url) for url in self._camera_urls))
        return [image for image in results if image is not None]

    async def _fetch_image(self, session: aiohttp.ClientSession, url: str) -> ImagePart | None:
        """Fetch one camera image; failures are logged and yield ``None``."""
        try:
            async with session.get(url, headers={"user-agent": USER_AGENT}, timeout=self._camera_timeout) as resp:
                if resp.status != 200:
                    _logger.warning("Error fetching %s: status %d", url, resp.status)
                    return None
                data = await resp.read()
                content_type = resp.content_type
        except (aiohttp.ClientError, TimeoutError) as exc:
            _logger.warning("Error fetching %s: %r", url, exc)
            return None
        return ImagePart(mime_type=_image_mime_type(content_type), data=data, source_url=url)
