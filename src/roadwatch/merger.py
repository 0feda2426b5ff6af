"""Reconcile the override, the feed and the camera analysis into one status."""

from __future__ import annotations

import logging
from datetime import timedelta

import aiohttp

from roadwatch._constants import ANALYSIS_DETAIL_PREFIX, build_analysis_prompt
from roadwatch.analyzer import TrafficAnalyzer
from roadwatch.config import RoadWatchConfig
from roadwatch.exceptions import AnalysisUnavailable
from roadwatch.feed import FeedStatusExtractor
from roadwatch.models.analysis import AnalysisResult
from roadwatch.models.feed import FeedMatch
from roadwatch.models.status import StatusRecord
from roadwatch.override import ManualOverride
from roadwatch.vision import GeminiVisionModel, VisionModel

_logger = logging.getLogger(__name__)


def feed_record(match: FeedMatch | None) -> StatusRecord:
    """Status implied by the feed alone. No mention means open."""
    if match is None:
        return StatusRecord(open=True)
    return StatusRecord(
        open=match.open,
        detail=match.item.title,
        link=match.item.link,
        published_at=match.item.published_at,
    )


def analysis_record(result: AnalysisResult) -> StatusRecord:
    return StatusRecord(
        open=result.open,
        detail=ANALYSIS_DETAIL_PREFIX + result.detail,
        published_at=result.checked_at,
    )


class StatusMerger:
    """Produce the authoritative status for each request.

    Precedence, first match wins:

    1. a manual override, without touching the network;
    2. the feed (a feed failure propagates to the caller);
    3. the camera analysis, but only when it disagrees with the feed.
       Analysis errors are logged and the feed status stands.

    The analysis may overrule even a fresh "Closed" feed entry; the feed
    is known to lag behind the road.
    """

    def __init__(
        self,
        extractor: FeedStatusExtractor,
        *,
        override: ManualOverride | None = None,
        analyzer: TrafficAnalyzer | None = None,
    ) -> None:
        self._extractor = extractor
        self._override = override or ManualOverride()
        self._analyzer = analyzer
        if self._override.is_set:
            _logger.info("Manual override! open=%s", self._override.record().open)

    @property
    def road(self) -> str:
        return self._extractor.road

    async def current_status(self, session: aiohttp.ClientSession) -> StatusRecord:
        """Return the reconciled status.

        Raises
        ------
        FeedFetchError
            If the feed could not be fetched or parsed.
        """
        if self._override.is_set:
            return self._override.record()

        match = await self._extractor.latest(session)
        record = feed_record(match)

        analyzer = self._analyzer
        if analyzer is None or not analyzer.is_configured:
            return record

        try:
            result = await analyzer.check_status(session)
        except AnalysisUnavailable as exc:
            _logger.warning("Camera analysis unavailable, using feed status: %s", exc)
            return record

        if result.open == record.open:
            return record
        _logger.info("AI Analysis overrides feed (open=%s): %s", result.open, result.detail)
        return analysis_record(result)


def build_merger(
    config: RoadWatchConfig,
    http_session: aiohttp.ClientSession,
    *,
    vision_model: VisionModel | None = None,
) -> StatusMerger:
    """Wire a merger from configuration.

    *vision_model* replaces the Gemini client built from
    ``config.gemini_api_key``; with neither, camera analysis is off.
    """
    if vision_model is None and config.analysis_enabled:
        assert config.gemini_api_key is not None  # noqa: S101
        vision_model = GeminiVisionModel(
            config.gemini_api_key,
            config.gemini_model,
            http_session,
            timeout=config.model_timeout,
        )

    analyzer: TrafficAnalyzer | None = None
    if vision_model is not None:
        analyzer = TrafficAnalyzer(
            vision_model,
            config.camera_urls,
            prompt=build_analysis_prompt(config.road, config.location),
            ttl=timedelta(seconds=config.analysis_ttl),
            camera_timeout=config.camera_timeout,
        )

    return StatusMerger(
        FeedStatusExtractor(config.feed_url, config.road, timeout=config.feed_timeout),
        override=ManualOverride(config.override),
        analyzer=analyzer,
    )
