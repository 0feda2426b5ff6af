"""Custom exception hierarchy for roadwatch."""

from __future__ import annotations


class RoadWatchError(Exception):
    """Base exception for all roadwatch errors."""


class ConfigurationError(RoadWatchError):
    """Invalid or missing configuration.

    Only raised while the service starts; request handling never sees it.
    """


class FeedFetchError(RoadWatchError):
    """The road alert feed could not be fetched or parsed.

    This is fatal to the request: a stale or unreachable feed must be
    visible to the caller, never silently replaced.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class AnalysisUnavailable(RoadWatchError):
    """Camera analysis produced no verdict.

    Always recoverable: the merger logs it and keeps the feed-derived status.
    """


class AnalyzerNotConfiguredError(AnalysisUnavailable):
    """No vision model is configured (AI analysis disabled)."""


class ImageAcquisitionError(AnalysisUnavailable):
    """None of the configured cameras returned an image."""


class VisionModelError(AnalysisUnavailable):
    """The vision model call failed or returned no usable content."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
