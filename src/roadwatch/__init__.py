"""roadwatch - Reconcile road alerts, manual overrides and camera analysis into one road status."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("roadwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from roadwatch.analyzer import TrafficAnalyzer, parse_verdict
from roadwatch.config import RoadWatchConfig
from roadwatch.exceptions import (
    AnalysisUnavailable,
    AnalyzerNotConfiguredError,
    ConfigurationError,
    FeedFetchError,
    ImageAcquisitionError,
    RoadWatchError,
    VisionModelError,
)
from roadwatch.feed import FeedStatusExtractor, find_first_mention, parse_feed
from roadwatch.merger import StatusMerger, build_merger
from roadwatch.models import (
    AnalysisResult,
    FeedItem,
    FeedMatch,
    ImagePart,
    Override,
    StatusRecord,
    VisionRequest,
)
from roadwatch.override import ManualOverride, parse_override
from roadwatch.vision import GeminiVisionModel, VisionModel

__all__ = [
    "__version__",
    "AnalysisResult",
    "AnalysisUnavailable",
    "AnalyzerNotConfiguredError",
    "ConfigurationError",
    "FeedFetchError",
    "FeedItem",
    "FeedMatch",
    "FeedStatusExtractor",
    "GeminiVisionModel",
    "ImageAcquisitionError",
    "ImagePart",
    "ManualOverride",
    "Override",
    "RoadWatchConfig",
    "RoadWatchError",
    "StatusMerger",
    "StatusRecord",
    "TrafficAnalyzer",
    "VisionModel",
    "VisionModelError",
    "VisionRequest",
    "build_merger",
    "find_first_mention",
    "parse_feed",
    "parse_override",
    "parse_verdict",
]
