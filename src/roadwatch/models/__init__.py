"""Data models for road status determination."""

from roadwatch.models.analysis import AnalysisResult, ImagePart, VisionRequest
from roadwatch.models.feed import FeedItem, FeedMatch
from roadwatch.models.status import Override, StatusRecord

__all__ = [
    "AnalysisResult",
    "FeedItem",
    "FeedMatch",
    "ImagePart",
    "Override",
    "StatusRecord",
    "VisionRequest",
]
