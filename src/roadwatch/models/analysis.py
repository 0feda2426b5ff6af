"""Camera analysis models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from roadwatch.models._base import AwareDatetime


class ImagePart(BaseModel):
    """Raw image bytes fetched from one camera."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: bytes
    source_url: str = ""


class VisionRequest(BaseModel):
    """A single multi-part request: one instruction followed by images."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    images: tuple[ImagePart, ...] = Field(default_factory=tuple)


class AnalysisResult(BaseModel):
    """Verdict of one camera analysis.

    The analyzer keeps the most recent successful result as its cache
    entry; a new result replaces it as a whole.

    Parameters
    ----------
    open : bool
        Whether the model judged the road to be open.
    detail : str
        The model's one-sentence reason.
    checked_at : datetime
        When the analysis completed.
    """

    model_config = ConfigDict(frozen=True)

    open: bool
    detail: str
    checked_at: AwareDatetime
