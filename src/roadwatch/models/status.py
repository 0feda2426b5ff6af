"""Road status models."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict

from roadwatch.models._base import OptionalAwareDatetime


class Override(enum.StrEnum):
    """Operator-supplied status that takes precedence over every other signal."""

    NONE = ""
    OPEN = "open"
    CLOSED = "closed"


class StatusRecord(BaseModel):
    """The reconciled status handed to the rendering layer.

    Parameters
    ----------
    open : bool
        Whether the road is passable.
    detail : str
        Explanatory text. Empty when nothing beyond ``open`` is known.
    link : str
        Link to the source announcement, if any.
    published_at : datetime or None
        When the underlying information was published or observed.
    """

    model_config = ConfigDict(frozen=True)

    open: bool
    detail: str = ""
    link: str = ""
    published_at: OptionalAwareDatetime = None
