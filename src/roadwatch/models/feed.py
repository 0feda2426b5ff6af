"""Incident feed models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from roadwatch.models._base import OptionalAwareDatetime


class FeedItem(BaseModel):
    """A single announcement from the incident feed."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str
    link: str = ""
    published_at: OptionalAwareDatetime = None

    @field_validator("title", "link", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class FeedMatch(BaseModel):
    """The first feed item that mentions the tracked road."""

    model_config = ConfigDict(frozen=True)

    item: FeedItem
    open: bool
