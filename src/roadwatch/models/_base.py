"""Shared helpers for roadwatch models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator


def ensure_tz_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes so comparisons never mix naive and aware values."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


AwareDatetime = Annotated[datetime, AfterValidator(ensure_tz_aware)]
"""Datetime that is always timezone-aware (naive input is taken as UTC)."""

OptionalAwareDatetime = Annotated[datetime | None, AfterValidator(ensure_tz_aware)]
