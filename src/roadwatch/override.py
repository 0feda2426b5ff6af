"""Manual status override."""

from __future__ import annotations

from roadwatch.exceptions import ConfigurationError
from roadwatch.models.status import Override, StatusRecord


def parse_override(raw: str | None) -> Override:
    """Parse the ``OVERRIDE`` setting (``open``, ``closed`` or empty)."""
    if raw is None:
        return Override.NONE
    try:
        return Override(raw.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"OVERRIDE must be 'open', 'closed' or empty, got {raw!r}") from exc


class ManualOverride:
    """Fixed operator-supplied status, read-only for the life of the service.

    Useful when the feed lags behind reality, e.g. the cameras clearly show
    the road reopened hours before the feed says so.
    """

    def __init__(self, value: Override | str = Override.NONE) -> None:
        self._value = value if isinstance(value, Override) else parse_override(value)

    @property
    def value(self) -> Override:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value != Override.NONE

    def record(self) -> StatusRecord:
        """Status implied by the override. Only ``open`` is populated."""
        if not self.is_set:
            raise ValueError("no override is set")
        return StatusRecord(open=self._value == Override.OPEN)

    def __repr__(self) -> str:
        return f"ManualOverride({self._value.name})"
