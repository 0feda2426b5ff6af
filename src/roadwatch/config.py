"""Service configuration for roadwatch."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from roadwatch._constants import (
    DEFAULT_ANALYSIS_TTL_S,
    DEFAULT_CAMERA_TIMEOUT_S,
    DEFAULT_FEED_TIMEOUT_S,
    DEFAULT_FEED_URL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_LOCATION,
    DEFAULT_MODEL_TIMEOUT_S,
    DEFAULT_ROAD,
    DEFAULT_TIME_ZONE,
)
from roadwatch.exceptions import ConfigurationError
from roadwatch.models.status import Override
from roadwatch.override import parse_override


def _split_urls(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


@dataclasses.dataclass(frozen=True)
class RoadWatchConfig:
    """Service configuration.

    Parameters
    ----------
    feed_url : str
        Road alert feed (RSS or Atom) to poll on every request.
    road : str
        Case-sensitive substring identifying the tracked road in feed titles.
    location : str
        Description of the camera location, used in the analysis prompt.
    time_zone : str
        IANA time zone in which timestamps are displayed.
    override : Override
        Manual status. Anything but ``Override.NONE`` bypasses the feed
        and the cameras entirely.
    gemini_api_key : str or None
        Gemini API key. Camera analysis is disabled when unset.
    gemini_model : str
        Gemini model name.
    camera_urls : tuple of str
        Camera image URLs, in the order they are sent to the model.
    analysis_ttl : float
        Seconds a camera verdict stays valid before the model is asked again.
    camera_timeout : float
        Per-camera fetch timeout in seconds.
    feed_timeout : float
        Feed fetch timeout in seconds.
    model_timeout : float
        Vision model call timeout in seconds.
    """

    feed_url: str = DEFAULT_FEED_URL
    road: str = DEFAULT_ROAD
    location: str = DEFAULT_LOCATION
    time_zone: str = DEFAULT_TIME_ZONE
    override: Override = Override.NONE
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    camera_urls: tuple[str, ...] = ()
    analysis_ttl: float = DEFAULT_ANALYSIS_TTL_S
    camera_timeout: float = DEFAULT_CAMERA_TIMEOUT_S
    feed_timeout: float = DEFAULT_FEED_TIMEOUT_S
    model_timeout: float = DEFAULT_MODEL_TIMEOUT_S

    @property
    def analysis_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    def zone(self) -> ZoneInfo:
        """Return the display time zone.

        Raises :class:`ConfigurationError` for an unknown zone name.
        """
        try:
            return ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"unknown time zone {self.time_zone!r}") from exc

    def validate(self) -> None:
        """Check the configuration once at startup.

        Raises
        ------
        ConfigurationError
            On the first invalid field found.
        """
        self.zone()
        if not self.road.strip():
            raise ConfigurationError("road must be non-empty")
        if not _is_http_url(self.feed_url):
            raise ConfigurationError(f"feed URL must be http(s), got {self.feed_url!r}")
        for url in self.camera_urls:
            if not _is_http_url(url):
                raise ConfigurationError(f"camera URL must be http(s), got {url!r}")
        for name in ("analysis_ttl", "camera_timeout", "feed_timeout", "model_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.analysis_enabled and not self.camera_urls:
            raise ConfigurationError("camera analysis is enabled but no camera URLs are configured")

    @classmethod
    def from_env(cls, **overrides: Any) -> RoadWatchConfig:
        """Create configuration from environment variables.

        Reads ``ROADWATCH_*`` variables plus ``OVERRIDE``, ``GEMINI_API_KEY``
        and ``GEMINI_MODEL``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        ConfigurationError
            If a numeric variable or ``OVERRIDE`` cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ROADWATCH_FEED_URL": "feed_url",
            "ROADWATCH_ROAD": "road",
            "ROADWATCH_LOCATION": "location",
            "ROADWATCH_TIME_ZONE": "time_zone",
            "GEMINI_API_KEY": "gemini_api_key",
            "GEMINI_MODEL": "gemini_model",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        if "override" not in overrides:
            config_kwargs["override"] = parse_override(env.get("OVERRIDE"))

        cameras_env = env.get("ROADWATCH_CAMERA_URLS")
        if cameras_env is not None and "camera_urls" not in overrides:
            config_kwargs["camera_urls"] = _split_urls(cameras_env)

        _ENV_SECONDS_MAP = {
            "ROADWATCH_ANALYSIS_TTL": "analysis_ttl",
            "ROADWATCH_CAMERA_TIMEOUT": "camera_timeout",
            "ROADWATCH_FEED_TIMEOUT": "feed_timeout",
            "ROADWATCH_MODEL_TIMEOUT": "model_timeout",
        }
        for env_key, field_name in _ENV_SECONDS_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise ConfigurationError(f"{env_key} must be a number of seconds, got {val!r}") from exc

        config_kwargs.update(overrides)
        if isinstance(config_kwargs.get("camera_urls"), str):
            config_kwargs["camera_urls"] = _split_urls(config_kwargs["camera_urls"])
        if isinstance(config_kwargs.get("override"), str) and not isinstance(config_kwargs["override"], Override):
            config_kwargs["override"] = parse_override(config_kwargs["override"])

        return cls(**config_kwargs)
