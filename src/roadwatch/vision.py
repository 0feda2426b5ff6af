"""Vision model capability and its Gemini implementation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from roadwatch._constants import DEFAULT_MODEL_TIMEOUT_S, GEMINI_BASE_URL, USER_AGENT
from roadwatch._redact import redact_headers, redact_text, summarize_generate_payload
from roadwatch.exceptions import VisionModelError
from roadwatch.models.analysis import VisionRequest

_logger = logging.getLogger(__name__)


class VisionModel(Protocol):
    """Structural interface for anything that can judge camera images.

    Keeping this a protocol lets tests pass a small in-memory fake while
    production uses :class:`GeminiVisionModel`.
    """

    async def generate(self, request: VisionRequest) -> str:
        ...


class _Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str | None = None


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: list[_Part] = Field(default_factory=list)


class _Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: _Content | None = None


class GenerateContentResponse(BaseModel):
    """The subset of a ``generateContent`` reply roadwatch reads."""

    model_config = ConfigDict(extra="ignore")

    candidates: list[_Candidate] = Field(default_factory=list)

    def first_text(self) -> str | None:
        """Text of the first part of the first candidate, if any."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text


def build_generate_payload(request: VisionRequest) -> dict[str, Any]:
    """Build the ``generateContent`` JSON body: the prompt, then every image inline."""
    parts: list[dict[str, Any]] = [{"text": request.prompt}]
    for image in request.images:
        parts.append(
            {
                "inline_data": {
                    "mime_type": image.mime_type,
                    "data": base64.b64encode(image.data).decode("ascii"),
                }
            }
        )
    return {"contents": [{"parts": parts}]}


class GeminiVisionModel:
    """Gemini ``generateContent`` over the shared aiohttp session."""

    def __init__(
        self,
        api_key: str,
        model: str,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = DEFAULT_MODEL_TIMEOUT_S,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._http = http_session
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: VisionRequest) -> str:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        payload = build_generate_payload(request)
        headers = {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
            "x-goog-api-key": self._api_key,
        }
        _logger.debug(
            "POST %s headers=%s parts=%s", url, redact_headers(headers), summarize_generate_payload(payload)
        )

        try:
            async with self._http.post(url, json=payload, headers=headers, timeout=self._timeout) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise VisionModelError(
                        f"gemini api error: HTTP {resp.status}: {redact_text(text[:200], self._api_key)}",
                        status_code=resp.status,
                    )
                body = await resp.json(content_type=None)
        except VisionModelError:
            raise
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise VisionModelError(f"gemini api error: {redact_text(repr(exc), self._api_key)}") from exc

        try:
            parsed = GenerateContentResponse.model_validate(body)
        except ValidationError as exc:
            raise VisionModelError("unexpected response shape from gemini") from exc

        text = parsed.first_text()
        if not text or not text.strip():
            raise VisionModelError("empty response from gemini")
        return text
