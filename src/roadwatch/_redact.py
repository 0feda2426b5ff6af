"""Helpers for safe debug logging.

Vision model requests carry an API key and large base64 image payloads.
Neither may reach the logs; images are summarized by type and size.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_HEADERS: frozenset[str] = frozenset({"x-goog-api-key", "authorization"})


def _decoded_size(encoded: str) -> int:
    """Byte length of a base64 string without decoding it."""
    stripped = encoded.strip()
    return len(stripped) * 3 // 4 - stripped[-2:].count("=")


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"{text[:limit]}…<truncated>"
    return text


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of *headers* with credentials masked."""
    return {k: "<redacted>" if k.lower() in _SECRET_HEADERS else v for k, v in headers.items()}


def summarize_generate_payload(payload: Mapping[str, Any], *, max_text: int = 120) -> list[str]:
    """Describe each part of a ``generateContent`` body on one line.

    Text parts are truncated; inline images become ``<mime, N bytes>``.
    """
    summary: list[str] = []
    for content in payload.get("contents", []):
        for part in content.get("parts", []):
            inline = part.get("inline_data")
            if isinstance(inline, Mapping):
                size = _decoded_size(str(inline.get("data", "")))
                summary.append(f"<{inline.get('mime_type', '?')}, {size} bytes>")
            elif "text" in part:
                summary.append(_truncate(str(part["text"]), max_text))
            else:
                summary.append("<unknown part>")
    return summary


def redact_text(text: str, secret: str | None) -> str:
    """Mask every occurrence of *secret* in *text*."""
    if not secret:
        return text
    return text.replace(secret, "<redacted>")
