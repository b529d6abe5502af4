from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import requests

from mastery_tutor.core.errors import ErrorCategory, ProviderError


class GeminiProviderError(ProviderError):
    pass


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    @staticmethod
    def from_env() -> "GeminiConfig":
        api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
        if not api_key:
            raise GeminiProviderError(
                "Missing GEMINI_API_KEY in environment.",
                category=ErrorCategory.AUTHORIZATION,
            )
        base_url = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).strip()
        return GeminiConfig(api_key=api_key, base_url=base_url)


def generate_content(
    cfg: GeminiConfig,
    model: str,
    payload: dict[str, Any],
    timeout_s: float,
) -> dict[str, Any]:
    """POST to models/{model}:generateContent and return the decoded JSON body."""
    url = f"{cfg.base_url.rstrip('/')}/models/{model}:generateContent"
    headers = {"x-goog-api-key": cfg.api_key, "content-type": "application/json"}

    try:
        resp = requests.post(url, headers=headers, json=payload, timeout=timeout_s)
    except requests.RequestException as e:
        raise GeminiProviderError(
            f"Failed to reach Gemini at {cfg.base_url} ({e})",
            category=ErrorCategory.CONNECTIVITY,
        ) from e

    if resp.status_code >= 400:
        raise GeminiProviderError(
            f"Gemini error {resp.status_code}: {resp.text[:500]}",
            status_code=resp.status_code,
        )

    try:
        return resp.json()
    except ValueError as e:
        raise GeminiProviderError(f"Gemini returned invalid JSON: {e}") from e


def first_candidate_parts(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Parts of the first candidate; raises if the prompt or reply was blocked."""
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        raise GeminiProviderError(
            f"Prompt blocked by safety filter: {feedback['blockReason']}",
            category=ErrorCategory.CONTENT_FILTERED,
        )

    candidates = data.get("candidates") or []
    if not candidates:
        return []
    candidate = candidates[0] or {}
    if candidate.get("finishReason") in {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}:
        raise GeminiProviderError(
            f"Reply blocked by safety filter: {candidate['finishReason']}",
            category=ErrorCategory.CONTENT_FILTERED,
        )
    return (candidate.get("content") or {}).get("parts") or []
