from __future__ import annotations

import os
from dataclasses import dataclass

import openai
from openai import OpenAI

from mastery_tutor.core.errors import ErrorCategory
from mastery_tutor.core.interfaces import STTProvider
from mastery_tutor.providers.llm_openai import OpenAIProviderError

_EXTENSIONS = {"audio/wav": "wav", "audio/x-wav": "wav", "audio/webm": "webm", "audio/mpeg": "mp3"}


@dataclass(frozen=True)
class OpenAISTTConfig:
    api_key: str
    model: str = "gpt-4o-mini-transcribe"

    @staticmethod
    def from_env() -> "OpenAISTTConfig":
        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise OpenAIProviderError(
                "Missing OPENAI_API_KEY in environment.",
                category=ErrorCategory.AUTHORIZATION,
            )
        return OpenAISTTConfig(
            api_key=api_key,
            model=os.getenv("OPENAI_STT_MODEL", "gpt-4o-mini-transcribe").strip(),
        )


class OpenAISTT(STTProvider):
    """OpenAI audio transcription implementing STTProvider."""

    def __init__(self, config: OpenAISTTConfig, timeout_s: float = 60.0) -> None:
        self._cfg = config
        self._client = OpenAI(api_key=config.api_key, timeout=timeout_s, max_retries=0)

    def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/wav") -> str:
        if not audio_bytes:
            raise ValueError("OpenAISTT.transcribe received no audio.")

        filename = f"question.{_EXTENSIONS.get(mime_type, 'wav')}"
        try:
            resp = self._client.audio.transcriptions.create(
                model=self._cfg.model,
                file=(filename, audio_bytes, mime_type),
            )
        except openai.APIStatusError as e:
            raise OpenAIProviderError(
                f"OpenAI error {e.status_code}: {e.message}", status_code=e.status_code
            ) from e
        except openai.APIConnectionError as e:
            raise OpenAIProviderError(
                f"Failed to reach OpenAI ({e})", category=ErrorCategory.CONNECTIVITY
            ) from e

        return (resp.text or "").strip()
