from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from typing import Any, Optional

import requests

from mastery_tutor.audio.pcm import SAMPLE_RATE
from mastery_tutor.core.errors import ErrorCategory, ProviderError
from mastery_tutor.core.interfaces import SpeechSynthesizer

# The speech decoder only understands 24kHz PCM16.
PCM_FORMAT = f"pcm_{SAMPLE_RATE}"


class ElevenLabsError(ProviderError):
    pass


@dataclass(frozen=True)
class ElevenLabsTTSConfig:
    api_key: str
    voice_id: str
    model_id: Optional[str] = None
    base_url: str = "https://api.elevenlabs.io/v1"

    @staticmethod
    def from_env() -> "ElevenLabsTTSConfig":
        api_key = os.getenv("ELEVENLABS_API_KEY", "").strip()
        voice_id = os.getenv("ELEVENLABS_VOICE_ID", "").strip()
        if not api_key or not voice_id:
            raise ElevenLabsError(
                "ELEVENLABS_API_KEY and ELEVENLABS_VOICE_ID must both be set.",
                category=ErrorCategory.AUTHORIZATION,
            )
        return ElevenLabsTTSConfig(
            api_key=api_key,
            voice_id=voice_id,
            model_id=os.getenv("ELEVENLABS_MODEL_ID", "").strip() or None,
        )


class ElevenLabsTTS(SpeechSynthesizer):
    """
    ElevenLabs voice for the Listen button.
    Asks for raw PCM at the decoder's rate and returns it base64-encoded,
    the same shape Gemini speech arrives in.
    """

    def __init__(self, config: ElevenLabsTTSConfig, timeout_s: float = 30.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def _body(self, text: str) -> dict[str, Any]:
        body: dict[str, Any] = {"text": text}
        if self._cfg.model_id:
            body["model_id"] = self._cfg.model_id
        return body

    def synthesize(self, text: str) -> Optional[str]:
        text = (text or "").strip()
        if not text:
            raise ValueError("ElevenLabsTTS.synthesize received empty text.")

        try:
            resp = requests.post(
                f"{self._cfg.base_url.rstrip('/')}/text-to-speech/{self._cfg.voice_id}",
                headers={"xi-api-key": self._cfg.api_key},
                params={"output_format": PCM_FORMAT},
                json=self._body(text),
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise ElevenLabsError(
                f"Failed to reach ElevenLabs ({e})", category=ErrorCategory.CONNECTIVITY
            ) from e

        if resp.status_code >= 400:
            raise ElevenLabsError(
                f"ElevenLabs error {resp.status_code}: {(resp.text or '')[:500]}",
                status_code=resp.status_code,
            )

        return base64.b64encode(resp.content).decode("ascii") if resp.content else None
