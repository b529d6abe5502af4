from __future__ import annotations

import os
from typing import Optional

from mastery_tutor.core.interfaces import SpeechSynthesizer
from mastery_tutor.providers.gemini_http import (
    GeminiConfig,
    first_candidate_parts,
    generate_content,
)


class GeminiTTS(SpeechSynthesizer):
    """
    Gemini speech generation.
    Returns base64 PCM16 mono 24kHz exactly as the API sends it.
    """

    def __init__(
        self,
        config: GeminiConfig,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Kore",
        timeout_s: float = 60.0,
    ) -> None:
        self._cfg = config
        self._model = model
        self._voice = voice
        self._timeout_s = timeout_s

    @staticmethod
    def from_env() -> "GeminiTTS":
        return GeminiTTS(
            GeminiConfig.from_env(),
            model=os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts").strip(),
            voice=os.getenv("GEMINI_TTS_VOICE", "Kore").strip(),
        )

    def synthesize(self, text: str) -> Optional[str]:
        text = (text or "").strip()
        if not text:
            raise ValueError("GeminiTTS.synthesize received empty text.")

        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self._voice}}
                },
            },
        }
        data = generate_content(self._cfg, self._model, payload, self._timeout_s)

        for part in first_candidate_parts(data):
            inline = part.get("inlineData") or part.get("inline_data") or {}
            if inline.get("data"):
                return inline["data"]
        return None
