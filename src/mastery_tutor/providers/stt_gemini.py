from __future__ import annotations

import base64
import os

from mastery_tutor.core.interfaces import STTProvider
from mastery_tutor.core.prompts import TRANSCRIBE_PROMPT
from mastery_tutor.providers.gemini_http import (
    GeminiConfig,
    first_candidate_parts,
    generate_content,
)


class GeminiSTT(STTProvider):
    """
    Transcribes voice questions by sending the recording inline to a Gemini model.
    """

    def __init__(
        self,
        config: GeminiConfig,
        model: str = "gemini-2.5-flash",
        timeout_s: float = 60.0,
    ) -> None:
        self._cfg = config
        self._model = model
        self._timeout_s = timeout_s

    @staticmethod
    def from_env() -> "GeminiSTT":
        return GeminiSTT(
            GeminiConfig.from_env(),
            model=os.getenv("GEMINI_STT_MODEL", "gemini-2.5-flash").strip(),
        )

    def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/wav") -> str:
        if not audio_bytes:
            raise ValueError("GeminiSTT.transcribe received no audio.")

        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": TRANSCRIBE_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(audio_bytes).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {"temperature": 0.0},
        }
        data = generate_content(self._cfg, self._model, payload, self._timeout_s)
        parts = first_candidate_parts(data)
        return "".join(p.get("text", "") for p in parts if not p.get("thought")).strip()
