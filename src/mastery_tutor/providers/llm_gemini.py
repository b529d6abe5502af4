from __future__ import annotations

from typing import Any

from mastery_tutor.core.interfaces import LLMProvider
from mastery_tutor.core.models import GenerationRequest, Turn
from mastery_tutor.providers.gemini_http import (
    GeminiConfig,
    first_candidate_parts,
    generate_content,
)


def turn_to_content(turn: Turn) -> dict[str, Any]:
    parts: list[dict[str, Any]] = [{"text": turn.text}]
    if turn.attachment is not None:
        parts.append(
            {
                "inline_data": {
                    "mime_type": turn.attachment.mime_type,
                    "data": turn.attachment.to_base64(),
                }
            }
        )
    return {"role": turn.role, "parts": parts}


class GeminiLLM(LLMProvider):
    """
    Gemini generateContent over REST, implementing LLMProvider.
    """

    def __init__(self, config: GeminiConfig, timeout_s: float = 60.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "contents": [turn_to_content(t) for t in request.turns],
            "generationConfig": {
                "temperature": request.temperature,
                "topP": request.top_p,
            },
        }
        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}
        return payload

    def generate(self, request: GenerationRequest) -> str:
        if not request.turns:
            raise ValueError("GeminiLLM.generate received no turns.")

        data = generate_content(
            self._cfg, request.model, self.build_payload(request), self._timeout_s
        )
        parts = first_candidate_parts(data)
        return "".join(p.get("text", "") for p in parts if not p.get("thought")).strip()
