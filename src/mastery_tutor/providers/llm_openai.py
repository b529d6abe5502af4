from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import openai
from openai import OpenAI

from mastery_tutor.core.errors import ErrorCategory, ProviderError
from mastery_tutor.core.interfaces import LLMProvider
from mastery_tutor.core.models import GenerationRequest, Turn


class OpenAIProviderError(ProviderError):
    pass


@dataclass(frozen=True)
class OpenAILLMConfig:
    api_key: str
    model: str = "gpt-4o-mini"

    @staticmethod
    def from_env() -> "OpenAILLMConfig":
        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise OpenAIProviderError(
                "Missing OPENAI_API_KEY in environment.",
                category=ErrorCategory.AUTHORIZATION,
            )

        model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
        return OpenAILLMConfig(api_key=api_key, model=model)


def turn_to_message(turn: Turn) -> dict[str, Any]:
    role = "assistant" if turn.role == "model" else "user"
    if turn.attachment is None:
        return {"role": role, "content": turn.text}

    data_url = f"data:{turn.attachment.mime_type};base64,{turn.attachment.to_base64()}"
    if turn.attachment.is_image:
        extra = {"type": "image_url", "image_url": {"url": data_url}}
    else:
        extra = {"type": "file", "file": {"filename": "attachment.pdf", "file_data": data_url}}
    return {"role": role, "content": [{"type": "text", "text": turn.text}, extra]}


class OpenAILLM(LLMProvider):
    """
    OpenAI chat completion wrapper implementing LLMProvider.

    Model ids that are not OpenAI models (the app's Gemini picker) fall back
    to the configured model.
    """

    def __init__(self, config: OpenAILLMConfig, timeout_s: float = 60.0) -> None:
        self._cfg = config
        # Retries are owned by with_retry.
        self._client = OpenAI(api_key=config.api_key, timeout=timeout_s, max_retries=0)

    def _model_for(self, request: GenerationRequest) -> str:
        if request.model and not request.model.startswith("gemini"):
            return request.model
        return self._cfg.model

    def generate(self, request: GenerationRequest) -> str:
        if not request.turns:
            raise ValueError("OpenAILLM.generate received no turns.")

        messages: list[dict[str, Any]] = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.extend(turn_to_message(t) for t in request.turns)

        try:
            resp = self._client.chat.completions.create(
                model=self._model_for(request),
                messages=messages,
                temperature=request.temperature,
                top_p=request.top_p,
            )
        except openai.APIStatusError as e:
            raise OpenAIProviderError(
                f"OpenAI error {e.status_code}: {e.message}", status_code=e.status_code
            ) from e
        except openai.APIConnectionError as e:
            raise OpenAIProviderError(
                f"Failed to reach OpenAI ({e})", category=ErrorCategory.CONNECTIVITY
            ) from e

        choice = resp.choices[0]
        if choice.finish_reason == "content_filter":
            raise OpenAIProviderError(
                "OpenAI reply blocked by content filter.",
                category=ErrorCategory.CONTENT_FILTERED,
            )
        return (choice.message.content or "").strip()
