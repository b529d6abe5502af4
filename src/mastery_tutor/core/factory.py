from __future__ import annotations

from mastery_tutor.core.interfaces import DiagramEngine, LLMProvider, SpeechSynthesizer, STTProvider
from mastery_tutor.providers.diagram_mermaid_ink import MermaidInkConfig, MermaidInkEngine
from mastery_tutor.providers.gemini_http import GeminiConfig
from mastery_tutor.providers.llm_gemini import GeminiLLM
from mastery_tutor.providers.llm_openai import OpenAILLM, OpenAILLMConfig
from mastery_tutor.providers.stt_gemini import GeminiSTT
from mastery_tutor.providers.stt_openai import OpenAISTT, OpenAISTTConfig
from mastery_tutor.providers.tts_elevenlabs import ElevenLabsTTS, ElevenLabsTTSConfig
from mastery_tutor.providers.tts_gemini import GeminiTTS


def get_llm_provider(name: str) -> LLMProvider:
    key = (name or "").strip().lower()

    if key in {"gemini", "google"}:
        cfg = GeminiConfig.from_env()
        return GeminiLLM(cfg)

    if key in {"openai", "gpt"}:
        cfg = OpenAILLMConfig.from_env()
        return OpenAILLM(cfg)

    raise ValueError(f"Unknown LLM provider: {name}")


def get_tts_provider(name: str) -> SpeechSynthesizer:
    key = (name or "").strip().lower()

    if key in {"gemini", "google"}:
        return GeminiTTS.from_env()

    if key in {"elevenlabs", "11labs", "eleven"}:
        cfg = ElevenLabsTTSConfig.from_env()
        return ElevenLabsTTS(cfg)

    raise ValueError(f"Unknown TTS provider: {name}")


def get_stt_provider(name: str) -> STTProvider:
    key = (name or "").strip().lower()

    if key in {"gemini", "google"}:
        return GeminiSTT.from_env()

    if key in {"openai", "gpt", "whisper"}:
        return OpenAISTT(OpenAISTTConfig.from_env())

    raise ValueError(f"Unknown STT provider: {name}")


def get_diagram_engine(name: str = "mermaid.ink") -> DiagramEngine:
    key = (name or "").strip().lower()

    if key in {"mermaid.ink", "mermaid_ink", "mermaid"}:
        return MermaidInkEngine(MermaidInkConfig.from_env())

    raise ValueError(f"Unknown diagram engine: {name}")
