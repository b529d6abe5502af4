from pathlib import Path

import pytest

from mastery_tutor.core.config import TutorConfig
from mastery_tutor.core.factory import (
    get_diagram_engine,
    get_llm_provider,
    get_stt_provider,
    get_tts_provider,
)
from mastery_tutor.providers.diagram_mermaid_ink import MermaidInkEngine
from mastery_tutor.providers.llm_gemini import GeminiLLM
from mastery_tutor.providers.stt_gemini import GeminiSTT
from mastery_tutor.providers.tts_gemini import GeminiTTS


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TUTOR_MODEL", "gemini-2.5-flash")
    monkeypatch.setenv("TUTOR_TEMPERATURE", "0.2")
    monkeypatch.setenv("TUTOR_HISTORY_LIMIT", "10")
    monkeypatch.setenv("MASTERY_TUTOR_DATA_DIR", str(tmp_path))

    cfg = TutorConfig.from_env()

    assert cfg.model == "gemini-2.5-flash"
    assert cfg.temperature == 0.2
    assert cfg.top_p == 0.95
    assert cfg.history_limit == 10
    assert cfg.state_path == Path(tmp_path) / "state.json"


def test_factory_builds_gemini_stack(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    assert isinstance(get_llm_provider("Gemini"), GeminiLLM)
    assert isinstance(get_tts_provider("google"), GeminiTTS)
    assert isinstance(get_stt_provider("gemini"), GeminiSTT)
    assert isinstance(get_diagram_engine(), MermaidInkEngine)


@pytest.mark.parametrize("factory", [get_llm_provider, get_tts_provider, get_stt_provider, get_diagram_engine])
def test_factory_rejects_unknown_names(factory):
    with pytest.raises(ValueError):
        factory("nope")
