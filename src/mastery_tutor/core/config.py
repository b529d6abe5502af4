from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ModelOption:
    id: str
    name: str
    desc: str


MODELS: list[ModelOption] = [
    ModelOption("gemini-3-pro-preview", "Gemini 3 Pro", "Complex reasoning"),
    ModelOption("gemini-3-flash-preview", "Gemini 3 Flash", "Fast & efficient"),
    ModelOption("gemini-2.5-flash", "Gemini 2.5 Flash", "Balanced"),
    ModelOption("gemini-2.5-flash-lite", "Gemini 2.5 Lite", "Lightweight"),
]

MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
ALLOWED_ATTACHMENT_TYPES = ("image/jpeg", "image/png", "image/webp", "application/pdf")


@dataclass(frozen=True)
class TutorConfig:
    model: str = "gemini-3-flash-preview"
    temperature: float = 0.7
    top_p: float = 0.95
    history_limit: int = 25
    data_dir: Path = Path.home() / ".mastery_tutor"
    autosave_interval_s: float = 30.0

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @staticmethod
    def from_env() -> "TutorConfig":
        model = os.getenv("TUTOR_MODEL", "gemini-3-flash-preview").strip()
        temperature = float(os.getenv("TUTOR_TEMPERATURE", "0.7"))
        top_p = float(os.getenv("TUTOR_TOP_P", "0.95"))
        history_limit = int(os.getenv("TUTOR_HISTORY_LIMIT", "25"))
        data_dir = Path(
            os.getenv("MASTERY_TUTOR_DATA_DIR", str(Path.home() / ".mastery_tutor"))
        ).expanduser()
        autosave = float(os.getenv("TUTOR_AUTOSAVE_SECONDS", "30"))
        return TutorConfig(
            model=model,
            temperature=temperature,
            top_p=top_p,
            history_limit=history_limit,
            data_dir=data_dir,
            autosave_interval_s=autosave,
        )
