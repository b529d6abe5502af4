"""Key/value JSON persistence for the tutor's local state."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from mastery_tutor.core.models import GlossaryItem, Message
from mastery_tutor.state.app_state import AppState, welcome_message

logger = logging.getLogger(__name__)

HISTORY_KEY = "mastery_engine_chat_history"
GLOSSARY_KEY = "mastery_engine_glossary"
MODEL_KEY = "mastery_engine_selected_model"
THEME_KEY = "theme"
TUTORIAL_KEY = "mastery_engine_tutorial_seen"


class JsonStateStore:
    """
    A single JSON file holding key -> JSON value pairs.
    Every write rewrites the file through a temp file and rename.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read saved state from %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, Any]) -> None:
        data = self._read_all()
        data.update(values)
        self._write_all(data)

    def remove(self, *keys: str) -> None:
        data = self._read_all()
        for key in keys:
            data.pop(key, None)
        self._write_all(data)

    def load_state(self, default_model: str = "gemini-3-flash-preview") -> AppState:
        data = self._read_all()
        state = AppState(
            messages=_load_list(data.get(HISTORY_KEY), Message.from_dict, "chat history")
            or [welcome_message()],
            glossary=_load_list(data.get(GLOSSARY_KEY), GlossaryItem.from_dict, "glossary") or [],
            selected_model=str(data.get(MODEL_KEY) or default_model),
            dark_mode=data.get(THEME_KEY) == "dark",
            onboarding_seen=bool(data.get(TUTORIAL_KEY, False)),
        )
        logger.debug("Loaded %d messages from %s", len(state.messages), self.path)
        return state

    def save_state(self, state: AppState) -> None:
        self.set_many(
            {
                HISTORY_KEY: [m.to_dict() for m in state.messages],
                GLOSSARY_KEY: [g.to_dict() for g in state.glossary],
                MODEL_KEY: state.selected_model,
                THEME_KEY: "dark" if state.dark_mode else "light",
                TUTORIAL_KEY: state.onboarding_seen,
            }
        )

    def save_messages(self, messages: list[Message]) -> None:
        self.set(HISTORY_KEY, [m.to_dict() for m in messages])


def _load_list(raw: Any, parse, what: str) -> Optional[list]:
    if raw is None:
        return None
    try:
        if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
            raise TypeError(f"expected a list of objects, got {raw!r:.80}")
        return [parse(item) for item in raw]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error("Failed to parse saved %s: %s", what, e)
        return None
