from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from mastery_tutor.core.errors import UserFacingError
from mastery_tutor.core.models import GlossaryItem, Message, new_id
from mastery_tutor.core.prompts import WELCOME_MESSAGE


def welcome_message() -> Message:
    return Message(id="welcome", role="assistant", content=WELCOME_MESSAGE, timestamp=datetime.now())


@dataclass
class AppState:
    """
    Everything the tutor UI remembers between interactions.

    Mutate through the methods so persistence and the in-flight flag stay in step.
    """

    messages: list[Message] = field(default_factory=lambda: [welcome_message()])
    glossary: list[GlossaryItem] = field(default_factory=list)
    selected_model: str = "gemini-3-flash-preview"
    dark_mode: bool = False
    onboarding_seen: bool = False
    is_loading: bool = False
    error: Optional[UserFacingError] = None

    def snapshot(self) -> list[Message]:
        return list(self.messages)

    def append_message(self, message: Message) -> None:
        self.messages.append(message)

    def clear_history(self) -> None:
        self.messages = [welcome_message()]
        self.error = None
        self.is_loading = False

    def begin_request(self) -> bool:
        """Claim the single in-flight slot. False if a request is already pending."""
        if self.is_loading:
            return False
        self.is_loading = True
        self.error = None
        return True

    def end_request(self) -> None:
        self.is_loading = False

    def set_error(self, error: Optional[UserFacingError]) -> None:
        self.error = error

    def add_glossary_item(self, term: str, definition: str) -> GlossaryItem:
        term = (term or "").strip()
        if not term:
            raise ValueError("Glossary term must not be empty.")
        item = GlossaryItem(id=new_id(), term=term, definition=(definition or "").strip())
        self.glossary.append(item)
        return item

    def remove_glossary_item(self, item_id: str) -> None:
        self.glossary = [g for g in self.glossary if g.id != item_id]

    def select_model(self, model_id: str) -> None:
        self.selected_model = model_id

    def toggle_dark_mode(self) -> None:
        self.dark_mode = not self.dark_mode

    def mark_onboarding_seen(self) -> None:
        self.onboarding_seen = True


def search_glossary(items: list[GlossaryItem], query: str) -> list[GlossaryItem]:
    q = (query or "").strip().lower()
    hits = [g for g in items if q in g.term.lower() or q in g.definition.lower()]
    return sorted(hits, key=lambda g: g.term.lower())
