from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional

Role = Literal["user", "assistant"]
TurnRole = Literal["user", "model"]


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Attachment:
    """An image or PDF sent along with a user message."""

    data: bytes
    mime_type: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.to_base64(), "mimeType": self.mime_type}

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "Attachment":
        return Attachment(data=base64.b64decode(raw["data"]), mime_type=raw["mimeType"])


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    attachment: Optional[Attachment] = None

    @staticmethod
    def create(role: Role, content: str, attachment: Optional[Attachment] = None) -> "Message":
        return Message(id=new_id(), role=role, content=content, attachment=attachment)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.attachment is not None:
            out["attachment"] = self.attachment.to_dict()
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "Message":
        attachment = raw.get("attachment")
        return Message(
            id=str(raw["id"]),
            role=raw["role"],
            content=raw.get("content", ""),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
            attachment=Attachment.from_dict(attachment) if attachment else None,
        )


@dataclass(frozen=True)
class GlossaryItem:
    id: str
    term: str
    definition: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "term": self.term,
            "definition": self.definition,
            "timestamp": self.timestamp.isoformat(),
        }

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "GlossaryItem":
        return GlossaryItem(
            id=str(raw["id"]),
            term=raw["term"],
            definition=raw.get("definition", ""),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
        )


@dataclass(frozen=True)
class Turn:
    """One role-tagged unit of content sent to the remote model."""

    role: TurnRole
    text: str
    attachment: Optional[Attachment] = None


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    turns: list[Turn]
    system_instruction: str
    temperature: float = 0.7
    top_p: float = 0.95
