from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Optional

from mastery_tutor.core.attachments import validate_attachment
from mastery_tutor.core.config import TutorConfig
from mastery_tutor.core.errors import ErrorCategory, UserFacingError
from mastery_tutor.core.interfaces import LLMProvider, STTProvider
from mastery_tutor.core.models import Attachment, GenerationRequest, Message, Turn
from mastery_tutor.core.prompts import (
    ATTACHMENT_ONLY_PROMPT,
    EMPTY_REPLY,
    NO_SPEECH_MESSAGE,
    SYSTEM_INSTRUCTION,
    TOPIC_PROMPT,
)
from mastery_tutor.core.retry import TEXT_MAX_ATTEMPTS, with_retry
from mastery_tutor.state.app_state import AppState

logger = logging.getLogger(__name__)


def message_to_turn(message: Message) -> Turn:
    return Turn(role="model" if message.role == "assistant" else "user", text=message.content)


def trim_history(turns: list[Turn], limit: int) -> list[Turn]:
    """Keep the most recent `limit` turns, in order."""
    if limit <= 0:
        return []
    return turns if len(turns) <= limit else turns[-limit:]


def normalize_turns(turns: list[Turn]) -> list[Turn]:
    """
    The API rejects consecutive turns from the same role and wants a user turn
    first: merge runs and drop any leading model turns.
    """
    merged: list[Turn] = []
    for turn in turns:
        if not merged and turn.role != "user":
            continue
        if merged and merged[-1].role == turn.role:
            prev = merged[-1]
            merged[-1] = replace(
                prev,
                text=f"{prev.text}\n\n{turn.text}",
                attachment=turn.attachment or prev.attachment,
            )
        else:
            merged.append(turn)
    return merged


class TutorAgent:
    """
    Conversation loop: user turn -> history normalization -> LLM (with retry).

    One request at a time; state lives in the AppState passed in.
    """

    def __init__(
        self,
        llm: LLMProvider,
        state: AppState,
        config: Optional[TutorConfig] = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
        sleep: Callable[[float], None] = time.sleep,
        stt: Optional[STTProvider] = None,
    ) -> None:
        self._llm = llm
        self._stt = stt
        self._state = state
        self._cfg = config or TutorConfig()
        self._system_instruction = system_instruction
        self._sleep = sleep

    @property
    def state(self) -> AppState:
        return self._state

    def build_request(
        self, history: list[Message], prompt: str, attachment: Optional[Attachment]
    ) -> GenerationRequest:
        turns = trim_history([message_to_turn(m) for m in history], self._cfg.history_limit)
        turns.append(Turn(role="user", text=prompt, attachment=attachment))
        return GenerationRequest(
            model=self._state.selected_model or self._cfg.model,
            turns=normalize_turns(turns),
            system_instruction=self._system_instruction,
            temperature=self._cfg.temperature,
            top_p=self._cfg.top_p,
        )

    def send_turn(self, text: str, attachment: Optional[Attachment] = None) -> Optional[Message]:
        """
        Send one user turn. Returns the assistant reply, or None when nothing
        was sent or the call failed (see `state.error`).
        """
        text = text or ""
        if not text.strip() and attachment is None:
            return None
        if self._state.is_loading:
            logger.debug("Send ignored: a request is already in flight.")
            return None
        if attachment is not None:
            validate_attachment(len(attachment.data), attachment.mime_type)

        history = self._state.snapshot()
        if text.strip():
            content = text
        else:
            content = "[Sent Image]" if attachment.is_image else "[Sent Document]"
        user_message = Message.create("user", content, attachment=attachment)

        self._state.begin_request()
        self._state.append_message(user_message)
        try:
            prompt = text if text.strip() else ATTACHMENT_ONLY_PROMPT
            request = self.build_request(history, prompt, attachment)
            logger.info(
                "Sending %d turns to %s (attachment=%s)",
                len(request.turns),
                request.model,
                attachment.mime_type if attachment else None,
            )
            reply = with_retry(
                lambda: self._llm.generate(request),
                max_attempts=TEXT_MAX_ATTEMPTS,
                sleep=self._sleep,
            )
        except Exception as e:
            error = UserFacingError.from_exception(e)
            logger.error(
                "Tutor request failed (%s): %s: %s", error.category.value, type(e).__name__, e
            )
            self._state.set_error(error)
            return None
        finally:
            self._state.end_request()

        assistant_message = Message.create("assistant", reply or EMPTY_REPLY)
        self._state.append_message(assistant_message)
        return assistant_message

    def send_voice_turn(
        self,
        audio_bytes: bytes,
        mime_type: str = "audio/wav",
        attachment: Optional[Attachment] = None,
    ) -> Optional[Message]:
        """
        Transcribe a recorded question and send the transcript as the turn text.
        Returns None when nothing was sent; failures land in `state.error`.
        """
        if self._stt is None:
            raise ValueError("TutorAgent has no speech-to-text provider.")
        if not audio_bytes or self._state.is_loading:
            return None
        if attachment is not None:
            validate_attachment(len(attachment.data), attachment.mime_type)

        self._state.begin_request()
        try:
            transcript = with_retry(
                lambda: self._stt.transcribe(audio_bytes, mime_type),
                max_attempts=TEXT_MAX_ATTEMPTS,
                sleep=self._sleep,
            )
        except Exception as e:
            error = UserFacingError.from_exception(e)
            logger.error(
                "Transcription failed (%s): %s: %s", error.category.value, type(e).__name__, e
            )
            self._state.set_error(error)
            return None
        finally:
            self._state.end_request()

        transcript = (transcript or "").strip()
        if not transcript:
            logger.info("Recording contained no speech (%d bytes).", len(audio_bytes))
            self._state.set_error(UserFacingError(ErrorCategory.UNKNOWN, NO_SPEECH_MESSAGE))
            return None
        return self.send_turn(transcript, attachment)

    def select_topic(self, topic: str) -> Optional[Message]:
        return self.send_turn(TOPIC_PROMPT.format(topic=topic))
