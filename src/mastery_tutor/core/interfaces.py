from typing import Any, Callable, Mapping, Optional, Protocol

from mastery_tutor.core.models import GenerationRequest


class STTProvider(Protocol):
    """Speech-to-text provider interface."""

    def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/wav") -> str:
        """
        Convert a recorded question into text. Empty if nothing was said.
        """
        ...


class LLMProvider(Protocol):
    """Large Language Model provider interface."""

    def generate(self, request: GenerationRequest) -> str:
        """
        Generate a reply for a role-alternating turn sequence.
        """
        ...


class SpeechSynthesizer(Protocol):
    """Text-to-speech provider interface."""

    def synthesize(self, text: str) -> Optional[str]:
        """
        Convert text into base64 PCM16 mono 24kHz audio, or None if nothing came back.
        """
        ...


class DiagramEngine(Protocol):
    """Graph-description renderer, treated as a black box."""

    def render(self, render_id: str, source: str, theme: Mapping[str, Any]) -> str:
        """
        Render diagram source into SVG markup. Raises on invalid syntax.
        """
        ...


class PlaybackHandle(Protocol):
    def stop(self) -> None:
        ...


class AudioSink(Protocol):
    """Audio output device."""

    def play(
        self,
        samples: Any,
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> PlaybackHandle:
        """
        Start playing float32 samples. `on_finished` fires when the buffer runs out.
        """
        ...
