from __future__ import annotations

import logging
from typing import Callable, Optional

from mastery_tutor.audio.pcm import SAMPLE_RATE, decode_speech
from mastery_tutor.core.errors import AudioDecodeError
from mastery_tutor.core.interfaces import AudioSink, PlaybackHandle, SpeechSynthesizer
from mastery_tutor.core.retry import SPEECH_MAX_ATTEMPTS, with_retry
from mastery_tutor.response.sections import speakable_text

logger = logging.getLogger(__name__)


class AudioPlaybackSession:
    """
    One playback of one synthesized reply.

    `on_change(False)` fires once when playback ends, whether the buffer ran
    out or `stop()` was called.
    """

    def __init__(self, on_change: Optional[Callable[[bool], None]] = None) -> None:
        self._on_change = on_change
        self._handle: Optional[PlaybackHandle] = None
        self.is_playing = False

    def _begin(self) -> None:
        self.is_playing = True
        if self._on_change:
            self._on_change(True)

    def _attach(self, handle: PlaybackHandle) -> None:
        if self.is_playing:
            self._handle = handle
        else:
            # Sink finished before returning its handle.
            handle.stop()

    def _finish(self) -> None:
        self._handle = None
        if not self.is_playing:
            return
        self.is_playing = False
        if self._on_change:
            self._on_change(False)

    def stop(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.stop()
        self._finish()


class SpeechPlayer:
    """
    Reads tutor replies aloud. At most one session plays at a time.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        sink: AudioSink,
        on_change: Optional[Callable[[bool], None]] = None,
        max_attempts: int = SPEECH_MAX_ATTEMPTS,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._synth = synthesizer
        self._sink = sink
        self._on_change = on_change
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._active: Optional[AudioPlaybackSession] = None
        self.last_error: Optional[str] = None

    @property
    def is_playing(self) -> bool:
        return self._active is not None and self._active.is_playing

    def stop(self) -> None:
        if self._active is not None:
            self._active.stop()
            self._active = None

    def play_speech(self, text: str) -> AudioPlaybackSession:
        self.stop()
        self.last_error = None

        session = AudioPlaybackSession(on_change=self._on_change)
        self._active = session

        clean = speakable_text(text)
        if not clean:
            logger.debug("Nothing speakable in message; skipping synthesis.")
            return session

        retry_kwargs = {"sleep": self._sleep} if self._sleep else {}
        try:
            payload = with_retry(
                lambda: self._synth.synthesize(clean),
                max_attempts=self._max_attempts,
                **retry_kwargs,
            )
            if not payload:
                raise AudioDecodeError("Failed to generate speech.")
            samples = decode_speech(payload)

            session._begin()
            handle = self._sink.play(samples, SAMPLE_RATE, session._finish)
            session._attach(handle)
        except Exception as e:
            # Playback is optional; the text reply is already on screen.
            self.last_error = f"{type(e).__name__}: {str(e)}"
            logger.error("Speech playback error: %s", self.last_error)
            session.stop()

        return session

    def toggle(self, text: str) -> AudioPlaybackSession:
        """Stop if speaking, otherwise start reading `text`."""
        if self._active is not None and self._active.is_playing:
            session = self._active
            self.stop()
            return session
        return self.play_speech(text)
