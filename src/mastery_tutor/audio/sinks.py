from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import numpy as np

from mastery_tutor.audio.pcm import duration_s

logger = logging.getLogger(__name__)


class _StreamHandle:
    def __init__(self, stream) -> None:
        self._stream = stream
        self._closed = False

    def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.stop()
        finally:
            self._stream.close()


class SoundDeviceSink:
    """
    Plays float32 samples on a local output device through PortAudio.
    """

    def __init__(self, device: Optional[int] = None, blocksize: int = 1024) -> None:
        self._device = device
        self._blocksize = blocksize

    def play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> _StreamHandle:
        # Imported here so the library works on machines without PortAudio.
        import sounddevice as sd

        data = np.ascontiguousarray(samples, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        pos = 0

        def callback(outdata, frames, time_info, status) -> None:
            nonlocal pos
            if status:
                logger.debug("sounddevice status: %s", status)
            chunk = data[pos : pos + frames]
            n = len(chunk)
            outdata[:n] = chunk
            pos += n
            if n < frames:
                outdata[n:] = 0
                raise sd.CallbackStop()

        stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=data.shape[1],
            dtype="float32",
            blocksize=self._blocksize,
            device=self._device,
            callback=callback,
            finished_callback=on_finished,
        )
        stream.start()
        return _StreamHandle(stream)


class Clip:
    """A clip handed to an external player, finished by the owning ClipSink."""

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: int,
        started_at: float,
        on_finished: Callable[[], None],
    ) -> None:
        self.samples = samples
        self.sample_rate = sample_rate
        self.started_at = started_at
        self.duration_s = duration_s(samples, sample_rate)
        self._on_finished = on_finished
        self._sink: Optional["ClipSink"] = None
        self.done = False

    def _complete(self) -> None:
        if self.done:
            return
        self.done = True
        self._on_finished()

    def stop(self) -> None:
        self.done = True
        if self._sink is not None and self._sink.clip is self:
            self._sink.clip = None


class ClipSink:
    """
    Sink for players that run outside this process, such as a browser audio
    element. Nothing reports the end of playback, so completion is inferred
    from the clip's duration: call `poll()` periodically.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.clip: Optional[Clip] = None

    def play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> Clip:
        if self.clip is not None:
            self.clip.stop()
        clip = Clip(samples, sample_rate, self._clock(), on_finished)
        clip._sink = self
        self.clip = clip
        return clip

    def remaining_s(self) -> float:
        if self.clip is None:
            return 0.0
        return max(0.0, self.clip.started_at + self.clip.duration_s - self._clock())

    def poll(self) -> bool:
        """Finish the current clip if its time is up. True if one finished."""
        clip = self.clip
        if clip is None or self.remaining_s() > 0.0:
            return False
        self.clip = None
        clip._complete()
        return True
