from __future__ import annotations

import base64
import binascii

import numpy as np

from mastery_tutor.core.errors import AudioDecodeError

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, signed 16-bit little-endian

_PCM16_DTYPE = np.dtype("<i2")


def decode_base64(payload: str) -> bytes:
    if not payload:
        raise AudioDecodeError("Speech payload is empty.")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AudioDecodeError(f"Speech payload is not valid base64: {e}") from e


def pcm16_to_float32(raw: bytes, channels: int = CHANNELS) -> np.ndarray:
    """
    Reinterpret PCM16 LE bytes as float32 samples in [-1.0, 1.0).

    Mono gives shape (frames,); more channels give (frames, channels).
    """
    if not raw:
        raise AudioDecodeError("Speech payload decoded to zero bytes.")
    frame_bytes = SAMPLE_WIDTH * channels
    if len(raw) % frame_bytes:
        raise AudioDecodeError(
            f"Speech payload has {len(raw)} bytes, not a multiple of the {frame_bytes}-byte frame size."
        )

    ints = np.frombuffer(raw, dtype=_PCM16_DTYPE)
    samples = ints.astype(np.float32) / 32768.0
    if channels == 1:
        return samples
    return samples.reshape(-1, channels)


def decode_speech(payload: str, channels: int = CHANNELS) -> np.ndarray:
    return pcm16_to_float32(decode_base64(payload), channels=channels)


def duration_s(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> float:
    return len(samples) / float(sample_rate)
