from __future__ import annotations

import sys
import time

from dotenv import load_dotenv

from mastery_tutor.audio.player import SpeechPlayer
from mastery_tutor.audio.sinks import SoundDeviceSink
from mastery_tutor.core.factory import get_tts_provider


def main() -> None:
    load_dotenv()  # loads .env from repo root (current working dir)

    provider = sys.argv[1] if len(sys.argv) > 1 else "gemini"
    player = SpeechPlayer(
        synthesizer=get_tts_provider(provider),
        sink=SoundDeviceSink(),
        on_change=lambda playing: print("speaking" if playing else "done"),
    )
    session = player.play_speech(
        "1. THE CORE PRINCIPLE\nHello! This is a quick speech smoke test.\n"
        "DEEP_LEARNING_TOPICS Sound, Waves"
    )
    if player.last_error:
        print("Playback failed:", player.last_error)
        return

    while session.is_playing:
        time.sleep(0.1)


if __name__ == "__main__":
    main()
