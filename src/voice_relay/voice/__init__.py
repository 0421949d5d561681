"""Remote voice services.

This package wraps the two speech services of the relay:

audio -> STT (Whisper) -> ... -> TTS (Google) -> MP3

The orchestrator decides what happens between them.
"""

from voice_relay.voice.audio_stream import MP3_CONTENT_TYPE, AudioStream
from voice_relay.voice.speakable import to_speakable
from voice_relay.voice.stt import (
    STTConfig,
    STTProvider,
    TranscriptionResult,
    WhisperSTT,
)
from voice_relay.voice.tts import GoogleTTS, TTSConfig, TTSProvider

__all__ = [
    "AudioStream",
    "MP3_CONTENT_TYPE",
    "STTConfig",
    "STTProvider",
    "TranscriptionResult",
    "WhisperSTT",
    "GoogleTTS",
    "TTSConfig",
    "TTSProvider",
    "to_speakable",
]
