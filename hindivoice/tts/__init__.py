# hindivoice/tts/__init__.py
# ===========================
# Text-to-Speech Layer — HindiVoice Stage 4
#
#   chunker       — bounded, sentence-aligned chunks of Hindi text
#   engine        — voice/utterance model, pyttsx3 backend, voice selection
#   speech_queue  — sequential chunk playback with skip-on-transient-error
#   speaker       — single-utterance speaker with pause/resume

from hindivoice.tts.engine import Pyttsx3Engine, SpeechEngine, Voice  # noqa: F401
from hindivoice.tts.speech_queue import QueueState, SpeechQueue  # noqa: F401
from hindivoice.tts.speaker import HindiSpeaker, SpeakerStatus  # noqa: F401

__all__ = [
    "HindiSpeaker",
    "Pyttsx3Engine",
    "QueueState",
    "SpeakerStatus",
    "SpeechEngine",
    "SpeechQueue",
    "Voice",
]
