"""
hindivoice/tts/speaker.py
==========================
Hindi Speaker — single-utterance text-to-speech with pause/resume

A standalone speaker for free-form Hindi text, separate from the chunked
SpeechQueue. It owns its engine lifecycle status, voice choice and voice
settings, and supports pause/resume:

    - The text is split into sentences and spoken one at a time.
    - pause() interrupts the current sentence; resume() starts again from
      the beginning of that sentence.
    - stop() discards the remaining sentences.

Status: initializing → loading-voices → ready, or error when the engine
cannot be brought up or an utterance fails.
"""

import enum
import logging
from typing import Optional

from hindivoice.errors import NoTextToSpeak, PipelineError, SpeechError, UnsupportedEnvironment
from hindivoice.result import StageResult
from hindivoice.tts.chunker import clean_text, split_sentences
from hindivoice.tts.engine import HINDI_LANG, SpeechEngine, SpeechSynthesisError, Utterance, Voice

logger = logging.getLogger("hindivoice.tts.speaker")


class SpeakerStatus(str, enum.Enum):
    INITIALIZING = "initializing"
    LOADING_VOICES = "loading-voices"
    READY = "ready"
    ERROR = "error"


class HindiSpeaker:
    def __init__(self, engine: SpeechEngine):
        self._engine = engine
        self.status = SpeakerStatus.INITIALIZING
        self.voices: list[Voice] = []
        self.voice: Optional[Voice] = None
        self.rate = 1.0
        self.pitch = 1.0
        self.volume = 1.0
        self.error_message = ""
        self.is_speaking = False
        self.is_paused = False
        self._sentences: list[str] = []
        self._index = 0
        self._generation = 0

    def initialize(self) -> StageResult[Voice]:
        """Bring up the engine and choose a default voice (Hindi, English, first)."""
        self.status = SpeakerStatus.INITIALIZING
        if not self._engine.is_available():
            return self._fail(UnsupportedEnvironment(
                "Text-to-speech initialization failed. Please try refreshing the page."
            ))

        self.status = SpeakerStatus.LOADING_VOICES
        try:
            self.voices = self._engine.list_voices()
        except PipelineError as exc:
            return self._fail(exc)

        self.voice = (
            _first_with_lang(self.voices, "hi")
            or _first_with_lang(self.voices, "en")
            or (self.voices[0] if self.voices else None)
        )
        if self.voice is None or not self.voice.lang.lower().startswith("hi"):
            self.error_message = "No Hindi voice found. Using default voice."
            logger.warning(self.error_message)
        self.status = SpeakerStatus.READY
        logger.info("Hindi speaker ready with %d voices.", len(self.voices))
        return StageResult.success(self.voice)

    def set_voice(self, name: str) -> StageResult[Voice]:
        for voice in self.voices:
            if voice.name == name or voice.id == name:
                self.voice = voice
                return StageResult.success(voice)
        self.voice = self.voices[0] if self.voices else None
        self.error_message = "Selected voice not available. Using default voice."
        return StageResult.success(self.voice, self.error_message)

    def configure(self, rate: Optional[float] = None, pitch: Optional[float] = None,
                  volume: Optional[float] = None) -> None:
        if rate is not None:
            self.rate = rate
        if pitch is not None:
            self.pitch = pitch
        if volume is not None:
            self.volume = volume

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def speak(self, text: str) -> StageResult[None]:
        if self.status != SpeakerStatus.READY:
            return StageResult.failure(UnsupportedEnvironment("Speaker is not ready."))
        cleaned = clean_text(text)
        if not cleaned:
            return StageResult.failure(NoTextToSpeak())

        self.stop()
        self.error_message = ""
        self._sentences = split_sentences(cleaned) or [cleaned]
        self._index = 0
        return await self._play()

    def pause(self) -> None:
        if not self.is_speaking or self.is_paused:
            return
        self.is_paused = True
        self._generation += 1
        self._engine.cancel()
        logger.info("Speech paused at sentence %d/%d.", self._index + 1, len(self._sentences))

    async def resume(self) -> StageResult[None]:
        if not self.is_paused:
            return StageResult.success()
        self.is_paused = False
        return await self._play()

    def stop(self) -> None:
        self.is_paused = False
        self._sentences = []
        self._index = 0
        self._generation += 1
        self._engine.cancel()
        self.is_speaking = False

    async def _play(self) -> StageResult[None]:
        generation = self._generation
        self.is_speaking = True
        while self._index < len(self._sentences):
            utterance = Utterance(
                text=self._sentences[self._index],
                voice=self.voice,
                lang=HINDI_LANG,
                rate=self.rate,
                pitch=self.pitch,
                volume=self.volume,
            )
            try:
                await self._engine.speak(utterance)
            except SpeechSynthesisError as exc:
                if generation != self._generation or exc.error in ("interrupted", "canceled"):
                    return StageResult.success()
                self.is_speaking = False
                self.status = SpeakerStatus.ERROR
                logger.error("Speaker failed: %s", exc)
                return StageResult.failure(SpeechError(exc.error))
            if generation != self._generation:
                return StageResult.success()
            self._index += 1

        self.is_speaking = False
        self._sentences = []
        self._index = 0
        return StageResult.success()

    def _fail(self, exc: PipelineError) -> StageResult:
        self.status = SpeakerStatus.ERROR
        self.error_message = exc.message
        logger.error("Speaker initialization failed: %s", exc.message)
        return StageResult.failure(exc)


def _first_with_lang(voices: list[Voice], prefix: str) -> Optional[Voice]:
    for voice in voices:
        if voice.lang.lower().startswith(prefix):
            return voice
    return None
