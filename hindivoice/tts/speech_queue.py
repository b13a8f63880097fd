"""
hindivoice/tts/speech_queue.py
===============================
Speech Queue — HindiVoice Stage 4

Responsibility:
    - Split the Hindi text into chunks (fresh on every speak call)
    - Play chunks strictly one after another, 200 ms apart
    - Report progress as round(100 * completed / total) after each chunk
    - Recover from transient per-chunk errors by skipping ahead

Per-chunk error policy:
    interrupted / canceled        → swallowed (expected after stop())
    network / synthesis-failed    → skip to the next chunk after 500 ms;
                                    the failed chunk is NEVER re-spoken
    anything else, or a transient
    error on the last chunk       → queue ends with SpeechError

States: IDLE → SPEAKING → IDLE (completion, error, or stop). There is no
pause at the chunk-queue level.

This module does NOT:
    - Translate text
    - Own voices or engine lifecycle beyond cancel()
"""

import asyncio
import enum
import logging
import math
from typing import Any, Awaitable, Callable, Optional

from hindivoice.errors import NoTextToSpeak, SpeechError, UnsupportedEnvironment
from hindivoice.result import StageResult
from hindivoice.tts.chunker import chunk_text
from hindivoice.tts.engine import HINDI_LANG, SpeechEngine, SpeechSynthesisError, Utterance, select_voice

logger = logging.getLogger("hindivoice.tts.speech_queue")

CHUNK_GAP_SECONDS = 0.2
RECOVERY_DELAY_SECONDS = 0.5

DEFAULT_RATE = 0.8
DEFAULT_VOLUME = 1.0

STATUS_COMPLETED = "Speech completed successfully!"
STATUS_STOPPED = "Speech stopped."

_SWALLOWED_ERRORS = {"interrupted", "canceled"}
_RECOVERABLE_ERRORS = {"network", "synthesis-failed"}


class QueueState(str, enum.Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


def progress_percent(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up."""
    if total <= 0:
        return 0
    return int(math.floor(100.0 * completed / total + 0.5))


class SpeechQueue:
    def __init__(
        self,
        engine: SpeechEngine,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._engine = engine
        self._sleep = sleep
        self._listeners: list[Callable[[int], None]] = []
        self._chunks: list[str] = []
        self._index = 0
        self._generation = 0
        self.state = QueueState.IDLE
        self.progress = 0

    @property
    def engine(self) -> SpeechEngine:
        return self._engine

    @property
    def pending_chunks(self) -> list[str]:
        return self._chunks[self._index:]

    def add_progress_listener(self, listener: Callable[[int], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def speak(
        self,
        text: str,
        voice_id: Optional[str] = None,
        rate: float = DEFAULT_RATE,
        volume: float = DEFAULT_VOLUME,
    ) -> StageResult[int]:
        """
        Speak ``text`` chunk by chunk.

        Returns:
            StageResult whose value is the number of chunks spoken. A run
            ended by stop() or superseded by another speak() is a success
            with the "stopped" message.
        """
        if not text or not text.strip():
            return StageResult.failure(NoTextToSpeak())
        if not self._engine.is_available():
            return StageResult.failure(
                UnsupportedEnvironment("Text-to-speech not supported on this host")
            )

        # Supersede any run in flight before building the new queue.
        self.stop()
        generation = self._generation

        voice = select_voice(self._engine.list_voices(), voice_id)
        self._chunks = chunk_text(text)
        self._index = 0
        self.state = QueueState.SPEAKING
        total = len(self._chunks)
        spoken = 0
        logger.info(
            "Speaking %d chunk(s) | voice=%s | rate=%.2f | volume=%.2f",
            total, voice.name if voice else "default", rate, volume,
        )

        while self._index < total:
            utterance = Utterance(
                text=self._chunks[self._index],
                voice=voice,
                lang=HINDI_LANG,
                rate=rate,
                pitch=1.0,
                volume=volume,
            )
            logger.debug("Speaking chunk %d/%d", self._index + 1, total)
            try:
                await self._engine.speak(utterance)
            except SpeechSynthesisError as exc:
                if generation != self._generation or exc.error in _SWALLOWED_ERRORS:
                    return self._stopped(generation, spoken)

                if exc.error in _RECOVERABLE_ERRORS and self._index + 1 < total:
                    logger.warning(
                        "Chunk %d/%d failed (%s) — skipping to next chunk.",
                        self._index + 1, total, exc.error,
                    )
                    self._index += 1
                    await self._sleep(RECOVERY_DELAY_SECONDS)
                    if generation != self._generation:
                        return self._stopped(generation, spoken)
                    continue

                logger.error("Speech queue aborted on chunk %d/%d: %s", self._index + 1, total, exc)
                self._finish()
                return StageResult.failure(SpeechError(exc.error))

            if generation != self._generation:
                return self._stopped(generation, spoken)

            self._index += 1
            spoken += 1
            self._set_progress(progress_percent(self._index, total))

            if self._index < total:
                await self._sleep(CHUNK_GAP_SECONDS)
                if generation != self._generation:
                    return self._stopped(generation, spoken)

        self._finish()
        logger.info("Speech queue finished: %d/%d chunks spoken.", spoken, total)
        return StageResult.success(spoken, STATUS_COMPLETED)

    def stop(self) -> None:
        """Cancel the engine, reset progress, empty the queue. Safe when idle."""
        self._generation += 1
        self._engine.cancel()
        self._chunks = []
        self._index = 0
        self.state = QueueState.IDLE
        if self.progress != 0:
            self._set_progress(0)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _stopped(self, generation: int, spoken: int) -> StageResult[int]:
        # Only the run that is still current resets the queue; a superseded
        # run must not touch its successor's state.
        if generation == self._generation:
            self._finish()
        logger.info("Speech queue stopped after %d chunk(s).", spoken)
        return StageResult.success(spoken, STATUS_STOPPED)

    def _finish(self) -> None:
        self.state = QueueState.IDLE
        self._chunks = []
        self._index = 0

    def _set_progress(self, value: int) -> None:
        self.progress = value
        for listener in list(self._listeners):
            listener(value)
