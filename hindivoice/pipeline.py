"""
hindivoice/pipeline.py
=======================
Pipeline Coordinator — HindiVoice Integration Layer

Responsibility:
    1. Own the current SessionState snapshot and publish every new snapshot
       to subscribers (the UI shell)
    2. Gate each stage on its upstream artifact
    3. Apply stage results through the pure transitions in session.py
    4. Own the scoped resources that cross stages: the live asset's playable
       file, the in-flight transcription task, the speech queue

Stage execution order:
    Stage 1: Capture        → AudioAsset
    Stage 2: Transcription  → TranscriptionResult
    Stage 3: Translation    → TranslationResult
    Stage 4: Speech         → progress updates (no artifact)

Supersession rules:
    - A new asset cancels and discards any in-flight transcription and
      stops speech; the old asset's playable file is released.
    - A new transcription or translation stops speech.
    - A second transcribe() cancels the first.
    - The chunked speech queue and the companion speaker share one engine;
      starting either stops the other.

This layer MUST NOT:
    - Call remote services directly
    - Let a stage failure escape as an exception; every operation returns
      a StageResult and mirrors it into the session status
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from hindivoice.audio.asset import AudioAsset
from hindivoice.audio.capture import CaptureMode, CaptureSource
from hindivoice.audio.recorder import SoundDeviceMicrophone
from hindivoice.config import Settings
from hindivoice.errors import JobCancelled, MissingArtifact, NoTextToSpeak, PipelineError
from hindivoice.export import build_transcript, transcript_filename
from hindivoice.nlp.translator import TranslationResult, Translator
from hindivoice.result import StageResult
from hindivoice.retry import PollPolicy
from hindivoice.session import (
    SessionState,
    cleared_status,
    with_asset,
    with_error,
    with_info,
    with_transcription,
    with_translation,
)
from hindivoice.stt.assemblyai_client import AssemblyAIClient
from hindivoice.stt.job import JobState, TranscriptionJob, TranscriptionResult
from hindivoice.tts.engine import Pyttsx3Engine, Voice
from hindivoice.tts.speaker import HindiSpeaker, SpeakerStatus
from hindivoice.tts.speech_queue import DEFAULT_RATE, DEFAULT_VOLUME, QueueState, SpeechQueue

logger = logging.getLogger("hindivoice.pipeline")

STATUS_DOWNLOADED = "File downloaded successfully!"
STATUS_TRANSCRIPTION_CANCELLED = "Transcription cancelled."

Listener = Callable[[SessionState], None]


class VoicePipeline:
    def __init__(
        self,
        capture: CaptureSource,
        client_factory: Callable[[], AssemblyAIClient],
        translator: Translator,
        speech: SpeechQueue,
        poll_policy: Optional[PollPolicy] = None,
        speech_rate: float = DEFAULT_RATE,
        speech_volume: float = DEFAULT_VOLUME,
        speech_voice: Optional[str] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        speaker: Optional[HindiSpeaker] = None,
    ):
        self.capture = capture
        self.translator = translator
        self.speech = speech
        self.speaker = speaker or HindiSpeaker(speech.engine)
        self._client_factory = client_factory
        self._poll_policy = poll_policy or PollPolicy()
        self._sleep = sleep
        self.speech_rate = speech_rate
        self.speech_volume = speech_volume
        self.speech_voice = speech_voice
        self.job_state = JobState.IDLE

        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._transcription_task: Optional[asyncio.Task] = None
        self._superseded: set[asyncio.Task] = set()
        self._translation_generation = 0

    # ------------------------------------------------------------------
    # Session snapshot
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _error(self, message: str) -> None:
        self._commit(with_error(self._state, message))

    def _info(self, message: str) -> None:
        self._commit(with_info(self._state, message))

    def _report_failure(self, result: StageResult) -> StageResult:
        self._error(result.message)
        return result

    # ------------------------------------------------------------------
    # Stage 1: Capture
    # ------------------------------------------------------------------

    def switch_mode(self, mode: CaptureMode) -> StageResult[CaptureMode]:
        result = self.capture.switch_mode(mode)
        if not result.ok:
            return self._report_failure(result)
        return result

    def submit_file(self, filename: str, data: bytes) -> StageResult[AudioAsset]:
        result = self.capture.submit_file(filename, data)
        if not result.ok:
            return self._report_failure(result)
        self._replace_asset(result.value)
        return result

    async def start_recording(self) -> StageResult[None]:
        result = await self.capture.start_recording()
        if not result.ok:
            return self._report_failure(result)
        self._commit(cleared_status(self._state))
        return result

    async def stop_recording(self) -> StageResult[AudioAsset]:
        result = await self.capture.stop_recording()
        if not result.ok:
            return self._report_failure(result)
        self._replace_asset(result.value)
        self._info(result.message)
        return result

    def _replace_asset(self, asset: AudioAsset) -> None:
        self._cancel_transcription()
        self.speech.stop()
        previous = self._state.asset
        self._commit(with_asset(self._state, asset))
        if previous is not None and previous is not asset:
            previous.release()
        logger.info("Live audio asset: %s", asset.name)

    # ------------------------------------------------------------------
    # Stage 2: Transcription
    # ------------------------------------------------------------------

    async def transcribe(self) -> StageResult[TranscriptionResult]:
        asset = self._state.asset
        if asset is None:
            return self._report_failure(StageResult.failure(
                MissingArtifact("Please upload an audio file or record audio first")
            ))

        self._cancel_transcription()
        try:
            client = self._client_factory()
        except PipelineError as exc:
            return self._report_failure(StageResult.failure(exc))

        self._commit(cleared_status(self._state))
        job = TranscriptionJob(
            client,
            self._poll_policy,
            on_status=self._info,
            on_state=self._on_job_state,
            sleep=self._sleep,
        )
        task = asyncio.ensure_future(job.run(asset))
        self._transcription_task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if task not in self._superseded:
                raise
            self._superseded.discard(task)
            logger.info("Discarding superseded transcription of %s.", asset.name)
            return StageResult.failure(JobCancelled())
        finally:
            if self._transcription_task is task:
                self._transcription_task = None

        if self._state.asset is not asset:
            return StageResult.failure(JobCancelled())
        if not result.ok:
            return self._report_failure(result)

        self.speech.stop()
        self._commit(with_info(with_transcription(self._state, result.value), result.message))
        return result

    def cancel_transcription(self) -> bool:
        cancelled = self._cancel_transcription()
        if cancelled:
            self._info(STATUS_TRANSCRIPTION_CANCELLED)
        return cancelled

    def _cancel_transcription(self) -> bool:
        task, self._transcription_task = self._transcription_task, None
        if task is None or task.done():
            return False
        self._superseded.add(task)
        task.cancel()
        logger.info("In-flight transcription cancelled.")
        return True

    def _on_job_state(self, state: JobState) -> None:
        self.job_state = state

    # ------------------------------------------------------------------
    # Stage 3: Translation
    # ------------------------------------------------------------------

    async def translate(self) -> StageResult[TranslationResult]:
        transcription = self._state.transcription
        if transcription is None:
            return self._report_failure(StageResult.failure(
                MissingArtifact("No English text to translate.")
            ))

        self._translation_generation += 1
        generation = self._translation_generation
        self._commit(cleared_status(self._state))
        result = await self.translator.translate(transcription.source_text, on_status=self._info)

        if generation != self._translation_generation or self._state.transcription is not transcription:
            logger.info("Translation superseded — discarding result.")
            return result
        if not result.ok:
            return self._report_failure(result)

        self.speech.stop()
        self._commit(with_info(with_translation(self._state, result.value), result.message))
        return result

    # ------------------------------------------------------------------
    # Stage 4: Speech
    # ------------------------------------------------------------------

    def list_voices(self) -> list[Voice]:
        engine = self.speech.engine
        if not engine.is_available():
            return []
        return engine.list_voices()

    async def speak(
        self,
        voice_id: Optional[str] = None,
        rate: Optional[float] = None,
        volume: Optional[float] = None,
    ) -> StageResult[int]:
        translation = self._state.translation
        if translation is None:
            return self._report_failure(StageResult.failure(NoTextToSpeak()))

        self._commit(cleared_status(self._state))
        self.speaker_stop()
        result = await self.speech.speak(
            translation.target_text,
            voice_id=voice_id or self.speech_voice,
            rate=self.speech_rate if rate is None else rate,
            volume=self.speech_volume if volume is None else volume,
        )
        if not result.ok:
            return self._report_failure(result)
        if self._state.translation is translation and result.message:
            self._info(result.message)
        return result

    def stop_speaking(self) -> None:
        self.speech.stop()

    # ------------------------------------------------------------------
    # Companion speaker (free-form Hindi text, pause/resume)
    # ------------------------------------------------------------------

    def speaker_text(self, text: Optional[str] = None) -> str:
        """The text to speak: ``text`` when given, else the current translation."""
        if text is not None:
            return text
        translation = self._state.translation
        return translation.target_text if translation is not None else ""

    async def speaker_speak(
        self,
        text: Optional[str] = None,
        voice: Optional[str] = None,
        rate: Optional[float] = None,
        pitch: Optional[float] = None,
        volume: Optional[float] = None,
    ) -> StageResult[None]:
        if self.speaker.status != SpeakerStatus.READY:
            ready = self.speaker.initialize()
            if not ready.ok:
                return self._report_failure(ready)
        if voice:
            self.speaker.set_voice(voice)
        self.speaker.configure(rate=rate, pitch=pitch, volume=volume)

        # One voice at a time: the chunked queue yields to the speaker.
        if self.speech.state == QueueState.SPEAKING:
            self.speech.stop()
        result = await self.speaker.speak(self.speaker_text(text))
        if not result.ok:
            return self._report_failure(result)
        return result

    def speaker_pause(self) -> None:
        self.speaker.pause()

    async def speaker_resume(self) -> StageResult[None]:
        result = await self.speaker.resume()
        if not result.ok:
            return self._report_failure(result)
        return result

    def speaker_stop(self) -> None:
        if self.speaker.is_speaking or self.speaker.is_paused:
            self.speaker.stop()

    # ------------------------------------------------------------------
    # Download artifact
    # ------------------------------------------------------------------

    def export_transcript(self) -> StageResult[tuple[str, str]]:
        """Returns (file name, content) of the bilingual transcript."""
        state = self._state
        if state.transcription is None:
            return self._report_failure(StageResult.failure(
                MissingArtifact("Nothing to download yet: transcribe audio first.")
            ))
        content = build_transcript(
            state.transcription.source_file_name,
            state.transcription.source_text,
            state.translation.target_text if state.translation else None,
        )
        filename = transcript_filename(state.transcription.source_file_name)
        self._info(STATUS_DOWNLOADED)
        return StageResult.success((filename, content), STATUS_DOWNLOADED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release every scoped resource: job, speech, microphone, asset."""
        self._cancel_transcription()
        self.speech.stop()
        self.speaker_stop()
        await self.capture.close()
        if self._state.asset is not None:
            self._state.asset.release()
        self._state = SessionState()
        logger.info("Pipeline closed.")


def build_pipeline(settings: Settings) -> VoicePipeline:
    """Wire the production backends from settings."""

    def client_factory() -> AssemblyAIClient:
        return AssemblyAIClient(
            api_key=settings.require_api_key(),
            base_url=settings.assemblyai_api_url,
            timeout=settings.http_timeout_seconds,
        )

    capture = CaptureSource(
        microphone_factory=lambda: SoundDeviceMicrophone(sample_rate=settings.recording_sample_rate),
        max_file_size=settings.max_upload_bytes,
        media_dir=settings.media_dir,
    )
    translator = Translator(
        primary_url=settings.primary_translate_url,
        fallback_url=settings.fallback_translate_url,
        timeout=settings.http_timeout_seconds,
    )
    return VoicePipeline(
        capture=capture,
        client_factory=client_factory,
        translator=translator,
        speech=SpeechQueue(Pyttsx3Engine()),
        poll_policy=PollPolicy.from_settings(settings),
        speech_rate=settings.speech_rate,
        speech_volume=settings.speech_volume,
        speech_voice=settings.speech_voice,
    )
