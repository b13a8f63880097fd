"""
hindivoice/stt/job.py
======================
Transcription Job — HindiVoice Stage 2

Responsibility:
    Drive one remote transcription through its state machine:

        IDLE → UPLOADING → SUBMITTED → POLLING → COMPLETED
                                   (any step) → FAILED → IDLE

    1. Upload the asset and obtain a remote handle
    2. Submit a diarized transcription job
    3. Poll the job on the PollPolicy schedule until it is terminal,
       the attempt budget is spent, or the overall deadline passes
    4. Return a TranscriptionResult, or a StageResult failure

Observable side effects: a status line after each step and a state change
notification for every transition. No partial result is ever produced.

Cancellation (asyncio.CancelledError) resets the job to IDLE and is
re-raised so the owner decides whether it was a supersession.

This module does NOT:
    - Validate audio (handled by audio.capture)
    - Translate text (handled by nlp.translator)
    - Hold session state (handled by pipeline.VoicePipeline)
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from hindivoice.audio.asset import AudioAsset
from hindivoice.errors import EmptyTranscript, JobTimeoutError, PipelineError, TranscriptionError
from hindivoice.result import StageResult
from hindivoice.retry import PollPolicy
from hindivoice.stt.assemblyai_client import AssemblyAIClient

logger = logging.getLogger("hindivoice.stt.job")

STATUS_UPLOADING = "Uploading audio file..."
STATUS_SUBMITTING = "Starting transcription..."
STATUS_PROCESSING = "Processing audio... This may take a few minutes."
STATUS_COMPLETED = "Transcription completed successfully!"

# Remote statuses
_COMPLETED = "completed"
_ERROR = "error"

# Metadata carried over from the completed payload
_METADATA_KEYS = ("id", "audio_duration", "confidence", "language_code", "utterances")


class JobState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TranscriptionResult:
    source_text: str
    source_file_name: str
    metadata: dict[str, Any] = field(default_factory=dict)


class TranscriptionJob:
    def __init__(
        self,
        client: AssemblyAIClient,
        policy: Optional[PollPolicy] = None,
        on_status: Optional[Callable[[str], None]] = None,
        on_state: Optional[Callable[["JobState"], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self.policy = policy or PollPolicy()
        self._on_status = on_status
        self._on_state = on_state
        self._sleep = sleep
        self.state = JobState.IDLE
        self.transcript_id: Optional[str] = None
        self.attempts = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, asset: AudioAsset) -> StageResult[TranscriptionResult]:
        self.transcript_id = None
        self.attempts = 0
        try:
            self._transition(JobState.UPLOADING)
            self._status(STATUS_UPLOADING)
            audio_url = await self._client.upload(asset)

            self._status(STATUS_SUBMITTING)
            self.transcript_id = await self._client.submit(audio_url)
            self._transition(JobState.SUBMITTED)

            self._transition(JobState.POLLING)
            self._status(STATUS_PROCESSING)
            payload = await self.poll(self.transcript_id)

            text = (payload.get("text") or "").strip()
            if not text:
                raise EmptyTranscript()
        except PipelineError as exc:
            logger.error("Transcription of %s failed: %s", asset.name, exc.message)
            self._transition(JobState.FAILED)
            self._transition(JobState.IDLE)
            return StageResult.failure(exc)
        except asyncio.CancelledError:
            logger.info("Transcription of %s cancelled.", asset.name)
            self._transition(JobState.IDLE)
            raise

        result = TranscriptionResult(
            source_text=text,
            source_file_name=asset.name,
            metadata={k: payload[k] for k in _METADATA_KEYS if k in payload},
        )
        self._transition(JobState.COMPLETED)
        logger.info(
            "Transcription complete: %s → %d chars after %d status checks.",
            asset.name, len(text), self.attempts,
        )
        return StageResult.success(result, STATUS_COMPLETED)

    async def poll(self, transcript_id: str) -> dict[str, Any]:
        """
        Check job status until it is terminal.

        Returns:
            The completed payload (text + metadata).

        Raises:
            TranscriptionError: The engine reported ``status: error``.
            PollError:          A status request failed.
            JobTimeoutError:    Attempts or overall deadline exhausted.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.policy.timeout

        for delay in self.policy.delays():
            self.attempts += 1
            payload = await self._client.fetch_status(transcript_id)
            status = payload.get("status")
            logger.debug("Job %s status check #%d: %s", transcript_id, self.attempts, status)

            if status == _COMPLETED:
                return payload
            if status == _ERROR:
                raise TranscriptionError(payload.get("error") or "unknown error")

            remaining = deadline - loop.time()
            if remaining <= 0 or self.attempts >= self.policy.max_attempts:
                break
            await self._sleep(min(delay, remaining))

        raise JobTimeoutError(self.attempts, loop.time() - started)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, state: JobState) -> None:
        self.state = state
        logger.info("Transcription job → %s", state.value)
        if self._on_state is not None:
            self._on_state(state)

    def _status(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)
