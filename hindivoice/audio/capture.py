"""
hindivoice/audio/capture.py
============================
Capture Source — HindiVoice Stage 1

Responsibility:
    - Produce a validated AudioAsset from a file upload or a live recording
    - Keep the two input modes mutually exclusive ("upload" | "record"):
      uploads are accepted only in upload mode with no recording running,
      recordings start only in record mode
    - Count elapsed recording time at 1 Hz
    - Release the microphone on stop, restart, failure, and close

Failures are reported through StageResult, never raised. A rejected upload
leaves the session's current asset untouched: this module only builds new
assets, the pipeline decides when to swap and release the old one.

This module does NOT:
    - Upload audio to the transcription engine
    - Own or release the live asset (handled by pipeline.VoicePipeline)
"""

import asyncio
import enum
import logging
import time
from typing import Callable, Optional

from hindivoice.audio.asset import AudioAsset
from hindivoice.audio.recorder import Microphone, SoundDeviceMicrophone
from hindivoice.audio.validator import MAX_FILE_SIZE, mime_type_for, validate_upload
from hindivoice.errors import (
    NotRecording,
    PermissionDenied,
    PipelineError,
    RecordingDeviceError,
    RecordingInProgress,
    WrongInputMode,
)
from hindivoice.result import StageResult

logger = logging.getLogger("hindivoice.audio.capture")

RECORDING_MIME_TYPE = "audio/wav"


class CaptureMode(str, enum.Enum):
    UPLOAD = "upload"
    RECORD = "record"


def format_elapsed(seconds: int) -> str:
    """Format a recording duration as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


class CaptureSource:
    def __init__(
        self,
        microphone_factory: Optional[Callable[[], Microphone]] = None,
        max_file_size: int = MAX_FILE_SIZE,
        media_dir: Optional[str] = None,
    ):
        self._microphone_factory = microphone_factory or SoundDeviceMicrophone
        self.max_file_size = max_file_size
        self.media_dir = media_dir
        self.mode = CaptureMode.UPLOAD
        self.elapsed_seconds = 0
        self._microphone: Optional[Microphone] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def is_recording(self) -> bool:
        return self._microphone is not None

    # ------------------------------------------------------------------
    # Input mode
    # ------------------------------------------------------------------

    def switch_mode(self, mode: CaptureMode) -> StageResult[CaptureMode]:
        """Switching never cancels a recording; it must be stopped first."""
        mode = CaptureMode(mode)
        if self.is_recording and mode != self.mode:
            return StageResult.failure(RecordingInProgress())
        self.mode = mode
        return StageResult.success(mode)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def submit_file(self, filename: str, data: bytes) -> StageResult[AudioAsset]:
        """
        Validate an uploaded file and wrap it in a new AudioAsset.

        Extension is checked against the allow-list before size, so an
        oversize file with a bad extension reports UnsupportedFormat.
        """
        if self.is_recording:
            return StageResult.failure(RecordingInProgress())
        if self.mode != CaptureMode.UPLOAD:
            return StageResult.failure(WrongInputMode(CaptureMode.UPLOAD.value))

        try:
            ext = validate_upload(filename, len(data), self.max_file_size)
        except PipelineError as exc:
            logger.warning("Upload rejected: %s (%s)", filename, exc.message)
            return StageResult.failure(exc)

        asset = AudioAsset.create(
            name=filename,
            data=data,
            mime_type=mime_type_for(ext),
            extension=ext,
            media_dir=self.media_dir,
        )
        logger.info("Audio file accepted: %s (%.2f KB)", filename, asset.size / 1024)
        return StageResult.success(asset)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def start_recording(self) -> StageResult[None]:
        if self.mode != CaptureMode.RECORD:
            return StageResult.failure(WrongInputMode(CaptureMode.RECORD.value))

        # Restarting drops the previous stream without producing an asset.
        await self._release_device()

        microphone = self._microphone_factory()
        try:
            await microphone.open()
        except PermissionDenied as exc:
            microphone.release()
            logger.error("Microphone access refused: %s", exc.reason)
            return StageResult.failure(exc)

        self._microphone = microphone
        self.elapsed_seconds = 0
        self._timer = asyncio.create_task(self._count_seconds())
        logger.info("Recording started.")
        return StageResult.success()

    async def stop_recording(self) -> StageResult[AudioAsset]:
        microphone = self._microphone
        if microphone is None:
            return StageResult.failure(NotRecording())

        await self._stop_timer()
        self._microphone = None
        try:
            data = await microphone.close()
        except RecordingDeviceError as exc:
            logger.error("Recording failed: %s", exc.message)
            return StageResult.failure(exc)
        finally:
            microphone.release()

        name = f"recording-{int(time.time() * 1000)}.wav"
        asset = AudioAsset.create(
            name=name,
            data=data,
            mime_type=RECORDING_MIME_TYPE,
            extension=".wav",
            media_dir=self.media_dir,
        )
        logger.info("Recording stopped after %s: %s", format_elapsed(self.elapsed_seconds), name)
        return StageResult.success(asset, "Recording completed!")

    async def _count_seconds(self) -> None:
        while True:
            await asyncio.sleep(1)
            self.elapsed_seconds += 1

    async def _stop_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def _release_device(self) -> None:
        await self._stop_timer()
        microphone, self._microphone = self._microphone, None
        if microphone is not None:
            logger.info("Releasing previous recording stream.")
            microphone.release()

    async def close(self) -> None:
        await self._release_device()
