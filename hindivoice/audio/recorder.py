"""
hindivoice/audio/recorder.py
=============================
Microphone Recorder — HindiVoice Capture

Responsibility:
    - Open the default (or configured) input device
    - Buffer captured PCM blocks in memory while recording
    - Encode the buffer as a mono 16-bit WAV on close
    - Release the device unconditionally, including on error paths

The PortAudio stream delivers blocks on its own thread; the callback only
appends to a list, so no lock is needed around the buffer.

This module does NOT:
    - Validate or upload audio
    - Track elapsed recording time (handled by capture.CaptureSource)
"""

import asyncio
import io
import logging
from typing import Optional

import numpy as np
from pydub import AudioSegment

from hindivoice.errors import PermissionDenied, RecordingDeviceError

logger = logging.getLogger("hindivoice.audio.recorder")

DEFAULT_SAMPLE_RATE = 16000
DEFAULT_CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, int16


class Microphone:
    """Base class for an input device that records into memory."""

    async def open(self) -> None:
        raise NotImplementedError

    async def close(self) -> bytes:
        """Stop capturing and return the recording as WAV bytes."""
        raise NotImplementedError

    def release(self) -> None:
        """Drop the device without producing a recording."""
        raise NotImplementedError


class SoundDeviceMicrophone(Microphone):
    """Records through PortAudio via the sounddevice package."""

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = DEFAULT_CHANNELS,
        device: Optional[str] = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self._stream = None
        self._blocks: list[np.ndarray] = []

    async def open(self) -> None:
        try:
            import sounddevice as sd
        except (ImportError, OSError) as exc:
            raise PermissionDenied(f"Audio input backend unavailable: {exc}") from exc

        self._blocks = []
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                callback=self._on_block,
            )
            await asyncio.to_thread(self._stream.start)
        except (sd.PortAudioError, ValueError) as exc:
            self.release()
            raise PermissionDenied(str(exc)) from exc

        logger.info(
            "Microphone opened: %d Hz | %d ch | device=%s",
            self.sample_rate, self.channels, self.device or "default",
        )

    def _on_block(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        self._blocks.append(indata.copy())

    async def close(self) -> bytes:
        if self._stream is None:
            raise RecordingDeviceError("Microphone is not open.")
        try:
            await asyncio.to_thread(self._stream.stop)
        finally:
            self.release()

        blocks, self._blocks = self._blocks, []
        if blocks:
            pcm = np.concatenate(blocks, axis=0)
        else:
            pcm = np.zeros((0, self.channels), dtype=np.int16)

        logger.info(
            "Recording captured: %.1fs (%d frames)",
            len(pcm) / float(self.sample_rate), len(pcm),
        )
        return encode_wav(pcm, self.sample_rate, self.channels)

    def release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except Exception as exc:
            logger.warning("Failed to close input stream cleanly: %s", exc)


def encode_wav(pcm: np.ndarray, sample_rate: int, channels: int = DEFAULT_CHANNELS) -> bytes:
    """Encode int16 PCM samples as WAV bytes."""
    samples = np.asarray(pcm, dtype=np.int16)
    segment = AudioSegment(
        data=samples.tobytes(),
        sample_width=SAMPLE_WIDTH,
        frame_rate=sample_rate,
        channels=channels,
    )
    buffer = io.BytesIO()
    segment.export(buffer, format="wav")
    return buffer.getvalue()
