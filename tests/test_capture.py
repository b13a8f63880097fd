"""
tests/test_capture.py
======================
Stage 1 Tests — Capture Source

Test categories:
    1. Upload validation (extension allow-list, size limit, empty files)
    2. AudioAsset playable copy lifecycle
    3. Recording lifecycle with an injected microphone
    4. Input mode exclusivity
    5. WAV encoding of captured PCM

All tests are offline — no audio device is opened.
"""

import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from hindivoice.audio.asset import AudioAsset
from hindivoice.audio.capture import CaptureMode, CaptureSource, format_elapsed
from hindivoice.audio.recorder import encode_wav
from hindivoice.audio.validator import (
    MAX_FILE_SIZE,
    extract_extension,
    mime_type_for,
    validate_upload,
)
from hindivoice.errors import (
    EmptyAudioFile,
    FileTooLarge,
    NotRecording,
    PermissionDenied,
    RecordingInProgress,
    UnsupportedFormat,
    WrongInputMode,
)
from tests.fakes import WAV_BYTES, FakeMicrophone

MB = 1024 * 1024


# ===================================================================
# 1. UPLOAD VALIDATION
# ===================================================================


class TestUploadValidation(unittest.TestCase):

    def test_accepts_allowed_extensions(self):
        for name in ("demo.mp3", "demo.wav", "demo.m4a", "demo.aac"):
            self.assertEqual(validate_upload(name, 1024), extract_extension(name))

    def test_extension_is_case_insensitive(self):
        self.assertEqual(validate_upload("LOUD.MP3", 1024), ".mp3")

    def test_rejects_ogg(self):
        with self.assertRaises(UnsupportedFormat) as ctx:
            validate_upload("voice.ogg", 1024)
        self.assertEqual(
            ctx.exception.message,
            "Unsupported file format. Please use .mp3, .wav, .m4a, .aac",
        )

    def test_rejects_missing_extension(self):
        with self.assertRaises(UnsupportedFormat):
            validate_upload("recording", 1024)

    def test_rejects_oversize(self):
        with self.assertRaises(FileTooLarge) as ctx:
            validate_upload("long.mp3", 60 * MB)
        self.assertEqual(ctx.exception.message, "File size exceeds 50MB limit")

    def test_limit_is_inclusive(self):
        self.assertEqual(validate_upload("edge.wav", MAX_FILE_SIZE), ".wav")

    def test_extension_checked_before_size(self):
        with self.assertRaises(UnsupportedFormat):
            validate_upload("long.ogg", 60 * MB)

    def test_rejects_empty_file(self):
        with self.assertRaises(EmptyAudioFile):
            validate_upload("empty.wav", 0)

    def test_mime_types(self):
        self.assertEqual(mime_type_for(".mp3"), "audio/mpeg")
        self.assertEqual(mime_type_for(".wav"), "audio/wav")
        self.assertEqual(mime_type_for(".xyz"), "application/octet-stream")


# ===================================================================
# 2. ASSET LIFECYCLE
# ===================================================================


class TestAudioAsset(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.media_dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_playable_copy_written_and_released(self):
        asset = AudioAsset.create("demo.mp3", b"abc", "audio/mpeg", ".mp3", media_dir=self.media_dir)
        self.assertTrue(asset.playable_path.exists())
        self.assertTrue(asset.playable_url.startswith("file://"))
        self.assertEqual(asset.playable_path.read_bytes(), b"abc")

        asset.release()
        self.assertFalse(asset.playable_path.exists())
        self.assertEqual(asset.playable_url, "")

        # idempotent
        asset.release()

    def test_submit_file_builds_asset(self):
        source = CaptureSource(microphone_factory=FakeMicrophone, media_dir=self.media_dir)
        data = b"\x00" * (3 * MB)
        result = source.submit_file("demo.mp3", data)

        self.assertTrue(result.ok)
        asset = result.value
        self.assertEqual(asset.name, "demo.mp3")
        self.assertEqual(asset.size, 3 * MB)
        self.assertEqual(asset.mime_type, "audio/mpeg")
        self.assertEqual(Path(asset.playable_path).parent, Path(self.media_dir))

    def test_submit_file_rejection_is_a_failure_result(self):
        source = CaptureSource(microphone_factory=FakeMicrophone, media_dir=self.media_dir)
        result = source.submit_file("long.mp3", b"\x00" * (60 * MB))

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, FileTooLarge)
        self.assertEqual(result.message, "File size exceeds 50MB limit")
        self.assertEqual(os.listdir(self.media_dir), [])


# ===================================================================
# 3. RECORDING LIFECYCLE
# ===================================================================


class TestRecording(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.microphones = []

    def tearDown(self):
        self._tmp.cleanup()

    def _factory(self, **kwargs):
        def make():
            mic = FakeMicrophone(**kwargs)
            self.microphones.append(mic)
            return mic
        return make

    def _source(self, mode: CaptureMode = CaptureMode.RECORD, **kwargs) -> CaptureSource:
        source = CaptureSource(microphone_factory=self._factory(**kwargs), media_dir=self._tmp.name)
        source.switch_mode(mode)
        return source

    async def test_start_then_stop_produces_wav_asset(self):
        source = self._source()
        started = await source.start_recording()
        self.assertTrue(started.ok)
        self.assertTrue(source.is_recording)
        self.assertEqual(source.mode, CaptureMode.RECORD)
        self.assertEqual(source.elapsed_seconds, 0)

        stopped = await source.stop_recording()
        self.assertTrue(stopped.ok)
        self.assertEqual(stopped.message, "Recording completed!")
        asset = stopped.value
        self.assertTrue(asset.name.startswith("recording-"))
        self.assertTrue(asset.name.endswith(".wav"))
        self.assertEqual(asset.mime_type, "audio/wav")
        self.assertEqual(asset.data, WAV_BYTES)
        self.assertFalse(source.is_recording)
        self.assertEqual(self.microphones[0].released, 1)
        asset.release()

    async def test_stop_awaits_the_elapsed_timer(self):
        source = self._source()
        await source.start_recording()
        timer = source._timer

        await source.stop_recording()
        self.assertTrue(timer.done())
        self.assertIsNone(source._timer)

    async def test_close_awaits_the_elapsed_timer(self):
        source = self._source()
        await source.start_recording()
        timer = source._timer

        await source.close()
        self.assertTrue(timer.done())
        self.assertFalse(source.is_recording)
        self.assertEqual(self.microphones[0].released, 1)

    async def test_permission_denied(self):
        source = self._source(deny=True)
        result = await source.start_recording()

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, PermissionDenied)
        self.assertEqual(result.message, "Failed to access microphone. Please check permissions.")
        self.assertFalse(source.is_recording)
        self.assertEqual(self.microphones[0].released, 1)

    async def test_stop_without_recording(self):
        result = await self._source().stop_recording()
        self.assertIsInstance(result.error, NotRecording)

    async def test_restart_releases_previous_stream(self):
        source = self._source()
        await source.start_recording()
        await source.start_recording()

        self.assertEqual(len(self.microphones), 2)
        self.assertEqual(self.microphones[0].released, 1)
        self.assertEqual(self.microphones[1].released, 0)
        await source.close()
        self.assertEqual(self.microphones[1].released, 1)

    # ---------------------------------------------------------------
    # Input mode exclusivity
    # ---------------------------------------------------------------

    async def test_mode_switch_blocked_while_recording(self):
        source = self._source()
        await source.start_recording()

        result = source.switch_mode(CaptureMode.UPLOAD)
        self.assertIsInstance(result.error, RecordingInProgress)
        self.assertEqual(source.mode, CaptureMode.RECORD)
        await source.close()

        self.assertTrue(source.switch_mode("upload").ok)
        self.assertEqual(source.mode, CaptureMode.UPLOAD)

    async def test_upload_blocked_while_recording(self):
        source = self._source()
        await source.start_recording()

        result = source.submit_file("demo.mp3", b"x" * 100)
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, RecordingInProgress)
        self.assertEqual(source.mode, CaptureMode.RECORD)
        self.assertTrue(source.is_recording)
        self.assertEqual(os.listdir(self._tmp.name), [])
        await source.close()

    async def test_upload_requires_upload_mode(self):
        source = self._source()

        result = source.submit_file("demo.mp3", b"x" * 100)
        self.assertIsInstance(result.error, WrongInputMode)
        self.assertEqual(result.message, "Switch to upload mode first.")

    async def test_recording_requires_record_mode(self):
        source = self._source(mode=CaptureMode.UPLOAD)

        result = await source.start_recording()
        self.assertIsInstance(result.error, WrongInputMode)
        self.assertEqual(result.message, "Switch to record mode first.")
        self.assertEqual(source.mode, CaptureMode.UPLOAD)
        self.assertFalse(source.is_recording)
        self.assertEqual(self.microphones, [])


# ===================================================================
# 4. HELPERS
# ===================================================================


class TestHelpers(unittest.TestCase):

    def test_format_elapsed(self):
        self.assertEqual(format_elapsed(0), "0:00")
        self.assertEqual(format_elapsed(9), "0:09")
        self.assertEqual(format_elapsed(65), "1:05")
        self.assertEqual(format_elapsed(600), "10:00")

    def test_encode_wav(self):
        pcm = np.zeros((1600, 1), dtype=np.int16)
        wav = encode_wav(pcm, 16000, 1)
        self.assertTrue(wav.startswith(b"RIFF"))
        self.assertIn(b"WAVE", wav[:16])
        # 44-byte header + 2 bytes per sample
        self.assertEqual(len(wav), 44 + 1600 * 2)


if __name__ == "__main__":
    unittest.main()
