"""
tests/test_speech_queue.py
===========================
Stage 4 Tests — Chunked speech queue

Test categories:
    1. Progress reporting (single chunk, multi chunk, rounding)
    2. Per-chunk error policy (swallow, skip-ahead, abort)
    3. stop() and supersession by a new speak()
    4. Voice selection and utterance settings
    5. Guards (empty text, unavailable engine)

All tests are offline — the engine is a FakeSpeechEngine and sleeps are
recorded instead of awaited.
"""

import asyncio
import os
import sys
import unittest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from hindivoice.errors import NoTextToSpeak, SpeechError, UnsupportedEnvironment
from hindivoice.tts.engine import Voice, is_hindi_voice, select_voice
from hindivoice.tts.speech_queue import (
    CHUNK_GAP_SECONDS,
    RECOVERY_DELAY_SECONDS,
    STATUS_COMPLETED,
    STATUS_STOPPED,
    QueueState,
    SpeechQueue,
    progress_percent,
)
from tests.fakes import ENGLISH_VOICE, HINDI_VOICE, FakeSpeechEngine, RecordingSleep

# Three 80-char sentences: no two fit in one 150-char chunk.
SENTENCE = "क" * 79 + "।"
THREE_CHUNKS = " ".join([SENTENCE] * 3)


class SpeechQueueTestCase(unittest.IsolatedAsyncioTestCase):

    def _queue(self, **engine_kwargs) -> SpeechQueue:
        self.engine = FakeSpeechEngine(**engine_kwargs)
        self.sleep = RecordingSleep()
        self.progress: list[int] = []
        queue = SpeechQueue(self.engine, sleep=self.sleep)
        queue.add_progress_listener(self.progress.append)
        return queue


# ===================================================================
# 1. PROGRESS
# ===================================================================


class TestProgress(SpeechQueueTestCase):

    async def test_single_chunk(self):
        queue = self._queue()
        result = await queue.speak("नमस्ते")

        self.assertTrue(result.ok)
        self.assertEqual(result.value, 1)
        self.assertEqual(result.message, STATUS_COMPLETED)
        self.assertEqual(self.progress, [100])
        self.assertEqual(queue.state, QueueState.IDLE)
        self.assertEqual(self.sleep.delays, [])

    async def test_multi_chunk(self):
        queue = self._queue()
        result = await queue.speak(THREE_CHUNKS)

        self.assertEqual(result.value, 3)
        self.assertEqual(self.progress, [33, 67, 100])
        self.assertEqual(self.sleep.delays, [CHUNK_GAP_SECONDS, CHUNK_GAP_SECONDS])
        self.assertEqual(self.engine.spoken_texts, [SENTENCE] * 3)

    async def test_remove_listener(self):
        queue = self._queue()
        seen: list[int] = []
        remove = queue.add_progress_listener(seen.append)
        remove()
        await queue.speak("नमस्ते")
        self.assertEqual(seen, [])


class TestProgressPercent(unittest.TestCase):

    def test_rounding(self):
        self.assertEqual(progress_percent(1, 3), 33)
        self.assertEqual(progress_percent(2, 3), 67)
        self.assertEqual(progress_percent(1, 8), 13)
        self.assertEqual(progress_percent(3, 3), 100)
        self.assertEqual(progress_percent(0, 0), 0)


# ===================================================================
# 2. ERROR POLICY
# ===================================================================


class TestErrorPolicy(SpeechQueueTestCase):

    async def test_transient_error_skips_chunk(self):
        queue = self._queue(errors={0: "network"})
        result = await queue.speak(THREE_CHUNKS)

        self.assertTrue(result.ok)
        self.assertEqual(result.value, 2)
        self.assertEqual(self.progress, [67, 100])
        # failed chunk is never re-spoken
        self.assertEqual(len(self.engine.utterances), 3)
        self.assertEqual(self.sleep.delays[0], RECOVERY_DELAY_SECONDS)

    async def test_transient_error_on_last_chunk(self):
        queue = self._queue(errors={2: "synthesis-failed"})
        result = await queue.speak(THREE_CHUNKS)

        self.assertIsInstance(result.error, SpeechError)
        self.assertEqual(
            result.message,
            "Speech error: synthesis-failed. Try using shorter text or refresh the page.",
        )
        self.assertEqual(queue.state, QueueState.IDLE)
        self.assertEqual(queue.pending_chunks, [])

    async def test_fatal_error_aborts(self):
        queue = self._queue(errors={0: "audio-busy"})
        result = await queue.speak(THREE_CHUNKS)

        self.assertEqual(result.error.reason, "audio-busy")
        self.assertEqual(len(self.engine.utterances), 1)

    async def test_interrupted_is_swallowed(self):
        queue = self._queue(errors={0: "interrupted"})
        result = await queue.speak("नमस्ते")

        self.assertTrue(result.ok)
        self.assertEqual(result.message, STATUS_STOPPED)
        self.assertEqual(self.progress, [])


# ===================================================================
# 3. STOP / SUPERSESSION
# ===================================================================


class TestStop(SpeechQueueTestCase):

    async def test_stop_mid_speech(self):
        queue = self._queue(block_on={1})
        task = asyncio.create_task(queue.speak(THREE_CHUNKS))
        await self.engine.blocked.wait()

        self.assertEqual(queue.state, QueueState.SPEAKING)
        self.assertEqual(queue.progress, 33)
        queue.stop()
        result = await task

        self.assertTrue(result.ok)
        self.assertEqual(result.message, STATUS_STOPPED)
        self.assertEqual(result.value, 1)
        self.assertEqual(queue.progress, 0)
        self.assertEqual(self.progress, [33, 0])
        self.assertEqual(queue.state, QueueState.IDLE)
        self.assertEqual(queue.pending_chunks, [])
        self.assertEqual(len(self.engine.utterances), 2)

    async def test_stop_when_idle_is_safe(self):
        queue = self._queue()
        queue.stop()
        queue.stop()
        self.assertEqual(queue.state, QueueState.IDLE)
        self.assertEqual(self.progress, [])

    async def test_new_speak_supersedes_running_one(self):
        queue = self._queue(block_on={0})
        first = asyncio.create_task(queue.speak(THREE_CHUNKS))
        await self.engine.blocked.wait()

        second = await queue.speak("नमस्ते")
        first_result = await first

        self.assertEqual(first_result.message, STATUS_STOPPED)
        self.assertEqual(second.message, STATUS_COMPLETED)
        self.assertEqual(self.progress, [100])
        self.assertEqual(queue.state, QueueState.IDLE)


# ===================================================================
# 4. VOICES AND SETTINGS
# ===================================================================


class TestVoices(SpeechQueueTestCase):

    async def test_defaults_to_hindi_voice(self):
        queue = self._queue(voices=[ENGLISH_VOICE, HINDI_VOICE])
        await queue.speak("नमस्ते")

        utterance = self.engine.utterances[0]
        self.assertEqual(utterance.voice, HINDI_VOICE)
        self.assertEqual(utterance.lang, "hi-IN")
        self.assertEqual(utterance.rate, 0.8)
        self.assertEqual(utterance.volume, 1.0)

    async def test_pinned_voice_and_settings(self):
        queue = self._queue()
        await queue.speak("नमस्ते", voice_id="en-voice", rate=1.2, volume=0.5)

        utterance = self.engine.utterances[0]
        self.assertEqual(utterance.voice, ENGLISH_VOICE)
        self.assertEqual((utterance.rate, utterance.volume), (1.2, 0.5))

    async def test_no_voices_uses_engine_default(self):
        queue = self._queue(voices=[])
        result = await queue.speak("नमस्ते")
        self.assertTrue(result.ok)
        self.assertIsNone(self.engine.utterances[0].voice)


class TestVoiceSelection(unittest.TestCase):

    def test_hindi_detection(self):
        self.assertTrue(is_hindi_voice(Voice("a", "x", "hi-IN")))
        self.assertTrue(is_hindi_voice(Voice("a", "x", "hi_IN")))
        self.assertTrue(is_hindi_voice(Voice("a", "Google हिन्दी Hindi")))
        self.assertFalse(is_hindi_voice(Voice("a", "Samantha", "en-US")))

    def test_unknown_pin_falls_back(self):
        self.assertEqual(select_voice([ENGLISH_VOICE, HINDI_VOICE], "missing"), HINDI_VOICE)
        self.assertEqual(select_voice([ENGLISH_VOICE], None), ENGLISH_VOICE)
        self.assertIsNone(select_voice([], None))


# ===================================================================
# 5. GUARDS
# ===================================================================


class TestGuards(SpeechQueueTestCase):

    async def test_empty_text(self):
        queue = self._queue()
        result = await queue.speak("   ")
        self.assertIsInstance(result.error, NoTextToSpeak)
        self.assertEqual(result.message, "No Hindi text to speak")

    async def test_engine_unavailable(self):
        queue = self._queue(available=False)
        result = await queue.speak("नमस्ते")
        self.assertIsInstance(result.error, UnsupportedEnvironment)
        self.assertEqual(self.engine.utterances, [])


if __name__ == "__main__":
    unittest.main()
