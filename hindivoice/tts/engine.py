"""
hindivoice/tts/engine.py
=========================
Speech Synthesis Engine — HindiVoice Stage 4 backend

Responsibility:
    - Describe voices and utterances independently of the synthesis backend
    - Report per-utterance failures as SpeechSynthesisError carrying a
      Web-Speech style error code ("interrupted", "canceled", "network",
      "synthesis-failed", "audio-busy", "audio-hardware", ...)
    - Provide the default backend on top of pyttsx3 (SAPI5 / NSSpeech /
      eSpeak), whose blocking run loop is driven from a worker thread
    - Pick a Hindi voice when the caller did not pin one

This module does NOT:
    - Split text or sequence chunks (handled by tts.speech_queue)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from hindivoice.errors import UnsupportedEnvironment

logger = logging.getLogger("hindivoice.tts.engine")

HINDI_LANG = "hi-IN"
BASE_RATE_WPM = 200  # pyttsx3 words per minute at rate 1.0

_HINDI_NAME_HINTS = ("hindi", "devanagari")


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    lang: str = ""


@dataclass(frozen=True)
class Utterance:
    text: str
    voice: Optional[Voice] = None
    lang: str = HINDI_LANG
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


class SpeechSynthesisError(Exception):
    """An utterance ended with an error instead of completing."""

    def __init__(self, error: str, detail: str = ""):
        self.error = error
        self.detail = detail
        super().__init__(f"{error}: {detail}" if detail else error)


class SpeechEngine:
    """Base class for a synthesis backend."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def list_voices(self) -> list[Voice]:
        raise NotImplementedError

    async def speak(self, utterance: Utterance) -> None:
        """Return when the utterance ends; raise SpeechSynthesisError otherwise."""
        raise NotImplementedError

    def cancel(self) -> None:
        """Interrupt the current utterance. Safe when idle."""
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Voice selection
# ---------------------------------------------------------------------------


def is_hindi_voice(voice: Voice) -> bool:
    lang = voice.lang.lower().replace("_", "-")
    if lang == "hi" or lang.startswith("hi-"):
        return True
    name = voice.name.lower()
    return any(hint in name for hint in _HINDI_NAME_HINTS)


def select_voice(voices: list[Voice], voice_id: Optional[str] = None) -> Optional[Voice]:
    """
    Resolve the voice for an utterance.

    A pinned ``voice_id`` (matched against id, then name) wins. Otherwise
    the first Hindi voice by locale tag or name, then the first voice.
    """
    if not voices:
        return None
    if voice_id:
        for voice in voices:
            if voice.id == voice_id or voice.name == voice_id:
                return voice
        logger.warning("Pinned voice %r not available — falling back.", voice_id)
    for voice in voices:
        if is_hindi_voice(voice):
            return voice
    return voices[0]


# ---------------------------------------------------------------------------
# pyttsx3 backend
# ---------------------------------------------------------------------------


class Pyttsx3Engine(SpeechEngine):
    """
    pyttsx3 refuses to re-enter its run loop, and stop() only asks the loop
    to end. Utterances therefore run one at a time under ``_loop_lock``: a
    speak() issued right after cancel() waits for the previous loop to tear
    down before it says anything.
    """

    def __init__(self, driver_name: Optional[str] = None):
        self._driver_name = driver_name
        self._engine = None
        self._loop_lock = asyncio.Lock()
        self._cancel_epoch = 0

    def _ensure_engine(self):
        if self._engine is not None:
            return self._engine
        try:
            import pyttsx3
            self._engine = pyttsx3.init(self._driver_name)
        except (ImportError, RuntimeError, OSError) as exc:
            raise UnsupportedEnvironment(
                f"Text-to-speech not supported on this host: {exc}"
            ) from exc
        return self._engine

    def is_available(self) -> bool:
        try:
            self._ensure_engine()
        except UnsupportedEnvironment as exc:
            logger.warning("%s", exc.message)
            return False
        return True

    def list_voices(self) -> list[Voice]:
        engine = self._ensure_engine()
        voices = []
        for raw in engine.getProperty("voices") or []:
            voices.append(
                Voice(
                    id=raw.id,
                    name=getattr(raw, "name", "") or raw.id,
                    lang=_voice_language(raw),
                )
            )
        return voices

    async def speak(self, utterance: Utterance) -> None:
        engine = self._ensure_engine()
        epoch = self._cancel_epoch
        async with self._loop_lock:
            # Cancelled while waiting for the previous loop to finish.
            if epoch != self._cancel_epoch:
                raise SpeechSynthesisError("interrupted")
            await asyncio.to_thread(self._speak_blocking, engine, utterance, epoch)

    def _speak_blocking(self, engine, utterance: Utterance, epoch: int) -> None:
        if utterance.voice is not None:
            engine.setProperty("voice", utterance.voice.id)
        engine.setProperty("rate", int(BASE_RATE_WPM * utterance.rate))
        engine.setProperty("volume", utterance.volume)

        finished: list[bool] = []
        token = engine.connect(
            "finished-utterance", lambda name, completed: finished.append(completed)
        )
        try:
            engine.say(utterance.text)
            engine.runAndWait()
        except RuntimeError as exc:
            raise SpeechSynthesisError("synthesis-failed", str(exc)) from exc
        except OSError as exc:
            raise SpeechSynthesisError("audio-hardware", str(exc)) from exc
        finally:
            engine.disconnect(token)

        if epoch != self._cancel_epoch or (finished and not finished[-1]):
            raise SpeechSynthesisError("interrupted")

    def cancel(self) -> None:
        self._cancel_epoch += 1
        if self._engine is not None:
            self._engine.stop()


def _voice_language(raw) -> str:
    """pyttsx3 reports languages as a list of str or length-prefixed bytes."""
    for lang in getattr(raw, "languages", None) or []:
        if isinstance(lang, bytes):
            lang = lang.lstrip(b"\x00\x01\x02\x03\x04\x05").decode("ascii", "ignore")
        if lang:
            return str(lang)
    return ""
