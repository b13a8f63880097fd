"""
hindivoice/nlp/translator.py
=============================
Translator — HindiVoice Stage 3 (English → Hindi)

Responsibility:
    - Translate the English transcript to Hindi via the primary service
      (Google "gtx" endpoint, nested-array response)
    - On ANY primary failure, retry exactly once against the fallback
      service (LibreTranslate-compatible, ``{translatedText}`` response)
    - Trim the result and return the same TranslationResult shape whichever
      service answered; only the status message tells them apart

No retries beyond the single fallback attempt, no backoff. A failure here
never touches the transcript, so translation can be re-run on its own.

This module does NOT:
    - Perform STT or audio processing
    - Split text for speech (handled by tts.chunker)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional

import aiohttp

from hindivoice.config import (
    FALLBACK_TRANSLATE_URL,
    PRIMARY_TRANSLATE_URL,
    SOURCE_LANGUAGE,
    TARGET_LANGUAGE,
)
from hindivoice.errors import (
    EmptyTranslation,
    MissingArtifact,
    PipelineError,
    TranslationServiceError,
    TranslationUnavailable,
)
from hindivoice.result import StageResult

logger = logging.getLogger("hindivoice.nlp.translator")

STATUS_FALLBACK = "Trying alternative translation service..."
STATUS_PRIMARY_OK = "Translation completed successfully!"
STATUS_FALLBACK_OK = "Translation completed via alternative service!"

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class TranslationResult:
    target_text: str


class Translator:
    def __init__(
        self,
        primary_url: str = PRIMARY_TRANSLATE_URL,
        fallback_url: str = FALLBACK_TRANSLATE_URL,
        source: str = SOURCE_LANGUAGE,
        target: str = TARGET_LANGUAGE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.primary_url = primary_url
        self.fallback_url = fallback_url
        self.source = source
        self.target = target
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def translate(
        self,
        source_text: str,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> StageResult[TranslationResult]:
        """
        Translate ``source_text`` from English to Hindi.

        Returns:
            StageResult with a TranslationResult on success. On failure the
            error is TranslationUnavailable carrying the PRIMARY service's
            failure message.
        """
        if not source_text or not source_text.strip():
            return StageResult.failure(MissingArtifact("No English text to translate."))

        try:
            translated = await self._translate_primary(source_text)
            logger.info("Primary translation succeeded: %d chars.", len(translated))
            return StageResult.success(TranslationResult(translated), STATUS_PRIMARY_OK)
        except PipelineError as primary_exc:
            primary_error = primary_exc

        logger.warning(
            "Primary translation failed: %s — trying fallback service.",
            primary_error.message,
        )
        if on_status is not None:
            on_status(STATUS_FALLBACK)

        try:
            translated = await self._translate_fallback(source_text)
        except PipelineError as fallback_exc:
            logger.error(
                "Fallback translation failed: %s (primary: %s)",
                fallback_exc.message, primary_error.message,
            )
            return StageResult.failure(TranslationUnavailable(primary_error.message))

        logger.info("Fallback translation succeeded: %d chars.", len(translated))
        return StageResult.success(TranslationResult(translated), STATUS_FALLBACK_OK)

    # ------------------------------------------------------------------
    # Translation backends
    # ------------------------------------------------------------------

    async def _translate_primary(self, text: str) -> str:
        params = {
            "client": "gtx",
            "sl": self.source,
            "tl": self.target,
            "dt": "t",
            "q": text,
        }
        data = await self._request_json("GET", self.primary_url, params=params)
        translated = parse_nested_response(data).strip()
        if not translated:
            raise EmptyTranslation()
        return translated

    async def _translate_fallback(self, text: str) -> str:
        payload = {
            "q": text,
            "source": self.source,
            "target": self.target,
            "format": "text",
        }
        data = await self._request_json("POST", self.fallback_url, json=payload)
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not translated or not str(translated).strip():
            raise EmptyTranslation()
        return str(translated).strip()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            yield session

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        try:
            async with self._client() as session:
                async with session.request(method, url, **kwargs) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        raise TranslationServiceError("Translation service unavailable")
                    return await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise TranslationServiceError(f"Translation service unreachable: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise TranslationServiceError("Translation service timed out") from exc
        except ValueError as exc:
            raise TranslationServiceError(f"Invalid translation response: {exc}") from exc


# ---------------------------------------------------------------------------
# Response parser
# ---------------------------------------------------------------------------


def parse_nested_response(data: Any) -> str:
    """
    Concatenate the leaf translation fragments of a gtx response:

        [[["नमस्ते ", "Hello ", ...], ["दुनिया", "world", ...]], null, "en", ...]

    Returns "" when the shape is not recognised.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], list):
        return ""

    fragments: list[str] = []
    for item in data[0]:
        if isinstance(item, list) and item and isinstance(item[0], str) and item[0]:
            fragments.append(item[0])
    return "".join(fragments)
