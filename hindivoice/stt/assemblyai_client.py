"""
hindivoice/stt/assemblyai_client.py
====================================
AssemblyAI Client — HindiVoice Stage 2 transport

Responsibility:
    - Upload audio bytes            POST /upload           → upload_url
    - Request a transcription job   POST /transcript       → id
    - Read job status               GET  /transcript/{id}  → status payload

Each call is a single HTTP request. Non-2xx responses raise the matching
TransportError subclass carrying the status code and response body;
network failures raise the same class with status 0.

This module does NOT:
    - Loop or wait between status checks (handled by stt.job)
    - Interpret job statuses
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import aiohttp

from hindivoice.audio.asset import AudioAsset
from hindivoice.config import ASSEMBLYAI_API_URL
from hindivoice.errors import PollError, SubmitError, UploadError

logger = logging.getLogger("hindivoice.stt.assemblyai_client")

DEFAULT_TIMEOUT_SECONDS = 60.0


class AssemblyAIClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = ASSEMBLYAI_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            yield session

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upload(self, asset: AudioAsset) -> str:
        """
        Send the asset's bytes to the engine.

        Returns:
            The opaque remote audio handle (``upload_url``).

        Raises:
            UploadError: On non-2xx status, network failure, or a response
                without ``upload_url``.
        """
        form = aiohttp.FormData()
        form.add_field(
            "audio", asset.data, filename=asset.name, content_type=asset.mime_type,
        )
        logger.info("Uploading %s (%d bytes)...", asset.name, asset.size)

        body = await self._request(
            "POST", "/upload", UploadError,
            data=form, headers={"authorization": self._api_key},
        )
        upload_url = body.get("upload_url")
        if not upload_url:
            raise UploadError(200, "Response did not include upload_url")
        return upload_url

    async def submit(self, audio_url: str) -> str:
        """
        Request a diarized transcription of an uploaded file.

        Raises:
            SubmitError: On non-2xx status, network failure, or missing id.
        """
        body = await self._request(
            "POST", "/transcript", SubmitError,
            json={"audio_url": audio_url, "speaker_labels": True},
            headers={"authorization": self._api_key, "content-type": "application/json"},
        )
        transcript_id = body.get("id")
        if not transcript_id:
            raise SubmitError(200, "Response did not include a transcript id")
        logger.info("Transcription job submitted: %s", transcript_id)
        return transcript_id

    async def fetch_status(self, transcript_id: str) -> dict[str, Any]:
        """
        Read the current job payload: ``{status, text?, error?, ...}``.

        Raises:
            PollError: On non-2xx status or network failure.
        """
        return await self._request(
            "GET", f"/transcript/{transcript_id}", PollError,
            headers={"authorization": self._api_key},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, error_cls, **kwargs) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            async with self._client() as session:
                async with session.request(method, url, **kwargs) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        text = await resp.text()
                        logger.warning("%s %s → HTTP %d", method, path, resp.status)
                        raise error_cls(resp.status, text)
                    body = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise error_cls(0, str(exc)) from exc
        except asyncio.TimeoutError as exc:
            raise error_cls(0, "Request timed out") from exc
        except ValueError as exc:
            raise error_cls(0, f"Invalid JSON response: {exc}") from exc

        if not isinstance(body, dict):
            raise error_cls(0, "Unexpected response shape")
        return body
