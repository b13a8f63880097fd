"""
hindivoice/api/routes.py
=========================
HTTP Surface — HindiVoice UI shell contract

Responsibility:
    - Expose every VoicePipeline operation under /api/v1
    - Accept the audio upload as multipart/form-data (``audio_file``)
    - Map stage failures onto HTTP status codes:
        validation            → 422
        missing artifact      → 409
        transport / remote    → 502
        timeout               → 504
        unsupported host      → 501
    - Serve the bilingual transcript as a downloadable attachment

One VoicePipeline lives on ``app.state.pipeline`` for the lifetime of the
process. Speech playback runs as a background task so the shell can poll
GET /session for progress and POST /speech/stop at any time. The companion
speaker (/speaker/*) runs the same way and adds pause/resume.

This module does NOT:
    - Contain pipeline logic (handled by hindivoice.pipeline)
    - Read environment variables directly (handled by hindivoice.config)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from hindivoice import __version__
from hindivoice.audio.capture import CaptureMode, format_elapsed
from hindivoice.config import load_settings
from hindivoice.errors import (
    EmptyResult,
    JobCancelled,
    JobTimeoutError,
    MissingArtifact,
    NoTextToSpeak,
    PipelineError,
    RemoteJobError,
    SpeechError,
    TranslationUnavailable,
    TransportError,
    UnsupportedEnvironment,
    ValidationError,
)
from hindivoice.pipeline import VoicePipeline, build_pipeline
from hindivoice.result import StageResult

logger = logging.getLogger("hindivoice.api.routes")


class SpeechRequest(BaseModel):
    voice: Optional[str] = None
    rate: Optional[float] = None
    volume: Optional[float] = None


class SpeakerRequest(BaseModel):
    text: Optional[str] = None  # defaults to the current Hindi translation
    voice: Optional[str] = None
    rate: Optional[float] = None
    pitch: Optional[float] = None
    volume: Optional[float] = None


def _speaker_snapshot(pipeline: VoicePipeline) -> dict:
    speaker = pipeline.speaker
    return {
        "status": speaker.status.value,
        "speaking": speaker.is_speaking,
        "paused": speaker.is_paused,
        "voice": speaker.voice.name if speaker.voice else None,
        "message": speaker.error_message,
    }


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def status_code_for(error: PipelineError) -> int:
    if isinstance(error, (MissingArtifact, NoTextToSpeak, JobCancelled)):
        return 409
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, JobTimeoutError):
        return 504
    if isinstance(error, UnsupportedEnvironment):
        return 501
    if isinstance(error, (TransportError, RemoteJobError, EmptyResult,
                          TranslationUnavailable, SpeechError)):
        return 502
    return 500


def _unwrap(result: StageResult):
    if not result.ok:
        raise HTTPException(status_code=status_code_for(result.error), detail=result.message)
    return result


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(pipeline: Optional[VoicePipeline] = None) -> FastAPI:
    """Build the FastAPI app around ``pipeline`` (built from settings if None)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pipeline is None:
            app.state.pipeline = build_pipeline(load_settings())
        yield
        pipeline: VoicePipeline = app.state.pipeline
        pipeline.stop_speaking()
        pipeline.speaker_stop()
        for task in (app.state.speech_task, app.state.speaker_task):
            if task is not None and not task.done():
                task.cancel()
        await pipeline.close()

    app = FastAPI(
        title="HindiVoice",
        description="English audio → English transcript → Hindi text → Hindi speech.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.speech_task = None
    app.state.speaker_task = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Stage 1: Capture
    # ------------------------------------------------------------------

    @app.post("/api/v1/audio")
    async def upload_audio(request: Request, audio_file: UploadFile = File(...)):
        if audio_file is None or not audio_file.filename:
            raise HTTPException(status_code=422, detail="Audio file is required.")

        logger.info("Audio file received: %s", audio_file.filename)
        data = await audio_file.read()
        result = _unwrap(request.app.state.pipeline.submit_file(audio_file.filename, data))
        asset = result.value
        return {
            "name": asset.name,
            "mime_type": asset.mime_type,
            "size": asset.size,
            "playable_url": asset.playable_url,
        }

    @app.post("/api/v1/mode/{mode}")
    async def switch_mode(request: Request, mode: CaptureMode):
        result = _unwrap(request.app.state.pipeline.switch_mode(mode))
        return {"mode": result.value.value}

    @app.post("/api/v1/recording/start")
    async def start_recording(request: Request):
        _unwrap(await request.app.state.pipeline.start_recording())
        return {"recording": True}

    @app.post("/api/v1/recording/stop")
    async def stop_recording(request: Request):
        result = _unwrap(await request.app.state.pipeline.stop_recording())
        asset = result.value
        return {
            "name": asset.name,
            "mime_type": asset.mime_type,
            "size": asset.size,
            "playable_url": asset.playable_url,
            "message": result.message,
        }

    # ------------------------------------------------------------------
    # Stage 2: Transcription
    # ------------------------------------------------------------------

    @app.post("/api/v1/transcribe")
    async def transcribe(request: Request):
        result = _unwrap(await request.app.state.pipeline.transcribe())
        return {
            "english_text": result.value.source_text,
            "source_file_name": result.value.source_file_name,
            "metadata": result.value.metadata,
            "message": result.message,
        }

    @app.post("/api/v1/transcribe/cancel")
    async def cancel_transcription(request: Request):
        return {"cancelled": request.app.state.pipeline.cancel_transcription()}

    # ------------------------------------------------------------------
    # Stage 3: Translation
    # ------------------------------------------------------------------

    @app.post("/api/v1/translate")
    async def translate(request: Request):
        result = _unwrap(await request.app.state.pipeline.translate())
        return {"hindi_text": result.value.target_text, "message": result.message}

    # ------------------------------------------------------------------
    # Stage 4: Speech
    # ------------------------------------------------------------------

    @app.get("/api/v1/voices")
    async def list_voices(request: Request):
        voices = request.app.state.pipeline.list_voices()
        return [{"id": v.id, "name": v.name, "lang": v.lang} for v in voices]

    @app.post("/api/v1/speech", status_code=202)
    async def speak(request: Request, body: Optional[SpeechRequest] = None):
        pipeline: VoicePipeline = request.app.state.pipeline
        body = body or SpeechRequest()
        if pipeline.state.translation is None:
            _unwrap(StageResult.failure(NoTextToSpeak()))

        # Stopping first resolves the previous background run before the new one starts.
        pipeline.stop_speaking()
        request.app.state.speech_task = asyncio.create_task(
            pipeline.speak(voice_id=body.voice, rate=body.rate, volume=body.volume)
        )
        return {"speaking": True}

    @app.post("/api/v1/speech/stop")
    async def stop_speech(request: Request):
        request.app.state.pipeline.stop_speaking()
        return {"speaking": False}

    # ------------------------------------------------------------------
    # Companion speaker
    # ------------------------------------------------------------------

    @app.get("/api/v1/speaker")
    async def speaker_status(request: Request):
        return _speaker_snapshot(request.app.state.pipeline)

    @app.post("/api/v1/speaker/speak", status_code=202)
    async def speaker_speak(request: Request, body: Optional[SpeakerRequest] = None):
        pipeline: VoicePipeline = request.app.state.pipeline
        body = body or SpeakerRequest()
        text = pipeline.speaker_text(body.text)
        if not text.strip():
            _unwrap(StageResult.failure(NoTextToSpeak()))

        pipeline.speaker_stop()
        request.app.state.speaker_task = asyncio.create_task(
            pipeline.speaker_speak(
                text, voice=body.voice, rate=body.rate, pitch=body.pitch, volume=body.volume,
            )
        )
        return {"speaking": True}

    @app.post("/api/v1/speaker/pause")
    async def speaker_pause(request: Request):
        pipeline: VoicePipeline = request.app.state.pipeline
        pipeline.speaker_pause()
        return _speaker_snapshot(pipeline)

    @app.post("/api/v1/speaker/resume", status_code=202)
    async def speaker_resume(request: Request):
        pipeline: VoicePipeline = request.app.state.pipeline
        if pipeline.speaker.is_paused:
            request.app.state.speaker_task = asyncio.create_task(pipeline.speaker_resume())
        return {"speaking": pipeline.speaker.is_paused or pipeline.speaker.is_speaking}

    @app.post("/api/v1/speaker/stop")
    async def speaker_stop(request: Request):
        pipeline: VoicePipeline = request.app.state.pipeline
        pipeline.speaker_stop()
        return _speaker_snapshot(pipeline)

    # ------------------------------------------------------------------
    # Session + download
    # ------------------------------------------------------------------

    @app.get("/api/v1/session")
    async def session(request: Request):
        pipeline: VoicePipeline = request.app.state.pipeline
        snapshot = pipeline.state.to_dict()
        snapshot["mode"] = pipeline.capture.mode.value
        snapshot["recording"] = pipeline.capture.is_recording
        snapshot["recording_time"] = format_elapsed(pipeline.capture.elapsed_seconds)
        snapshot["transcription_state"] = pipeline.job_state.value
        snapshot["speech"] = {
            "state": pipeline.speech.state.value,
            "progress": pipeline.speech.progress,
        }
        return JSONResponse(status_code=200, content=snapshot)

    @app.get("/api/v1/transcript")
    async def download_transcript(request: Request):
        result = _unwrap(request.app.state.pipeline.export_transcript())
        filename, content = result.value
        return PlainTextResponse(
            content,
            media_type="text/plain; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


app = create_app()
