# hindivoice/api/__init__.py
# ===========================
# API Layer — HindiVoice
#
# FastAPI surface for the UI shell:
#   - POST /api/v1/audio, /recording/*, /transcribe, /translate, /speech
#   - GET  /api/v1/session, /voices, /transcript
#
# One VoicePipeline per process, held on app.state.

from hindivoice.api.routes import app, create_app  # noqa: F401

__all__ = ["app", "create_app"]
