"""
hindivoice/session.py
======================
Session State — HindiVoice

An immutable snapshot of everything the UI shell shows, plus pure
transition functions that return a new snapshot. Invariants:

    - at most one AudioAsset is live
    - a transcription exists only with an asset
    - a translation exists only with a transcription
    - a new artifact clears everything downstream of it, never upstream
    - at most one of error_message / info_message is non-empty

Side effects (releasing the old asset's playable file, stopping speech)
belong to pipeline.VoicePipeline, not to these functions.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from hindivoice.audio.asset import AudioAsset
from hindivoice.errors import MissingArtifact
from hindivoice.nlp.translator import TranslationResult
from hindivoice.stt.job import TranscriptionResult


@dataclass(frozen=True)
class SessionStatus:
    error_message: str = ""
    info_message: str = ""


@dataclass(frozen=True)
class SessionState:
    asset: Optional[AudioAsset] = None
    transcription: Optional[TranscriptionResult] = None
    translation: Optional[TranslationResult] = None
    status: SessionStatus = field(default_factory=SessionStatus)

    def to_dict(self) -> dict[str, Any]:
        asset = self.asset
        return {
            "audio": None if asset is None else {
                "name": asset.name,
                "mime_type": asset.mime_type,
                "size": asset.size,
                "playable_url": asset.playable_url,
            },
            "english_text": self.transcription.source_text if self.transcription else None,
            "source_file_name": self.transcription.source_file_name if self.transcription else None,
            "hindi_text": self.translation.target_text if self.translation else None,
            "error": self.status.error_message,
            "status": self.status.info_message,
        }


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def with_asset(state: SessionState, asset: AudioAsset) -> SessionState:
    return replace(state, asset=asset, transcription=None, translation=None, status=SessionStatus())


def with_transcription(state: SessionState, result: TranscriptionResult) -> SessionState:
    if state.asset is None:
        raise MissingArtifact("Please upload an audio file or record audio first")
    return replace(state, transcription=result, translation=None)


def with_translation(state: SessionState, result: TranslationResult) -> SessionState:
    if state.transcription is None:
        raise MissingArtifact("No English text to translate.")
    return replace(state, translation=result)


def with_error(state: SessionState, message: str) -> SessionState:
    return replace(state, status=SessionStatus(error_message=message))


def with_info(state: SessionState, message: str) -> SessionState:
    return replace(state, status=SessionStatus(info_message=message))


def cleared_status(state: SessionState) -> SessionState:
    return replace(state, status=SessionStatus())
