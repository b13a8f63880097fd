"""
hindivoice/errors.py
=====================
Error Taxonomy — HindiVoice

Responsibility:
    - Define every failure a pipeline stage can report
    - Carry the user-facing message on the exception itself
    - Group failures by recovery policy (validation, transport, remote job,
      empty result, unsupported environment, timeout)

Stages never let these cross into another stage's state: each stage catches
its own failures and converts them into a StageResult (see result.py).
ConfigurationError is the only one allowed to escape, at startup.
"""


class PipelineError(Exception):
    """Base class for all stage failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(PipelineError):
    """Raised when required settings are missing or malformed."""
    pass


# ---------------------------------------------------------------------------
# Validation — recoverable by user action, no state change
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    pass


class UnsupportedFormat(ValidationError):
    def __init__(self, extension: str, allowed: list[str]):
        self.extension = extension
        self.allowed = allowed
        super().__init__(
            f"Unsupported file format. Please use {', '.join(allowed)}"
        )


class FileTooLarge(ValidationError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File size exceeds {limit // (1024 * 1024)}MB limit")


class EmptyAudioFile(ValidationError):
    def __init__(self):
        super().__init__("Audio file is empty.")


class PermissionDenied(ValidationError):
    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__("Failed to access microphone. Please check permissions.")


class RecordingInProgress(ValidationError):
    def __init__(self):
        super().__init__("Stop the current recording before switching input mode.")


class WrongInputMode(ValidationError):
    def __init__(self, required: str):
        self.required = required
        super().__init__(f"Switch to {required} mode first.")


class NotRecording(ValidationError):
    def __init__(self):
        super().__init__("No recording in progress.")


class MissingArtifact(ValidationError):
    """A stage was invoked before its upstream artifact exists."""
    pass


class NoTextToSpeak(ValidationError):
    def __init__(self):
        super().__init__("No Hindi text to speak")


# ---------------------------------------------------------------------------
# Transport — non-2xx HTTP or device failure, stage aborts to initial state
# ---------------------------------------------------------------------------


class TransportError(PipelineError):
    pass


class _HTTPStageError(TransportError):
    _label = "Request failed"

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"{self._label} ({status}): {body}")


class UploadError(_HTTPStageError):
    _label = "Upload failed"


class SubmitError(_HTTPStageError):
    _label = "Transcription request failed"


class PollError(_HTTPStageError):
    _label = "Failed to get transcription result"


class RecordingDeviceError(TransportError):
    pass


class TranslationServiceError(TransportError):
    pass


# ---------------------------------------------------------------------------
# Remote job / empty result / environment / timeout
# ---------------------------------------------------------------------------


class RemoteJobError(PipelineError):
    pass


class TranscriptionError(RemoteJobError):
    def __init__(self, engine_error: str):
        self.engine_error = engine_error
        super().__init__(f"Transcription failed: {engine_error}")


class EmptyResult(PipelineError):
    pass


class EmptyTranscript(EmptyResult):
    def __init__(self):
        super().__init__("Transcription completed but no speech was recognised.")


class EmptyTranslation(EmptyResult):
    def __init__(self):
        super().__init__("Translation failed - no text returned")


class UnsupportedEnvironment(PipelineError):
    pass


class JobTimeoutError(PipelineError):
    def __init__(self, attempts: int, elapsed: float):
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Transcription did not finish after {attempts} status checks "
            f"({elapsed:.0f}s)."
        )


class JobCancelled(PipelineError):
    def __init__(self):
        super().__init__("Transcription cancelled: a new audio source was selected.")


class TranslationUnavailable(PipelineError):
    def __init__(self, primary_message: str):
        self.primary_message = primary_message
        super().__init__(
            f"Translation error: {primary_message}. Please check your internet "
            "connection or try a shorter text."
        )


class SpeechError(PipelineError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Speech error: {reason}. Try using shorter text or refresh the page."
        )
