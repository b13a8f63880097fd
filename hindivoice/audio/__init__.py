# hindivoice/audio/__init__.py
# =============================
# Audio Capture Layer — HindiVoice Stage 1
#
# Produces the session's single live AudioAsset from either:
#   - a file upload (.mp3 / .wav / .m4a / .aac, max 50 MiB), or
#   - a microphone recording (WAV, in-memory buffer)
#
# Validation only: no decoding or format conversion of uploads.

from hindivoice.audio.asset import AudioAsset  # noqa: F401
from hindivoice.audio.capture import CaptureMode, CaptureSource, format_elapsed  # noqa: F401

__all__ = ["AudioAsset", "CaptureMode", "CaptureSource", "format_elapsed"]
