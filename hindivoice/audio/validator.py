"""
hindivoice/audio/validator.py
==============================
Audio Upload Validator — HindiVoice Capture

Responsibility:
    - Validate audio file extension (.mp3, .wav, .m4a, .aac)
    - Validate the file is non-empty and within the size limit
    - Resolve the MIME type for an accepted extension

No decoding or transcoding happens here: the remote transcription engine
accepts all four formats as-is.
"""

from hindivoice.errors import EmptyAudioFile, FileTooLarge, UnsupportedFormat

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ALLOWED_EXTENSIONS = [".mp3", ".wav", ".m4a", ".aac"]
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MiB

MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_extension(filename: str) -> str:
    """
    Check that the file extension is on the allow-list.

    Returns:
        The lowercase extension including the dot, e.g. '.mp3'.

    Raises:
        UnsupportedFormat: If the extension is missing or not allowed.
    """
    ext = extract_extension(filename or "")
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFormat(ext, ALLOWED_EXTENSIONS)
    return ext


def validate_size(size: int, limit: int = MAX_FILE_SIZE) -> None:
    """
    Raises:
        EmptyAudioFile: If the file has no content.
        FileTooLarge:   If size exceeds ``limit`` bytes.
    """
    if size <= 0:
        raise EmptyAudioFile()
    if size > limit:
        raise FileTooLarge(size, limit)


def validate_upload(filename: str, size: int, limit: int = MAX_FILE_SIZE) -> str:
    """Extension check first, then size. Returns the extension."""
    ext = validate_extension(filename)
    validate_size(size, limit)
    return ext


def mime_type_for(extension: str) -> str:
    return MIME_TYPES.get(extension.lower(), "application/octet-stream")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def extract_extension(filename: str) -> str:
    """Return lowercase file extension including the dot, e.g. '.wav'."""
    dot_index = filename.rfind(".")
    if dot_index == -1:
        return ""
    return filename[dot_index:].lower()
