"""
hindivoice/export.py
=====================
Transcript Export — HindiVoice

Builds the downloadable bilingual transcript:

    Transcription for: <original file name>
    Date: <timestamp>

    --- ENGLISH ---
    <English text>

    --- HINDI (हिंदी) ---
    <Hindi text, or "Not translated">

named ``<original base name>_translation.txt``.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger("hindivoice.export")

NOT_TRANSLATED = "Not translated"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LAST_EXTENSION = re.compile(r"\.[^/.]+$")


def transcript_filename(source_file_name: str) -> str:
    return f"{_LAST_EXTENSION.sub('', source_file_name)}_translation.txt"


def build_transcript(
    source_file_name: str,
    english_text: str,
    hindi_text: Optional[str] = None,
    when: Optional[datetime] = None,
) -> str:
    when = when or datetime.now()
    return (
        f"Transcription for: {source_file_name}\n"
        f"Date: {when.strftime(DATE_FORMAT)}\n\n"
        f"--- ENGLISH ---\n{english_text}\n\n"
        f"--- HINDI (हिंदी) ---\n{hindi_text or NOT_TRANSLATED}"
    )


def save_transcript(directory: str | Path, source_file_name: str, content: str) -> Path:
    path = Path(directory) / transcript_filename(source_file_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Transcript saved: %s (%d chars)", path, len(content))
    return path
