"""
hindivoice/audio/asset.py
==========================
Audio Asset — HindiVoice Capture

An AudioAsset is the single live audio input of a session: the raw bytes,
their declared type, and a playable copy on disk that a UI can point an
audio element at. The playable copy is a scoped resource: whoever replaces
the asset must call ``release()``.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger("hindivoice.audio.asset")


@dataclass(eq=False)
class AudioAsset:
    """One captured or uploaded audio file."""

    name: str
    data: bytes = field(repr=False)
    mime_type: str
    extension: str
    playable_path: Optional[Path] = None
    released: bool = False

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def playable_url(self) -> str:
        if self.released or self.playable_path is None:
            return ""
        return self.playable_path.resolve().as_uri()

    @classmethod
    def create(
        cls,
        name: str,
        data: bytes,
        mime_type: str,
        extension: str,
        media_dir: Optional[str] = None,
    ) -> "AudioAsset":
        """Build an asset and write its playable copy into ``media_dir``."""
        directory = Path(media_dir or tempfile.gettempdir())
        directory.mkdir(parents=True, exist_ok=True)
        fd, path = tempfile.mkstemp(prefix="hindivoice-", suffix=extension, dir=directory)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        logger.debug("Playable copy written: %s (%d bytes)", path, len(data))
        return cls(
            name=name,
            data=data,
            mime_type=mime_type,
            extension=extension,
            playable_path=Path(path),
        )

    def release(self) -> None:
        """Delete the playable copy. Safe to call more than once."""
        if self.released:
            return
        self.released = True
        if self.playable_path is not None:
            try:
                self.playable_path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove playable copy %s: %s", self.playable_path, exc)
