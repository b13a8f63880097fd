# hindivoice/stt/__init__.py
# ===========================
# Speech-to-Text Layer — HindiVoice Stage 2
#
# Pipeline:
#   1. Upload the captured asset to AssemblyAI
#   2. Submit a transcription job (speaker labels requested)
#   3. Poll on a bounded schedule until completed / error / timeout
#   4. Return the English transcript with job metadata
#
# Public API:
#   TranscriptionJob(client, policy).run(asset) → StageResult[TranscriptionResult]

from hindivoice.stt.assemblyai_client import AssemblyAIClient  # noqa: F401
from hindivoice.stt.job import (  # noqa: F401
    JobState,
    TranscriptionJob,
    TranscriptionResult,
)

__all__ = [
    "AssemblyAIClient",
    "JobState",
    "TranscriptionJob",
    "TranscriptionResult",
]
