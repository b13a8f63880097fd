# hindivoice/__init__.py
# =======================
# HindiVoice — English speech to Hindi speech and bilingual transcript
#
# Stages (each gated on the previous one's success):
#   1. audio  — capture / upload an AudioAsset
#   2. stt    — remote transcription job (upload → submit → poll)
#   3. nlp    — English → Hindi translation with one fallback service
#   4. tts    — chunked Hindi speech playback
#
# pipeline.VoicePipeline coordinates the stages over an immutable
# session.SessionState snapshot.

__version__ = "1.0.0"
