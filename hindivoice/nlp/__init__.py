# hindivoice/nlp/__init__.py
# ===========================
# Translation Layer — HindiVoice Stage 3
#
# English transcript → Hindi text, primary service with one automatic
# fallback. Callers never learn which backend answered; only the status
# message differs.

from hindivoice.nlp.translator import TranslationResult, Translator  # noqa: F401

__all__ = ["TranslationResult", "Translator"]
