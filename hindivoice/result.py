"""
hindivoice/result.py
=====================
Stage Result — HindiVoice

Every asynchronous stage operation returns a StageResult instead of raising
or calling back into the UI. ``message`` is the user-facing status line:
the success text on success, the error text on failure.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from hindivoice.errors import PipelineError

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[PipelineError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None, message: str = "") -> "StageResult[T]":
        return cls(value=value, error=None, message=message)

    @classmethod
    def failure(cls, error: PipelineError) -> "StageResult[T]":
        return cls(value=None, error=error, message=error.message)
