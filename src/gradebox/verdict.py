"""The outcome of one grading run.

A verdict is exactly one of four shapes, so "at most one populated" holds by
construction rather than by convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    output: str

    @property
    def kind(self) -> str:
        return "success"


@dataclass(frozen=True)
class LanguageError:
    """The submitted code itself failed (syntax error, uncaught exception...)."""

    message: str

    @property
    def kind(self) -> str:
        return "language_error"


@dataclass(frozen=True)
class GradingError:
    """The challenge's grading logic failed; not the candidate's fault."""

    message: str

    @property
    def kind(self) -> str:
        return "grading_error"


@dataclass(frozen=True)
class ValidationFailures:
    messages: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValueError("ValidationFailures requires at least one message")
        # accept any sequence, store a tuple so the verdict stays hashable
        object.__setattr__(self, "messages", tuple(self.messages))

    @property
    def kind(self) -> str:
        return "validation_failures"


Verdict = Union[Success, LanguageError, GradingError, ValidationFailures]


def verdict_to_dict(verdict: Verdict) -> dict[str, Any]:
    if isinstance(verdict, Success):
        return {"kind": verdict.kind, "output": verdict.output}
    if isinstance(verdict, ValidationFailures):
        return {"kind": verdict.kind, "messages": list(verdict.messages)}
    return {"kind": verdict.kind, "message": verdict.message}
