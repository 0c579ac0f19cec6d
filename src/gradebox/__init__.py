"""Grade coding submissions in isolated child processes."""

from gradebox.challenge import (
    Challenge,
    CodingChallenge,
    ExecutionResult,
    FileBuilder,
    ValidationFailure,
)
from gradebox.config import RunConfig, load_challenge
from gradebox.errors import (
    DuplicateWorkerError,
    ExecutionEnvironmentError,
    ExecutionTimeoutError,
    GradeboxError,
    UnknownWorkerError,
)
from gradebox.runner import Runner
from gradebox.verdict import (
    GradingError,
    LanguageError,
    Success,
    ValidationFailures,
    Verdict,
)

__all__ = [
    "Challenge",
    "CodingChallenge",
    "DuplicateWorkerError",
    "ExecutionEnvironmentError",
    "ExecutionResult",
    "ExecutionTimeoutError",
    "FileBuilder",
    "GradeboxError",
    "GradingError",
    "LanguageError",
    "RunConfig",
    "Runner",
    "Success",
    "UnknownWorkerError",
    "ValidationFailure",
    "ValidationFailures",
    "Verdict",
    "load_challenge",
]
