"""Infrastructure failures raised out of a grading run.

None of these are grading verdicts: they mean the run could not produce one.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gradebox.executor import RawCapture


class GradeboxError(Exception):
    """Base class for every gradebox infrastructure error."""


class UnknownWorkerError(GradeboxError):
    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown worker: {name!r}. Available: {', '.join(available) or '(none)'}"
        )


class DuplicateWorkerError(GradeboxError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Worker {name!r} is already registered")


class ExecutionEnvironmentError(GradeboxError):
    """The child process could not be started (missing interpreter, bad cwd...)."""

    def __init__(self, message: str, directory: Path | None = None):
        self.directory = directory
        super().__init__(message)


class ExecutionTimeoutError(GradeboxError):
    """The child process exceeded its wall-clock budget and was killed."""

    def __init__(self, timeout_seconds: float, capture: RawCapture | None = None):
        self.timeout_seconds = timeout_seconds
        self.capture = capture
        super().__init__(f"Execution timed out after {timeout_seconds:g}s")
