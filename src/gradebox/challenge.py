"""Challenge definitions: canonical files, grading logic, candidate overrides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class FileBuilder:
    """Canonical file set of a challenge and its default contents."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._entry_point: str | None = None

    def add_file(
        self, filename: str, content: str | bytes, entry_point: bool = False
    ) -> FileBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._files[filename] = content
        if entry_point:
            self._entry_point = filename
        return self

    def filenames(self) -> list[str]:
        return list(self._files)

    def default_content(self, filename: str) -> bytes:
        try:
            return self._files[filename]
        except KeyError:
            raise KeyError(f"{filename!r} is not part of this file set") from None

    def entry_point_filename(self) -> str:
        if self._entry_point is not None:
            return self._entry_point
        if len(self._files) == 1:
            return next(iter(self._files))
        raise ValueError("No entry point file was declared")

    @classmethod
    def from_directory(cls, directory: Path | str, entry_point: str) -> FileBuilder:
        """Collect every file under directory, keyed by its POSIX relative path."""
        directory = Path(directory)
        builder = cls()
        for path in sorted(directory.rglob("*")):
            if path.is_file():
                name = path.relative_to(directory).as_posix()
                builder.add_file(name, path.read_bytes(), entry_point=name == entry_point)
        if entry_point not in builder._files:
            raise ValueError(f"Entry point {entry_point!r} not found in {directory}")
        return builder


@dataclass
class ExecutionResult:
    """What a grade() method sees after the worker has run the submission."""

    input_files: dict[str, str]
    entry_point: str
    output: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    validation_failures: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.validation_failures.append(message)

    def get_input_file(self, filename: str) -> str:
        return self.input_files[filename]

    def assert_output_contains(self, expected: str, message: str | None = None) -> None:
        if expected not in self.output:
            self.fail(message or f"Expected the output to contain {expected!r}")


class ValidationFailure(AssertionError):
    """Raised from grade() to reject a submission with a readable message."""


class CodingChallenge(ABC):
    """Base class for grading logic.

    Subclasses are only ever instantiated inside the isolated child process,
    except for ahead-of-time registered challenges built with
    ``Challenge.from_grading_class``.
    """

    execution_mode: str = "python"

    def get_file_builder(self) -> FileBuilder:
        """Canonical files; optional, only ``Challenge.from_grading_class`` calls it."""
        raise NotImplementedError(
            f"{type(self).__name__} does not declare its canonical files"
        )

    def setup_context(self, context: dict[str, Any]) -> None:
        """Populate the variables a template worker renders against."""

    @abstractmethod
    def grade(self, result: ExecutionResult) -> None:
        """Inspect result; call result.fail() or raise ValidationFailure to reject."""
        ...


@dataclass
class Challenge:
    identifier: str
    execution_mode: str
    files: FileBuilder
    grading_class: str
    grading_source: str | None = None
    input_files: dict[str, bytes] = field(default_factory=dict)

    def add_input_file(self, filename: str, content: str | bytes) -> Challenge:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.input_files[filename] = content
        return self

    @classmethod
    def from_grading_class(
        cls, identifier: str, grading_class: type[CodingChallenge]
    ) -> Challenge:
        """Build a challenge from grading logic importable in the child process."""
        if grading_class.get_file_builder is CodingChallenge.get_file_builder:
            raise TypeError(
                f"{grading_class.__name__} must override get_file_builder() "
                "to be registered ahead of time"
            )
        instance = grading_class()
        return cls(
            identifier=identifier,
            execution_mode=instance.execution_mode,
            files=instance.get_file_builder(),
            grading_class=f"{grading_class.__module__}:{grading_class.__qualname__}",
        )
