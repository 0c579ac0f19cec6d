"""Turn a raw process capture into a verdict."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from gradebox.executor import RawCapture
from gradebox.record import RESULT_FILENAME, ExecutionRecord
from gradebox.verdict import (
    GradingError,
    LanguageError,
    Success,
    ValidationFailures,
    Verdict,
)

# the first one found wins; everything from it onward is dropped
STACK_TRACE_MARKERS = (
    "PHP Stack trace",
    "Stack trace:",
    "Traceback (most recent call last)",
)


def clean_error(text: str, code_directory: Path | str) -> str:
    """Strip the isolated directory and any stack trace from an error message.

    A syntax error in /tmp/gradebox-run-x/index.py should just read index.py.
    """
    directory = str(code_directory).rstrip("/")
    if directory:
        text = text.replace(directory + "/", "")
        text = text.replace(directory, "")

    positions = [p for p in (text.find(m) for m in STACK_TRACE_MARKERS) if p != -1]
    if positions:
        text = text[: min(positions)]

    return text.strip()


def read_record(
    code_directory: Path, logger: logging.Logger | None = None
) -> ExecutionRecord | None:
    logger = logger or logging.getLogger("gradebox")
    path = Path(code_directory) / RESULT_FILENAME
    if not path.is_file():
        logger.debug(f"No {RESULT_FILENAME} in {code_directory}")
        return None
    try:
        return ExecutionRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except (ValidationError, UnicodeDecodeError) as e:
        logger.debug(f"Unreadable {RESULT_FILENAME}: {e}")
        return None


def classify(
    capture: RawCapture,
    record: ExecutionRecord | None,
    logger: logging.Logger | None = None,
) -> Verdict:
    logger = logger or logging.getLogger("gradebox")

    def clean(text: str) -> str:
        return clean_error(text, capture.code_directory)

    if record is None:
        if capture.stderr.strip():
            return LanguageError(clean(capture.stderr))
        if capture.exit_code != 0:
            return LanguageError(f"Process exited with code {capture.exit_code}")
        return GradingError("The run finished without recording a result")

    if capture.stderr.strip():
        logger.debug(f"Ignoring stderr, a result was recorded: {capture.stderr.strip()}")

    if record.grading_error_text:
        return GradingError(clean(record.grading_error_text))
    if record.language_error_text:
        return LanguageError(clean(record.language_error_text))
    if record.validation_failures:
        return ValidationFailures(
            tuple(clean(message) for message in record.validation_failures)
        )
    return Success(record.output_text)
