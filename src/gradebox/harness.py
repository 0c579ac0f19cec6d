"""Code that runs inside the isolated child process.

The generated ``execution.py`` bootstrap calls :func:`main`, which loads the
grading logic, runs the worker against the entry point, grades the result and
writes ``result.json``. Everything here executes with the isolated directory
as the working directory.
"""

from __future__ import annotations

import importlib
import importlib.util
import json
import sys
import traceback
from pathlib import Path
from typing import Any

from gradebox.challenge import CodingChallenge, ExecutionResult
from gradebox.record import RESULT_FILENAME, ExecutionRecord
from gradebox.workers.base import load_worker

STACK_TRACE_MARKER = "Stack trace:"


def _excepthook(exc_type, exc_value, exc_tb) -> None:
    # message first so the parent can cut the trace off at the marker
    sys.stderr.write(f"{exc_type.__name__}: {exc_value}\n{STACK_TRACE_MARKER}\n")
    sys.stderr.write("".join(traceback.format_tb(exc_tb)))
    sys.stderr.flush()


def _describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


def load_grading_class(class_name: str, source_filename: str | None = None) -> type:
    """Find the grading class in the written source file or an importable module."""
    if source_filename is not None:
        spec = importlib.util.spec_from_file_location(
            "challenge_logic", Path(source_filename).resolve()
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load grading logic from {source_filename}")
        module: Any = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        attr_path = class_name.rpartition(":")[2]
    else:
        module_name, sep, attr_path = class_name.partition(":")
        if not sep:
            raise ImportError(
                f"Grading class {class_name!r} must be given as 'module:Class'"
            )
        module = importlib.import_module(module_name)

    obj: Any = module
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    if not (isinstance(obj, type) and issubclass(obj, CodingChallenge)):
        raise TypeError(f"{class_name} is not a CodingChallenge subclass")
    return obj


def read_input_files(scaffold: dict[str, Any]) -> dict[str, str]:
    return {
        name: Path(name).read_text(encoding="utf-8", errors="replace")
        for name in scaffold["files"]
    }


def grade(
    challenge: CodingChallenge,
    record: ExecutionRecord,
    files: dict[str, str],
    entry_point: str,
    context: dict[str, Any],
) -> ExecutionRecord:
    if record.has_error:
        return record

    result = ExecutionResult(
        input_files=files,
        entry_point=entry_point,
        output=record.output_text,
        context=context,
    )
    try:
        challenge.grade(result)
    except AssertionError as e:
        result.fail(str(e) or "Validation failed")
    except Exception as e:
        return ExecutionRecord(grading_error_text=_describe(e))

    return ExecutionRecord(
        output_text=result.output,
        validation_failures=result.validation_failures,
    )


def run(
    worker: str,
    challenge_class: str,
    entry_point: str,
    scaffold_filename: str,
    challenge_filename: str | None = None,
) -> ExecutionRecord:
    scaffold = json.loads(Path(scaffold_filename).read_text(encoding="utf-8"))
    files = read_input_files(scaffold)
    context: dict[str, Any] = {}

    try:
        challenge = load_grading_class(challenge_class, challenge_filename)()
        challenge.setup_context(context)
        runner = load_worker(worker)
    except Exception as e:
        return ExecutionRecord(grading_error_text=_describe(e))

    record = runner.execute(files, entry_point, context)
    return grade(challenge, record, files, entry_point, context)


def main(
    worker: str,
    challenge_class: str,
    entry_point: str,
    scaffold_filename: str,
    challenge_filename: str | None = None,
    result_filename: str = RESULT_FILENAME,
) -> int:
    sys.excepthook = _excepthook
    # absolute before the submission runs and possibly changes directory
    scaffold_path = Path(scaffold_filename).resolve()
    result_path = Path(result_filename).resolve()
    record = run(
        worker=worker,
        challenge_class=challenge_class,
        entry_point=entry_point,
        scaffold_filename=str(scaffold_path),
        challenge_filename=challenge_filename,
    )
    result_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
    return 0
