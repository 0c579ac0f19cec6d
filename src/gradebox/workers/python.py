"""Python worker: run the entry point as a script and capture what it prints."""

from __future__ import annotations

import contextlib
import io
import os
import runpy
import traceback
from pathlib import Path
from typing import Any

from gradebox.record import ExecutionRecord
from gradebox.workers.base import BaseWorker


def _describe(error: BaseException) -> str:
    if isinstance(error, SyntaxError):
        return (
            f"{type(error).__name__}: {error.msg} "
            f"in {error.filename} on line {error.lineno}"
        )

    message = f"{type(error).__name__}: {error}"
    # point at the deepest frame that belongs to the submission
    cwd = Path(os.getcwd()).resolve()
    for frame in reversed(traceback.extract_tb(error.__traceback__)):
        try:
            path = Path(frame.filename).resolve()
        except (OSError, ValueError):
            continue
        if path.is_relative_to(cwd):
            return f"{message} in {path} on line {frame.lineno}"
    return message


class PythonWorker(BaseWorker):
    def name(self) -> str:
        return "python"

    def supports(self, filename: str, context: dict[str, Any]) -> bool:
        return filename.endswith(".py")

    def execute(
        self,
        files: dict[str, str],
        entry_point: str,
        context: dict[str, Any],
    ) -> ExecutionRecord:
        buffer = io.StringIO()
        cwd = os.getcwd()
        try:
            try:
                with contextlib.redirect_stdout(buffer):
                    runpy.run_path(entry_point, init_globals=dict(context), run_name="__main__")
            finally:
                # the submission may have changed directory
                os.chdir(cwd)
        except SystemExit as e:
            if e.code not in (None, 0):
                return ExecutionRecord(
                    language_error_text=f"Script exited with status {e.code}"
                )
        except Exception as e:
            return ExecutionRecord(language_error_text=_describe(e))

        return ExecutionRecord(output_text=buffer.getvalue())
