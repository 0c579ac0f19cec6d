"""Run an assembled file set in its own directory and child process."""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import sys
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from gradebox.errors import ExecutionEnvironmentError, ExecutionTimeoutError
from gradebox.scaffold import AssembledFileSet

DIRECTORY_PREFIX = "gradebox-run-"


@dataclass(frozen=True)
class RawCapture:
    stdout: str
    stderr: str
    exit_code: int
    code_directory: Path
    duration_seconds: float = 0.0


def _kill_process_group(proc: subprocess.Popen) -> None:
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        # group already gone
        pass


class CodeExecutor:
    """Materializes files into a fresh directory and runs the bootstrap there.

    The directory is left on disk after ``execute`` returns; call ``cleanup``
    once it is no longer needed.
    """

    def __init__(
        self,
        timeout: float,
        python: str | None = None,
        base_dir: Path | str | None = None,
        env: dict[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.timeout = timeout
        self.python = python or sys.executable
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.env = env or {}
        self.logger = logger or logging.getLogger("gradebox")

    def create_directory(self) -> Path:
        if self.base_dir is not None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=DIRECTORY_PREFIX, dir=self.base_dir)).resolve()

    def write_files(self, directory: Path, files: dict[str, bytes]) -> None:
        for filename, content in files.items():
            path = directory / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self.env)
        env["PYTHONDONTWRITEBYTECODE"] = "1"
        env["PYTHONIOENCODING"] = "utf-8"
        return env

    def execute(self, file_set: AssembledFileSet) -> RawCapture:
        directory = self.create_directory()
        self.logger.debug(f"Writing {len(file_set.files)} file(s) to {directory}")
        self.write_files(directory, file_set.files)

        cmd = [self.python, file_set.bootstrap_filename]
        start = time.monotonic()
        try:
            # own session so a timeout can take down every descendant at once
            proc = subprocess.Popen(
                cmd,
                cwd=directory,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=self._environment(),
                start_new_session=True,
            )
        except OSError as e:
            raise ExecutionEnvironmentError(
                f"Could not start {' '.join(cmd)}: {e}", directory
            ) from e

        def _read(stream, lines: list[str], prefix: str) -> None:
            for line in stream:
                lines.append(line)
                self.logger.debug("[%s] %s", prefix, line.rstrip())

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        t_out = threading.Thread(target=_read, args=(proc.stdout, stdout_lines, "stdout"))
        t_err = threading.Thread(target=_read, args=(proc.stderr, stderr_lines, "stderr"))
        t_out.start()
        t_err.start()

        timed_out = False
        try:
            proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            _kill_process_group(proc)
            proc.wait()
        else:
            # descendants left behind would keep the pipes open
            _kill_process_group(proc)

        t_out.join()
        t_err.join()
        proc.stdout.close()
        proc.stderr.close()

        capture = RawCapture(
            stdout="".join(stdout_lines),
            stderr="".join(stderr_lines),
            exit_code=proc.returncode,
            code_directory=directory,
            duration_seconds=time.monotonic() - start,
        )
        self.logger.debug(
            f"Process {proc.pid} exited with code {capture.exit_code} "
            f"after {capture.duration_seconds:.2f}s"
        )
        if timed_out:
            raise ExecutionTimeoutError(self.timeout, capture)
        return capture

    def cleanup(self, capture: RawCapture) -> None:
        """Remove the isolated directory of a finished run."""
        self.remove_directory(capture.code_directory)

    def remove_directory(self, directory: Path) -> None:
        shutil.rmtree(directory, ignore_errors=True)
