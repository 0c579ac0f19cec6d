"""Tests for the process executor."""

import os
import sys
import time
from pathlib import Path

import pytest

from gradebox.errors import ExecutionEnvironmentError, ExecutionTimeoutError
from gradebox.executor import DIRECTORY_PREFIX, CodeExecutor
from gradebox.scaffold import AssembledFileSet


def _file_set(bootstrap: str, **extra: str) -> AssembledFileSet:
    files = {"run.py": bootstrap.encode()}
    files.update({k: v.encode() for k, v in extra.items()})
    return AssembledFileSet(
        files=files,
        bootstrap_filename="run.py",
        entry_point="run.py",
        canonical_filenames=tuple(extra),
    )


def test_execute_captures_streams_and_exit_code(work_dir: Path):
    executor = CodeExecutor(timeout=20, base_dir=work_dir)
    capture = executor.execute(
        _file_set("import sys\nprint('out')\nprint('err', file=sys.stderr)\nsys.exit(3)\n")
    )
    assert capture.stdout == "out\n"
    assert capture.stderr == "err\n"
    assert capture.exit_code == 3
    assert capture.code_directory.parent == work_dir.resolve()
    assert capture.code_directory.name.startswith(DIRECTORY_PREFIX)


def test_files_are_written_with_subdirectories(work_dir: Path):
    executor = CodeExecutor(timeout=20, base_dir=work_dir)
    capture = executor.execute(
        _file_set(
            "import os\nprint(open('lib/data.txt').read())\nprint(os.getcwd())\n",
            **{"lib/data.txt": "payload"},
        )
    )
    lines = capture.stdout.splitlines()
    assert lines[0] == "payload"
    assert Path(lines[1]).resolve() == capture.code_directory
    # left on disk until the caller cleans up
    assert (capture.code_directory / "lib" / "data.txt").exists()

    executor.cleanup(capture)
    assert not capture.code_directory.exists()


def test_each_run_gets_its_own_directory(work_dir: Path):
    executor = CodeExecutor(timeout=20, base_dir=work_dir)
    file_set = _file_set("import os\nprint(sorted(os.listdir('.')))\n")
    first = executor.execute(file_set)
    second = executor.execute(file_set)
    assert first.code_directory != second.code_directory
    assert first.stdout == second.stdout == "['run.py']\n"


def test_missing_interpreter_is_environment_error(work_dir: Path):
    executor = CodeExecutor(
        timeout=5, python=str(work_dir / "no-such-python"), base_dir=work_dir
    )
    with pytest.raises(ExecutionEnvironmentError):
        executor.execute(_file_set("print('x')\n"))


def test_env_is_passed_to_child(work_dir: Path):
    executor = CodeExecutor(timeout=20, base_dir=work_dir, env={"GRADEBOX_TEST": "yes"})
    capture = executor.execute(_file_set("import os\nprint(os.environ['GRADEBOX_TEST'])\n"))
    assert capture.stdout == "yes\n"


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    # a killed process nobody has reaped yet is a zombie, not a survivor
    stat = Path(f"/proc/{pid}/stat")
    if stat.exists():
        try:
            state = stat.read_text().rsplit(")", 1)[1].split()[0]
        except (OSError, IndexError):
            return False
        return state != "Z"
    return True


@pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")
def test_timeout_kills_child_and_descendants(work_dir: Path):
    # the child spawns a grandchild, records its pid, then both hang
    bootstrap = (
        "import subprocess, sys, time\n"
        "p = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
        "open('grandchild.pid', 'w').write(str(p.pid))\n"
        "time.sleep(60)\n"
    )
    executor = CodeExecutor(timeout=2, base_dir=work_dir)

    start = time.monotonic()
    with pytest.raises(ExecutionTimeoutError) as exc_info:
        executor.execute(_file_set(bootstrap))
    assert time.monotonic() - start < 30

    capture = exc_info.value.capture
    assert capture is not None
    assert capture.exit_code != 0
    grandchild = int((capture.code_directory / "grandchild.pid").read_text())

    deadline = time.monotonic() + 5
    while _alive(grandchild) and time.monotonic() < deadline:
        time.sleep(0.1)
    assert not _alive(grandchild)
