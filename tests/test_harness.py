"""Tests for the code that runs inside the isolated directory."""

import json
import sys
import textwrap
from pathlib import Path

import pytest

from gradebox.harness import STACK_TRACE_MARKER, _excepthook, load_grading_class, main
from gradebox.record import RESULT_FILENAME, ExecutionRecord

PYTHON_WORKER = "gradebox.workers.python:PythonWorker"


@pytest.fixture
def run_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    # main() installs its own excepthook
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    return tmp_path


def _prepare(run_dir: Path, files: dict[str, str], grader: str) -> None:
    for name, content in files.items():
        (run_dir / name).write_text(content)
    (run_dir / "challenge_logic.py").write_text(textwrap.dedent(grader))
    (run_dir / "execution.json").write_text(
        json.dumps({"challenge": "t", "worker": "python", "entry_point": "index.py", "files": list(files)})
    )


def _run(run_dir: Path, class_name: str = "Grader") -> ExecutionRecord:
    assert main(
        worker=PYTHON_WORKER,
        challenge_class=class_name,
        entry_point="index.py",
        scaffold_filename="execution.json",
        challenge_filename="challenge_logic.py",
    ) == 0
    return ExecutionRecord.model_validate_json((run_dir / RESULT_FILENAME).read_text())


PASSING = """\
    from gradebox.challenge import CodingChallenge

    class Grader(CodingChallenge):
        def grade(self, result):
            result.assert_output_contains("Hello")
"""


def test_success_records_output(run_dir):
    _prepare(run_dir, {"index.py": "print('Hello')\n"}, PASSING)
    assert _run(run_dir) == ExecutionRecord(output_text="Hello\n")


def test_failed_assertions_become_validation_failures(run_dir):
    _prepare(run_dir, {"index.py": "print('Bye')\n"}, PASSING)
    record = _run(run_dir)
    assert record.validation_failures == ["Expected the output to contain 'Hello'"]
    assert record.output_text == "Bye\n"


def test_raised_validation_failure(run_dir):
    grader = """\
        from gradebox.challenge import CodingChallenge, ValidationFailure

        class Grader(CodingChallenge):
            def grade(self, result):
                result.fail("first")
                raise ValidationFailure("second")
    """
    _prepare(run_dir, {"index.py": "pass\n"}, grader)
    assert _run(run_dir).validation_failures == ["first", "second"]


def test_grader_can_read_input_files(run_dir):
    grader = """\
        from gradebox.challenge import CodingChallenge

        class Grader(CodingChallenge):
            def grade(self, result):
                assert "for " in result.get_input_file("index.py"), "Use a for loop"
    """
    _prepare(run_dir, {"index.py": "print('Hello')\n"}, grader)
    assert _run(run_dir).validation_failures == ["Use a for loop"]


def test_grader_bug_is_grading_error(run_dir):
    grader = """\
        from gradebox.challenge import CodingChallenge

        class Grader(CodingChallenge):
            def grade(self, result):
                return {}["missing"]
    """
    _prepare(run_dir, {"index.py": "print('Hello')\n"}, grader)
    record = _run(run_dir)
    assert record.grading_error_text == "KeyError: 'missing'"
    assert not record.validation_failures


def test_language_error_skips_grading(run_dir):
    grader = """\
        from gradebox.challenge import CodingChallenge

        class Grader(CodingChallenge):
            def grade(self, result):
                raise RuntimeError("must not be called")
    """
    _prepare(run_dir, {"index.py": "1/0\n"}, grader)
    record = _run(run_dir)
    assert record.language_error_text.startswith("ZeroDivisionError: division by zero")
    assert not record.grading_error_text


def test_missing_grading_class_is_grading_error(run_dir):
    _prepare(run_dir, {"index.py": "print('Hello')\n"}, PASSING)
    record = _run(run_dir, class_name="Nope")
    assert record.grading_error_text.startswith("AttributeError")


def test_grading_class_must_subclass_coding_challenge(run_dir):
    _prepare(run_dir, {"index.py": "print('Hello')\n"}, "class Grader:\n    pass\n")
    record = _run(run_dir)
    assert record.grading_error_text == "TypeError: Grader is not a CodingChallenge subclass"


def test_load_registered_grading_class():
    from gradebox.challenge import CodingChallenge

    # any importable subclass works; the abstract base itself qualifies
    assert load_grading_class("gradebox.challenge:CodingChallenge") is CodingChallenge
    with pytest.raises(ImportError):
        load_grading_class("NoModulePath")


def test_excepthook_prints_message_before_trace(capsys):
    try:
        raise ValueError("boom")
    except ValueError as e:
        _excepthook(type(e), e, e.__traceback__)
    err = capsys.readouterr().err
    assert err.startswith(f"ValueError: boom\n{STACK_TRACE_MARKER}\n")


def test_result_written_to_run_directory_after_chdir(run_dir, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp("elsewhere")
    source = f"import os\nos.chdir({str(elsewhere)!r})\nprint('Hello')\n"
    _prepare(run_dir, {"index.py": source}, PASSING)
    assert _run(run_dir) == ExecutionRecord(output_text="Hello\n")
    assert not (elsewhere / RESULT_FILENAME).exists()
