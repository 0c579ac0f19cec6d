"""Pytest configuration and fixtures."""

import logging
import textwrap

import pytest

from gradebox.challenge import Challenge, FileBuilder
from gradebox.config import RunConfig
from gradebox.runner import Runner


@pytest.fixture(autouse=True)
def cleanup_loggers():
    """Clean up gradebox loggers after each test to prevent name collisions."""
    yield

    loggers_to_remove = [
        name
        for name in logging.Logger.manager.loggerDict.keys()
        if name.startswith("gradebox")
    ]

    for name in loggers_to_remove:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        del logging.Logger.manager.loggerDict[name]


OUTPUT_GRADER = textwrap.dedent("""\
    from gradebox.challenge import CodingChallenge


    class OutputChallenge(CodingChallenge):
        def grade(self, result):
            result.assert_output_contains("Hello")
""")


@pytest.fixture
def make_challenge():
    """Build a Challenge from inline files and grading source."""

    def _make(
        files: dict[str, str] | None = None,
        entry_point: str = "index.py",
        execution_mode: str = "python",
        grading_source: str | None = OUTPUT_GRADER,
        grading_class: str = "OutputChallenge",
        identifier: str = "hello",
    ) -> Challenge:
        builder = FileBuilder()
        for name, content in (files or {"index.py": "print('')\n"}).items():
            builder.add_file(name, content, entry_point=name == entry_point)
        return Challenge(
            identifier=identifier,
            execution_mode=execution_mode,
            files=builder,
            grading_class=grading_class,
            grading_source=grading_source,
        )

    return _make


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "runs"
    path.mkdir()
    return path


@pytest.fixture
def runner(work_dir):
    return Runner(RunConfig(timeout_ms=20_000, work_dir=str(work_dir)))
