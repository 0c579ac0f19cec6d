from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from junitparser import Error, Failure, JUnitXml, TestCase, TestSuite

from gradebox.verdict import GradingError, LanguageError, Success, ValidationFailures

if TYPE_CHECKING:
    from gradebox.runner import GradingOutcome


def _case(outcome: GradingOutcome) -> TestCase:
    case = TestCase(outcome.challenge_id)
    case.classname = "gradebox"
    verdict = outcome.verdict

    if outcome.error is not None:
        case.result = [Error(str(outcome.error), type(outcome.error).__name__)]
    elif isinstance(verdict, LanguageError):
        case.result = [Failure(verdict.message, "LanguageError")]
    elif isinstance(verdict, ValidationFailures):
        case.result = [Failure(message, "ValidationFailure") for message in verdict.messages]
    elif isinstance(verdict, GradingError):
        case.result = [Error(verdict.message, "GradingError")]
    elif isinstance(verdict, Success):
        case.system_out = verdict.output
    return case


def write_junit(path: Path, outcomes: list[GradingOutcome]) -> Path:
    """Write one suite with a test case per graded challenge, return path."""
    suite = TestSuite("gradebox")
    for outcome in outcomes:
        suite.add_testcase(_case(outcome))
    suite.update_statistics()

    xml = JUnitXml()
    xml.append(suite)
    path.parent.mkdir(parents=True, exist_ok=True)
    xml.write(str(path), pretty=True)
    return path
