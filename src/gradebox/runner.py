from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

from gradebox.challenge import Challenge
from gradebox.classifier import classify, read_record
from gradebox.config import RunConfig
from gradebox.errors import (
    ExecutionEnvironmentError,
    ExecutionTimeoutError,
    GradeboxError,
)
from gradebox.executor import CodeExecutor
from gradebox.scaffold import build_file_set
from gradebox.verdict import Verdict
from gradebox.workers import default_registry
from gradebox.workers.base import WorkerRegistry


@dataclass
class GradingOutcome:
    challenge_id: str
    verdict: Verdict | None = None
    error: GradeboxError | None = None


class Runner:
    """Grades submissions: assemble, execute, classify."""

    def __init__(
        self,
        config: RunConfig | None = None,
        registry: WorkerRegistry | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config or RunConfig()
        self.registry = registry if registry is not None else default_registry()
        self.logger = logger or logging.getLogger("gradebox")
        if not self.registry.frozen:
            self.registry.freeze()

    def _executor(self) -> CodeExecutor:
        return CodeExecutor(
            timeout=self.config.timeout_seconds,
            python=self.config.python,
            base_dir=self.config.work_dir,
            env=self.config.env,
            logger=self.logger,
        )

    def run(
        self,
        challenge: Challenge,
        override_files: dict[str, str | bytes] | None = None,
    ) -> Verdict:
        """Grade one submission.

        Bad submissions come back as a Verdict; infrastructure problems
        (unknown worker, missing interpreter, timeout) raise GradeboxError.
        """
        overrides = {
            filename: content.encode("utf-8") if isinstance(content, str) else content
            for filename, content in (override_files or {}).items()
        }
        # per-run copy; the shared challenge never sees this candidate's files
        challenge = replace(challenge, input_files={**challenge.input_files, **overrides})

        self.logger.debug(f"Grading challenge '{challenge.identifier}'")
        file_set = build_file_set(challenge, self.registry, logger=self.logger)

        executor = self._executor()
        try:
            capture = executor.execute(file_set)
        except ExecutionEnvironmentError as e:
            if e.directory is not None and not self.config.keep_artifacts:
                executor.remove_directory(e.directory)
            raise
        except ExecutionTimeoutError as e:
            self.logger.warning(
                f"Challenge '{challenge.identifier}' timed out after {e.timeout_seconds:g}s"
            )
            if e.capture is not None and not self.config.keep_artifacts:
                executor.cleanup(e.capture)
            raise

        try:
            record = read_record(capture.code_directory, logger=self.logger)
            verdict = classify(capture, record, logger=self.logger)
        finally:
            if self.config.keep_artifacts:
                self.logger.debug(f"Keeping run directory {capture.code_directory}")
            else:
                executor.cleanup(capture)

        self.logger.debug(
            f"Challenge '{challenge.identifier}' graded: {verdict.kind}"
        )
        return verdict

    def run_many(
        self,
        submissions: list[tuple[Challenge, dict[str, str | bytes] | None]],
        parallel: int = 1,
    ) -> list[GradingOutcome]:
        """Grade several submissions concurrently, keeping input order."""

        def _grade(challenge: Challenge, overrides) -> GradingOutcome:
            try:
                return GradingOutcome(challenge.identifier, verdict=self.run(challenge, overrides))
            except GradeboxError as e:
                self.logger.error(
                    f"Challenge '{challenge.identifier}' could not be graded: {e}"
                )
                return GradingOutcome(challenge.identifier, error=e)

        with ThreadPoolExecutor(max_workers=parallel) as pool:
            futures = [pool.submit(_grade, c, o) for c, o in submissions]
            return [f.result() for f in futures]
