"""Assemble the file tree a run executes: canonical files, overrides, bootstrap."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath

from jinja2 import Environment, PackageLoader

from gradebox.challenge import Challenge
from gradebox.record import RESULT_FILENAME
from gradebox.workers.base import WorkerRegistry

BOOTSTRAP_FILENAME = "execution.py"
SCAFFOLD_FILENAME = "execution.json"
CHALLENGE_FILENAME = "challenge_logic.py"
RESERVED_FILENAMES = frozenset(
    {BOOTSTRAP_FILENAME, SCAFFOLD_FILENAME, CHALLENGE_FILENAME, RESULT_FILENAME}
)

# directory holding the gradebox package, so the bootstrap can import it
PROJECT_PATH = str(Path(__file__).resolve().parent.parent)


@lru_cache(maxsize=1)
def _templates() -> Environment:
    return Environment(
        loader=PackageLoader("gradebox", "templates"),
        autoescape=False,
        keep_trailing_newline=True,
    )


@dataclass(frozen=True)
class AssembledFileSet:
    files: dict[str, bytes]
    bootstrap_filename: str
    entry_point: str
    canonical_filenames: tuple[str, ...]


def validate_filename(filename: str) -> None:
    path = PurePosixPath(filename)
    if not filename or path.is_absolute() or ".." in path.parts or "\\" in filename:
        raise ValueError(f"Invalid file name {filename!r}: must be a relative path")
    if filename in RESERVED_FILENAMES:
        raise ValueError(f"File name {filename!r} is reserved by gradebox")


def merge_files(challenge: Challenge) -> dict[str, bytes]:
    """Canonical files, each replaced by the candidate's version when one was sent."""
    files: dict[str, bytes] = {}
    for filename in challenge.files.filenames():
        validate_filename(filename)
        if filename in challenge.input_files:
            files[filename] = challenge.input_files[filename]
        else:
            files[filename] = challenge.files.default_content(filename)
    return files


def render_bootstrap(
    challenge: Challenge, execution_mode: str, entry_point: str
) -> str:
    template = _templates().get_template("execution.py.j2")
    return template.render(
        challenge_id=challenge.identifier,
        project_path=PROJECT_PATH,
        worker=execution_mode,
        challenge_class=challenge.grading_class,
        entry_point=entry_point,
        scaffold_filename=SCAFFOLD_FILENAME,
        challenge_filename=CHALLENGE_FILENAME if challenge.grading_source else None,
        result_filename=RESULT_FILENAME,
    )


def build_file_set(
    challenge: Challenge,
    registry: WorkerRegistry,
    logger: logging.Logger | None = None,
) -> AssembledFileSet:
    """Resolve the worker and assemble every file the run needs.

    Raises UnknownWorkerError before anything touches the filesystem.
    """
    logger = logger or logging.getLogger("gradebox")
    descriptor = registry.resolve(challenge.execution_mode)
    logger.debug(
        f"Challenge '{challenge.identifier}' uses worker '{descriptor.name}' "
        f"({descriptor.execution_mode})"
    )

    entry_point = challenge.files.entry_point_filename()
    if not descriptor.supports(entry_point, {}):
        logger.warning(
            f"Worker '{descriptor.name}' does not declare support for entry point '{entry_point}'"
        )

    files = merge_files(challenge)
    if entry_point not in files:
        raise ValueError(f"Entry point {entry_point!r} is not part of the file set")

    ignored = sorted(set(challenge.input_files) - set(files))
    if ignored:
        logger.debug(f"Ignoring input files not in the challenge: {', '.join(ignored)}")

    canonical = tuple(files)
    scaffold = {
        "challenge": challenge.identifier,
        "worker": descriptor.name,
        "entry_point": entry_point,
        "files": list(canonical),
    }
    files[SCAFFOLD_FILENAME] = json.dumps(scaffold, indent=2).encode("utf-8")
    if challenge.grading_source:
        files[CHALLENGE_FILENAME] = challenge.grading_source.encode("utf-8")
    files[BOOTSTRAP_FILENAME] = render_bootstrap(
        challenge, descriptor.execution_mode, entry_point
    ).encode("utf-8")

    return AssembledFileSet(
        files=files,
        bootstrap_filename=BOOTSTRAP_FILENAME,
        entry_point=entry_point,
        canonical_filenames=canonical,
    )
