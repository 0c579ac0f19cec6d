from __future__ import annotations

from pathlib import Path

import yaml
from expandvars import expandvars
from pydantic import BaseModel, ConfigDict, Field, field_validator

from gradebox.challenge import Challenge, FileBuilder


class RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    timeout_ms: int = Field(default=10_000, gt=0)
    keep_artifacts: bool = False
    work_dir: str | None = None
    python: str | None = None
    env: dict[str, str] = {}

    @field_validator("env")
    @classmethod
    def expand_env(cls, v: dict[str, str]) -> dict[str, str]:
        """Expand ${VAR} references, reporting every missing variable at once."""
        expanded: dict[str, str] = {}
        missing: list[str] = []
        for key, value in v.items():
            try:
                expanded[key] = expandvars(value, nounset=True)
            except Exception:
                missing.append(f"  {key}={value}")
        if missing:
            details = "\n".join(missing)
            raise ValueError(f"Missing environment variables:\n{details}")
        return expanded

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class GradingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    class_name: str = Field(alias="class")
    source: str | None = None


class ChallengeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    execution_mode: str
    entry_point: str
    files: str
    grading: GradingConfig

    @field_validator("id")
    @classmethod
    def id_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id must not be empty")
        return v

    @field_validator("files")
    @classmethod
    def expand_files(cls, v: str) -> str:
        return expandvars(v)


def _resolve(base: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


def load_challenge(path: Path) -> Challenge:
    """Load a challenge definition from YAML.

    Relative ``files`` and ``grading.source`` paths are resolved against the
    YAML file's directory.
    """
    config_dir = path.parent.resolve()

    with open(path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path} does not contain a challenge mapping")

    config = ChallengeConfig(**raw)

    files = FileBuilder.from_directory(
        _resolve(config_dir, config.files), config.entry_point
    )
    source = None
    if config.grading.source is not None:
        source = _resolve(config_dir, expandvars(config.grading.source)).read_text()

    return Challenge(
        identifier=config.id,
        execution_mode=config.execution_mode,
        files=files,
        grading_class=config.grading.class_name,
        grading_source=source,
    )
