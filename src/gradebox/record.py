"""The side-channel record written by the harness inside the isolated directory."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

RESULT_FILENAME = "result.json"


class ExecutionRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    output_text: str = ""
    language_error_text: str = ""
    grading_error_text: str = ""
    validation_failures: list[str] = []

    @model_validator(mode="after")
    def at_most_one_error(self) -> "ExecutionRecord":
        populated = [
            name
            for name, value in (
                ("language_error_text", self.language_error_text),
                ("grading_error_text", self.grading_error_text),
                ("validation_failures", self.validation_failures),
            )
            if value
        ]
        if len(populated) > 1:
            raise ValueError(
                f"at most one error field may be set, got: {', '.join(populated)}"
            )
        return self

    @property
    def has_error(self) -> bool:
        return bool(
            self.language_error_text
            or self.grading_error_text
            or self.validation_failures
        )

    def write(self, directory: Path) -> Path:
        path = Path(directory) / RESULT_FILENAME
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path
