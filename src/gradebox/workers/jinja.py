"""Jinja worker: render the entry point as a template.

Templates can check themselves with the ``validate(condition, message)`` and
``fail(message)`` globals; those become validation failures, every other
rendering problem is a language error.
"""

from __future__ import annotations

from typing import Any, NoReturn

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from gradebox.record import ExecutionRecord
from gradebox.workers.base import BaseWorker

TEMPLATE_SUFFIXES = (".j2", ".jinja", ".jinja2", ".html", ".txt")


class TemplateValidationError(Exception):
    """Raised by validation helpers called from inside a template."""


def _fail(message: str) -> NoReturn:
    raise TemplateValidationError(message)


def _validate(condition: Any, message: str = "Template validation failed") -> str:
    if not condition:
        _fail(message)
    return ""


class JinjaWorker(BaseWorker):
    def name(self) -> str:
        return "jinja"

    def supports(self, filename: str, context: dict[str, Any]) -> bool:
        return filename.endswith(TEMPLATE_SUFFIXES)

    def _environment(self, files: dict[str, str]) -> Environment:
        # the loader only ever sees this run's files
        env = Environment(
            loader=DictLoader(files),
            undefined=StrictUndefined,
            cache_size=0,
            auto_reload=False,
            extensions=["jinja2.ext.debug"],
        )
        env.globals.update(validate=_validate, fail=_fail)
        return env

    def execute(
        self,
        files: dict[str, str],
        entry_point: str,
        context: dict[str, Any],
    ) -> ExecutionRecord:
        env = self._environment(files)
        try:
            output = env.get_template(entry_point).render(**context)
        except TemplateValidationError as e:
            return ExecutionRecord(validation_failures=[str(e)])
        except TemplateSyntaxError as e:
            return ExecutionRecord(
                language_error_text=f"{e.message} in {e.name or entry_point} on line {e.lineno}"
            )
        except TemplateError as e:
            return ExecutionRecord(language_error_text=f"{type(e).__name__}: {e.message}")
        except Exception as e:
            return ExecutionRecord(language_error_text=f"{type(e).__name__}: {e}")
        return ExecutionRecord(output_text=output)
