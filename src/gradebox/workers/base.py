from __future__ import annotations

import importlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from gradebox.errors import DuplicateWorkerError, UnknownWorkerError
from gradebox.record import ExecutionRecord


class BaseWorker(ABC):
    """One execution mode. ``execute`` only ever runs inside the child process."""

    @abstractmethod
    def name(self) -> str:
        """Execution-mode name challenges refer to."""
        ...

    @abstractmethod
    def supports(self, filename: str, context: dict[str, Any]) -> bool:
        """Whether this worker can run filename as an entry point."""
        ...

    @abstractmethod
    def execute(
        self,
        files: dict[str, str],
        entry_point: str,
        context: dict[str, Any],
    ) -> ExecutionRecord:
        """Run entry_point from the current directory and record what happened."""
        ...


@dataclass(frozen=True)
class WorkerDescriptor:
    name: str
    supports: Callable[[str, dict[str, Any]], bool]
    execution_mode: str

    @classmethod
    def for_worker(cls, worker_cls: type[BaseWorker]) -> WorkerDescriptor:
        worker = worker_cls()
        return cls(
            name=worker.name(),
            supports=worker.supports,
            execution_mode=f"{worker_cls.__module__}:{worker_cls.__qualname__}",
        )


def load_worker(execution_mode: str) -> BaseWorker:
    """Import and instantiate the worker named by a ``module:Class`` path."""
    module_name, _, class_name = execution_mode.partition(":")
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in class_name.split("."):
        obj = getattr(obj, part)
    if not (isinstance(obj, type) and issubclass(obj, BaseWorker)):
        raise TypeError(f"{execution_mode} is not a BaseWorker subclass")
    return obj()


class WorkerRegistry:
    """Name-keyed execution strategies, filled at startup then frozen."""

    def __init__(self) -> None:
        self._workers: dict[str, WorkerDescriptor] = {}
        self._frozen = False

    def register(self, descriptor: WorkerDescriptor) -> None:
        if self._frozen:
            raise RuntimeError("Worker registry is frozen; register workers at startup")
        if descriptor.name in self._workers:
            raise DuplicateWorkerError(descriptor.name)
        self._workers[descriptor.name] = descriptor

    def resolve(self, name: str) -> WorkerDescriptor:
        descriptor = self._workers.get(name)
        if descriptor is None:
            raise UnknownWorkerError(name, self.names())
        return descriptor

    def freeze(self) -> WorkerRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return sorted(self._workers)

    def __contains__(self, name: object) -> bool:
        return name in self._workers
