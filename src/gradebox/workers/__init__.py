from functools import lru_cache

from gradebox.workers.base import (
    BaseWorker,
    WorkerDescriptor,
    WorkerRegistry,
    load_worker,
)
from gradebox.workers.jinja import JinjaWorker
from gradebox.workers.python import PythonWorker

_WORKERS: tuple[type[BaseWorker], ...] = (
    PythonWorker,
    JinjaWorker,
)


def build_registry(*extra: type[BaseWorker]) -> WorkerRegistry:
    """Register the built-in workers plus extra ones, then freeze."""
    registry = WorkerRegistry()
    for worker_cls in (*_WORKERS, *extra):
        registry.register(WorkerDescriptor.for_worker(worker_cls))
    return registry.freeze()


@lru_cache(maxsize=1)
def default_registry() -> WorkerRegistry:
    return build_registry()


__all__ = [
    "BaseWorker",
    "JinjaWorker",
    "PythonWorker",
    "WorkerDescriptor",
    "WorkerRegistry",
    "build_registry",
    "default_registry",
    "load_worker",
]
