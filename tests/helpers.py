"""Task doubles shared by the test modules."""

from collections.abc import Mapping, Sequence
from typing import Any

from dsk.task import Task


class DepTask(Task[Any]):
    """Task with fixed dependencies that returns None."""

    def __init__(self, dependencies: Sequence[str] = ()) -> None:
        self._dependencies = tuple(dependencies)

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self._dependencies

    def execute(self, dependency_results: Mapping[str, Any]) -> Any:
        return None


class CountingTask(Task[Any]):
    """Task that records every invocation and the snapshot it was given."""

    def __init__(self, value: Any = None, dependencies: Sequence[str] = ()) -> None:
        self.value = value
        self._dependencies = tuple(dependencies)
        self.calls: list[dict[str, Any]] = []

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self._dependencies

    def execute(self, dependency_results: Mapping[str, Any]) -> Any:
        self.calls.append(dict(dependency_results))
        return self.value


class FlakyTask(Task[Any]):
    """Task that raises until `failures` attempts have been made."""

    def __init__(self, value: Any, failures: int = 1) -> None:
        self.value = value
        self.failures = failures
        self.attempts = 0

    def execute(self, dependency_results: Mapping[str, Any]) -> Any:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError(f"attempt {self.attempts} failed")
        return self.value
