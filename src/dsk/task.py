"""Task definitions.

A task is a unit of work producing one value from the values of the tasks
it depends on. Tasks are pure - they know nothing about graphs, caching,
or keys. The graph decides when a task runs and hands it a read-only
mapping of its dependencies' results, keyed by dependency key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from dsk.errors import NullTaskError

O = TypeVar("O")


class Task(ABC, Generic[O]):
    """A unit of work that can be executed.

    Subclasses implement execute() and may override dependencies to
    declare the keys whose results must be available first. The
    dependency list is fixed for the lifetime of the instance.

    Example:
        >>> class Double(Task[int]):
        ...     @property
        ...     def dependencies(self) -> tuple[str, ...]:
        ...         return ("base",)
        ...
        ...     def execute(self, dependency_results):
        ...         return dependency_results["base"] * 2
    """

    @abstractmethod
    def execute(self, dependency_results: Mapping[str, O]) -> O:
        """Execute this task and return its result.

        Args:
            dependency_results: Results of the tasks listed in
                dependencies, keyed by dependency key.

        Returns:
            The task's value.

        Raises:
            Exception: Any failure. The error propagates unchanged to
                whoever asked for the value.
        """

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Keys of the tasks this task depends on."""
        return ()


class FunctionTask(Task[O]):
    """Wraps a plain callable as a task.

    The callable receives the dependency results mapping and returns the
    task's value.

    Args:
        fn: Callable accepting the dependency results mapping.
        dependencies: Keys this task depends on.

    Example:
        >>> task = FunctionTask(lambda deps: deps["a"] + deps["b"], ["a", "b"])
    """

    def __init__(
        self,
        fn: Callable[[Mapping[str, O]], O],
        dependencies: Sequence[str] = (),
    ) -> None:
        if isinstance(dependencies, str):
            raise TypeError("dependencies must be a sequence of keys, not a single string")
        self._fn = fn
        self._dependencies = tuple(dependencies)

    @property
    def fn(self) -> Callable[[Mapping[str, O]], O]:
        return self._fn

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self._dependencies

    def execute(self, dependency_results: Mapping[str, O]) -> O:
        return self._fn(dependency_results)

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"FunctionTask({name}, dependencies={list(self._dependencies)})"


@dataclass(frozen=True)
class ValueTask(Task[O]):
    """A task that always produces the same value."""

    value: O

    def execute(self, dependency_results: Mapping[str, O]) -> O:
        return self.value


class NullTask(Task[Any]):
    """A task that does nothing.

    Executing it raises NullTaskError. It is used for structural purposes,
    filling the task slot of a node whose result was supplied directly.
    """

    def execute(self, dependency_results: Mapping[str, Any]) -> Any:
        raise NullTaskError()

    def __repr__(self) -> str:
        return "NullTask()"


def as_task(obj: Task[O] | Callable[[Mapping[str, O]], O]) -> Task[O]:
    """Coerce obj into a Task.

    Tasks are returned unchanged; any other callable is wrapped in a
    FunctionTask without dependencies.

    Raises:
        TypeError: If obj is neither a Task nor callable.
    """
    if isinstance(obj, Task):
        return obj
    if callable(obj):
        return FunctionTask(obj)
    raise TypeError(f"Expected a Task or a callable, got {type(obj).__name__}")
