"""Memoizing node.

A Cache wraps one task and, once the task has run successfully, its
result. After that the task is never invoked again for this node.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Generic, TypeVar

from dsk.task import FunctionTask, NullTask, Task, as_task
from dsk.types import NodeState

logger = logging.getLogger(__name__)

O = TypeVar("O")


class Cache(Generic[O]):
    """A task that caches its result once executed.

    A node always has one of the two available: a stored result, or an
    uninvoked task able to produce one. Nodes seeded with a result hold a
    NullTask in the task slot.

    A failed computation stores nothing, so the node can be retried.

    Example:
        >>> node = Cache.from_function(lambda deps: sum(range(10)))
        >>> node.get({})
        45
        >>> node.state
        <NodeState.COMPUTED: 2>
    """

    def __init__(self, task: Task[O] | Callable[[Mapping[str, O]], O]) -> None:
        self._task: Task[O] = as_task(task)
        self._result: O | None = None
        self._state = NodeState.UNCOMPUTED

    @classmethod
    def from_result(cls, result: O) -> Cache[O]:
        """Create a node with a pre-defined result."""
        node: Cache[O] = cls(NullTask())
        node._result = result
        node._state = NodeState.COMPUTED
        return node

    @classmethod
    def from_function(
        cls,
        fn: Callable[[Mapping[str, O]], O],
        dependencies: Sequence[str] = (),
    ) -> Cache[O]:
        """Create a node around a plain callable."""
        return cls(FunctionTask(fn, dependencies))

    @property
    def task(self) -> Task[O]:
        return self._task

    @property
    def state(self) -> NodeState:
        return self._state

    @property
    def is_computed(self) -> bool:
        return self._state is NodeState.COMPUTED

    @property
    def dependencies(self) -> tuple[str, ...]:
        """This node's task dependencies."""
        return self._task.dependencies

    def get(self, dependency_results: Mapping[str, O]) -> O:
        """Get the task's output, computing and storing it on first use.

        Args:
            dependency_results: Results of this node's dependencies.

        Returns:
            The stored result. Repeated calls return the same object.

        Raises:
            Exception: Whatever the task raised. Nothing is stored.
        """
        if self._state is NodeState.COMPUTED:
            return self._result  # type: ignore[return-value]

        value = self._task.execute(dependency_results)
        self._result = value
        self._state = NodeState.COMPUTED
        logger.debug("cache_stored: task=%r", self._task)
        return value

    def consume(self, dependency_results: Mapping[str, O]) -> O:
        """Return the task's output without storing it.

        Meant for a node the caller is about to discard. A stored result
        is returned as-is; otherwise the task runs and its value is
        returned directly.
        """
        if self._state is NodeState.COMPUTED:
            return self._result  # type: ignore[return-value]
        return self._task.execute(dependency_results)

    def __repr__(self) -> str:
        if self._state is NodeState.COMPUTED:
            return f"Cache(result={self._result!r})"
        return f"Cache(task={self._task!r})"
