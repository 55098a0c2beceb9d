"""DSK graph container and resolution."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from graphlib import TopologicalSorter
from types import MappingProxyType
from typing import Generic, TypeVar, Union

from dsk.cache import Cache
from dsk.errors import CyclicDependencyError, MissingDependencyError, TaskAlreadyExistsError
from dsk.task import Task

logger = logging.getLogger(__name__)

O = TypeVar("O")

TaskLike = Union[Task[O], Callable[[Mapping[str, O]], O]]


class DSK(Generic[O]):
    """Directed acyclic graph of memoized tasks.

    Maps task keys to Cache nodes. Edges are implicit: a task's declared
    dependency keys. A dependency may be inserted after its dependent;
    until it exists it is simply skipped by the cycle check and reported
    as missing on resolution.

    The graph is acyclic at all times. An insertion that would close a
    cycle is rolled back and raises CyclicDependencyError.

    Example:
        >>> dsk = DSK()
        >>> dsk.add_task("base", lambda deps: 20)
        >>> dsk.add_task("double", FunctionTask(lambda deps: deps["base"] * 2, ["base"]))
        >>> dsk.get("double")
        40
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Cache[O]] = {}

    @classmethod
    def from_tasks(cls, tasks: Iterable[tuple[str, TaskLike[O]]]) -> DSK[O]:
        """Build a DSK from (key, task) pairs.

        Raises:
            ExecuteError: From the first insertion that fails.
        """
        dsk: DSK[O] = cls()
        for key, task in tasks:
            dsk.add_task(key, task)
        return dsk

    def add_task(self, key: str, task: TaskLike[O]) -> None:
        """Add a task to the DSK.

        Plain callables are wrapped in a FunctionTask without dependencies.

        Args:
            key: Unique key for the task.
            task: The task, or a callable of the dependency results.

        Raises:
            TaskAlreadyExistsError: If key is already present.
            CyclicDependencyError: If the task closes a dependency cycle.
                The DSK is left unchanged.
        """
        self._insert(key, Cache(task))

    def add_result(self, key: str, result: O) -> None:
        """Add a node whose result is already known.

        Raises:
            TaskAlreadyExistsError: If key is already present.
        """
        self._insert(key, Cache.from_result(result))

    def _insert(self, key: str, node: Cache[O]) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Task keys must be strings, got {type(key).__name__}")

        if key in self._nodes:
            logger.warning("task_rejected: key=%s reason=already_exists", key)
            raise TaskAlreadyExistsError(key)

        self._nodes[key] = node

        try:
            self.check_cyclic_dependencies(key)
        except CyclicDependencyError as e:
            del self._nodes[key]
            logger.warning("task_rejected: key=%s reason=cycle path=%s", key, list(e.path))
            raise

        logger.debug("task_added: key=%s dependencies=%s", key, list(node.dependencies))

    def remove_task(self, key: str) -> Cache[O]:
        """Remove a node and return it.

        Raises:
            MissingDependencyError: If key is not present.
        """
        try:
            node = self._nodes.pop(key)
        except KeyError:
            raise MissingDependencyError(key) from None
        logger.debug("task_removed: key=%s", key)
        return node

    def get_node(self, key: str) -> Cache[O] | None:
        """Get a node by key, or None if not found."""
        return self._nodes.get(key)

    def list_tasks(self) -> list[str]:
        """List all task keys in insertion order."""
        return list(self._nodes)

    def cull(self, keys: Iterable[str]) -> DSK[O]:
        """Cull any tasks that are not needed to resolve the given keys.

        Nodes not reachable from keys are dropped along with their cached
        results. The DSK is pruned in place, so retained nodes stay owned
        by exactly one container. Nothing is removed if a key is missing.

        Args:
            keys: Keys that must stay resolvable.

        Returns:
            This DSK, for chaining.

        Raises:
            MissingDependencyError: If a required key, or anything it
                transitively depends on, is not present.
        """
        if isinstance(keys, str):
            raise TypeError("cull() expects an iterable of keys, not a single string")

        required: set[str] = set()

        for key in keys:
            stack = [key]
            while stack:
                current = stack.pop()
                if current in required:
                    continue
                node = self._nodes.get(current)
                if node is None:
                    raise MissingDependencyError(current)
                required.add(current)
                stack.extend(reversed(node.dependencies))

        dropped = len(self._nodes) - len(required)
        self._nodes = {k: node for k, node in self._nodes.items() if k in required}

        logger.debug("dsk_culled: kept=%d dropped=%d", len(self._nodes), dropped)
        return self

    def keys_in_dsk(self, tasks: Iterable[Task[O]]) -> set[str]:
        """Keys of this DSK that any of the given tasks depend on."""
        wanted = {dep for task in tasks for dep in task.dependencies}
        return {key for key in self._nodes if key in wanted}

    def get_dependents(self, leaf: str) -> set[str]:
        """Keys of the tasks that directly depend on leaf."""
        return {key for key, node in self._nodes.items() if leaf in node.dependencies}

    def check_cyclic_dependencies(self, root: str) -> None:
        """Check for a dependency cycle reachable from root.

        Walks dependencies depth-first. A key reached again while it is
        still on the current path is a cycle. Keys fully explored are not
        walked again from sibling branches, so converging dependencies
        (diamonds) are not cycles. Keys absent from the DSK end their
        branch without error.

        Raises:
            CyclicDependencyError: With the path from root to the
                repeated key.
        """
        root_node = self._nodes.get(root)
        if root_node is None:
            return

        path = [root]
        on_path = {root}
        finished: set[str] = set()
        stack: list[Iterator[str]] = [iter(root_node.dependencies)]

        while stack:
            dep = next(stack[-1], None)

            if dep is None:
                stack.pop()
                done = path.pop()
                on_path.discard(done)
                finished.add(done)
                continue

            if dep in on_path:
                raise CyclicDependencyError([*path, dep])

            if dep in finished or dep not in self._nodes:
                continue

            path.append(dep)
            on_path.add(dep)
            stack.append(iter(self._nodes[dep].dependencies))

    def validate(self) -> list[str]:
        """Validate the DSK.

        Checks for dependencies on keys that are not present.

        Returns:
            List of error messages (empty if valid).
        """
        errors: list[str] = []
        for key, node in self._nodes.items():
            for dep in node.dependencies:
                if dep not in self._nodes:
                    errors.append(f"Task '{key}' depends on unknown task '{dep}'")
        return errors

    def execution_order(self) -> list[str]:
        """Get a topological execution order of the present keys.

        Dependencies on absent keys are ignored.

        Returns:
            List of keys, dependencies before dependents.
        """
        graph = {
            key: {dep for dep in node.dependencies if dep in self._nodes}
            for key, node in self._nodes.items()
        }
        return list(TopologicalSorter(graph).static_order())

    def get(
        self,
        task_name: str,
        dependency_cache: MutableMapping[str, O] | None = None,
    ) -> O:
        """Execute the queried task, resolving its dependencies first.

        Every resolved value, dependencies and target alike, is recorded
        in dependency_cache under its key before any dependent runs.
        Each task sees a read-only snapshot of its own dependencies'
        values.

        Args:
            task_name: Key of the task to resolve.
            dependency_cache: Mapping collecting resolved values.

        Returns:
            A deep copy of the target's memoized result. Values recorded in
            dependency_cache are deep copies too, so neither can alter what
            the nodes store.

        Raises:
            MissingDependencyError: If task_name or anything it
                transitively depends on is not present.
            TypeError: If a result cannot be deep-copied (generators, open
                files). The node keeps the result it already stored.
            Exception: Whatever a failing task raised.
        """
        cache: MutableMapping[str, O] = {} if dependency_cache is None else dependency_cache
        value = self._resolve(task_name, cache, set())
        return self._duplicate(task_name, value)

    def consume(
        self,
        task_name: str,
        dependency_cache: MutableMapping[str, O] | None = None,
    ) -> O:
        """Resolve a task and remove its node from the DSK.

        Dependencies are resolved and memoized as in get(). The target's
        value is computed without being stored, and its node is removed
        once the value is produced. On failure the node stays.

        Raises:
            MissingDependencyError: If task_name or anything it
                transitively depends on is not present.
        """
        cache: MutableMapping[str, O] = {} if dependency_cache is None else dependency_cache
        node = self._nodes.get(task_name)
        if node is None:
            raise MissingDependencyError(task_name)

        resolved: set[str] = set()
        for dep in node.dependencies:
            self._resolve(dep, cache, resolved)

        value = node.consume(self._snapshot(node, cache))
        del self._nodes[task_name]
        logger.debug("task_consumed: key=%s", task_name)
        return value

    def _resolve(
        self,
        task_name: str,
        cache: MutableMapping[str, O],
        resolved: set[str],
    ) -> O:
        if task_name in resolved:
            return cache[task_name]
        if task_name not in self._nodes:
            raise MissingDependencyError(task_name)

        stack: list[tuple[str, Iterator[str]]] = [
            (task_name, iter(self._nodes[task_name].dependencies))
        ]

        while stack:
            key, deps = stack[-1]
            dep = next(deps, None)

            if dep is not None:
                if dep in resolved:
                    continue
                if dep not in self._nodes:
                    raise MissingDependencyError(dep)
                stack.append((dep, iter(self._nodes[dep].dependencies)))
                continue

            stack.pop()
            node = self._nodes[key]
            cached = node.is_computed
            cache[key] = self._duplicate(key, node.get(self._snapshot(node, cache)))
            resolved.add(key)
            logger.debug("task_resolved: key=%s cached=%s", key, cached)

        return cache[task_name]

    @staticmethod
    def _duplicate(key: str, value: O) -> O:
        try:
            return copy.deepcopy(value)
        except TypeError as e:
            raise TypeError(f"Result of task '{key}' cannot be copied: {e}") from e

    @staticmethod
    def _snapshot(node: Cache[O], cache: Mapping[str, O]) -> Mapping[str, O]:
        return MappingProxyType({dep: cache[dep] for dep in sorted(set(node.dependencies))})

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        return f"DSK({list(self._nodes)})"
