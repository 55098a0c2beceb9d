"""dsk - Memoizing task-dependency graphs.

A simple task execution and dependency management library, reminiscent
of dask's task graphs. Register named tasks that depend on other tasks
by key, then resolve any key: its dependencies run first, in dependency
order, and every result is computed at most once.

Pure in-process primitives - no threads, no events, no persistence.

Classes:
    DSK: Graph container mapping keys to memoizing nodes.
    Cache: Memoizing node wrapping one task.
    Task: Base class for units of work.
    FunctionTask: Adapter turning a callable into a task.
    ValueTask: Task returning a fixed value.
    NullTask: Placeholder that fails if executed.

Example:
    >>> from dsk import DSK, FunctionTask
    >>>
    >>> dsk = DSK()
    >>> dsk.add_task("numbers", lambda deps: list(range(10)))
    >>> dsk.add_task("total", FunctionTask(lambda deps: sum(deps["numbers"]), ["numbers"]))
    >>> dsk.get("total")
    45
"""

from dsk.__version__ import __version__
from dsk.cache import Cache
from dsk.errors import (
    CyclicDependencyError,
    ExecuteError,
    MissingDependencyError,
    NullTaskError,
    TaskAlreadyExistsError,
)
from dsk.graph import DSK
from dsk.task import FunctionTask, NullTask, Task, ValueTask, as_task
from dsk.types import NodeState

__all__ = [
    "__version__",
    # Graph
    "DSK",
    "Cache",
    # Tasks
    "Task",
    "FunctionTask",
    "ValueTask",
    "NullTask",
    "as_task",
    # Types
    "NodeState",
    # Errors
    "ExecuteError",
    "MissingDependencyError",
    "NullTaskError",
    "CyclicDependencyError",
    "TaskAlreadyExistsError",
]
