"""DSK error types.

Every failure raised by the library derives from ExecuteError, so callers
can catch the whole family with a single except clause.
"""

from __future__ import annotations

from collections.abc import Sequence


class ExecuteError(Exception):
    """Base error for task insertion and evaluation."""


class MissingDependencyError(ExecuteError):
    """A key referenced during resolution or culling is not in the graph.

    Attributes:
        key: The absent key.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key {key} is not a key in the graph")


class NullTaskError(ExecuteError):
    """A NullTask was executed.

    NullTasks only fill the task slot of nodes seeded with a result,
    so reaching one means a structural slot was run instead of a real task.
    """

    def __init__(self) -> None:
        super().__init__("Attempted to execute a NULL Task")


class CyclicDependencyError(ExecuteError):
    """A circular dependency chain was detected.

    Attributes:
        path: Keys from the walk root to the repeated key, inclusive.
    """

    def __init__(self, path: Sequence[str]) -> None:
        self.path = tuple(path)
        chain = " -> ".join(self.path)
        super().__init__(f"A circular dependency chain: {chain} was detected")


class TaskAlreadyExistsError(ExecuteError):
    """Inserting would overwrite an existing task.

    Attributes:
        key: The duplicate key.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"A Task with the key: {key} already exists")
