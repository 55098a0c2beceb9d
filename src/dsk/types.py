"""Pure data types for dsk."""

from enum import Enum, auto


class NodeState(Enum):
    """Memoizing node lifecycle states.

    State transitions:
        UNCOMPUTED -> COMPUTED
    """

    UNCOMPUTED = auto()  # No result yet, task not (successfully) run
    COMPUTED = auto()  # Result stored, task will not run again
