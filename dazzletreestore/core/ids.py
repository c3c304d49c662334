"""Fresh identifier generation for inserted nodes.

Ids are never reused: both generators only ever move forward, so an id
freed by a delete cannot come back.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from .node import TreeNode
from .queries import iter_nodes


class IdGenerator(ABC):
    """Source of fresh node identifiers."""

    @abstractmethod
    def next_id(self) -> str:
        """Return an identifier that was never returned before."""
        pass

    def __call__(self) -> str:
        return self.next_id()


class UuidIdGenerator(IdGenerator):
    """Random 128-bit ids, safe across sessions and processes."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def next_id(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex}"


class SequentialIdGenerator(IdGenerator):
    """Monotonic counter ids ("1", "2", ... or "n1", "n2", ... with a prefix).

    The counter only moves forward; ``advance_past`` skips ids already used
    by a tree without ever stepping back. Increments are guarded by a lock
    so a generator can be shared between threads.
    """

    def __init__(self, start: int = 1, prefix: str = ""):
        self.prefix = prefix
        self._next = start
        self._lock = threading.Lock()

    @property
    def next_value(self) -> int:
        return self._next

    def next_id(self) -> str:
        with self._lock:
            value = self._next
            self._next += 1
        return f"{self.prefix}{value}"

    def advance_past(self, tree: Optional[TreeNode]) -> None:
        """Make sure no id numbered like the ones in ``tree`` is handed out.

        Ids that do not match ``prefix`` followed by ASCII digits are ignored.
        """
        highest = 0
        for node in iter_nodes(tree):
            if not node.id.startswith(self.prefix):
                continue
            suffix = node.id[len(self.prefix):]
            if suffix.isascii() and suffix.isdigit():
                highest = max(highest, int(suffix))
        with self._lock:
            self._next = max(self._next, highest + 1)

    @classmethod
    def seeded_from(cls, tree: Optional[TreeNode], prefix: str = "") -> "SequentialIdGenerator":
        """Create a generator that continues past every numeric id in ``tree``."""
        generator = cls(start=1, prefix=prefix)
        generator.advance_past(tree)
        return generator
