"""Async child loader abstraction.

A child loader is the external data source behind lazy folders: it is asked
for the children of one folder the first time that folder is expanded. The
loader knows nothing about the tree value; the session grafts whatever it
returns.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..core.node import TreeNode


class AsyncChildLoader(ABC):
    """Abstract base class for lazy child loaders.

    Subclasses implement ``fetch_children``; callers use ``load_children``,
    which bounds the number of fetches in flight with a semaphore.
    """

    def __init__(self, max_concurrent: int = 100):
        """Initialize loader with concurrency control.

        Args:
            max_concurrent: Maximum concurrent fetches
        """
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.load_count = 0

    @abstractmethod
    async def fetch_children(self, node_id: str) -> Iterable[TreeNode]:
        """Fetch the children of folder ``node_id`` from the data source.

        Args:
            node_id: Folder being expanded

        Returns:
            Child nodes in display order (possibly none)
        """
        pass

    async def load_children(self, node_id: str) -> List[TreeNode]:
        """Fetch children under the concurrency limit.

        Returns:
            Child nodes as a list
        """
        async with self.semaphore:
            self.load_count += 1
            return list(await self.fetch_children(node_id))

    async def get_stats(self) -> dict:
        """Get loader statistics."""
        return {
            'max_concurrent': self.max_concurrent,
            'load_count': self.load_count,
        }

    async def close(self):
        """Clean up loader resources.

        Override if the loader holds connections or sessions.
        """
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


LoaderFunction = Callable[[str], Union[Iterable[TreeNode], Awaitable[Iterable[TreeNode]]]]


class CallableChildLoader(AsyncChildLoader):
    """Adapts a plain function (sync or async) into a child loader.

    Example:
        async def fetch(node_id):
            rows = await api.list_folder(node_id)
            return [TreeNode.leaf(r['id'], r['name']) for r in rows]

        loader = CallableChildLoader(fetch)
    """

    def __init__(self, func: LoaderFunction, max_concurrent: int = 100):
        super().__init__(max_concurrent=max_concurrent)
        self._func = func

    async def fetch_children(self, node_id: str) -> Iterable[TreeNode]:
        result = self._func(node_id)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        name = getattr(self._func, '__name__', repr(self._func))
        return f"CallableChildLoader({name})"


class MockChildLoader(AsyncChildLoader):
    """Serves canned children after a simulated network delay.

    Folders missing from ``data`` load as empty. Every request is recorded
    in ``requested_ids`` so tests can assert on load behaviour.
    """

    def __init__(self, data: Optional[Mapping[str, Sequence[TreeNode]]] = None,
                 delay: float = 0.0, max_concurrent: int = 100):
        """
        Args:
            data: Children to serve, keyed by folder id
            delay: Seconds to sleep before answering
            max_concurrent: Maximum concurrent fetches
        """
        super().__init__(max_concurrent=max_concurrent)
        self.data: Dict[str, Sequence[TreeNode]] = dict(data or {})
        self.delay = delay
        self.requested_ids: List[str] = []

    async def fetch_children(self, node_id: str) -> Iterable[TreeNode]:
        self.requested_ids.append(node_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.data.get(node_id, ()))
