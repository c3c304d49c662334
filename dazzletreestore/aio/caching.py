"""
Caching child loader for DazzleTreeStore.

Provides a transparent caching layer that can wrap any child loader, so a
folder that is loaded again (after a reset, a restore, or in another session
sharing the loader) does not hit the data source twice within the TTL.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

from cachetools import TTLCache

from ..core.errors import LoadFailedError
from ..core.node import TreeNode
from .loader import AsyncChildLoader


class CachingChildLoader(AsyncChildLoader):
    """
    Optional caching layer for any child loader.

    Caches each folder's children by folder id. Uses Future-based
    coordination so concurrent requests for the same folder share one
    fetch instead of issuing duplicates.

    Example:
        base_loader = CallableChildLoader(fetch_from_api)
        cached_loader = CachingChildLoader(base_loader, max_size=5000)
        session = TreeSession(tree, loader=cached_loader)
    """

    def __init__(
        self,
        base_loader: AsyncChildLoader,
        max_size: int = 1000,
        ttl: float = 300.0  # 5 minutes
    ):
        """
        Initialize caching loader.

        Args:
            base_loader: The underlying loader to wrap
            max_size: Maximum number of cached folder responses
            ttl: Time-to-live for cache entries in seconds
        """
        super().__init__(max_concurrent=base_loader.max_concurrent)
        self._loader = base_loader
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)
        self._loads_in_progress: Dict[str, asyncio.Future] = {}

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    @property
    def base_loader(self) -> AsyncChildLoader:
        return self._loader

    async def fetch_children(self, node_id: str) -> Iterable[TreeNode]:
        return await self._loader.load_children(node_id)

    async def load_children(self, node_id: str) -> List[TreeNode]:
        """
        Get children with caching and async coordination.

        This method:
        1. Joins a fetch already in progress for the same folder
        2. Checks the cache for an existing response
        3. Fetches from the wrapped loader on a miss
        4. Shares the result (or failure) with all waiting tasks
        """
        # 1. Check if a fetch is already in progress
        in_progress = self._loads_in_progress.get(node_id)
        if in_progress is not None:
            self.concurrent_waits += 1
            children = await asyncio.shield(in_progress)
            return list(children)

        # 2. Check cache
        cached = self._cache.get(node_id)
        if cached is not None:
            self.cache_hits += 1
            return list(cached)

        # 3. Cache miss - fetch
        self.cache_misses += 1
        future = asyncio.get_running_loop().create_future()
        self._loads_in_progress[node_id] = future

        try:
            self.load_count += 1
            children: Tuple[TreeNode, ...] = tuple(await self.fetch_children(node_id))
        except asyncio.CancelledError:
            future.set_exception(LoadFailedError(node_id, f"Load of '{node_id}' was cancelled"))
            future.exception()  # Mark retrieved when nobody is waiting
            raise
        except Exception as e:
            future.set_exception(e)
            future.exception()
            raise
        else:
            self._cache[node_id] = children
            future.set_result(children)
            return list(children)
        finally:
            self._loads_in_progress.pop(node_id, None)

    def invalidate(self, node_id: Optional[str] = None) -> int:
        """
        Drop cached responses.

        Args:
            node_id: Folder to forget (None = forget everything)

        Returns:
            Number of entries removed
        """
        if node_id is None:
            count = len(self._cache)
            self._cache.clear()
            return count
        if node_id in self._cache:
            del self._cache[node_id]
            return 1
        return 0

    def is_cached(self, node_id: str) -> bool:
        return node_id in self._cache

    async def get_stats(self) -> dict:
        stats = await super().get_stats()
        stats.update({
            'cache_size': len(self._cache),
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'concurrent_waits': self.concurrent_waits,
            'base_loader': await self._loader.get_stats(),
        })
        return stats

    async def close(self):
        self._cache.clear()
        await self._loader.close()
