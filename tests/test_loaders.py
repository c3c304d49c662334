"""
Tests for child loaders and the caching loader.
"""

import asyncio

import pytest

from dazzletreestore.aio import (
    CallableChildLoader,
    CachingChildLoader,
    MockChildLoader,
)
from dazzletreestore.core import TreeNode


class ConcurrencyProbe:
    """Async loader function that records how many calls overlap."""

    def __init__(self, delay: float = 0.02):
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0

    async def __call__(self, node_id):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            return [TreeNode.leaf(f"{node_id}-child", "child.txt")]
        finally:
            self.active -= 1


class TestMockChildLoader:

    @pytest.mark.asyncio
    async def test_serves_data(self, mock_loader):
        children = await mock_loader.load_children("9")
        assert [c.id for c in children] == ["10", "11"]
        assert mock_loader.requested_ids == ["9"]
        assert mock_loader.load_count == 1

    @pytest.mark.asyncio
    async def test_unknown_folder_is_empty(self, mock_loader):
        assert await mock_loader.load_children("nope") == []

    @pytest.mark.asyncio
    async def test_delay(self):
        loader = MockChildLoader({}, delay=0.05)
        loop = asyncio.get_running_loop()
        start = loop.time()
        await loader.load_children("x")
        assert loop.time() - start >= 0.04

    @pytest.mark.asyncio
    async def test_stats(self, mock_loader):
        await mock_loader.load_children("9")
        stats = await mock_loader.get_stats()
        assert stats == {'max_concurrent': 100, 'load_count': 1}


class TestCallableChildLoader:

    @pytest.mark.asyncio
    async def test_sync_function(self):
        loader = CallableChildLoader(lambda node_id: [TreeNode.leaf("a", node_id)])
        children = await loader.load_children("folder")
        assert children == [TreeNode.leaf("a", "folder")]

    @pytest.mark.asyncio
    async def test_async_function(self):
        async def fetch(node_id):
            return (TreeNode.leaf(f"{node_id}/{i}", str(i)) for i in range(2))

        children = await CallableChildLoader(fetch).load_children("f")
        assert [c.id for c in children] == ["f/0", "f/1"]

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        def fetch(node_id):
            raise OSError("backend down")

        with pytest.raises(OSError):
            await CallableChildLoader(fetch).load_children("f")

    @pytest.mark.asyncio
    async def test_semaphore_bounds_concurrency(self):
        probe = ConcurrencyProbe()
        loader = CallableChildLoader(probe, max_concurrent=2)
        await asyncio.gather(*(loader.load_children(str(i)) for i in range(6)))
        assert probe.calls == 6
        assert probe.max_active == 2

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with CallableChildLoader(lambda node_id: []) as loader:
            assert await loader.load_children("x") == []

    def test_repr(self):
        def fetch_folder(node_id):
            return []
        assert repr(CallableChildLoader(fetch_folder)) == "CallableChildLoader(fetch_folder)"


class TestCachingChildLoader:

    @pytest.mark.asyncio
    async def test_second_load_hits_cache(self, mock_loader):
        loader = CachingChildLoader(mock_loader)
        first = await loader.load_children("9")
        second = await loader.load_children("9")

        assert first == second
        assert mock_loader.requested_ids == ["9"]
        assert loader.cache_misses == 1
        assert loader.cache_hits == 1
        assert loader.is_cached("9")

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, mock_loader):
        mock_loader.delay = 0.05
        loader = CachingChildLoader(mock_loader)

        results = await asyncio.gather(*(loader.load_children("9") for _ in range(3)))

        assert mock_loader.requested_ids == ["9"]
        assert loader.concurrent_waits == 2
        assert results[0] == results[1] == results[2]

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        attempts = []

        def flaky(node_id):
            attempts.append(node_id)
            if len(attempts) == 1:
                raise ConnectionError("first call fails")
            return [TreeNode.leaf("ok", "ok")]

        loader = CachingChildLoader(CallableChildLoader(flaky))
        with pytest.raises(ConnectionError):
            await loader.load_children("f")
        assert not loader.is_cached("f")

        assert [c.id for c in await loader.load_children("f")] == ["ok"]
        assert attempts == ["f", "f"]

    @pytest.mark.asyncio
    async def test_waiters_see_the_failure(self):
        async def failing(node_id):
            await asyncio.sleep(0.02)
            raise ConnectionError("down")

        loader = CachingChildLoader(CallableChildLoader(failing))
        results = await asyncio.gather(loader.load_children("f"), loader.load_children("f"),
                                       return_exceptions=True)
        assert all(isinstance(r, ConnectionError) for r in results)

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, mock_loader):
        loader = CachingChildLoader(mock_loader, ttl=0.05)
        await loader.load_children("9")
        await asyncio.sleep(0.1)
        await loader.load_children("9")
        assert mock_loader.requested_ids == ["9", "9"]

    @pytest.mark.asyncio
    async def test_invalidate(self, mock_loader):
        loader = CachingChildLoader(mock_loader)
        await loader.load_children("9")
        await loader.load_children("10")

        assert loader.invalidate("9") == 1
        assert loader.invalidate("9") == 0
        assert not loader.is_cached("9")
        assert loader.invalidate() == 1
        assert not loader.is_cached("10")

    @pytest.mark.asyncio
    async def test_returned_lists_are_independent(self, mock_loader):
        loader = CachingChildLoader(mock_loader)
        first = await loader.load_children("9")
        first.clear()
        assert len(await loader.load_children("9")) == 2

    @pytest.mark.asyncio
    async def test_stats(self, mock_loader):
        loader = CachingChildLoader(mock_loader)
        await loader.load_children("9")
        await loader.load_children("9")
        stats = await loader.get_stats()

        assert stats['cache_size'] == 1
        assert stats['cache_hits'] == 1
        assert stats['cache_misses'] == 1
        assert stats['base_loader']['load_count'] == 1

    @pytest.mark.asyncio
    async def test_close_clears_cache(self, mock_loader):
        loader = CachingChildLoader(mock_loader)
        await loader.load_children("9")
        await loader.close()
        assert not loader.is_cached("9")
