"""Async orchestration around the pure tree operations.

TreeSession owns the current tree value and everything the pure core
deliberately leaves out: which folders are loading, which are expanded,
which node is being dragged, and when to persist. Every change goes
through a pure operation and the session swaps its reference to the result.

Lazy loading discipline:
    - one outstanding load per folder; a second request is rejected
      with LoadInProgressError
    - the loading flag is always cleared, success or failure; a reset or
      restore releases every flag at once
    - a response is grafted only if the folder still exists, is still a
      folder, is still not loaded and the tree was not reset or restored
      while the load was in flight; stale responses are dropped
"""

import asyncio
from typing import Any, Iterable, List, Optional, Set

from ..config import SessionConfig
from ..core.errors import (
    ConfigurationError,
    InvalidLabelError,
    LoadFailedError,
    LoadInProgressError,
    NotAFolderError,
    NotFoundError,
)
from ..core.ids import IdGenerator, SequentialIdGenerator
from ..core.node import TreeNode, NOT_LOADED
from ..core.operations import (
    delete_node,
    graft_lazy_children,
    insert_node,
    move_node,
    rename_node,
)
from ..core.queries import collect_ids, find_by_id, is_descendant
from ..persistence import SnapshotStore, create_initial_tree, from_dict
from .caching import CachingChildLoader
from .error_policies import FailFastPolicy, LoadErrorPolicy
from .loader import AsyncChildLoader


class TreeSession:
    """Holds the current tree and applies commands to it.

    Example:
        loader = MockChildLoader({"src": [TreeNode.leaf("a", "main.py")]})
        async with TreeSession(tree, loader=loader) as session:
            await session.expand("src")
            await session.insert("src", "util.py")
            await session.move("a", "docs")
    """

    def __init__(self,
                 tree: Optional[TreeNode] = None,
                 loader: Optional[AsyncChildLoader] = None,
                 *,
                 config: Optional[SessionConfig] = None,
                 policy: Optional[LoadErrorPolicy] = None,
                 id_generator: Optional[IdGenerator] = None,
                 store: Optional[SnapshotStore] = None):
        """
        Args:
            tree: Starting tree (a fresh tree from the config when None)
            loader: Source of children for not-yet-loaded folders
            config: Session configuration
            policy: What to do when a load fails (FailFastPolicy by default)
            id_generator: Overrides the config's id strategy
            store: Snapshot store used by save/restore and autosave

        Raises:
            ConfigurationError: the configuration does not validate
        """
        self.config = config or SessionConfig()
        problems = self.config.validate()
        if problems:
            raise ConfigurationError(problems)

        if tree is None:
            tree = self._initial_tree()
        self._tree: Optional[TreeNode] = tree
        self._generation = 0

        if loader is not None and self.config.load.cache_results \
                and not isinstance(loader, CachingChildLoader):
            loader = CachingChildLoader(loader,
                                        max_size=self.config.load.cache_max_size,
                                        ttl=self.config.load.cache_ttl)
        self._loader = loader
        self._policy = policy or FailFastPolicy()
        self._id_generator = id_generator or self.config.build_id_generator(tree)
        self._store = store
        self._load_semaphore = asyncio.Semaphore(self.config.load.max_concurrent_loads)

        self._loading: Set[str] = set()
        self._expanded: Set[str] = set()
        self._dragged_id: Optional[str] = None

    @classmethod
    def from_store(cls, store: SnapshotStore,
                   loader: Optional[AsyncChildLoader] = None,
                   **kwargs) -> 'TreeSession':
        """Start a session from the store's snapshot, or a fresh tree without one."""
        session = cls(None, loader, store=store, **kwargs)
        session.restore()
        return session

    # State

    @property
    def tree(self) -> Optional[TreeNode]:
        """Current tree value; None once the root has been deleted."""
        return self._tree

    @property
    def is_empty(self) -> bool:
        return self._tree is None

    @property
    def loader(self) -> Optional[AsyncChildLoader]:
        return self._loader

    @property
    def policy(self) -> LoadErrorPolicy:
        return self._policy

    @property
    def id_generator(self) -> IdGenerator:
        return self._id_generator

    @property
    def dragged_id(self) -> Optional[str]:
        return self._dragged_id

    def find(self, node_id: str) -> Optional[TreeNode]:
        return find_by_id(self._tree, node_id)

    def is_descendant(self, ancestor_id: str, node_id: str) -> bool:
        return is_descendant(self._tree, ancestor_id, node_id)

    def is_loading(self, node_id: str) -> bool:
        return node_id in self._loading

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    @property
    def expanded_ids(self) -> Set[str]:
        return set(self._expanded)

    def _commit(self, new_tree: Optional[TreeNode]) -> bool:
        """Swap in ``new_tree``; returns False when the operation was a no-op."""
        if new_tree is self._tree:
            return False
        self._tree = new_tree
        if self.config.autosave and self._store is not None:
            self._store.save(new_tree)
        return True

    def _initial_tree(self) -> TreeNode:
        return create_initial_tree(self.config.root_id, self.config.root_label,
                                   lazy=self.config.lazy_root)

    def _replace_tree(self, tree: Optional[TreeNode]) -> None:
        """Start over with an unrelated tree value (reset/restore)."""
        self._generation += 1
        self._loading.clear()
        self._expanded.clear()
        self._dragged_id = None
        if isinstance(self._id_generator, SequentialIdGenerator):
            self._id_generator.advance_past(tree)
        self._commit(tree)

    # Commands

    async def _ensure_loaded(self, folder_id: str) -> None:
        """Load ``folder_id`` first if it is a folder whose children never arrived."""
        folder = self.find(folder_id)
        if folder is not None and folder.is_folder and folder.children is NOT_LOADED \
                and self._loader is not None:
            await self.load_children(folder_id)

    async def insert(self, folder_id: str, label: str, is_folder: bool = False) -> TreeNode:
        """Create a folder or leaf as the last child of ``folder_id``.

        A folder that was never loaded is loaded first, so the new node
        lands next to its real siblings. The folder is expanded.

        Returns:
            The newly created node

        Raises:
            NotFoundError, NotAFolderError, InvalidLabelError: as insert_node
            LoadInProgressError: the folder is being loaded right now
            LoadFailedError: loading the folder failed
            FolderNotLoadedError: the folder is still not loaded, either
                because there is no loader or the error policy gave up
        """
        if label is None or not label.strip():
            raise InvalidLabelError(label)
        await self._ensure_loaded(folder_id)

        new_tree = insert_node(self._tree, folder_id, label, is_folder,
                               id_generator=self._id_generator)
        self._commit(new_tree)
        self._expanded.add(folder_id)
        return find_by_id(new_tree, folder_id).children[-1]

    def delete(self, node_id: str) -> bool:
        """Delete ``node_id`` and its subtree. Deleting the root empties the session.

        Returns:
            True if the tree changed
        """
        changed = self._commit(delete_node(self._tree, node_id))
        if changed:
            remaining = collect_ids(self._tree)
            self._expanded &= remaining
            if self._dragged_id is not None and self._dragged_id not in remaining:
                self._dragged_id = None
        return changed

    def rename(self, node_id: str, new_label: str) -> bool:
        """Rename ``node_id``.

        Returns:
            True if the label changed

        Raises:
            InvalidLabelError: label is empty after trimming
        """
        return self._commit(rename_node(self._tree, node_id, new_label))

    update = rename

    async def move(self, source_id: str, target_id: str) -> bool:
        """Move ``source_id`` into folder ``target_id`` as its last child.

        A target folder that was never loaded is loaded first, so the moved
        node lands after the folder's real children.

        Returns:
            True if the tree changed

        Raises:
            InvalidTargetError, CycleDetectedError: as move_node
            LoadInProgressError: the target is being loaded right now
            LoadFailedError: loading the target failed
            FolderNotLoadedError: the target is still not loaded, either
                because there is no loader or the error policy gave up
        """
        if source_id != target_id and self.find(source_id) is not None \
                and not self.is_descendant(source_id, target_id):
            await self._ensure_loaded(target_id)
        return self._commit(move_node(self._tree, source_id, target_id))

    def graft(self, node_id: str, children: Iterable[TreeNode]) -> bool:
        """Install children obtained outside the session's loader."""
        return self._commit(graft_lazy_children(self._tree, node_id, children))

    # Drag and drop

    def start_drag(self, node_id: str) -> None:
        if self.find(node_id) is None:
            raise NotFoundError(node_id)
        self._dragged_id = node_id

    async def drop(self, target_id: str) -> bool:
        """Drop the dragged node onto ``target_id``.

        The drag ends whether or not the move succeeds. Dropping onto a
        collapsed folder that was never loaded loads it first.

        Returns:
            True if the tree changed (False when nothing was being dragged)
        """
        source_id = self._dragged_id
        if source_id is None:
            return False
        self._dragged_id = None
        return await self.move(source_id, target_id)

    def end_drag(self) -> None:
        self._dragged_id = None

    # Expansion and lazy loading

    def _require_folder(self, node_id: str) -> TreeNode:
        node = self.find(node_id)
        if node is None:
            raise NotFoundError(node_id)
        if not node.is_folder:
            raise NotAFolderError(node_id)
        return node

    async def expand(self, node_id: str) -> bool:
        """Expand a folder, loading its children the first time.

        If a load is already in flight for the folder no second request
        is made. A folder whose load failed is collapsed again so the
        next expansion retries.

        Returns:
            Whether the folder ends up expanded
        """
        node = self._require_folder(node_id)
        self._expanded.add(node_id)
        if node.children is not NOT_LOADED or self._loader is None \
                or node_id in self._loading:
            return True

        generation = self._generation
        try:
            await self.load_children(node_id)
        except BaseException:
            if generation == self._generation:
                self._expanded.discard(node_id)
            raise

        if generation != self._generation:
            # Tree replaced meanwhile; leave the new view state alone
            return node_id in self._expanded
        current = self.find(node_id)
        if current is None or not current.is_loaded:
            self._expanded.discard(node_id)
            return False
        return True

    def collapse(self, node_id: str) -> None:
        self._expanded.discard(node_id)

    async def toggle(self, node_id: str) -> bool:
        """Expand a collapsed folder (loading it if needed) or collapse an expanded one.

        Returns:
            Whether the folder ends up expanded
        """
        if node_id in self._expanded:
            self._require_folder(node_id)
            self.collapse(node_id)
            return False
        return await self.expand(node_id)

    async def load_children(self, node_id: str) -> bool:
        """Fetch and graft the children of a not-yet-loaded folder.

        Returns:
            True if children were grafted; False when the folder is missing,
            already loaded, the load was given up by the policy, or the
            response went stale while in flight

        Raises:
            NotAFolderError: ``node_id`` names a leaf
            LoadInProgressError: a load for this folder is outstanding
            LoadFailedError: the loader failed and the policy propagated it
        """
        node = self.find(node_id)
        if node is None or node.is_loaded:
            return False
        if not node.is_folder:
            raise NotAFolderError(node_id)
        if node_id in self._loading:
            raise LoadInProgressError(node_id)
        if self._loader is None:
            raise LoadFailedError(node_id, f"No child loader configured to load '{node_id}'")

        generation = self._generation
        self._loading.add(node_id)
        try:
            children = await self._fetch(node_id)
        finally:
            # A reset or restore already released the flag
            if generation == self._generation:
                self._loading.discard(node_id)

        if children is None or generation != self._generation:
            return False
        current = self.find(node_id)
        if current is None or current.children is not NOT_LOADED:
            return False
        if isinstance(self._id_generator, SequentialIdGenerator):
            # Keep inserted ids clear of the ones the loader just delivered
            for child in children:
                self._id_generator.advance_past(child)
        return self._commit(graft_lazy_children(self._tree, node_id, children))

    async def _fetch(self, node_id: str) -> Optional[List[TreeNode]]:
        """Run the loader under the policy; None when the policy gives up."""
        timeout = self.config.load.timeout_seconds
        attempt = 0
        while True:
            attempt += 1
            try:
                async with self._load_semaphore:
                    if timeout is not None:
                        raw = await asyncio.wait_for(self._loader.load_children(node_id), timeout)
                    else:
                        raw = await self._loader.load_children(node_id)
                return [self._coerce_child(child) for child in raw]
            except LoadFailedError as e:
                error = e
            except asyncio.TimeoutError as e:
                error = self._load_error(node_id, e, f"Loading children of '{node_id}' "
                                                     f"timed out after {timeout}s")
            except Exception as e:
                error = self._load_error(node_id, e)

            if not await self._policy.handle(error, node_id, attempt):
                return None

    @staticmethod
    def _load_error(node_id: str, cause: BaseException,
                    message: Optional[str] = None) -> LoadFailedError:
        error = LoadFailedError(node_id, message)
        error.__cause__ = cause
        return error

    @staticmethod
    def _coerce_child(child: Any) -> TreeNode:
        """Accept loader output as TreeNode or as a serialized node document."""
        if isinstance(child, TreeNode):
            return child
        if isinstance(child, dict):
            return from_dict(child)
        raise TypeError(f"Loader returned {type(child).__name__}, expected TreeNode")

    # Persistence

    def save(self) -> bool:
        """Write the current tree to the store. Returns False without a store."""
        if self._store is None:
            return False
        self._store.save(self._tree)
        return True

    def restore(self) -> bool:
        """Replace the tree with the store's snapshot.

        Returns:
            False if there is no store or nothing was saved
        """
        if self._store is None or not self._store.has_snapshot():
            return False
        self._replace_tree(self._store.load())
        return True

    def reset(self) -> TreeNode:
        """Replace the tree with a fresh single-root tree from the config."""
        tree = self._initial_tree()
        self._replace_tree(tree)
        return tree

    # Lifecycle

    async def get_stats(self) -> dict:
        stats = {
            'loading': sorted(self._loading),
            'expanded': len(self._expanded),
            'generation': self._generation,
        }
        if self._loader is not None:
            stats['loader'] = await self._loader.get_stats()
        return stats

    async def close(self):
        if self._loader is not None:
            await self._loader.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
