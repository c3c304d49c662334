"""DazzleTreeStore - Immutable file/folder tree with lazy loading.

DazzleTreeStore keeps an explorer-style tree of folders and files as an
immutable value. Every structural operation (insert, delete, rename, move,
graft of lazily loaded children) returns a new tree and leaves the old one
untouched, so callers can keep, compare or discard snapshots freely.

Choose your layer:
━━━━━━━━━━━━━━━━━━━━━━━━━━
Pure operations:
    from dazzletreestore.core import insert_node, move_node

Async session with lazy loading:
    from dazzletreestore.aio import TreeSession
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from . import core
from . import aio
from .core import (
    TreeNode,
    NOT_APPLICABLE,
    NOT_LOADED,
    TreeStoreError,
    find_by_id,
    is_descendant,
    insert_node,
    delete_node,
    rename_node,
    move_node,
    graft_lazy_children,
)
from .config import SessionConfig, LoadConfig, IdStrategy
from .persistence import (
    create_initial_tree,
    to_dict,
    from_dict,
    dumps,
    loads,
    SnapshotStore,
    MemorySnapshotStore,
    JsonFileSnapshotStore,
)

__all__ = [
    "__version__",
    "core",
    "aio",
    # Tree value
    "TreeNode",
    "NOT_APPLICABLE",
    "NOT_LOADED",
    "TreeStoreError",
    # Operations
    "find_by_id",
    "is_descendant",
    "insert_node",
    "delete_node",
    "rename_node",
    "move_node",
    "graft_lazy_children",
    # Configuration
    "SessionConfig",
    "LoadConfig",
    "IdStrategy",
    # Persistence
    "create_initial_tree",
    "to_dict",
    "from_dict",
    "dumps",
    "loads",
    "SnapshotStore",
    "MemorySnapshotStore",
    "JsonFileSnapshotStore",
]
