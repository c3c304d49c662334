"""Core of DazzleTreeStore: the immutable node and pure tree operations.

Nothing in this package performs I/O or awaits anything; the async
orchestration around lazy loading lives in ``dazzletreestore.aio``.
"""

from .node import (
    TreeNode,
    ChildrenMarker,
    ChildrenState,
    NOT_APPLICABLE,
    NOT_LOADED,
)
from .errors import (
    TreeStoreError,
    NotFoundError,
    NotAFolderError,
    InvalidLabelError,
    InvalidTargetError,
    FolderNotLoadedError,
    CycleDetectedError,
    LoadFailedError,
    LoadInProgressError,
    InvalidNodeError,
    SerializationError,
    ConfigurationError,
)
from .ids import IdGenerator, UuidIdGenerator, SequentialIdGenerator
from .queries import (
    iter_nodes,
    iter_with_depth,
    find_by_id,
    find_parent,
    path_to,
    depth_of,
    is_descendant,
    count_nodes,
    collect_ids,
    check_invariants,
)
from .operations import (
    insert_node,
    delete_node,
    rename_node,
    update_node,
    move_node,
    graft_lazy_children,
)

__all__ = [
    # Node
    'TreeNode',
    'ChildrenMarker',
    'ChildrenState',
    'NOT_APPLICABLE',
    'NOT_LOADED',
    # Errors
    'TreeStoreError',
    'NotFoundError',
    'NotAFolderError',
    'InvalidLabelError',
    'InvalidTargetError',
    'FolderNotLoadedError',
    'CycleDetectedError',
    'LoadFailedError',
    'LoadInProgressError',
    'InvalidNodeError',
    'SerializationError',
    'ConfigurationError',
    # Ids
    'IdGenerator',
    'UuidIdGenerator',
    'SequentialIdGenerator',
    # Queries
    'iter_nodes',
    'iter_with_depth',
    'find_by_id',
    'find_parent',
    'path_to',
    'depth_of',
    'is_descendant',
    'count_nodes',
    'collect_ids',
    'check_invariants',
    # Operations
    'insert_node',
    'delete_node',
    'rename_node',
    'update_node',
    'move_node',
    'graft_lazy_children',
]
