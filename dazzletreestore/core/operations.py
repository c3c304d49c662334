"""Pure structural operations on a tree value.

Every function takes the current tree plus parameters and returns a new
tree. Inputs are never modified: the changed node and every ancestor on its
root path are rebuilt, everything else is shared with the input tree.

Failures raise before anything is built, so a failed call never leaves a
partially-updated tree behind. Operations on ids that are not in the tree
(delete, rename, move source, graft) are no-ops returning the input tree.
"""

from dataclasses import replace
from typing import Iterable, List, Optional

from .errors import (
    CycleDetectedError,
    FolderNotLoadedError,
    InvalidLabelError,
    InvalidTargetError,
    NotAFolderError,
    NotFoundError,
)
from .ids import IdGenerator, UuidIdGenerator
from .node import TreeNode, NOT_APPLICABLE, NOT_LOADED
from .queries import find_by_id, path_to

_default_id_generator = UuidIdGenerator()


def _clean_label(label: Optional[str]) -> str:
    if label is None or not label.strip():
        raise InvalidLabelError(label)
    return label.strip()


def _rebuild(path: List[TreeNode], replacement: Optional[TreeNode]) -> Optional[TreeNode]:
    """Replace the last node of ``path`` and path-copy its ancestors.

    Args:
        path: Nodes from the root down to the node being replaced
        replacement: New node, or None to remove the node from its parent

    Returns:
        The new root (None when the root itself was removed)
    """
    current = replacement
    for depth in range(len(path) - 2, -1, -1):
        parent = path[depth]
        old_child = path[depth + 1]
        siblings = list(parent.children)
        # Identity, not id, so a duplicated id from a loader cannot confuse us
        index = next(i for i, child in enumerate(siblings) if child is old_child)
        if current is None:
            del siblings[index]
        else:
            siblings[index] = current
        current = replace(parent, children=tuple(siblings))
    return current


def insert_node(tree: TreeNode, folder_id: str, label: str, is_folder: bool,
                id_generator: Optional[IdGenerator] = None) -> TreeNode:
    """Append a new folder or leaf as the last child of ``folder_id``.

    Args:
        tree: Current tree
        folder_id: Id of the folder receiving the new node
        label: Display name; stored trimmed
        is_folder: Create a (loaded, empty) folder instead of a leaf
        id_generator: Source of the fresh id (random UUIDs by default)

    Returns:
        New tree containing the inserted node

    Raises:
        NotFoundError: ``folder_id`` is not in the tree
        NotAFolderError: ``folder_id`` names a leaf
        InvalidLabelError: label is empty after trimming
        FolderNotLoadedError: the folder's children were not loaded yet
    """
    path = path_to(tree, folder_id)
    if path is None:
        raise NotFoundError(folder_id)
    folder = path[-1]
    if not folder.is_folder:
        raise NotAFolderError(folder_id)
    label = _clean_label(label)
    if folder.children is NOT_LOADED:
        raise FolderNotLoadedError(folder_id)

    generator = id_generator or _default_id_generator
    new_node = TreeNode(
        id=generator.next_id(),
        label=label,
        is_folder=is_folder,
        children=() if is_folder else NOT_APPLICABLE,
        parent_id=folder_id,
    )
    return _rebuild(path, folder.with_children(folder.children + (new_node,)))


def delete_node(tree: Optional[TreeNode], node_id: str) -> Optional[TreeNode]:
    """Remove ``node_id`` and its whole subtree.

    Returns:
        New tree; None when the root was deleted; the input tree
        unchanged when ``node_id`` is not present
    """
    path = path_to(tree, node_id)
    if path is None:
        return tree
    return _rebuild(path, None)


def rename_node(tree: TreeNode, node_id: str, new_label: str) -> TreeNode:
    """Change the label of ``node_id``.

    Returns the input tree unchanged when the node is missing or the
    trimmed label equals the current one.

    Raises:
        InvalidLabelError: label is empty after trimming
    """
    new_label = _clean_label(new_label)
    path = path_to(tree, node_id)
    if path is None:
        return tree
    node = path[-1]
    if node.label == new_label:
        return tree
    return _rebuild(path, node.with_label(new_label))


update_node = rename_node


def move_node(tree: TreeNode, source_id: str, target_id: str) -> TreeNode:
    """Detach ``source_id`` and append it as the last child of ``target_id``.

    The moved subtree is kept as-is; only the moved node's own parent_id
    changes. Moving onto the current parent re-appends the node last.

    Raises:
        InvalidTargetError: target missing or a leaf
        CycleDetectedError: target is the source or lies inside its subtree
        FolderNotLoadedError: target folder not loaded yet
    """
    if source_id == target_id:
        return tree

    target = find_by_id(tree, target_id)
    if target is None:
        raise InvalidTargetError(target_id, "not found")
    if not target.is_folder:
        raise InvalidTargetError(target_id, "not a folder")

    source_path = path_to(tree, source_id)
    if source_path is None:
        return tree
    source = source_path[-1]
    if find_by_id(source, target_id) is not None:
        raise CycleDetectedError(source_id, target_id)
    if target.children is NOT_LOADED:
        raise FolderNotLoadedError(target_id)

    detached = _rebuild(source_path, None)
    # Target is outside the source subtree, so it survived the detach
    target_path = path_to(detached, target_id)
    target = target_path[-1]
    moved = source if source.parent_id == target_id else source.with_parent(target_id)
    return _rebuild(target_path, target.with_children(target.children + (moved,)))


def graft_lazy_children(tree: TreeNode, node_id: str,
                        children: Iterable[TreeNode]) -> TreeNode:
    """Install lazily loaded ``children`` under folder ``node_id``.

    Each child's parent_id is set to ``node_id`` where it differs. The
    children are not checked against ids already in the tree; callers
    supplying external data must keep ids globally unique.

    Returns:
        New tree with the folder loaded, or the input tree if the id is missing

    Raises:
        NotAFolderError: ``node_id`` names a leaf
    """
    path = path_to(tree, node_id)
    if path is None:
        return tree
    folder = path[-1]
    if not folder.is_folder:
        raise NotAFolderError(node_id)

    adopted = tuple(
        child if child.parent_id == node_id else child.with_parent(node_id)
        for child in children
    )
    return _rebuild(path, folder.with_children(adopted))
