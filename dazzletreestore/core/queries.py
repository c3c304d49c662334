"""Read-only queries over a tree value.

All walks are depth-first pre-order, visiting children in stored order.
They use an explicit stack instead of recursion so very deep trees do not
run into the interpreter's recursion limit.
"""

from collections import Counter
from typing import Iterator, List, Optional, Set, Tuple

from .node import TreeNode, NOT_APPLICABLE


def iter_nodes(tree: Optional[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node of ``tree`` in pre-order."""
    if tree is None:
        return
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        # Reversed so the first child is popped first
        stack.extend(reversed(node.child_nodes))


def iter_with_depth(tree: Optional[TreeNode]) -> Iterator[Tuple[TreeNode, int]]:
    """Yield ``(node, depth)`` pairs in pre-order. Root has depth 0."""
    if tree is None:
        return
    stack = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((child, depth + 1) for child in reversed(node.child_nodes))


def find_by_id(tree: Optional[TreeNode], node_id: str) -> Optional[TreeNode]:
    """Return the first node with ``id == node_id`` in pre-order, or None."""
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def path_to(tree: Optional[TreeNode], node_id: str) -> Optional[List[TreeNode]]:
    """Return the nodes from the root down to ``node_id`` (inclusive).

    Returns:
        List starting with the root and ending with the match,
        or None if the id is not in the tree
    """
    path: List[TreeNode] = []
    for node, depth in iter_with_depth(tree):
        # Pre-order guarantees path[:depth] holds this node's ancestors
        del path[depth:]
        path.append(node)
        if node.id == node_id:
            return path
    return None


def find_parent(tree: Optional[TreeNode], node_id: str) -> Optional[TreeNode]:
    """Return the folder that contains ``node_id``; None for root or unknown ids."""
    path = path_to(tree, node_id)
    if path is None or len(path) < 2:
        return None
    return path[-2]


def depth_of(tree: Optional[TreeNode], node_id: str) -> Optional[int]:
    path = path_to(tree, node_id)
    return None if path is None else len(path) - 1


def is_descendant(tree: Optional[TreeNode], ancestor_id: str, node_id: str) -> bool:
    """True iff ``node_id`` is strictly below ``ancestor_id``.

    A node is not its own descendant. Unknown ids yield False.
    """
    ancestor = find_by_id(tree, ancestor_id)
    if ancestor is None:
        return False
    for child in ancestor.child_nodes:
        if find_by_id(child, node_id) is not None:
            return True
    return False


def count_nodes(tree: Optional[TreeNode]) -> int:
    return sum(1 for _ in iter_nodes(tree))


def collect_ids(tree: Optional[TreeNode]) -> Set[str]:
    return {node.id for node in iter_nodes(tree)}


def check_invariants(tree: Optional[TreeNode]) -> List[str]:
    """Check the structural invariants of a tree.

    An empty workspace (None) is valid.

    Returns:
        List of violations (empty if the tree is well formed)
    """
    problems = []
    if tree is None:
        return problems

    if not tree.is_folder:
        problems.append(f"root '{tree.id}' is not a folder")
    if tree.parent_id is not None:
        problems.append(f"root '{tree.id}' has parent_id {tree.parent_id!r}")

    counts = Counter()
    seen_objects = set()
    stack = [tree]
    while stack:
        node = stack.pop()
        counts[node.id] += 1

        # Frozen nodes cannot form a reference cycle, but a shared object
        # appearing twice would still duplicate ids
        if id(node) in seen_objects:
            problems.append(f"node object '{node.id}' appears more than once")
            continue
        seen_objects.add(id(node))

        if not node.label or not node.label.strip():
            problems.append(f"node '{node.id}' has an empty label")
        if not node.is_folder and node.children is not NOT_APPLICABLE:
            problems.append(f"leaf '{node.id}' has children")

        for child in node.child_nodes:
            if child.parent_id != node.id:
                problems.append(
                    f"node '{child.id}' has parent_id {child.parent_id!r}, "
                    f"expected {node.id!r}"
                )
            stack.append(child)

    for node_id, count in sorted(counts.items()):
        if count > 1:
            problems.append(f"id '{node_id}' used by {count} nodes")

    return problems
