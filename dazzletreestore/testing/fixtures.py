"""Test fixtures for DazzleTreeStore consumers.

These build small, well-known trees so test suites of projects that use
DazzleTreeStore do not have to hand-assemble nodes.

The sample tree:

    1  root/
    ├─ 2  README.md
    ├─ 3  src/
    │  ├─ 5  components/
    │  │  └─ 8  Button.tsx
    │  └─ 6  index.ts
    ├─ 4  docs/
    │  └─ 7  guides/          (loaded, empty)
    └─ 9  remote/             (not loaded yet)
"""

from typing import Dict, List, Optional

from ..core.node import TreeNode
from ..core.queries import check_invariants


def build_sample_tree() -> TreeNode:
    """Return the sample tree shown in the module docstring."""
    return TreeNode.folder("1", "root", [
        TreeNode.leaf("2", "README.md", parent_id="1"),
        TreeNode.folder("3", "src", [
            TreeNode.folder("5", "components", [
                TreeNode.leaf("8", "Button.tsx", parent_id="5"),
            ], parent_id="3"),
            TreeNode.leaf("6", "index.ts", parent_id="3"),
        ], parent_id="1"),
        TreeNode.folder("4", "docs", [
            TreeNode.folder("7", "guides", parent_id="4"),
        ], parent_id="1"),
        TreeNode.lazy_folder("9", "remote", parent_id="1"),
    ])


def sample_loader_data() -> Dict[str, List[TreeNode]]:
    """Children a mock loader should serve for the sample tree's lazy folders.

    The returned nodes deliberately carry no parent_id; grafting sets it.
    Folder "10" is itself lazy, one level deeper.
    """
    return {
        "9": [
            TreeNode.lazy_folder("10", "backups"),
            TreeNode.leaf("11", "notes.txt"),
        ],
        "10": [
            TreeNode.leaf("12", "2024.tar.gz"),
        ],
    }


def build_deep_tree(depth: int, prefix: str = "d") -> TreeNode:
    """Build a single chain of ``depth`` nested folders below a root.

    Ids are ``{prefix}0`` (root) through ``{prefix}{depth}``; the deepest
    folder holds one leaf ``{prefix}leaf``. Built bottom-up without
    recursion, so depths past the recursion limit are fine.
    """
    node = TreeNode.leaf(f"{prefix}leaf", "leaf.txt", parent_id=f"{prefix}{depth}")
    for level in range(depth, -1, -1):
        parent_id: Optional[str] = f"{prefix}{level - 1}" if level > 0 else None
        node = TreeNode.folder(f"{prefix}{level}", f"level-{level}", [node],
                               parent_id=parent_id)
    return node


def assert_well_formed(tree: Optional[TreeNode]) -> None:
    """Fail with every violated invariant listed if ``tree`` is malformed."""
    problems = check_invariants(tree)
    assert not problems, "Tree invariants violated:\n  " + "\n  ".join(problems)
