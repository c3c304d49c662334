"""
Serialization and snapshot storage for tree values.

The document format uses the same field names as the browser explorer this
library backs (``id``, ``label``, ``isFolder``, ``children``, ``parentId``),
so snapshots written by either side can be read by the other. ``children``
is a list for loaded folders and ``null`` otherwise; ``isFolder`` tells a
leaf apart from a folder that has not been loaded yet.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .core.errors import InvalidNodeError, SerializationError
from .core.node import TreeNode, NOT_APPLICABLE, NOT_LOADED


def create_initial_tree(root_id: str = "root", label: str = "root",
                        lazy: bool = False) -> TreeNode:
    """Build the tree a workspace starts from after a reset.

    Args:
        root_id: Id of the root folder
        label: Label of the root folder
        lazy: Leave the root's children to the lazy loader

    Returns:
        Single folder root with no parent
    """
    if lazy:
        return TreeNode.lazy_folder(root_id, label)
    return TreeNode.folder(root_id, label)


def to_dict(tree: TreeNode) -> Dict[str, Any]:
    """Convert a tree to plain JSON-compatible dictionaries."""
    children = None
    if tree.is_loaded:
        children = [to_dict(child) for child in tree.children]
    return {
        'id': tree.id,
        'label': tree.label,
        'isFolder': tree.is_folder,
        'children': children,
        'parentId': tree.parent_id,
    }


def from_dict(data: Dict[str, Any]) -> TreeNode:
    """Rebuild a tree from ``to_dict`` output.

    UI-only keys such as ``isExpanded`` and ``isLoading`` are ignored.

    Raises:
        SerializationError: a required field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise SerializationError(f"Expected an object, got {type(data).__name__}")
    try:
        node_id = data['id']
        label = data['label']
        is_folder = data['isFolder']
    except KeyError as e:
        raise SerializationError(f"Missing field {e.args[0]!r}") from e

    if not isinstance(node_id, str) or not isinstance(label, str):
        raise SerializationError(f"Node {node_id!r}: id and label must be strings")
    if not isinstance(is_folder, bool):
        raise SerializationError(f"Node {node_id!r}: isFolder must be a boolean")

    raw_children = data.get('children')
    if not is_folder:
        if raw_children:
            raise SerializationError(f"Leaf {node_id!r} has children")
        children = NOT_APPLICABLE
    elif raw_children is None:
        children = NOT_LOADED
    elif isinstance(raw_children, list):
        children = tuple(from_dict(child) for child in raw_children)
    else:
        raise SerializationError(f"Node {node_id!r}: children must be a list or null")

    try:
        return TreeNode(node_id, label, is_folder, children, data.get('parentId'))
    except InvalidNodeError as e:
        raise SerializationError(str(e)) from e


def dumps(tree: Optional[TreeNode], indent: Optional[int] = None) -> str:
    """Serialize a tree (or the empty workspace, None) to JSON text."""
    return json.dumps(None if tree is None else to_dict(tree), indent=indent)


def loads(text: str) -> Optional[TreeNode]:
    """Parse JSON text produced by ``dumps``.

    Raises:
        SerializationError: text is not valid JSON or not a tree document
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON: {e}") from e
    if data is None:
        return None
    return from_dict(data)


class SnapshotStore(ABC):
    """Durable home for the tree value between sessions."""

    @abstractmethod
    def save(self, tree: Optional[TreeNode]) -> None:
        pass

    @abstractmethod
    def load(self) -> Optional[TreeNode]:
        """Return the saved tree, or None if nothing was saved."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def has_snapshot(self) -> bool:
        """True if something was saved, even an empty workspace."""
        pass


class MemorySnapshotStore(SnapshotStore):
    """Keeps the serialized snapshot in memory (useful for tests)."""

    def __init__(self):
        self._document: Optional[str] = None
        self.save_count = 0

    def save(self, tree: Optional[TreeNode]) -> None:
        self._document = dumps(tree)
        self.save_count += 1

    def load(self) -> Optional[TreeNode]:
        if self._document is None:
            return None
        return loads(self._document)

    def clear(self) -> None:
        self._document = None

    def has_snapshot(self) -> bool:
        return self._document is not None


class JsonFileSnapshotStore(SnapshotStore):
    """Stores the snapshot as a JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash mid-write never leaves a truncated snapshot.
    """

    def __init__(self, path: Union[str, Path], indent: Optional[int] = 2):
        self.path = Path(path)
        self.indent = indent

    def save(self, tree: Optional[TreeNode]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent,
                                        prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(dumps(tree, indent=self.indent))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> Optional[TreeNode]:
        if not self.path.exists():
            return None
        return loads(self.path.read_text(encoding='utf-8'))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def has_snapshot(self) -> bool:
        return self.path.exists()

    def __repr__(self) -> str:
        return f"JsonFileSnapshotStore({str(self.path)!r})"
