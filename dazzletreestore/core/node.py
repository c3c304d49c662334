"""Immutable tree node.

A TreeNode is a value: operations never modify one in place, they build a
new node with ``dataclasses.replace`` and rebuild the path up to the root.
Untouched subtrees are shared between the old and the new tree.

The children field is explicitly tri-state so that "loaded, but empty" can
never be confused with "not loaded yet":

    leaf                    -> NOT_APPLICABLE
    folder, not loaded yet  -> NOT_LOADED
    folder, loaded          -> tuple of TreeNode (possibly empty)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from .errors import InvalidNodeError


class ChildrenMarker(Enum):
    """Markers for the two children states that are not a sequence."""
    NOT_APPLICABLE = "not_applicable"   # Leaves never have children
    NOT_LOADED = "not_loaded"           # Folder awaiting its lazy load

    def __repr__(self) -> str:
        return self.name


NOT_APPLICABLE = ChildrenMarker.NOT_APPLICABLE
NOT_LOADED = ChildrenMarker.NOT_LOADED


class ChildrenState(Enum):
    """Observable state of a node's children."""
    NOT_APPLICABLE = "not_applicable"
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"


Children = Union[Tuple["TreeNode", ...], ChildrenMarker]


@dataclass(frozen=True)
class TreeNode:
    """A folder or leaf in the explorer tree.

    Attributes:
        id: Opaque unique identifier, stable for the node's lifetime
        label: Display name
        is_folder: Whether the node may contain children
        children: Tuple of child nodes, NOT_LOADED or NOT_APPLICABLE
        parent_id: Id of the containing folder, None for the root
    """

    id: str
    label: str
    is_folder: bool
    children: Children = NOT_APPLICABLE
    parent_id: Optional[str] = None

    def __post_init__(self):
        children = self.children
        if isinstance(children, list):
            children = tuple(children)
            object.__setattr__(self, 'children', children)

        if self.is_folder:
            if children is NOT_APPLICABLE:
                raise InvalidNodeError(
                    f"Folder '{self.id}' needs NOT_LOADED or a children sequence"
                )
        elif children is not NOT_APPLICABLE:
            raise InvalidNodeError(f"Leaf '{self.id}' cannot have children")

        if not isinstance(children, (tuple, ChildrenMarker)):
            raise InvalidNodeError(
                f"Children of '{self.id}' must be a sequence of TreeNode, "
                f"got {type(children).__name__}"
            )

    # Constructors

    @classmethod
    def folder(cls, id: str, label: str,
               children: Iterable["TreeNode"] = (),
               parent_id: Optional[str] = None) -> "TreeNode":
        """Create a loaded folder."""
        return cls(id, label, True, tuple(children), parent_id)

    @classmethod
    def lazy_folder(cls, id: str, label: str,
                    parent_id: Optional[str] = None) -> "TreeNode":
        """Create a folder whose children will be loaded on first expansion."""
        return cls(id, label, True, NOT_LOADED, parent_id)

    @classmethod
    def leaf(cls, id: str, label: str,
             parent_id: Optional[str] = None) -> "TreeNode":
        """Create a leaf (file)."""
        return cls(id, label, False, NOT_APPLICABLE, parent_id)

    # Read helpers

    def is_leaf(self) -> bool:
        return not self.is_folder

    @property
    def is_loaded(self) -> bool:
        """True for folders whose children sequence is present."""
        return isinstance(self.children, tuple)

    @property
    def children_state(self) -> ChildrenState:
        if self.children is NOT_APPLICABLE:
            return ChildrenState.NOT_APPLICABLE
        if self.children is NOT_LOADED:
            return ChildrenState.NOT_LOADED
        return ChildrenState.LOADED

    @property
    def child_nodes(self) -> Tuple["TreeNode", ...]:
        """Children as a tuple; empty unless the folder is loaded."""
        if isinstance(self.children, tuple):
            return self.children
        return ()

    # Copy helpers

    def with_label(self, label: str) -> "TreeNode":
        return replace(self, label=label)

    def with_children(self, children: Iterable["TreeNode"]) -> "TreeNode":
        return replace(self, children=tuple(children))

    def with_parent(self, parent_id: Optional[str]) -> "TreeNode":
        return replace(self, parent_id=parent_id)

    def __repr__(self) -> str:
        kind = "folder" if self.is_folder else "leaf"
        if self.is_loaded:
            children = f"{len(self.children)} children"
        else:
            children = repr(self.children)
        return (f"TreeNode(id={self.id!r}, label={self.label!r}, {kind}, "
                f"{children}, parent_id={self.parent_id!r})")
