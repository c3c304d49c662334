"""
Exception hierarchy for DazzleTreeStore.

Every structural operation either returns a new tree or raises one of these
errors, leaving its input untouched. Missing ids are mostly treated as
harmless no-ops by the operations themselves; NotFoundError is only raised
where the caller asked to build on a node that must exist (insert).
"""

from typing import Optional


class TreeStoreError(Exception):
    """Base class for all DazzleTreeStore errors."""


class NotFoundError(TreeStoreError, LookupError):
    """The requested node id is not present in the tree."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found")


class NotAFolderError(TreeStoreError):
    """A structural operation targeted a leaf."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' is not a folder")


class InvalidLabelError(TreeStoreError, ValueError):
    """Label is empty or whitespace-only."""

    def __init__(self, label: Optional[str]):
        self.label = label
        super().__init__(f"Invalid label {label!r}: must be non-empty after trimming")


class InvalidTargetError(TreeStoreError):
    """Move target is missing or cannot hold children."""

    def __init__(self, target_id: str, reason: str = "missing or not a folder"):
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"Invalid move target '{target_id}': {reason}")


class FolderNotLoadedError(InvalidTargetError):
    """Target folder's children have not been loaded yet."""

    def __init__(self, folder_id: str):
        super().__init__(folder_id, "children not loaded yet")


class CycleDetectedError(TreeStoreError):
    """Move would place a node inside its own subtree."""

    def __init__(self, source_id: str, target_id: str):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(
            f"Cannot move '{source_id}' into '{target_id}': target is inside the moved subtree"
        )


class LoadFailedError(TreeStoreError):
    """The child loader failed to produce children for a folder.

    The original exception (if any) is available as ``__cause__``.
    """

    def __init__(self, node_id: str, message: Optional[str] = None):
        self.node_id = node_id
        super().__init__(message or f"Loading children of '{node_id}' failed")


class LoadInProgressError(TreeStoreError):
    """A load for this folder is already outstanding."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Children of '{node_id}' are already being loaded")


class InvalidNodeError(TreeStoreError, ValueError):
    """Node fields are inconsistent (e.g. a leaf with children)."""


class SerializationError(TreeStoreError, ValueError):
    """A serialized tree document is malformed."""


class ConfigurationError(TreeStoreError, ValueError):
    """Session configuration failed validation."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))
