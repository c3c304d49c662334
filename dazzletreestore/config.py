"""Configuration system for DazzleTreeStore.

This module defines how users configure a TreeSession: how fresh ids are
generated, what the reset tree looks like, and how lazy loads are bounded,
timed out and cached.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .core.ids import IdGenerator, SequentialIdGenerator, UuidIdGenerator
from .core.node import TreeNode


class IdStrategy(Enum):
    """How ids are assigned to inserted nodes."""
    UUID = "uuid"               # Random, safe across sessions
    SEQUENTIAL = "sequential"   # Counter continuing past existing numeric ids


@dataclass
class LoadConfig:
    """Configuration for lazy child loading."""

    max_concurrent_loads: int = 100         # Loads in flight across all folders
    timeout_seconds: Optional[float] = None # Per-load timeout, None = wait forever
    cache_results: bool = False             # Wrap the loader in a TTL cache
    cache_max_size: int = 1000              # Cached folder responses
    cache_ttl: float = 300.0                # Seconds a cached response stays valid


@dataclass
class SessionConfig:
    """Complete configuration for a TreeSession.

    The session validates this on construction and refuses to start with
    an inconsistent configuration.
    """

    # Identifier generation
    id_strategy: IdStrategy = IdStrategy.UUID
    id_prefix: str = ""

    # Shape of the tree produced by reset()
    root_id: str = "root"
    root_label: str = "root"
    lazy_root: bool = False

    # Persistence
    autosave: bool = False  # Save to the snapshot store after every change

    # Lazy loading
    load: LoadConfig = field(default_factory=LoadConfig)

    # Convenience constructors for common configurations

    @classmethod
    def offline(cls) -> 'SessionConfig':
        """Sequential ids and no caching, for trees built entirely in memory."""
        return cls(id_strategy=IdStrategy.SEQUENTIAL)

    @classmethod
    def cached(cls, ttl: float = 300.0, max_size: int = 1000) -> 'SessionConfig':
        """Cache loader responses so re-created folders do not refetch.

        Args:
            ttl: Seconds a cached response stays valid
            max_size: Maximum cached folder responses
        """
        return cls(load=LoadConfig(cache_results=True, cache_ttl=ttl,
                                   cache_max_size=max_size))

    @classmethod
    def with_timeout(cls, seconds: float) -> 'SessionConfig':
        """Give up on loads that take longer than ``seconds``."""
        return cls(load=LoadConfig(timeout_seconds=seconds))

    def build_id_generator(self, tree: Optional[TreeNode] = None) -> IdGenerator:
        """Create the id generator this configuration asks for.

        Args:
            tree: Existing tree; sequential ids continue past its numeric ids

        Returns:
            Fresh IdGenerator instance
        """
        if self.id_strategy == IdStrategy.SEQUENTIAL:
            return SequentialIdGenerator.seeded_from(tree, prefix=self.id_prefix)
        return UuidIdGenerator(prefix=self.id_prefix)

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.id_strategy, IdStrategy):
            errors.append(f"unknown id_strategy {self.id_strategy!r}")

        if not self.root_id:
            errors.append("root_id cannot be empty")
        if not self.root_label or not self.root_label.strip():
            errors.append("root_label cannot be empty")

        if self.load.max_concurrent_loads <= 0:
            errors.append("max_concurrent_loads must be positive")
        if self.load.timeout_seconds is not None and self.load.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")
        if self.load.cache_results:
            if self.load.cache_max_size <= 0:
                errors.append("cache_max_size must be positive")
            if self.load.cache_ttl <= 0:
                errors.append("cache_ttl must be positive")

        return errors
