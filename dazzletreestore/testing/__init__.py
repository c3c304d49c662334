"""Testing utilities for DazzleTreeStore consumers."""

from .fixtures import (
    build_sample_tree,
    build_deep_tree,
    sample_loader_data,
    assert_well_formed,
)

__all__ = [
    'build_sample_tree',
    'build_deep_tree',
    'sample_loader_data',
    'assert_well_formed',
]
