"""Asynchronous layer of DazzleTreeStore.

This package contains the lazy-loading collaborators and the TreeSession
that orchestrates them around the pure operations in ``dazzletreestore.core``.
"""

# Loaders
from .loader import (
    AsyncChildLoader,
    CallableChildLoader,
    MockChildLoader,
)
from .caching import CachingChildLoader

# Error policies
from .error_policies import (
    LoadErrorPolicy,
    FailFastPolicy,
    ContinueOnErrorsPolicy,
    CollectErrorsPolicy,
    RetryPolicy,
    ThresholdPolicy,
)

# Orchestration
from .session import TreeSession

__all__ = [
    # Loaders
    'AsyncChildLoader',
    'CallableChildLoader',
    'MockChildLoader',
    'CachingChildLoader',
    # Error policies
    'LoadErrorPolicy',
    'FailFastPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    'RetryPolicy',
    'ThresholdPolicy',
    # Orchestration
    'TreeSession',
]
