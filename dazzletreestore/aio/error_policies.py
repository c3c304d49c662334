"""
Load error policies for DazzleTreeStore.

When a child loader fails, the session hands the LoadFailedError to a
policy, which decides whether to propagate it, retry the load, or give up
quietly and leave the folder "not loaded" so the user can expand it again.
"""

import asyncio
import sys
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..core.errors import LoadFailedError


class LoadErrorPolicy(ABC):
    """
    Base class for load error policies.

    Subclasses implement different strategies for handling loader
    failures during lazy loading.
    """

    @abstractmethod
    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        """
        Handle a failed load of ``node_id``.

        Args:
            error: The LoadFailedError (original exception in ``__cause__``)
            node_id: Folder whose children failed to load
            attempt: 1 for the first failure, 2 for the first retry's failure...

        Returns:
            True to retry the load, False to give up and leave the folder
            unloaded. Raise to propagate the failure to the caller.
        """
        pass

    @staticmethod
    def _record(error: LoadFailedError, node_id: str, attempt: int) -> dict:
        cause = error.__cause__ or error
        return {
            'node_id': node_id,
            'attempt': attempt,
            'error': error,
            'error_type': type(cause).__name__,
            'error_message': str(cause),
        }


class FailFastPolicy(LoadErrorPolicy):
    """
    Policy that immediately re-raises the failure.

    This is the default behavior: the caller of load_children/expand sees
    the LoadFailedError and decides what to show.
    """

    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(LoadErrorPolicy):
    """
    Policy that records failures and leaves the folder unloaded.

    Errors are collected for later inspection. Useful for interactive
    front ends where a failed expansion should simply be retryable.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, print warnings to stderr when errors occur
        """
        self.errors = []
        self.failed_ids = []
        self.verbose = verbose

    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        self.errors.append(self._record(error, node_id, attempt))
        if node_id not in self.failed_ids:
            self.failed_ids.append(node_id)

        if self.verbose:
            cause = error.__cause__ or error
            print(f"\nWARNING: Could not load children of '{node_id}': {cause}", file=sys.stderr)

        return False

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        return {
            'total_errors': len(self.errors),
            'timeouts': sum(1 for e in self.errors if e['error_type'] == 'TimeoutError'),
            'failed_folders': len(self.failed_ids),
            'errors': self.errors,
        }


class CollectErrorsPolicy(LoadErrorPolicy):
    """
    Policy that collects all errors without printing anything.

    Similar to ContinueOnErrorsPolicy but without verbose output.
    """

    def __init__(self):
        self.errors = []

    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        """Silently collect the error and give up on this load."""
        self.errors.append(self._record(error, node_id, attempt))
        return False


class RetryPolicy(LoadErrorPolicy):
    """
    Policy that retries failed loads with exponential backoff.

    Useful for network-backed loaders with transient failures. Once
    ``max_retries`` is exhausted the fallback policy decides.
    """

    def __init__(self, max_retries: int = 3, backoff_factor: float = 2.0,
                 base_delay: float = 0.1,
                 fallback: Optional[LoadErrorPolicy] = None):
        """
        Initialize retry policy.

        Args:
            max_retries: Maximum number of retry attempts per load
            backoff_factor: Multiplier for exponential backoff
            base_delay: Delay before the first retry, in seconds
            fallback: Policy applied after the last retry (FailFastPolicy by default)
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.base_delay = base_delay
        self.fallback = fallback or FailFastPolicy()
        self.retry_counts: Dict[str, int] = {}

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (self.backoff_factor ** (attempt - 1))

    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        if attempt > self.max_retries:
            return await self.fallback.handle(error, node_id, attempt)

        self.retry_counts[node_id] = self.retry_counts.get(node_id, 0) + 1
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
        return True


class ThresholdPolicy(LoadErrorPolicy):
    """
    Policy that tolerates failures up to a threshold, then fails fast.

    Useful when occasional failures are expected but many indicate the
    data source is down.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum failures to tolerate before raising
            verbose: If True, print warnings for tolerated failures
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors = []

    async def handle(self, error: LoadFailedError, node_id: str, attempt: int) -> bool:
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Load error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            print(f"\nWARNING [{self.error_count}/{self.max_errors}]: "
                  f"Could not load children of '{node_id}': {error.__cause__ or error}",
                  file=sys.stderr)
        return False
