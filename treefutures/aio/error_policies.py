"""
Error handling policies for treefutures.

This module provides a pluggable way to observe task-level failures
through the Policy pattern. A policy is notified every time a registered
task raises, right before the FAILED outcome is queued for delivery.

Policies only observe. The failure is always delivered to the consumer
of next() unchanged; a policy cannot retry, suppress or rewrite it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Hashable

logger = logging.getLogger(__name__)


class ErrorPolicy(ABC):
    """
    Base class for task failure policies.

    Subclasses implement different strategies for recording or
    reporting failures raised by registered work.
    """

    @abstractmethod
    def handle(self, error: BaseException, key: Hashable, multiplexer_name: str) -> None:
        """
        Observe a failure raised by a registered task.

        Args:
            error: The exception the task raised
            key: Key the task was registered under
            multiplexer_name: Name of the multiplexer that ran the task
        """
        pass


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that records failures and optionally logs them.

    This is the default. Failures are collected for later inspection
    and, when verbose, logged as warnings.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning for every failure
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    def handle(self, error: BaseException, key: Hashable, multiplexer_name: str) -> None:
        """Record the failure and log it if verbose."""
        self.errors.append(_error_record(error, key, multiplexer_name))

        if self.verbose:
            logger.warning("Task %r in %s failed: %s: %s",
                           key, multiplexer_name, type(error).__name__, error)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about failures encountered.

        Returns:
            Dictionary with failure counts and details
        """
        return _statistics(self.errors)


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that collects all failures without logging.

    Similar to ContinueOnErrorsPolicy but silent. Useful for presenting
    every failure together once the completion sequence is drained.
    """

    def __init__(self):
        """Initialize the policy."""
        self.errors: List[Dict[str, Any]] = []

    def handle(self, error: BaseException, key: Hashable, multiplexer_name: str) -> None:
        """Silently collect the failure."""
        self.errors.append(_error_record(error, key, multiplexer_name))

    def get_statistics(self) -> Dict[str, Any]:
        """Get statistics about failures encountered."""
        return _statistics(self.errors)


def _error_record(error: BaseException, key: Hashable, multiplexer_name: str) -> Dict[str, Any]:
    return {
        'key': key,
        'multiplexer': multiplexer_name,
        'error': error,
        'error_type': type(error).__name__,
        'error_message': str(error),
    }


def _statistics(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    by_type: Dict[str, int] = {}
    for record in errors:
        by_type[record['error_type']] = by_type.get(record['error_type'], 0) + 1
    return {
        'total_errors': len(errors),
        'by_type': by_type,
        'keys': [record['key'] for record in errors],
        'errors': errors,  # Full error details
    }


def notify_policy(policy: ErrorPolicy, error: BaseException, key: Hashable,
                  multiplexer_name: str) -> None:
    """
    Hand a failure to ``policy`` without letting the policy break delivery.

    An exception raised by the policy itself is logged and dropped so
    that the task's FAILED outcome still reaches the consumer.
    """
    try:
        policy.handle(error, key, multiplexer_name)
    except Exception:
        logger.warning("Error policy %s raised while handling failure of task %r in %s",
                       type(policy).__name__, key, multiplexer_name, exc_info=True)


__all__ = [
    'ErrorPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    'notify_policy',
]
