"""Common components shared across treefutures.

This internal package contains non-I/O code: configuration classes
and status enums. It should NOT be imported directly by users.

Important: This package must NEVER import from aio to avoid
circular dependencies.
"""

from .config import (
    MultiplexerConfig,
    OutcomeStatus,
    TaskStatus,
)

__all__ = [
    'MultiplexerConfig',
    'OutcomeStatus',
    'TaskStatus',
]
