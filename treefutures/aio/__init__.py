"""Asynchronous implementation of treefutures.

This package contains the asyncio-native keyed task multiplexer and
the outcome, error and configuration types that travel with it.
"""

# Core
from .multiplexer import (
    TaskMultiplexer,
    AbortHandle,
)

# Outcomes
from .outcome import (
    Outcome,
    OutcomeRecord,
)

# Errors
from .errors import (
    TreeFutureError,
    MultiplexerError,
    MultiplexerClosedError,
    ConcurrentConsumerError,
    EventLoopMismatchError,
    ForeignThreadError,
    TaskAbortedError,
)

# Error policies
from .error_policies import (
    ErrorPolicy,
    ContinueOnErrorsPolicy,
    CollectErrorsPolicy,
)

# High-level API
from .api import (
    drain,
    gather_keyed,
    as_completed_keyed,
)

# Configuration (re-exported from _common)
from .config import (
    MultiplexerConfig,
    OutcomeStatus,
    TaskStatus,
)

__all__ = [
    # Core
    'TaskMultiplexer',
    'AbortHandle',
    # Outcomes
    'Outcome',
    'OutcomeRecord',
    # Errors
    'TreeFutureError',
    'MultiplexerError',
    'MultiplexerClosedError',
    'ConcurrentConsumerError',
    'EventLoopMismatchError',
    'ForeignThreadError',
    'TaskAbortedError',
    # Error policies
    'ErrorPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    # High-level API
    'drain',
    'gather_keyed',
    'as_completed_keyed',
    # Configuration
    'MultiplexerConfig',
    'OutcomeStatus',
    'TaskStatus',
]
