"""treefutures - Keyed multiplexing of concurrent asyncio work.

Register awaitables under keys of your choosing, then consume one
channel of (key, outcome) pairs in the order the work finishes.

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from treefutures import TaskMultiplexer

    mux = TaskMultiplexer()
    mux.register(1, compute(10))
    mux.register(2, compute(20))

    total = 0
    async for key, outcome in mux:
        total += outcome.unwrap()
━━━━━━━━━━━━━━━━━━━━━━━━━━

Abortable work:
    handle = mux.register_abortable(1, compute(30))
    handle.abort()
    key, outcome = await mux.next()   # outcome.is_aborted is True
"""

__version__ = "0.1.0"

from . import aio
from .aio import (
    TaskMultiplexer,
    AbortHandle,
    Outcome,
    OutcomeStatus,
    MultiplexerConfig,
    TreeFutureError,
    MultiplexerError,
    MultiplexerClosedError,
    TaskAbortedError,
)

__all__ = [
    "__version__",
    "aio",
    "TaskMultiplexer",
    "AbortHandle",
    "Outcome",
    "OutcomeStatus",
    "MultiplexerConfig",
    "TreeFutureError",
    "MultiplexerError",
    "MultiplexerClosedError",
    "TaskAbortedError",
]
