"""Configuration re-export for the aio package.

Keeps ``from treefutures.aio.config import MultiplexerConfig`` working
while the definitions live in the _common package.
"""

from .._common.config import (
    MultiplexerConfig,
    OutcomeStatus,
    TaskStatus,
)

__all__ = [
    'MultiplexerConfig',
    'OutcomeStatus',
    'TaskStatus',
]
