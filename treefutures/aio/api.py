"""High-level async API for treefutures.

Small helpers for the common one-shot pattern: register a batch of keyed
work, then consume every outcome. Anything more dynamic should use
TaskMultiplexer directly.
"""

from typing import AsyncIterator, Dict, Hashable, List, Mapping, Optional, Tuple

from .config import MultiplexerConfig
from .error_policies import ErrorPolicy
from .multiplexer import TaskMultiplexer, Work
from .outcome import Outcome


async def drain(multiplexer: TaskMultiplexer) -> List[Tuple[Hashable, Outcome]]:
    """Collect outcomes from ``multiplexer`` until end-of-sequence.

    Args:
        multiplexer: Multiplexer to consume

    Returns:
        (key, Outcome) pairs in completion order
    """
    return [item async for item in multiplexer]


async def as_completed_keyed(
    work: Mapping[Hashable, Work],
    config: Optional[MultiplexerConfig] = None,
    error_policy: Optional[ErrorPolicy] = None
) -> AsyncIterator[Tuple[Hashable, Outcome]]:
    """Run every ``key -> work`` item and yield outcomes as they finish.

    Work still pending when the consumer stops iterating early is
    aborted.

    Args:
        work: Mapping of key to awaitable (or zero-argument async callable)
        config: Optional multiplexer configuration
        error_policy: Optional observer for task failures

    Yields:
        (key, Outcome) pairs in completion order

    Example:
        >>> async for key, outcome in as_completed_keyed({'a': fetch('a')}):
        ...     print(key, outcome.unwrap_or(None))
    """
    async with TaskMultiplexer(config, error_policy) as mux:
        for key, item in work.items():
            mux.register(key, item)

        async for key, outcome in mux:
            yield key, outcome


async def gather_keyed(
    work: Mapping[Hashable, Work],
    config: Optional[MultiplexerConfig] = None,
    error_policy: Optional[ErrorPolicy] = None
) -> Dict[Hashable, Outcome]:
    """Run every ``key -> work`` item concurrently and collect the outcomes.

    Unlike ``asyncio.gather``, a failing item never cancels the others;
    its exception is returned inside a FAILED outcome.

    Args:
        work: Mapping of key to awaitable (or zero-argument async callable)
        config: Optional multiplexer configuration
        error_policy: Optional observer for task failures

    Returns:
        Dictionary mapping each key to its Outcome
    """
    results: Dict[Hashable, Outcome] = {}
    async for key, outcome in as_completed_keyed(work, config, error_policy):
        results[key] = outcome
    return results

