"""Test fixtures for treefutures consumers.

These helpers make completion order deterministic in tests and give
read-only access to a multiplexer's state without exposing internals as
part of the public API.
"""

import asyncio
from typing import Any, Dict, Optional

_UNSET = object()


class ControlledWork:
    """Awaitable work whose completion is decided by the test.

    Each call produces a fresh coroutine that waits until release() or
    fail() is called, then returns the value or raises the error.

    Example:
        work = ControlledWork(10)
        mux.register('a', work())
        work.release()
        key, outcome = await mux.next()
    """

    def __init__(self, value: Any = None):
        """Initialize with the value the work will return.

        Args:
            value: Returned once the work is released
        """
        self.value = value
        self.error: Optional[BaseException] = None
        self.started = False
        self.finished = False
        self.cancelled = False
        self._gate: Optional[asyncio.Event] = None
        self._released = False

    def release(self, value: Any = _UNSET) -> None:
        """Let the work finish, optionally overriding its value."""
        if value is not _UNSET:
            self.value = value
        self._released = True
        if self._gate is not None:
            self._gate.set()

    def fail(self, error: BaseException) -> None:
        """Let the work finish by raising ``error``."""
        self.error = error
        self.release()

    async def _run(self) -> Any:
        self.started = True
        self._gate = asyncio.Event()
        if self._released:
            self._gate.set()
        try:
            await self._gate.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        if self.error is not None:
            raise self.error
        return self.value

    def __call__(self):
        return self._run()


class MultiplexerTestHelper:
    """Public test fixture for multiplexer verification.

    Example:
        helper = MultiplexerTestHelper(mux)
        assert helper.get_summary()['pending'] == 2
    """

    def __init__(self, multiplexer):
        """Initialize with the multiplexer under test.

        Args:
            multiplexer: TaskMultiplexer instance
        """
        self._mux = multiplexer

    def get_summary(self) -> Dict[str, Any]:
        """Returns high-level multiplexer state for testing.

        Returns:
            Dictionary containing:
            - live: Tasks whose outcome has not been delivered
            - pending: Tasks still running or not yet started
            - queued: Finished tasks waiting for next()
            - delivered: Outcomes handed out so far
            - closed: Whether the multiplexer was torn down
        """
        stats = self._mux.get_statistics()
        return {
            'live': len(self._mux),
            'pending': stats['pending'],
            'queued': stats['queued'],
            'delivered': stats['delivered'],
            'closed': stats['closed'],
        }

    def delivered_keys(self):
        """Keys of delivered outcomes still held in history, in delivery order."""
        return [record.key for record in self._mux.recent_outcomes()]


async def wait_until(predicate, max_iterations: int = 1000) -> None:
    """Yield to the event loop until ``predicate()`` is true.

    Args:
        predicate: Zero-argument callable checked after every loop turn
        max_iterations: Loop turns to allow before giving up

    Raises:
        AssertionError: If the predicate never became true
    """
    for _ in range(max_iterations):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError(f"Condition not met after {max_iterations} loop iterations")
