"""
Keyed multiplexer for concurrently running asyncio work.

Callers register awaitables under keys of their choosing. The
multiplexer runs them concurrently on the event loop that drives it and
hands back ``(key, Outcome)`` pairs in the order the work actually
finishes, not the order it was registered.

Example:
    mux = TaskMultiplexer()
    mux.register(1, fetch(1))
    handle = mux.register_abortable(2, fetch(2))
    handle.abort()

    async for key, outcome in mux:
        print(key, outcome)
"""

import asyncio
import functools
import inspect
import itertools
import logging
import threading
import time
import weakref
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Hashable, List, Optional, Set, Tuple, Union

from cachetools import TTLCache

from .._common.config import MultiplexerConfig, TaskStatus
from .error_policies import ErrorPolicy, ContinueOnErrorsPolicy, notify_policy
from .errors import (
    MultiplexerClosedError,
    ConcurrentConsumerError,
    MultiplexerError,
    EventLoopMismatchError,
    ForeignThreadError,
)
from .outcome import Outcome, OutcomeRecord

logger = logging.getLogger(__name__)

Work = Union[Awaitable[Any], Callable[[], Awaitable[Any]]]


class _TaskEntry:
    """One registered unit of work and its lifecycle state."""

    __slots__ = ('seq', 'key', 'work', 'task', 'callback', 'status',
                 'registered_at', '__weakref__')

    def __init__(self, seq: int, key: Hashable, work: Awaitable[Any]):
        self.seq = seq
        self.key = key
        self.work = work
        self.task: Optional[asyncio.Future] = None
        self.callback: Optional[Callable[[asyncio.Future], None]] = None
        self.status = TaskStatus.PENDING
        self.registered_at = time.monotonic()


class AbortHandle:
    """
    Capability to abort exactly one registered task.

    The handle only keeps weak references to the multiplexer and to the
    task it was issued for, so holding it never keeps either alive.
    Aborting a task that already finished, was delivered, or whose
    multiplexer is gone is a silent no-op.
    """

    __slots__ = ('key', '_mux_ref', '_entry_ref', '_took_effect')

    def __init__(self, multiplexer: 'TaskMultiplexer', entry: _TaskEntry):
        self.key = entry.key
        self._mux_ref = weakref.ref(multiplexer)
        self._entry_ref = weakref.ref(entry)
        self._took_effect = False

    def abort(self) -> bool:
        """
        Request cancellation of the task this handle was issued for.

        Never suspends and never raises. The task's outcome becomes
        ABORTED unless it had already finished on its own.

        Returns:
            True if this call aborted the task, False if it was a no-op
        """
        mux = self._mux_ref()
        entry = self._entry_ref()
        if mux is None or entry is None:
            return False

        if mux._abort_entry(entry):
            self._took_effect = True
            return True
        return False

    @property
    def is_aborted(self) -> bool:
        """True once a call to abort() has taken effect."""
        return self._took_effect

    def __repr__(self) -> str:
        return f"AbortHandle(key={self.key!r}, aborted={self._took_effect})"


def _as_awaitable(work: Work) -> Awaitable[Any]:
    """Accept an awaitable, or a zero-argument callable producing one."""
    if not inspect.isawaitable(work) and callable(work):
        work = work()
    if not inspect.isawaitable(work):
        raise TypeError(f"work must be awaitable or return an awaitable, got {type(work).__name__}")
    return work


def _discard_work(work: Any) -> None:
    """Stop work that was registered but never scheduled."""
    if inspect.iscoroutine(work):
        work.close()
    elif isinstance(work, asyncio.Future):
        work.cancel()


def _task_done(mux_ref: 'weakref.ref', entry: _TaskEntry, task: asyncio.Future) -> None:
    # Always retrieve the exception so asyncio does not report it as unhandled
    if not task.cancelled():
        task.exception()

    mux = mux_ref()
    if mux is not None:
        mux._on_task_done(entry, task)


class TaskMultiplexer:
    """
    Drive keyed asyncio work concurrently and deliver outcomes as they finish.

    The multiplexer owns every registered task until its outcome has
    been delivered through next(). Work registered before the first
    next() call is scheduled on the loop that makes that call; work
    registered while a consumer is suspended in next() is scheduled
    immediately, so the live set can keep growing during consumption.

    Tearing the multiplexer down (close(), aclose(), leaving ``async
    with`` or garbage collection) aborts every task still pending. The
    ABORTED outcomes produced by teardown can still be drained; once
    they are, further use raises MultiplexerClosedError.

    Not thread-safe: once bound to a loop, calls from any other thread
    raise ForeignThreadError.
    """

    def __init__(self, config: Optional[MultiplexerConfig] = None,
                 error_policy: Optional[ErrorPolicy] = None):
        """
        Initialize an empty multiplexer.

        Args:
            config: Multiplexer configuration (defaults to MultiplexerConfig())
            error_policy: Observer for task failures (defaults to a
                          non-verbose ContinueOnErrorsPolicy)

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or MultiplexerConfig()

        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")

        self._policy = error_policy or ContinueOnErrorsPolicy(verbose=False)

        self._live: Dict[int, _TaskEntry] = {}
        self._completed: Deque[Tuple[_TaskEntry, Outcome]] = deque()
        self._cancelling: Set[asyncio.Future] = set()
        self._waiter: Optional[asyncio.Future] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread_id: Optional[int] = None
        self._closed = False
        self._ids = itertools.count(1)
        self._delivered_seq = 0

        if self.config.history_enabled:
            self._history: Optional[TTLCache] = TTLCache(
                maxsize=self.config.history_size, ttl=self.config.history_ttl)
        else:
            self._history = None

        # Statistics
        self.stats = {
            'registered': 0,
            'delivered': 0,
            'values': 0,
            'failures': 0,
            'aborted': 0,
            'removed': 0,
        }

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def error_policy(self) -> ErrorPolicy:
        return self._policy

    # Registration

    def register(self, key: Hashable, work: Work) -> None:
        """
        Register ``work`` under ``key``.

        Never suspends. The work starts making progress the next time
        the multiplexer is driven.

        Args:
            key: Hashable identifier reported with the outcome
            work: Awaitable, or zero-argument callable returning one

        Raises:
            MultiplexerClosedError: If the multiplexer was torn down
            ForeignThreadError: If called outside the bound loop's thread
            TypeError: If key is not hashable or work is not awaitable
        """
        self._add_entry(key, work)

    def register_abortable(self, key: Hashable, work: Work) -> AbortHandle:
        """
        Register ``work`` under ``key`` and return a handle that can abort it.

        Same semantics as register().

        Returns:
            AbortHandle bound to this task instance
        """
        entry = self._add_entry(key, work)
        return AbortHandle(self, entry)

    def _check_thread(self, operation: str) -> None:
        if self._thread_id is not None and threading.get_ident() != self._thread_id:
            raise ForeignThreadError(
                f"Cannot {operation}: multiplexer '{self.name}' is bound to an "
                f"event loop running in another thread")

    def _add_entry(self, key: Hashable, work: Work) -> _TaskEntry:
        # Rejected coroutines are closed so they are not reported as never awaited
        try:
            if self._closed:
                raise MultiplexerClosedError(self.name, "register work")
            self._check_thread("register work")
            hash(key)
        except (MultiplexerError, TypeError):
            if inspect.iscoroutine(work):
                work.close()
            raise

        entry = _TaskEntry(next(self._ids), key, _as_awaitable(work))

        # A suspended consumer is driving the loop right now
        if self._waiter is not None:
            try:
                self._spawn(entry)
            except Exception:
                if inspect.iscoroutine(entry.work):
                    entry.work.close()
                raise

        self._live[entry.seq] = entry
        self.stats['registered'] += 1
        logger.debug("%s: registered task %r (#%d)", self.name, key, entry.seq)
        return entry

    def _spawn(self, entry: _TaskEntry) -> None:
        entry.task = asyncio.ensure_future(entry.work, loop=self._loop)
        entry.callback = functools.partial(_task_done, weakref.ref(self), entry)
        entry.task.add_done_callback(entry.callback)

    def _spawn_pending(self) -> None:
        for entry in list(self._live.values()):
            if entry.task is not None or entry.status is not TaskStatus.PENDING:
                continue
            try:
                self._spawn(entry)
            except Exception:
                # Work that cannot run on this loop is dropped, not left live
                del self._live[entry.seq]
                self.stats['registered'] -= 1
                if inspect.iscoroutine(entry.work):
                    entry.work.close()
                raise

    # Completion

    def _on_task_done(self, entry: _TaskEntry, task: asyncio.Future) -> None:
        self._cancelling.discard(task)

        # Removed, or already aborted
        if entry.seq not in self._live or entry.status is not TaskStatus.PENDING:
            return

        # Aborts finish the entry before this runs, so a cancelled task here
        # cancelled itself and counts as a failure
        if task.cancelled():
            try:
                task.result()
            except asyncio.CancelledError as exc:
                error = exc
        else:
            error = task.exception()

        if error is None:
            outcome = Outcome.of_value(task.result())
        else:
            notify_policy(self._policy, error, entry.key, self.name)
            outcome = Outcome.of_error(error)

        self._finish(entry, outcome)

    def _finish(self, entry: _TaskEntry, outcome: Outcome) -> None:
        entry.status = TaskStatus.CANCELLED if outcome.is_aborted else TaskStatus.COMPLETED
        entry.work = None
        self._completed.append((entry, outcome))

        waiter = self._waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    def _abort_entry(self, entry: _TaskEntry) -> bool:
        if entry.seq not in self._live or entry.status is not TaskStatus.PENDING:
            return False

        task = entry.task
        if task is None:
            _discard_work(entry.work)
        elif task.done():
            # Finished on its own; the computed outcome is already on its way
            return False
        else:
            task.cancel()
            self._cancelling.add(task)

        logger.debug("%s: aborted task %r (#%d)", self.name, entry.key, entry.seq)
        self._finish(entry, Outcome.aborted())
        return True

    # Consumption

    async def next(self) -> Optional[Tuple[Hashable, Outcome]]:
        """
        Wait for the next task to finish and return its key and outcome.

        Suspends until some task completes or is aborted. Outcomes are
        returned in completion order, each exactly once.

        Returns:
            (key, Outcome) tuple, or None when nothing is left to deliver.
            None is a snapshot: registering more work makes next()
            productive again.

        Raises:
            MultiplexerClosedError: If torn down and fully drained
            ConcurrentConsumerError: If another next() call is suspended
            EventLoopMismatchError: If called from a different event loop
        """
        loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = loop
            self._thread_id = threading.get_ident()
        elif self._loop is not loop:
            raise EventLoopMismatchError(
                f"Multiplexer '{self.name}' is bound to a different event loop")

        if self._waiter is not None:
            raise ConcurrentConsumerError(
                f"Multiplexer '{self.name}' already has a suspended consumer")

        self._spawn_pending()

        while not self._completed:
            if not self._live:
                if self._closed:
                    raise MultiplexerClosedError(self.name, "call next()")
                return None

            self._waiter = loop.create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None

        entry, outcome = self._completed.popleft()
        del self._live[entry.seq]
        self._record_delivery(entry, outcome)
        return entry.key, outcome

    def _record_delivery(self, entry: _TaskEntry, outcome: Outcome) -> None:
        self._delivered_seq += 1
        self.stats['delivered'] += 1
        if outcome.is_value:
            self.stats['values'] += 1
        elif outcome.is_failed:
            self.stats['failures'] += 1
        else:
            self.stats['aborted'] += 1

        if self._history is not None:
            self._history[self._delivered_seq] = OutcomeRecord(
                sequence=self._delivered_seq,
                key=entry.key,
                outcome=outcome,
                elapsed=time.monotonic() - entry.registered_at,
            )

        logger.debug("%s: delivered %s outcome for task %r (#%d)",
                     self.name, outcome.status.value, entry.key, entry.seq)

    def __aiter__(self) -> 'TaskMultiplexer':
        return self

    async def __anext__(self) -> Tuple[Hashable, Outcome]:
        item = await self.next()
        if item is None:
            raise StopAsyncIteration
        return item

    # Removal and cancellation

    def remove(self, key: Hashable) -> Optional[Awaitable[Any]]:
        """
        Detach the oldest pending task registered under ``key``.

        The removed task is no longer tracked and produces no outcome
        through next(). Its awaitable is handed back so the caller can
        await or cancel it directly.

        Args:
            key: Key the task was registered under

        Returns:
            The original awaitable if the task never started, the running
            asyncio task if it did, or None if no pending task has that key
        """
        self._check_thread("remove work")

        for seq, entry in self._live.items():
            if entry.key == key and entry.status is TaskStatus.PENDING:
                break
        else:
            return None

        del self._live[seq]
        self.stats['removed'] += 1
        logger.debug("%s: removed task %r (#%d)", self.name, key, seq)

        if entry.task is None:
            work, entry.work = entry.work, None
            return work

        entry.task.remove_done_callback(entry.callback)
        return entry.task

    def abort_all(self) -> int:
        """
        Abort every pending task, abortable or not.

        The multiplexer stays open and keeps accepting work.

        Returns:
            Number of tasks that were aborted by this call
        """
        aborted = 0
        for entry in list(self._live.values()):
            if self._abort_entry(entry):
                aborted += 1
        return aborted

    # Teardown

    def close(self) -> int:
        """
        Tear the multiplexer down, aborting every pending task.

        Never suspends. Outcomes produced by the teardown can still be
        drained through next(). Calling close() again is a no-op.

        Returns:
            Number of tasks aborted by the teardown
        """
        self._check_thread("close")
        if self._closed:
            return 0
        self._closed = True
        aborted = self.abort_all()
        logger.debug("%s: closed, %d pending task(s) aborted", self.name, aborted)
        return aborted

    async def aclose(self) -> int:
        """
        Tear the multiplexer down and wait for cancelled work to unwind.

        Returns:
            Number of tasks aborted by the teardown
        """
        aborted = self.close()
        if self._cancelling:
            await asyncio.gather(*list(self._cancelling), return_exceptions=True)
        return aborted

    async def __aenter__(self) -> 'TaskMultiplexer':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return None

    def __del__(self):
        live = getattr(self, '_live', None)
        if not live or getattr(self, '_closed', True):
            return

        for entry in live.values():
            if entry.status is not TaskStatus.PENDING:
                continue
            if entry.task is None:
                _discard_work(entry.work)
            elif not entry.task.done() and not entry.task.get_loop().is_closed():
                entry.task.cancel()

    # Introspection

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_empty(self) -> bool:
        """True when no outcome is left to deliver."""
        return not self._live

    def __len__(self) -> int:
        """Number of registered tasks whose outcome has not been delivered."""
        return len(self._live)

    def __contains__(self, key: Hashable) -> bool:
        return any(entry.key == key for entry in self._live.values())

    def pending_keys(self) -> List[Hashable]:
        """Keys of undelivered tasks, in registration order."""
        return [entry.key for entry in self._live.values()]

    def recent_outcomes(self) -> List[OutcomeRecord]:
        """
        Delivered outcomes still held in the history cache.

        Returns:
            OutcomeRecords in delivery order (empty if history is disabled)
        """
        if self._history is None:
            return []
        self._history.expire()
        return sorted(self._history.values(), key=lambda record: record.sequence)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about this multiplexing session.

        Returns:
            Dictionary with lifetime counters plus current pending and
            queued counts
        """
        pending = sum(1 for entry in self._live.values()
                      if entry.status is TaskStatus.PENDING)
        return {
            **self.stats,
            'pending': pending,
            'queued': len(self._completed),
            'closed': self._closed,
        }

    def __repr__(self) -> str:
        return (f"TaskMultiplexer(name={self.name!r}, live={len(self._live)}, "
                f"closed={self._closed})")
