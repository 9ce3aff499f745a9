"""
Exception hierarchy for treefutures.

Task-level failures are never raised by the multiplexer; they travel
inside an Outcome. The exceptions here signal misuse of the multiplexer
itself, plus TaskAbortedError which Outcome.unwrap() raises for aborted
tasks.
"""


class TreeFutureError(Exception):
    """Base class for all treefutures exceptions."""
    pass


class MultiplexerError(TreeFutureError):
    """
    Raised when the multiplexer's ownership invariants are violated.

    These are programming errors in the caller and are always raised
    immediately, never reported through the completion sequence.
    """
    pass


class MultiplexerClosedError(MultiplexerError):
    """The multiplexer was used after it had been torn down."""

    def __init__(self, name: str, operation: str):
        self.name = name
        self.operation = operation
        super().__init__(f"Cannot {operation}: multiplexer '{name}' is closed")


class ConcurrentConsumerError(MultiplexerError):
    """A second consumer called next() while another one was suspended."""
    pass


class EventLoopMismatchError(MultiplexerError):
    """The multiplexer was driven from an event loop it is not bound to."""
    pass


class ForeignThreadError(MultiplexerError):
    """The multiplexer was used from a thread other than its event loop's."""
    pass


class TaskAbortedError(TreeFutureError):
    """Raised by Outcome.unwrap() when the task was aborted."""

    def __init__(self, key=None):
        self.key = key
        super().__init__("Task was aborted" if key is None else f"Task {key!r} was aborted")


__all__ = [
    'TreeFutureError',
    'MultiplexerError',
    'MultiplexerClosedError',
    'ConcurrentConsumerError',
    'EventLoopMismatchError',
    'ForeignThreadError',
    'TaskAbortedError',
]
