"""Outcome types delivered through the completion sequence.

An Outcome is a tagged variant: a computed value, the exception the
task raised, or the Aborted marker. Consumers branch on ``status`` (or
the ``is_*`` properties) and never need to inspect exception types to
tell an abort apart from a task failure.
"""

from dataclasses import dataclass
from typing import Any, Optional, Hashable

from .._common.config import OutcomeStatus
from .errors import TaskAbortedError


class Outcome:
    """Terminal result of one task.

    Build instances through the ``of_value``, ``of_error`` and ``aborted``
    constructors rather than calling the class directly.
    """

    __slots__ = ('status', '_value', '_error')

    def __init__(self, status: OutcomeStatus, value: Any = None,
                 error: Optional[BaseException] = None):
        self.status = status
        self._value = value
        self._error = error

    @classmethod
    def of_value(cls, value: Any) -> 'Outcome':
        """Outcome for a task that returned ``value``."""
        return cls(OutcomeStatus.VALUE, value=value)

    @classmethod
    def of_error(cls, error: BaseException) -> 'Outcome':
        """Outcome for a task that raised ``error``."""
        return cls(OutcomeStatus.FAILED, error=error)

    @classmethod
    def aborted(cls) -> 'Outcome':
        """Outcome for a task cancelled before it finished."""
        return cls(OutcomeStatus.ABORTED)

    @property
    def is_value(self) -> bool:
        return self.status is OutcomeStatus.VALUE

    @property
    def is_failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @property
    def is_aborted(self) -> bool:
        return self.status is OutcomeStatus.ABORTED

    @property
    def value(self) -> Any:
        """The computed value.

        Raises:
            AttributeError: If the outcome does not carry a value
        """
        if not self.is_value:
            raise AttributeError(f"{self.status.value} outcome has no value")
        return self._value

    @property
    def error(self) -> Optional[BaseException]:
        """The exception raised by the task, or None."""
        return self._error

    def unwrap(self, key: Hashable = None) -> Any:
        """Return the value, or raise what prevented one.

        Args:
            key: Optional task key, only used in the TaskAbortedError message

        Returns:
            The computed value

        Raises:
            The task's own exception for FAILED outcomes, and
            TaskAbortedError for ABORTED outcomes.
        """
        if self.is_value:
            return self._value
        if self.is_failed:
            raise self._error
        raise TaskAbortedError(key)

    def unwrap_or(self, default: Any) -> Any:
        """Return the value, or ``default`` for failed and aborted outcomes."""
        return self._value if self.is_value else default

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Outcome):
            return NotImplemented
        return (self.status is other.status
                and self._value == other._value
                and self._error is other._error)

    def __hash__(self) -> int:
        return hash((self.status, id(self._error)))

    def __repr__(self) -> str:
        if self.is_value:
            return f"Outcome.of_value({self._value!r})"
        if self.is_failed:
            return f"Outcome.of_error({self._error!r})"
        return "Outcome.aborted()"


@dataclass(frozen=True)
class OutcomeRecord:
    """One delivered outcome kept in the multiplexer's history."""

    sequence: int        # Delivery order within the session, starting at 1
    key: Any
    outcome: Outcome
    elapsed: float       # Seconds between registration and delivery


__all__ = [
    'Outcome',
    'OutcomeRecord',
]
