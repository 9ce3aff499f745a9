"""Configuration system for treefutures.

This module defines how users tune a multiplexing session: how it is
named in logs and how much delivered-outcome history it keeps around
for introspection.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List


class OutcomeStatus(Enum):
    """Terminal state reported for one task through the completion sequence.

    VALUE and FAILED are produced by the task's own logic. ABORTED is a
    concurrency-layer outcome and never comes from the task itself.
    """
    VALUE = "value"        # Computation finished and returned a value
    FAILED = "failed"      # Computation raised an exception
    ABORTED = "aborted"    # Cancelled before it could finish


class TaskStatus(Enum):
    """Lifecycle of a registered task."""
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class MultiplexerConfig:
    """Complete configuration for a TaskMultiplexer.

    All fields have defaults, so ``TaskMultiplexer()`` works without
    any configuration at all.
    """

    # Identification
    name: str = "multiplexer"         # Used in log messages and repr

    # Delivered-outcome history
    history_size: int = 1000          # Max records kept (0 disables history)
    history_ttl: float = 300.0        # Seconds a record stays available

    @classmethod
    def no_history(cls, name: str = "multiplexer") -> 'MultiplexerConfig':
        """Create config that keeps no delivered-outcome history.

        Args:
            name: Multiplexer name for log messages

        Returns:
            MultiplexerConfig with history disabled
        """
        return cls(name=name, history_size=0)

    @property
    def history_enabled(self) -> bool:
        """True when delivered outcomes are recorded."""
        return self.history_size > 0

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.name, str) or not self.name:
            errors.append("name must be a non-empty string")

        if self.history_size < 0:
            errors.append("history_size cannot be negative")

        if self.history_ttl <= 0:
            errors.append("history_ttl must be positive")

        return errors
