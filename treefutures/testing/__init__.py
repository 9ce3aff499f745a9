"""Testing utilities for treefutures consumers."""

from .fixtures import ControlledWork, MultiplexerTestHelper, wait_until

__all__ = ['ControlledWork', 'MultiplexerTestHelper', 'wait_until']
