#!/usr/bin/env python3
"""
Basic example showing keyed multiplexing with treefutures.

This example demonstrates:
- Registering keyed work and consuming outcomes as they finish
- Aborting one task through its AbortHandle
- Telling values, failures and aborts apart
"""

import asyncio
import random
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from treefutures import TaskMultiplexer


async def compute(value):
    """Pretend to do some I/O, then return ``value``."""
    await asyncio.sleep(random.uniform(0.01, 0.2))
    return value


async def flaky():
    await asyncio.sleep(0.05)
    raise ConnectionError("upstream went away")


async def main():
    mux = TaskMultiplexer()

    mux.register(1, compute(10))
    mux.register(2, compute(20))
    mux.register(3, flaky())
    handle = mux.register_abortable(4, compute(30))

    # Changed our mind about task 4
    handle.abort()

    total = 0
    async for task_id, outcome in mux:
        if outcome.is_value:
            print(f"Task {task_id}: value {outcome.value}")
            total += outcome.value
        elif outcome.is_failed:
            print(f"Task {task_id}: failed ({outcome.error})")
        else:
            print(f"Task {task_id}: aborted")

    print(f"\nSum of values: {total}")


if __name__ == "__main__":
    asyncio.run(main())
