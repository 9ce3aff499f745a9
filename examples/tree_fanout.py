#!/usr/bin/env python3
"""
Fan-out example: summing a binary tree with dynamically registered work.

The multiplexer knows nothing about trees. Each node's work registers
its children on the same multiplexer while the consumer is already
draining it, and the caller adds up values as they arrive.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from treefutures import TaskMultiplexer, MultiplexerConfig

MAX_DEPTH = 4


async def visit(mux, node_id, depth):
    """Return the node's value and register its children."""
    await asyncio.sleep(0.001 * (MAX_DEPTH - depth))
    if depth < MAX_DEPTH:
        mux.register(node_id * 2, visit(mux, node_id * 2, depth + 1))
        mux.register(node_id * 2 + 1, visit(mux, node_id * 2 + 1, depth + 1))
    return node_id


async def main():
    async with TaskMultiplexer(MultiplexerConfig(name="tree")) as mux:
        mux.register(1, visit(mux, 1, 0))

        order = []
        total = 0
        async for node_id, outcome in mux:
            order.append(node_id)
            total += outcome.unwrap()

        stats = mux.get_statistics()

    print(f"Visited {len(order)} nodes in completion order: {order}")
    print(f"Sum of node ids: {total}")
    print(f"Delivered: {stats['delivered']}, still pending: {stats['pending']}")


if __name__ == "__main__":
    asyncio.run(main())
