"""PLC stack — run the recursive passes with room for deeply nested programs."""

from __future__ import annotations

import sys
import threading
from typing import Callable, TypeVar

T = TypeVar("T")

# Each PLC call or nesting level costs about a dozen Python frames
RECURSION_LIMIT = 100_000
STACK_SIZE = 512 * 1024 * 1024


def call_deep(fn: Callable[[], T]) -> T:
    """Call fn on a worker thread with a large stack and a raised recursion limit.

    Exceptions raised by fn, RecursionError included, propagate to the caller.
    """
    results: list[T] = []
    errors: list[BaseException] = []

    def target() -> None:
        try:
            results.append(fn())
        except BaseException as e:
            errors.append(e)

    saved_limit = sys.getrecursionlimit()
    saved_stack = threading.stack_size(STACK_SIZE)
    sys.setrecursionlimit(RECURSION_LIMIT)
    try:
        worker = threading.Thread(target=target, name="plc", daemon=True)
        worker.start()
    finally:
        threading.stack_size(saved_stack)
    try:
        worker.join()
    finally:
        sys.setrecursionlimit(saved_limit)
    if errors:
        raise errors[0]
    return results[0]
