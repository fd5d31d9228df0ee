"""
Ordered worker-pool map with an optional deadline.

The bandwidth sweep (one task per candidate) and the smoothing pass (one
task per time step) are independent units of work over read-only inputs;
this helper runs them sequentially or on a thread/process pool and
returns results in input order.
"""

from concurrent.futures import (
    Executor,
    FIRST_EXCEPTION,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from typing import Callable, List, Optional, Sequence, TypeVar
import logging
import time

from tqdm import tqdm

from stsmooth.errors import DeadlineExceededError, ParameterError

__all__ = ["map_ordered", "BACKENDS"]

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

BACKENDS = ("thread", "process")


def _create_executor(backend: str, workers: int) -> Executor:
    if backend == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    elif backend == "process":
        return ProcessPoolExecutor(max_workers=workers)
    raise ParameterError(
        f"Unknown backend '{backend}'",
        suggestion=f"Use one of: {', '.join(BACKENDS)}",
    )


def _deadline_error(timeout: float, done: int, total: int, description: str) -> DeadlineExceededError:
    return DeadlineExceededError(
        f"{description or 'Computation'} exceeded its {timeout:g}s deadline "
        f"({done} of {total} tasks finished)",
        suggestion="Raise the timeout, use fewer candidates or more workers",
        details={"timeout": timeout, "completed": done, "total": total},
    )


def map_ordered(
    func: Callable[[T], R],
    items: Sequence[T],
    workers: int = 1,
    backend: str = "thread",
    timeout: Optional[float] = None,
    show_progress: bool = False,
    description: str = "",
) -> List[R]:
    """
    Apply ``func`` to every item and return results in input order.

    Args:
        func: Callable applied to each item (must be picklable for the
            process backend)
        items: Work items
        workers: Number of workers; 1 or less runs in the calling thread
        backend: "thread" or "process"
        timeout: Overall deadline in seconds (None: no deadline). Run
            sequentially, it is checked after each task. With a pool, the
            error is raised as soon as the deadline passes and queued tasks
            are cancelled; tasks already running are not interrupted, and
            the interpreter waits for them before exiting
        show_progress: Display a tqdm progress bar
        description: Label for the progress bar and error messages

    Returns:
        List of results, one per item

    Raises:
        DeadlineExceededError: If the deadline passes before all items finish
    """
    items = list(items)
    total = len(items)
    deadline = None if timeout is None else time.monotonic() + timeout

    if backend not in BACKENDS:
        raise ParameterError(f"Unknown backend '{backend}'")

    with tqdm(total=total, desc=description or None, disable=not show_progress) as bar:
        if workers <= 1 or total <= 1:
            results = []
            for item in items:
                results.append(func(item))
                bar.update(1)
                if deadline is not None and time.monotonic() > deadline and len(results) < total:
                    raise _deadline_error(timeout, len(results), total, description)
            return results

        executor = _create_executor(backend, min(workers, total))
        try:
            futures = [executor.submit(func, item) for item in items]
            pending = set(futures)

            while pending:
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_EXCEPTION)
                bar.update(len(done))

                for future in done:
                    # Re-raise the first worker failure
                    if future.exception() is not None:
                        raise future.exception()

                if pending and deadline is not None and time.monotonic() >= deadline:
                    raise _deadline_error(timeout, total - len(pending), total, description)

            return [f.result() for f in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
