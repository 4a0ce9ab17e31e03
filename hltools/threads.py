"""Hand out numbered work items to a pool of worker threads."""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import Callable, Optional, TextIO

__all__ = [
    "MAX_THREADS",
    "WorkDispatcher",
    "default_thread_count",
    "run_threads_on",
    "run_threads_on_individual",
]

MAX_THREADS = 64


class WorkDispatcher:
    """Hands out the work numbers 0 .. workcount-1, once each, under a lock."""

    def __init__(
        self, workcount: int, pacifier: bool = False, out: Optional[TextIO] = None
    ) -> None:
        self.workcount = workcount
        self.pacifier = pacifier
        self._out = out if out is not None else sys.stdout
        self._dispatch = 0
        self._oldf = -1
        self._lock = threading.Lock()

    def get_work(self) -> Optional[int]:
        """Return the next work number, or None when all have been handed out."""
        with self._lock:
            if self._dispatch >= self.workcount:
                return None
            fraction = 10 * self._dispatch // self.workcount
            if fraction != self._oldf:
                self._oldf = fraction
                if self.pacifier:
                    self._out.write(f"{fraction}...")
            work = self._dispatch
            self._dispatch += 1
            return work


def default_thread_count() -> int:
    """Return the number of processors, or 1 if that is unknown or above 32."""
    count = os.cpu_count() or 0
    if count < 1 or count > 32:
        return 1
    return count


def run_threads_on(
    workcount: int,
    func: Callable[[int, WorkDispatcher], None],
    numthreads: Optional[int] = None,
    pacifier: bool = False,
    out: Optional[TextIO] = None,
) -> int:
    """Run ``func(threadnum, dispatcher)`` on each thread and wait for them.

    The workers take their items from the dispatcher. Returns the elapsed
    whole seconds; the first exception raised by a worker is re-raised.
    """
    if numthreads is None:
        numthreads = default_thread_count()
    numthreads = min(numthreads, MAX_THREADS)
    stream = out if out is not None else sys.stdout
    dispatcher = WorkDispatcher(workcount, pacifier, stream)
    errors: list[BaseException] = []
    errors_lock = threading.Lock()

    def worker(threadnum: int) -> None:
        try:
            func(threadnum, dispatcher)
        except BaseException as exc:  # re-raised in the calling thread
            with errors_lock:
                errors.append(exc)

    start = int(time.time())
    threads = [threading.Thread(target=worker, args=(n,)) for n in range(numthreads)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    elapsed = int(time.time()) - start

    if errors:
        raise errors[0]
    if pacifier:
        stream.write(f" ({elapsed})\n")
    return elapsed


def run_threads_on_individual(
    workcount: int,
    func: Callable[[int], None],
    numthreads: Optional[int] = None,
    pacifier: bool = False,
    out: Optional[TextIO] = None,
) -> int:
    """Call ``func(work)`` once for every work number, spread over threads."""

    def worker(_threadnum: int, dispatcher: WorkDispatcher) -> None:
        while True:
            work = dispatcher.get_work()
            if work is None:
                break
            func(work)

    return run_threads_on(workcount, worker, numthreads, pacifier, out)