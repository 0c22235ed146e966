"""Background executors used by the model after a structure load."""

from __future__ import annotations

from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor
import multiprocessing as mp
from typing import Any, Callable, Optional


class Worker:
    """Owns the pools that build info tables and warm the geometry cache.

    Table building only needs the immutable ``Structure`` and may go to a
    process pool. Cache pre-warming mutates the shared ``GeometryCache``
    and therefore always stays on the thread pool.
    """

    def __init__(self, max_workers: int = 1, max_processes: int = 0) -> None:
        """Create the pools.

        Parameters
        ----------
        max_workers
            Threads for ``submit``.
        max_processes
            Processes for ``submit_cpu``; 0 routes CPU work to the threads.
        """

        self._threads = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pdbview"
        )
        self._processes: Optional[ProcessPoolExecutor] = None
        if max_processes > 0:
            self._processes = ProcessPoolExecutor(
                max_workers=max_processes, mp_context=mp.get_context("spawn")
            )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        return self._threads.submit(fn, *args, **kwargs)

    def submit_cpu(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule CPU-bound work.

        With a process pool, ``fn`` and its arguments must pickle.
        """
        if self._processes is None:
            return self._threads.submit(fn, *args, **kwargs)
        return self._processes.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._threads.shutdown(wait=wait)
        if self._processes is not None:
            self._processes.shutdown(wait=wait)

    def __enter__(self) -> "Worker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
