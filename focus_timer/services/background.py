import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional, Set, Union

logger = logging.getLogger(__name__)

class BackgroundTasks:
    """Fire-and-forget runner for side effects that must not stall the timer.

    Inside a running event loop work is handed to ``asyncio.to_thread``;
    without one it goes to a small thread pool. Work spawned on a named
    ``lane`` runs on that lane's single worker instead, strictly in
    submission order, so side effects of one collaborator apply in the
    order the engine emitted them. Every call is isolated: an exception is
    logged and swallowed so one failing side effect never affects the
    caller or the other submitted calls.
    """

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lanes: Dict[str, ThreadPoolExecutor] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()
        self._failures = 0

    @property
    def pending(self) -> int:
        return len(self._tasks) + len(self._futures)

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def spawn(
        self,
        fn: Callable[..., Any],
        *args: Any,
        description: str = "",
        lane: Optional[str] = None
    ) -> Union[asyncio.Task, Future]:
        """Schedule fn(*args) in the background and return its handle"""
        label = description or getattr(fn, "__name__", repr(fn))
        if lane is not None:
            return self._track(self._lane(lane).submit(self._guarded, fn, args, label))

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(asyncio.to_thread(self._guarded, fn, args, label))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return task

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="focus-timer"
            )
        return self._track(self._executor.submit(self._guarded, fn, args, label))

    def _lane(self, name: str) -> ThreadPoolExecutor:
        with self._lock:
            executor = self._lanes.get(name)
            if executor is None:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"focus-timer-{name}")
                self._lanes[name] = executor
            return executor

    def _track(self, future: Future) -> Future:
        self._futures.add(future)
        future.add_done_callback(self._futures.discard)
        return future

    def _guarded(self, fn: Callable[..., Any], args: tuple, label: str) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            with self._lock:
                self._failures += 1
            logger.error(f"Background task '{label}' failed: {e}")
            return None

    async def wait_until_done(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight work submitted from the event loop, the pool or a lane"""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)
        if self._futures:
            await asyncio.to_thread(self.drain, timeout)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until pool and lane work finishes"""
        if self._futures:
            wait(set(self._futures), timeout=timeout)

    def shutdown(self) -> None:
        """Release the thread pool and lanes; queued and running calls are allowed to finish"""
        if self.pending:
            logger.info(f"Waiting for {self.pending} background task(s) before shutdown")
        executors = list(self._lanes.values())
        self._lanes.clear()
        if self._executor is not None:
            executors.append(self._executor)
            self._executor = None
        for executor in executors:
            executor.shutdown(wait=True)
