import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


class SnapshotQueue:
    """Bounded background submission of snapshot jobs.

    Jobs for the same interview are not serialised: two jobs running together
    each write their own snapshot key, and both survive.
    """

    def __init__(self, worker: Callable[[str], object] | None = None, max_workers: int = 2, max_pending: int = 32):
        self.worker = worker
        self.max_pending = max_pending
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="snapshot")
        self._lock = Lock()
        self._futures: set[Future] = set()

    def bind(self, worker: Callable[[str], object]) -> None:
        self.worker = worker

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._futures)

    def submit(self, interview_id: str) -> Future | None:
        if self.worker is None:
            raise RuntimeError("SnapshotQueue has no worker bound")
        with self._lock:
            if len(self._futures) >= self.max_pending:
                logger.warning("Snapshot queue full (%d pending); dropping job for interview %s", self.max_pending, interview_id)
                return None
            future = self._executor.submit(self._run, interview_id)
            self._futures.add(future)
        future.add_done_callback(self._forget)
        logger.info("Snapshot submitted for interview %s", interview_id)
        return future

    def _run(self, interview_id: str):
        try:
            return self.worker(interview_id)
        except Exception:
            logger.exception("Snapshot job failed for interview %s", interview_id)
            return None

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for every outstanding job; returns False if some were still running at ``timeout``."""
        with self._lock:
            outstanding = list(self._futures)
        if not outstanding:
            return True
        _, not_done = wait(outstanding, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_jobs)
