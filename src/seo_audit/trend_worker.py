"""Background worker that refreshes trend analyses after history appends."""

import logging
import queue
import threading
from typing import Optional

from seo_audit.trends import TrendAnalysisEngine

logger = logging.getLogger(__name__)

_STOP = object()


class TrendWorker:
    """Consumes "record appended" events on a daemon thread.

    Pass ``worker.submit`` as the HistoryRecorder dispatcher: the recorder
    only enqueues the tracking id and returns, and failures are logged here
    instead of reaching the code that recorded the audit.

    Example:
        worker = TrendWorker(engine)
        worker.start()
        recorder = HistoryRecorder(repository, dispatcher=worker.submit)
        ...
        worker.stop()
    """

    def __init__(self, engine: TrendAnalysisEngine):
        self.engine = engine
        self._queue: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self.processed = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run, name="trend-worker", daemon=True
        )
        self._thread.start()
        logger.info("Trend worker started")

    def submit(self, tracking_id: str) -> None:
        """Queue a tracking id for analysis. Never blocks."""
        self._queue.put_nowait(tracking_id)

    def drain(self) -> None:
        """Block until every queued task has been processed.

        Raises:
            RuntimeError: If the worker thread is not running
        """
        if not self.running:
            raise RuntimeError(
                f"Trend worker is not running ({self._queue.qsize()} queued)"
            )
        self._queue.join()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Finish queued work, then stop the thread.

        Args:
            timeout: Seconds to wait for the thread to exit
        """
        if not self.running:
            pending = self._queue.qsize()
            if pending:
                logger.warning(
                    f"Trend worker was not running; {pending} queued refreshes left unprocessed"
                )
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                f"Trend worker did not stop within {timeout}s; "
                f"{self._queue.qsize()} items still queued"
            )
        self._thread = None
        logger.info(
            f"Trend worker stopped ({self.processed} processed, {self.failed} failed)"
        )

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._process(item)
            finally:
                self._queue.task_done()

    def _process(self, tracking_id: str) -> None:
        try:
            self.engine.on_new_record_appended(tracking_id)
            self.processed += 1
        except Exception:
            self.failed += 1
            logger.exception(f"Trend refresh failed for tracking {tracking_id}")
