"""Detection worker pool with bounded queues and in-order result delivery."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from contracts import BallCandidate, Frame
from detect.detector import BallDetector
from log_config.logger import get_logger

logger = get_logger(__name__)

_POLL_S = 0.05
_LOG_INTERVAL_S = 5.0


class _Done:
    """End-of-stream marker passed through the queues."""


_DONE = _Done()


@dataclass(frozen=True)
class DetectionResult:
    sequence: int
    frame: Frame
    candidate: Optional[BallCandidate]
    failed: bool = False


class DetectionWorkerPool:
    """Runs a detector over frames on worker threads.

    Producers block when the input queue is full, so a slow detector
    throttles the frame source instead of growing memory. At most
    ``max_in_flight`` frames are pulled from the source and not yet yielded,
    so one stalled frame cannot make the reorder buffer grow with the video.
    Results come back from ``process`` in the order frames were submitted
    regardless of which worker finished first. Detector exceptions are
    counted and logged and the frame is reported as a miss.
    """

    def __init__(self, detector: BallDetector, worker_count: int = 2, queue_size: int = 8):
        """Initialize detection worker pool.

        Args:
            detector: Detector shared by all workers; must tolerate concurrent calls
            worker_count: Number of worker threads
            queue_size: Maximum depth of the input and result queues
        """
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self._detector = detector
        self._worker_count = worker_count
        self._queue_size = queue_size
        self._input: queue.Queue = queue.Queue(maxsize=queue_size)
        self._results: queue.Queue = queue.Queue(maxsize=queue_size)
        self._window = threading.Semaphore(self.max_in_flight)
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

        self._error_lock = threading.Lock()
        self._errors = 0
        self._last_error_log = 0.0
        self._backpressure_events = 0

    @property
    def max_in_flight(self) -> int:
        """Frames that may be pulled from the source but not yet yielded."""
        return 2 * self._queue_size + self._worker_count

    @property
    def error_count(self) -> int:
        with self._error_lock:
            return self._errors

    @property
    def backpressure_events(self) -> int:
        with self._error_lock:
            return self._backpressure_events

    def process(
        self,
        frames: Iterable[Frame],
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[DetectionResult]:
        """Detect every frame and yield results in submission order.

        Args:
            frames: Frames to detect, consumed lazily by a feeder thread
            cancel_event: When set, feeding stops and queued work is discarded

        Yields:
            DetectionResult per frame, ordered by submission sequence
        """
        cancel = cancel_event or threading.Event()
        self._start(frames, cancel)
        pending: Dict[int, DetectionResult] = {}
        next_sequence = 0
        finished_workers = 0
        try:
            while finished_workers < self._worker_count:
                if cancel.is_set():
                    logger.info("Detection cancelled; discarding queued frames")
                    return
                try:
                    item = self._results.get(timeout=_POLL_S)
                except queue.Empty:
                    continue
                if item is _DONE:
                    finished_workers += 1
                    continue
                pending[item.sequence] = item
                while next_sequence in pending:
                    result = pending.pop(next_sequence)
                    self._window.release()
                    yield result
                    next_sequence += 1
        finally:
            self._shutdown()

    def _start(self, frames: Iterable[Frame], cancel: threading.Event) -> None:
        self._stop.clear()
        self._input = queue.Queue(maxsize=self._queue_size)
        self._results = queue.Queue(maxsize=self._queue_size)
        self._window = threading.Semaphore(self.max_in_flight)
        feeder = threading.Thread(target=self._feed, args=(frames, cancel), name="detect-feeder", daemon=True)
        self._threads = [feeder]
        for i in range(self._worker_count):
            self._threads.append(
                threading.Thread(target=self._work, args=(cancel,), name=f"detect-worker-{i}", daemon=True)
            )
        for thread in self._threads:
            thread.start()
        logger.debug(f"Detection pool started with {self._worker_count} worker(s), queue size {self._queue_size}")

    def _shutdown(self) -> None:
        self._stop.set()
        self._drain(self._input)
        self._drain(self._results)
        for thread in self._threads:
            thread.join(timeout=1.0)
            if thread.is_alive():
                logger.warning(f"Thread {thread.name} did not stop within timeout")
        self._threads = []

    def _feed(self, frames: Iterable[Frame], cancel: threading.Event) -> None:
        sequence = 0
        try:
            iterator = iter(frames)
            # A slot is taken before the frame is pulled from the source.
            while self._acquire_slot(cancel):
                try:
                    frame = next(iterator)
                except StopIteration:
                    self._window.release()
                    return
                if not self._put(self._input, (sequence, frame), cancel):
                    return
                sequence += 1
        finally:
            for _ in range(self._worker_count):
                if not self._put(self._input, _DONE, cancel):
                    break

    def _work(self, cancel: threading.Event) -> None:
        while not self._halted(cancel):
            try:
                item = self._input.get(timeout=_POLL_S)
            except queue.Empty:
                continue
            if item is _DONE:
                self._put(self._results, _DONE, cancel)
                return
            sequence, frame = item
            result = self._detect(sequence, frame)
            if not self._put(self._results, result, cancel):
                return

    def _detect(self, sequence: int, frame: Frame) -> DetectionResult:
        try:
            candidate = self._detector.detect(frame)
        except Exception as e:
            with self._error_lock:
                self._errors += 1
                error_count = self._errors
                now = time.monotonic()
                should_log = now - self._last_error_log > _LOG_INTERVAL_S
                if should_log:
                    self._last_error_log = now
            if should_log:
                logger.error(
                    f"Detection failed on frame {frame.frame_index} "
                    f"(error #{error_count}): {e.__class__.__name__}: {e}"
                )
            return DetectionResult(sequence=sequence, frame=frame, candidate=None, failed=True)
        return DetectionResult(sequence=sequence, frame=frame, candidate=candidate)

    def _put(self, target: queue.Queue, item, cancel: threading.Event) -> bool:
        """Blocking put that gives up once the pool is halted."""
        try:
            target.put_nowait(item)
            return True
        except queue.Full:
            with self._error_lock:
                self._backpressure_events += 1
            logger.debug("Detection queue full; producer waiting")
        while not self._halted(cancel):
            try:
                target.put(item, timeout=_POLL_S)
                return True
            except queue.Full:
                continue
        return False

    def _acquire_slot(self, cancel: threading.Event) -> bool:
        if self._window.acquire(blocking=False):
            return True
        with self._error_lock:
            self._backpressure_events += 1
        logger.debug("Too many frames in flight; feeder waiting for results to be consumed")
        while not self._halted(cancel):
            if self._window.acquire(timeout=_POLL_S):
                return True
        return False

    def _halted(self, cancel: threading.Event) -> bool:
        return self._stop.is_set() or cancel.is_set()

    @staticmethod
    def _drain(target: queue.Queue) -> None:
        while True:
            try:
                target.get_nowait()
            except queue.Empty:
                return

