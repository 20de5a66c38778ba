"""Bounded FIFO worker pool for fire-and-forget scan requests."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sbomscan.models.model_request import ScanRequest
from sbomscan.models.model_scanner import ScanOutcome

logger = logging.getLogger(__name__)

ScanHandler = Callable[[ScanRequest], Awaitable[ScanOutcome]]
FailureSink = Callable[[ScanRequest, str], Awaitable[None]]


@dataclass
class PoolStats:
    """Counters exposed for operators."""

    size: int
    queued: int
    running: int
    succeeded: int
    failed: int
    breached: int
    dropped: int


class ScanWorkerPool:
    """Runs at most `size` scans at once; excess requests wait in FIFO order.

    submit() gives no completion signal. Failures are logged and handed to
    failure_sink so they stay observable outside this process.
    """

    def __init__(self, size: int, handler: ScanHandler, failure_sink: FailureSink | None = None):
        """Initialize ScanWorkerPool.

        Args:
            size: Number of concurrent workers (must be > 0)
            handler: Coroutine run for each request
            failure_sink: Called with (request, error text) when a scan fails
        """
        if size <= 0:
            raise ValueError(f"Worker pool size must be positive, got {size}")
        self.size = size
        self.handler = handler
        self.failure_sink = failure_sink
        self._queue: asyncio.Queue[ScanRequest] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self._closed = False
        self._running = 0
        self._succeeded = 0
        self._failed = 0
        self._breached = 0
        self._dropped = 0

    async def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"scan-worker-{i}") for i in range(self.size)
        ]
        logger.info(f"Started scan worker pool with {self.size} workers")

    def submit(self, request: ScanRequest) -> None:
        """Enqueue a request and return immediately.

        Raises:
            RuntimeError: If the pool is shutting down
        """
        if self._closed:
            raise RuntimeError("Scan worker pool is shut down")
        self._queue.put_nowait(request)
        logger.debug(f"Queued scan {request.scan_id} ({self._queue.qsize()} waiting)")

    async def _report(self, request: ScanRequest, message: str) -> None:
        if self.failure_sink is None:
            return
        try:
            await self.failure_sink(request, message)
        except Exception as e:
            logger.warning(f"Failed to report scan failure for {request.scan_id}: {e}")

    async def _worker(self, index: int) -> None:
        while True:
            request = await self._queue.get()
            self._running += 1
            try:
                outcome = await self.handler(request)
            except Exception as e:
                self._failed += 1
                detail = getattr(e, "output", "") or ""
                message = f"{e}: {detail}" if detail else str(e)
                logger.error(f"error in generating sbom for {request.source}: {message}")
                if not getattr(e, "reported", False):
                    await self._report(request, message)
            else:
                if outcome.breach is not None:
                    self._breached += 1
                    logger.warning(f"Scan {request.scan_id} for {request.source}: {outcome.breach.message}")
                else:
                    self._succeeded += 1
            finally:
                self._running -= 1
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued request has been processed."""
        await self._queue.join()

    async def shutdown(self) -> None:
        """Stop accepting work, drop queued requests and wait for running scans."""
        self._closed = True
        while True:
            try:
                request = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._dropped += 1
            self._queue.task_done()
            logger.warning(f"Dropping queued scan {request.scan_id} ({request.source}) on shutdown")

        await self._queue.join()

        for worker in self._workers:
            worker.cancel()
        for worker in self._workers:
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        self._workers = []
        logger.info("Scan worker pool stopped")

    @property
    def stats(self) -> PoolStats:
        return PoolStats(
            size=self.size,
            queued=self._queue.qsize(),
            running=self._running,
            succeeded=self._succeeded,
            failed=self._failed,
            breached=self._breached,
            dropped=self._dropped,
        )
