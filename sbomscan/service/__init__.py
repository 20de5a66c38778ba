"""Long-lived request service and its worker pool."""

from sbomscan.service.server import SbomService, console_failure_sink, request_from_payload, serve
from sbomscan.service.worker_pool import PoolStats, ScanWorkerPool

__all__ = [
    "PoolStats",
    "SbomService",
    "ScanWorkerPool",
    "console_failure_sink",
    "request_from_payload",
    "serve",
]
