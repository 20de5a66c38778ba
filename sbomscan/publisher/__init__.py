"""Management console client: scan status, SBOM submission, results and registry auth."""

from sbomscan.publisher.console_client import ConsoleClient
from sbomscan.publisher.registry import RegistryClient
from sbomscan.publisher.retry import RetryPolicy
from sbomscan.publisher.scan_publisher import ScanPublisher

__all__ = [
    "ConsoleClient",
    "RegistryClient",
    "RetryPolicy",
    "ScanPublisher",
]
