"""Component wiring for the synchronous scan and the request service.

Both entry points share the same pipeline:
1. Detect the container runtime (once per process)
2. Build the syft plan for the classified request
3. Run syft
4. Optionally submit the SBOM to the console and gate on the results
"""

import logging

from rich.console import Console

from sbomscan.exceptions import ConfigurationError
from sbomscan.models.model_request import ScanRequest, ServiceConfig
from sbomscan.models.model_scanner import ScanOutcome
from sbomscan.publisher.console_client import ConsoleClient
from sbomscan.publisher.registry import RegistryClient
from sbomscan.publisher.scan_publisher import ScanPublisher
from sbomscan.runtime.detector import RuntimeDetector
from sbomscan.scanner.command_builder import CatalogCommandBuilder
from sbomscan.scanner.scan_orchestrator import ScanOrchestrator
from sbomscan.scanner.syft_scanner import SyftScanner
from sbomscan.service.server import console_failure_sink, serve
from sbomscan.service.worker_pool import ScanWorkerPool

logger = logging.getLogger(__name__)


def build_orchestrator(
    client: ConsoleClient | None,
    detector: RuntimeDetector | None = None,
    console: Console | None = None,
    syft_path: str = "syft",
) -> ScanOrchestrator:
    """Wire builder, scanner and publisher factory around an optional console client.

    Args:
        client: Console client; None disables registry lookups and vulnerability scans
        detector: Runtime detector (default: probe the standard sockets)
        console: Console for rendering results
        syft_path: syft executable

    Returns:
        ScanOrchestrator ready to generate SBOMs
    """
    detector = detector or RuntimeDetector()
    detector.detect()

    registry = RegistryClient(client) if client is not None else None
    builder = CatalogCommandBuilder(
        detector,
        registry_insecure=registry.is_insecure if registry is not None else None,
    )
    scanner = SyftScanner(syft_path=syft_path, registry=registry)

    publisher_factory = None
    if client is not None:

        def publisher_factory(request: ScanRequest) -> ScanPublisher:
            return ScanPublisher(client, request)

    return ScanOrchestrator(builder, scanner, publisher_factory, console)


async def run_scan(
    request: ScanRequest,
    config: ServiceConfig,
    console: Console | None = None,
    detector: RuntimeDetector | None = None,
) -> ScanOutcome:
    """Generate one SBOM synchronously (CLI path)."""
    client = ConsoleClient.from_config(config) if config.console_url else None
    try:
        orchestrator = build_orchestrator(client, detector=detector, console=console)
        return await orchestrator.generate(request)
    finally:
        if client is not None:
            await client.close()


async def run_service(config: ServiceConfig, detector: RuntimeDetector | None = None) -> None:
    """Run the request service until it is signalled to stop.

    Raises:
        ConfigurationError: If the console or the listener is not configured
    """
    if not config.console_url:
        raise ConfigurationError("service mode requires MGMT_CONSOLE_URL to be set")
    if not config.port and not config.socket_path:
        raise ConfigurationError("service mode requires either socket-path or port to be set")

    client = ConsoleClient.from_config(config)
    try:
        orchestrator = build_orchestrator(client, detector=detector)
        pool = ScanWorkerPool(
            size=config.scan_concurrency,
            handler=orchestrator.generate,
            failure_sink=console_failure_sink(client),
        )
        await serve(config, pool)
    finally:
        await client.close()
