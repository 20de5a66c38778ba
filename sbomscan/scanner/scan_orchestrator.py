"""Runs one SBOM generation: plan -> syft -> optional vulnerability gate."""

import logging
from collections.abc import Callable

from rich.console import Console

from sbomscan.exceptions import ConfigurationError
from sbomscan.models.model_request import ScanRequest
from sbomscan.models.model_scanner import ScanOutcome
from sbomscan.publisher.scan_publisher import ScanPublisher
from sbomscan.scanner.command_builder import CatalogCommandBuilder
from sbomscan.scanner.syft_scanner import SyftScanner
from sbomscan.scanner.vulnerability_gate import VulnerabilityGate

logger = logging.getLogger(__name__)

PublisherFactory = Callable[[ScanRequest], ScanPublisher]


class ScanOrchestrator:
    """Shared entry point for the CLI and the request service."""

    def __init__(
        self,
        builder: CatalogCommandBuilder,
        scanner: SyftScanner,
        publisher_factory: PublisherFactory | None = None,
        console: Console | None = None,
    ):
        """Initialize ScanOrchestrator.

        Args:
            builder: CatalogCommandBuilder instance
            scanner: SyftScanner instance
            publisher_factory: Creates a ScanPublisher per request; required for
                vulnerability scans (default: None)
            console: Console used to render results in non-quiet mode
        """
        self.builder = builder
        self.scanner = scanner
        self.publisher_factory = publisher_factory
        self.console = console

    async def generate(self, request: ScanRequest) -> ScanOutcome:
        """Generate an SBOM for a classified request.

        Gate breaches are returned in the outcome; deciding what a breach means
        for the process is left to the caller.

        Raises:
            ConfigurationError: If a vulnerability scan is requested without a console
            SbomScanError: Any build, extraction, syft or console failure
        """
        if request.vulnerability_scan and self.publisher_factory is None:
            raise ConfigurationError("Vulnerability scan requested but no management console is configured")

        logger.info(f"Generating SBOM for {request.source} ({request.node_type}, scan_id={request.scan_id})")

        async with self.builder.build(request) as plan:
            if not request.vulnerability_scan:
                sbom = await self.scanner.generate(
                    plan,
                    registry_id=request.registry_id,
                    node_type=request.node_type,
                )
                return ScanOutcome(sbom=sbom)

            publisher = self.publisher_factory(request)
            gate = VulnerabilityGate(self.scanner, self.console)
            return await gate.run(request, plan, publisher)
