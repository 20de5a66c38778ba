"""Vulnerability scan stage and policy gates.

Gates are evaluated in a fixed order and only the first one reached is
reported:
1. Total vulnerability count
2. Critical, high, medium, low counts
3. Aggregate CVE score

A gate is active when its limit is > 0 and is reached when value >= limit.
"""

import logging

from rich.console import Console

from sbomscan.consts import STATUS_GENERATING_SBOM
from sbomscan.models.model_request import GateThresholds, ScanRequest
from sbomscan.models.model_scanner import (
    ExecutionPlan,
    GateBreach,
    GateKind,
    ScanOutcome,
    ScanPhase,
    VulnerabilityScanDetail,
)
from sbomscan.publisher.scan_publisher import ScanPublisher
from sbomscan.scanner.syft_scanner import SyftScanner

logger = logging.getLogger(__name__)


def evaluate_gates(thresholds: GateThresholds, detail: VulnerabilityScanDetail) -> GateBreach | None:
    """Return the first reached gate, or None if the scan passes."""
    count_gates = [
        (GateKind.TOTAL, detail.total, thresholds.fail_on_count),
        (GateKind.CRITICAL, detail.severity.critical, thresholds.fail_on_critical_count),
        (GateKind.HIGH, detail.severity.high, thresholds.fail_on_high_count),
        (GateKind.MEDIUM, detail.severity.medium, thresholds.fail_on_medium_count),
        (GateKind.LOW, detail.severity.low, thresholds.fail_on_low_count),
    ]
    for kind, value, limit in count_gates:
        if limit > 0 and value >= limit:
            return GateBreach(kind=kind, value=value, limit=limit)

    if thresholds.fail_on_score > 0 and detail.cve_score >= thresholds.fail_on_score:
        return GateBreach(kind=GateKind.SCORE, value=detail.cve_score, limit=thresholds.fail_on_score)

    return None


class VulnerabilityGate:
    """Runs syft under console status reporting, then gates on the scan results."""

    def __init__(self, scanner: SyftScanner, console: Console | None = None):
        self.scanner = scanner
        self.console = console
        self.phase = ScanPhase.IDLE

    async def run(
        self,
        request: ScanRequest,
        plan: ExecutionPlan,
        publisher: ScanPublisher,
    ) -> ScanOutcome:
        """Generate the SBOM, submit it and evaluate the gates.

        Args:
            request: Classified scan request
            plan: Plan built for request
            publisher: Console publisher for this scan

        Returns:
            ScanOutcome; breach is set when a gate was reached

        Raises:
            ToolExecutionError, ArtifactIOError: If SBOM generation fails
            PublisherError: If the console rejects the SBOM or the results
        """
        self.phase = ScanPhase.GENERATING
        await publisher.publish_scan_status(STATUS_GENERATING_SBOM)

        try:
            sbom = await self.scanner.generate(
                plan,
                registry_id=request.registry_id,
                node_type=request.node_type,
                publisher=publisher,
            )
        except BaseException:
            self.phase = ScanPhase.FAILED
            raise
        finally:
            await publisher.stop_publish_scan_status()

        self.phase = ScanPhase.SCANNING
        try:
            await publisher.run_vulnerability_scan(sbom)
        except Exception:
            self.phase = ScanPhase.FAILED
            logger.error(f"error in submitting sbom for {request.scan_id}")
            raise

        if request.quiet and not request.thresholds.any_enabled:
            self.phase = ScanPhase.COMPLETED
            return ScanOutcome(sbom=sbom)

        try:
            detail = await publisher.get_vulnerability_scan_results()
        except Exception:
            self.phase = ScanPhase.FAILED
            logger.error(f"error in getting vulnerability scan detail for {request.scan_id}")
            raise

        self.phase = ScanPhase.COMPLETED
        if not request.quiet:
            publisher.output(detail, self.console)

        breach = evaluate_gates(request.thresholds, detail)
        if breach is not None:
            logger.warning(breach.message)
        return ScanOutcome(sbom=sbom, detail=detail, breach=breach)
