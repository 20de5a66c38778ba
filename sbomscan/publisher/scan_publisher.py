"""Reports scan progress to the console and retrieves vulnerability results."""

import asyncio
import contextlib
import logging

from rich.console import Console
from rich.table import Table

from sbomscan.consts import (
    CONSOLE_SBOM_PATH,
    CONSOLE_SCAN_LOGS_PATH,
    CONSOLE_SCAN_RESULTS_PATH,
    CONSOLE_SCAN_STATUS_PATH,
    RESULTS_DONE_STATUSES,
    RESULTS_POLL_SECONDS,
    STATUS_ERROR,
    STATUS_HEARTBEAT_SECONDS,
)
from sbomscan.exceptions import PublisherError
from sbomscan.models.model_request import NodeType, ScanRequest
from sbomscan.models.model_scanner import VulnerabilityScanDetail
from sbomscan.publisher.console_client import ConsoleClient

logger = logging.getLogger(__name__)


class ScanPublisher:
    """Status -> scan -> results contract for one scan.

    publish_scan_status() keeps re-sending the current phase in the background
    until stop_publish_scan_status() or publish_scan_error() is called.
    """

    def __init__(
        self,
        client: ConsoleClient,
        request: ScanRequest,
        heartbeat_seconds: float = STATUS_HEARTBEAT_SECONDS,
        poll_seconds: float = RESULTS_POLL_SECONDS,
    ):
        self.client = client
        self.request = request
        self.heartbeat_seconds = heartbeat_seconds
        self.poll_seconds = poll_seconds
        self._heartbeat: asyncio.Task | None = None

    def _scan_log(self, status: str, message: str = "") -> list[dict]:
        node_type = self.request.node_type
        return [
            {
                "scan_id": self.request.scan_id,
                "node_id": self.request.node_id,
                "node_type": node_type.value if isinstance(node_type, NodeType) else node_type,
                "host_name": self.request.host_name,
                "kubernetes_cluster_name": self.request.kubernetes_cluster_name,
                "scan_status": status,
                "scan_message": message,
            }
        ]

    async def _send_status(self, status: str, message: str = "") -> None:
        await self.client.request("POST", CONSOLE_SCAN_LOGS_PATH, json=self._scan_log(status, message))

    async def _heartbeat_loop(self, status: str) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            try:
                await self._send_status(status)
            except PublisherError as e:
                logger.warning(f"Failed to re-publish status {status} for {self.request.scan_id}: {e}")

    async def publish_scan_status(self, status: str) -> None:
        """Publish status now and keep re-publishing it until stopped."""
        await self.stop_publish_scan_status()
        logger.debug(f"Scan {self.request.scan_id}: {status}")
        await self._send_status(status)
        self._heartbeat = asyncio.create_task(self._heartbeat_loop(status))

    async def stop_publish_scan_status(self) -> None:
        if self._heartbeat is None:
            return
        self._heartbeat.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._heartbeat
        self._heartbeat = None

    async def publish_scan_error(self, message: str) -> None:
        """Stop the heartbeat and report the scan as failed."""
        await self.stop_publish_scan_status()
        logger.debug(f"Scan {self.request.scan_id} failed: {message}")
        await self._send_status(STATUS_ERROR, message)

    async def run_vulnerability_scan(self, sbom: bytes) -> None:
        """Submit the SBOM for vulnerability analysis."""
        params = {
            "scan_id": self.request.scan_id,
            "node_id": self.request.node_id,
            "node_type": self._scan_log("")[0]["node_type"],
            "image_name": self.request.source,
            "image_id": self.request.image_id,
            "container_name": self.request.container_name,
            "kubernetes_cluster_name": self.request.kubernetes_cluster_name,
            "host_name": self.request.host_name,
        }
        await self.client.request("POST", CONSOLE_SBOM_PATH, content=sbom, params=params)
        logger.info(f"Submitted SBOM for scan {self.request.scan_id} ({len(sbom)} bytes)")

    async def get_vulnerability_scan_results(self) -> VulnerabilityScanDetail:
        """Wait for the console to finish the scan and fetch the summary.

        Raises:
            PublisherError: If the console reports the scan as failed
        """
        params = {"scan_id": self.request.scan_id}
        while True:
            status = await self.client.request("GET", CONSOLE_SCAN_STATUS_PATH, params=params) or {}
            state = str(status.get("status", "")).upper()
            if state in RESULTS_DONE_STATUSES:
                break
            logger.debug(f"Scan {self.request.scan_id} status {state or 'UNKNOWN'}, waiting")
            await asyncio.sleep(self.poll_seconds)

        if state == STATUS_ERROR:
            raise PublisherError(
                f"Vulnerability scan {self.request.scan_id} failed: {status.get('message', '')}",
                endpoint=CONSOLE_SCAN_STATUS_PATH,
            )

        data = await self.client.request("GET", CONSOLE_SCAN_RESULTS_PATH, params=params) or {}
        return VulnerabilityScanDetail.model_validate(data)

    def output(self, detail: VulnerabilityScanDetail, console: Console | None = None) -> None:
        """Render a vulnerability summary table."""
        console = console or Console()
        table = Table(title=f"Vulnerability Summary ({self.request.source})")
        table.add_column("Severity", style="cyan")
        table.add_column("Count", justify="right")

        table.add_row("Critical", f"[red]{detail.severity.critical}[/red]")
        table.add_row("High", f"[orange1]{detail.severity.high}[/orange1]")
        table.add_row("Medium", f"[yellow]{detail.severity.medium}[/yellow]")
        table.add_row("Low", f"[dim]{detail.severity.low}[/dim]")
        table.add_row("Total", f"[bold]{detail.total}[/bold]")
        table.add_row("CVE score", f"{detail.cve_score:.2f}")

        console.print(table)
