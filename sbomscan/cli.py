"""CLI interface for sbomscan."""

import asyncio
import logging
import socket
import uuid
from pathlib import Path

import typer
from rich.console import Console

from sbomscan.exceptions import (
    ConfigurationError,
    RuntimeDetectionError,
    SbomScanError,
    ToolExecutionError,
)
from sbomscan.models.model_request import GateThresholds, ScanRequest, ServiceConfig
from sbomscan.pipeline import run_scan, run_service
from sbomscan.scanner.syft_scanner import SyftScanner
from sbomscan.scanner.target_classifier import resolve_request

app = typer.Typer(
    name="sbomscan",
    help="sbomscan - Generate SBOMs for hosts, containers and images with syft",
)

console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(default_level: int, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else default_level,
        format=LOG_FORMAT,
    )


@app.command()
def scan(
    source: str = typer.Argument(..., help="Target: image reference, registry:<ref>, dir:<path>, '.' or container"),
    node_type: str = typer.Option("", "--node-type", help="Node type hint (host, container, container_image)"),
    scan_type: str = typer.Option("", "--scan-type", help="Comma-separated ecosystems (e.g. 'python,java') or 'all'"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the SBOM to this file instead of stdout"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not render vulnerability results"),
    vulnerability_scan: bool = typer.Option(
        False, "--vulnerability-scan", help="Submit the SBOM to the console for a vulnerability scan"
    ),
    fail_on_count: int = typer.Option(-1, "--fail-on-count", help="Fail when total vulnerabilities reach this count"),
    fail_on_critical_count: int = typer.Option(-1, "--fail-on-critical-count"),
    fail_on_high_count: int = typer.Option(-1, "--fail-on-high-count"),
    fail_on_medium_count: int = typer.Option(-1, "--fail-on-medium-count"),
    fail_on_low_count: int = typer.Option(-1, "--fail-on-low-count"),
    fail_on_score: float = typer.Option(-1.0, "--fail-on-score", help="Fail when the aggregate CVE score reaches this"),
    scan_id: str = typer.Option(None, "--scan-id", help="Scan id reported to the console (default: random)"),
    registry_id: str = typer.Option("", "--registry-id", help="Console registry account for image pulls"),
    host_name: str = typer.Option(None, "--host-name", help="Host name used as node id for directory scans"),
    image_id: str = typer.Option("", "--image-id"),
    container_name: str = typer.Option("", "--container-name"),
    container_id: str = typer.Option("", "--container-id"),
    kubernetes_cluster_name: str = typer.Option("", "--kubernetes-cluster-name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Generate an SBOM for one target and optionally gate on its vulnerabilities."""
    _configure_logging(logging.WARNING, verbose)

    scanner = SyftScanner()
    if not scanner.is_syft_installed():
        console.print("[red]Error:[/red] syft is not installed or not on PATH")
        raise typer.Exit(1)

    config = ServiceConfig.from_env()
    if vulnerability_scan and not config.console_url:
        console.print("[red]Error:[/red] --vulnerability-scan requires MGMT_CONSOLE_URL to be set")
        raise typer.Exit(1)

    request = resolve_request(
        ScanRequest(
            source=source,
            node_type=node_type,
            scan_type=scan_type,
            scan_id=scan_id or str(uuid.uuid4()),
            registry_id=registry_id,
            host_name=host_name or socket.gethostname(),
            image_id=image_id,
            container_name=container_name,
            container_id=container_id,
            kubernetes_cluster_name=kubernetes_cluster_name,
            quiet=quiet,
            vulnerability_scan=vulnerability_scan,
            output=str(output) if output else "",
            thresholds=GateThresholds(
                fail_on_count=fail_on_count,
                fail_on_critical_count=fail_on_critical_count,
                fail_on_high_count=fail_on_high_count,
                fail_on_medium_count=fail_on_medium_count,
                fail_on_low_count=fail_on_low_count,
                fail_on_score=fail_on_score,
            ),
        )
    )

    try:
        outcome = asyncio.run(run_scan(request, config, console=console))
    except RuntimeDetectionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ToolExecutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        if e.output:
            console.print(e.output, markup=False)
        raise typer.Exit(1)
    except SbomScanError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if output:
        try:
            output.write_bytes(outcome.sbom)
        except OSError as e:
            console.print(f"[red]Error:[/red] Failed to write {output}: {e}")
            raise typer.Exit(1)
        if not quiet:
            console.print(f"[green]SBOM written to {output}[/green]")
    else:
        typer.echo(outcome.sbom.decode("utf-8", errors="replace"))

    if outcome.breach is not None:
        console.print(f"[red]{outcome.breach.message}[/red]")
        raise typer.Exit(1)


@app.command()
def serve(
    port: str = typer.Option(None, "--port", help="TCP port to listen on (takes precedence over --socket-path)"),
    socket_path: str = typer.Option(None, "--socket-path", help="Unix socket to listen on"),
    plugin_name: str = typer.Option(None, "--plugin-name", help="Name reported by the plugin endpoint"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run the SBOM request service."""
    _configure_logging(logging.INFO, verbose)

    if not SyftScanner().is_syft_installed():
        console.print("[red]Error:[/red] syft is not installed or not on PATH")
        raise typer.Exit(1)

    try:
        config = ServiceConfig.from_env(port=port, socket_path=socket_path, plugin_name=plugin_name)
        asyncio.run(run_service(config))
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
