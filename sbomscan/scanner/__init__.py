"""SBOM generation pipeline built around syft."""

from sbomscan.scanner.command_builder import CatalogCommandBuilder
from sbomscan.scanner.fs_extractor import ContainerFilesystemExtractor
from sbomscan.scanner.scan_orchestrator import ScanOrchestrator
from sbomscan.scanner.syft_scanner import SyftScanner
from sbomscan.scanner.target_classifier import classify_target, resolve_request
from sbomscan.scanner.vulnerability_gate import VulnerabilityGate, evaluate_gates

__all__ = [
    "CatalogCommandBuilder",
    "ContainerFilesystemExtractor",
    "ScanOrchestrator",
    "SyftScanner",
    "VulnerabilityGate",
    "classify_target",
    "evaluate_gates",
    "resolve_request",
]
