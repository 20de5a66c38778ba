"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from sbomscan.models.model_request import GateThresholds, NodeType, ScanRequest
from sbomscan.models.model_scanner import SeverityCounts, VulnerabilityScanDetail
from sbomscan.runtime.base import RuntimeName
from sbomscan.runtime.detector import RuntimeDetector


def make_detector(tmp_path: Path, runtime: RuntimeName | None) -> RuntimeDetector:
    """Detector that finds `runtime` through a socket file under tmp_path (or nothing)."""
    if runtime is None:
        return RuntimeDetector(candidates=[(RuntimeName.DOCKER, str(tmp_path / "missing.sock"))])
    socket_path = tmp_path / f"{runtime.value}.sock"
    socket_path.touch()
    return RuntimeDetector(candidates=[(runtime, str(socket_path))])


@pytest.fixture
def no_runtime(tmp_path: Path) -> RuntimeDetector:
    return make_detector(tmp_path, None)


@pytest.fixture
def docker_detector(tmp_path: Path) -> RuntimeDetector:
    return make_detector(tmp_path, RuntimeName.DOCKER)


@pytest.fixture
def containerd_detector(tmp_path: Path) -> RuntimeDetector:
    return make_detector(tmp_path, RuntimeName.CONTAINERD)


@pytest.fixture
def crio_detector(tmp_path: Path) -> RuntimeDetector:
    return make_detector(tmp_path, RuntimeName.CRIO)


@pytest.fixture
def image_request() -> ScanRequest:
    """A classified image scan request."""
    return ScanRequest(
        source="nginx:1.25",
        node_type=NodeType.IMAGE,
        node_id="nginx:1.25",
        scan_id="scan-image-1",
        host_name="worker-1",
    )


@pytest.fixture
def dir_request() -> ScanRequest:
    """A classified host directory scan request."""
    return ScanRequest(
        source="dir:/tmp/x",
        node_type=NodeType.HOST,
        node_id="worker-1",
        scan_id="scan-host-1",
        host_name="worker-1",
    )


@pytest.fixture
def container_request() -> ScanRequest:
    """A classified container scan request outside a cluster."""
    return ScanRequest(
        source="web",
        node_type=NodeType.CONTAINER,
        node_id="web",
        scan_id="scan-container-1",
        host_name="worker-1",
        container_name="web",
        container_id="4f1c9a",
    )


@pytest.fixture
def sample_detail() -> VulnerabilityScanDetail:
    """Scan summary with a few findings of every severity."""
    return VulnerabilityScanDetail(
        total=20,
        severity=SeverityCounts(critical=2, high=5, medium=8, low=5),
        cve_score=7.5,
    )


@pytest.fixture
def strict_thresholds() -> GateThresholds:
    return GateThresholds(fail_on_count=10, fail_on_critical_count=1)
