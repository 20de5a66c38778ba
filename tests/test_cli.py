"""Tests for CLI interface."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from sbomscan.cli import app
from sbomscan.exceptions import ConfigurationError, RuntimeDetectionError, ToolExecutionError
from sbomscan.models.model_request import NodeType
from sbomscan.models.model_scanner import GateBreach, GateKind, ScanOutcome

runner = CliRunner()

SBOM = b'{"artifacts": [], "source": {"type": "image"}}'


@pytest.fixture(autouse=True)
def console_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MGMT_CONSOLE_URL", "MGMT_CONSOLE_PORT", "DEEPFENCE_KEY", "PACKAGE_SCAN_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def syft_installed():
    with patch("sbomscan.cli.SyftScanner.is_syft_installed", return_value=True):
        yield


class TestScanCommand:
    """Tests for the scan command."""

    def test_prints_sbom(self, syft_installed) -> None:
        with patch("sbomscan.cli.run_scan", new=AsyncMock(return_value=ScanOutcome(sbom=SBOM))):
            result = runner.invoke(app, ["scan", "nginx:1.25"])

        assert result.exit_code == 0
        assert '"artifacts"' in result.output

    def test_builds_classified_request(self, syft_installed) -> None:
        with patch("sbomscan.cli.run_scan", new=AsyncMock(return_value=ScanOutcome(sbom=SBOM))) as mock_run:
            result = runner.invoke(
                app,
                [
                    "scan",
                    "dir:/srv",
                    "--host-name",
                    "worker-1",
                    "--scan-type",
                    "python,java",
                    "--fail-on-critical-count",
                    "2",
                    "--scan-id",
                    "s1",
                ],
            )

        assert result.exit_code == 0
        request = mock_run.await_args.args[0]
        assert request.node_type == NodeType.HOST
        assert request.node_id == "worker-1"
        assert request.scan_type == "python,java"
        assert request.scan_id == "s1"
        assert request.thresholds.fail_on_critical_count == 2
        assert request.thresholds.fail_on_count == -1

    def test_generates_scan_id(self, syft_installed) -> None:
        with patch("sbomscan.cli.run_scan", new=AsyncMock(return_value=ScanOutcome(sbom=SBOM))) as mock_run:
            runner.invoke(app, ["scan", "nginx"])
        assert mock_run.await_args.args[0].scan_id

    def test_writes_output_file(self, syft_installed, tmp_path: Path) -> None:
        output = tmp_path / "sbom.json"
        with patch("sbomscan.cli.run_scan", new=AsyncMock(return_value=ScanOutcome(sbom=SBOM))):
            result = runner.invoke(app, ["scan", "nginx:1.25", "--output", str(output)])

        assert result.exit_code == 0
        assert output.read_bytes() == SBOM

    def test_breach_exits_non_zero(self, syft_installed, tmp_path: Path) -> None:
        breach = GateBreach(kind=GateKind.TOTAL, value=12, limit=10)
        outcome = ScanOutcome(sbom=SBOM, breach=breach)
        output = tmp_path / "sbom.json"
        with patch("sbomscan.cli.run_scan", new=AsyncMock(return_value=outcome)):
            result = runner.invoke(app, ["scan", "nginx:1.25", "--fail-on-count", "10", "-o", str(output)])

        assert result.exit_code == 1
        assert "Number of vulnerabilities (12)" in result.output
        assert output.read_bytes() == SBOM

    def test_runtime_detection_failure(self, syft_installed) -> None:
        error = RuntimeDetectionError("Could not detect container runtime")
        with patch("sbomscan.cli.run_scan", new=AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["scan", "web", "--node-type", "container"])

        assert result.exit_code == 1
        assert "Could not detect container runtime" in result.output

    def test_tool_failure_shows_output(self, syft_installed) -> None:
        error = ToolExecutionError("syft failed with exit code 1", output="MANIFEST_UNKNOWN", returncode=1)
        with patch("sbomscan.cli.run_scan", new=AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["scan", "nginx:missing"])

        assert result.exit_code == 1
        assert "MANIFEST_UNKNOWN" in result.output

    def test_syft_missing(self) -> None:
        with patch("sbomscan.cli.SyftScanner.is_syft_installed", return_value=False):
            result = runner.invoke(app, ["scan", "nginx"])

        assert result.exit_code == 1
        assert "syft is not installed" in result.output

    def test_vulnerability_scan_needs_console(self, syft_installed) -> None:
        with patch("sbomscan.cli.run_scan", new=AsyncMock()) as mock_run:
            result = runner.invoke(app, ["scan", "nginx", "--vulnerability-scan"])

        assert result.exit_code == 1
        assert "MGMT_CONSOLE_URL" in result.output
        mock_run.assert_not_awaited()


class TestServeCommand:
    """Tests for the serve command."""

    def test_passes_options(self, syft_installed, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MGMT_CONSOLE_URL", "console.local")
        monkeypatch.setenv("PACKAGE_SCAN_CONCURRENCY", "2")
        with patch("sbomscan.cli.run_service", new=AsyncMock()) as mock_serve:
            result = runner.invoke(app, ["serve", "--port", "8005", "--plugin-name", "sbom"])

        assert result.exit_code == 0
        config = mock_serve.await_args.args[0]
        assert config.port == "8005"
        assert config.plugin_name == "sbom"
        assert config.console_url == "console.local"
        assert config.scan_concurrency == 2

    def test_configuration_error(self, syft_installed) -> None:
        error = ConfigurationError("service mode requires either socket-path or port to be set")
        with patch("sbomscan.cli.run_service", new=AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        assert "socket-path or port" in result.output
