"""Tests for ScanOrchestrator."""

from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sbomscan.exceptions import ConfigurationError
from sbomscan.models.model_request import GateThresholds, ScanRequest
from sbomscan.models.model_scanner import ExecutionPlan, ScanOutcome
from sbomscan.scanner.scan_orchestrator import ScanOrchestrator

SBOM = b'{"artifacts": []}'


def _builder(plan: ExecutionPlan) -> MagicMock:
    builder = MagicMock()
    builder.exited = False

    @asynccontextmanager
    async def build(request: ScanRequest):
        try:
            yield plan
        finally:
            builder.exited = True

    builder.build = build
    return builder


@pytest.fixture
def plan(tmp_path: Path) -> ExecutionPlan:
    return ExecutionPlan(args=["packages", "nginx:1.25"], output_path=tmp_path / "out.json")


@pytest.fixture
def scanner() -> MagicMock:
    scanner = MagicMock()
    scanner.generate = AsyncMock(return_value=SBOM)
    return scanner


class TestScanOrchestrator:
    """Tests for ScanOrchestrator.generate."""

    @pytest.mark.asyncio
    async def test_plain_generation_makes_no_console_calls(
        self, plan: ExecutionPlan, scanner: MagicMock, image_request: ScanRequest
    ) -> None:
        factory = MagicMock()
        builder = _builder(plan)
        orchestrator = ScanOrchestrator(builder, scanner, publisher_factory=factory)

        outcome = await orchestrator.generate(image_request)

        assert outcome.sbom == SBOM
        assert outcome.passed
        assert outcome.detail is None
        assert builder.exited
        factory.assert_not_called()
        scanner.generate.assert_awaited_once_with(plan, registry_id="", node_type=image_request.node_type)

    @pytest.mark.asyncio
    async def test_vulnerability_scan_requires_console(
        self, plan: ExecutionPlan, scanner: MagicMock, image_request: ScanRequest
    ) -> None:
        orchestrator = ScanOrchestrator(_builder(plan), scanner)
        request = image_request.model_copy(update={"vulnerability_scan": True})

        with pytest.raises(ConfigurationError):
            await orchestrator.generate(request)
        scanner.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vulnerability_scan_runs_gate(
        self, plan: ExecutionPlan, scanner: MagicMock, image_request: ScanRequest
    ) -> None:
        publisher = MagicMock()
        factory = MagicMock(return_value=publisher)
        builder = _builder(plan)
        orchestrator = ScanOrchestrator(builder, scanner, publisher_factory=factory)
        request = image_request.model_copy(
            update={"vulnerability_scan": True, "thresholds": GateThresholds(fail_on_count=1)}
        )
        expected = ScanOutcome(sbom=SBOM)

        with patch(
            "sbomscan.scanner.scan_orchestrator.VulnerabilityGate.run",
            new=AsyncMock(return_value=expected),
        ) as mock_run:
            outcome = await orchestrator.generate(request)

        assert outcome is expected
        factory.assert_called_once_with(request)
        mock_run.assert_awaited_once_with(request, plan, publisher)
        assert builder.exited

    @pytest.mark.asyncio
    async def test_builder_cleanup_runs_on_failure(
        self, plan: ExecutionPlan, scanner: MagicMock, image_request: ScanRequest
    ) -> None:
        scanner.generate.side_effect = RuntimeError("boom")
        builder = _builder(plan)

        with pytest.raises(RuntimeError):
            await ScanOrchestrator(builder, scanner).generate(image_request)
        assert builder.exited
