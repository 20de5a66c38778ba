"""Tests for component wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sbomscan.exceptions import ConfigurationError
from sbomscan.models.model_request import ScanRequest, ServiceConfig
from sbomscan.models.model_scanner import ScanOutcome
from sbomscan.pipeline import build_orchestrator, run_scan, run_service
from sbomscan.publisher.registry import RegistryClient
from sbomscan.publisher.scan_publisher import ScanPublisher
from sbomscan.runtime.detector import RuntimeDetector


class TestBuildOrchestrator:
    """Tests for build_orchestrator."""

    def test_without_console(self, no_runtime: RuntimeDetector) -> None:
        orchestrator = build_orchestrator(None, detector=no_runtime)

        assert orchestrator.publisher_factory is None
        assert orchestrator.scanner.registry is None
        assert orchestrator.builder.registry_insecure is None
        assert orchestrator.builder.detector is no_runtime

    def test_with_console(self, docker_detector: RuntimeDetector, image_request: ScanRequest) -> None:
        client = MagicMock()
        orchestrator = build_orchestrator(client, detector=docker_detector)

        assert isinstance(orchestrator.scanner.registry, RegistryClient)
        publisher = orchestrator.publisher_factory(image_request)
        assert isinstance(publisher, ScanPublisher)
        assert publisher.client is client
        assert publisher.request is image_request


class TestRunScan:
    """Tests for run_scan."""

    @pytest.mark.asyncio
    async def test_closes_console_client(self, no_runtime: RuntimeDetector, image_request: ScanRequest) -> None:
        config = ServiceConfig(console_url="console.local")
        outcome = ScanOutcome(sbom=b"{}")

        with (
            patch("sbomscan.pipeline.ConsoleClient.close", new=AsyncMock()) as mock_close,
            patch("sbomscan.pipeline.ScanOrchestrator.generate", new=AsyncMock(return_value=outcome)),
        ):
            result = await run_scan(image_request, config, detector=no_runtime)

        assert result is outcome
        mock_close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_console(self, no_runtime: RuntimeDetector, image_request: ScanRequest) -> None:
        outcome = ScanOutcome(sbom=b"{}")
        with (
            patch("sbomscan.pipeline.ConsoleClient") as client_cls,
            patch("sbomscan.pipeline.ScanOrchestrator.generate", new=AsyncMock(return_value=outcome)),
        ):
            await run_scan(image_request, ServiceConfig(), detector=no_runtime)

        client_cls.from_config.assert_not_called()


class TestRunService:
    """Tests for run_service."""

    @pytest.mark.asyncio
    async def test_requires_console(self, no_runtime: RuntimeDetector) -> None:
        with pytest.raises(ConfigurationError, match="MGMT_CONSOLE_URL"):
            await run_service(ServiceConfig(port="8005"), detector=no_runtime)

    @pytest.mark.asyncio
    async def test_requires_listener(self, no_runtime: RuntimeDetector) -> None:
        with pytest.raises(ConfigurationError, match="socket-path or port"):
            await run_service(ServiceConfig(console_url="console.local"), detector=no_runtime)

    @pytest.mark.asyncio
    async def test_pool_sized_from_config(self, no_runtime: RuntimeDetector) -> None:
        config = ServiceConfig(port="8005", console_url="console.local", scan_concurrency=3)

        with (
            patch("sbomscan.pipeline.serve", new=AsyncMock()) as mock_serve,
            patch("sbomscan.pipeline.ConsoleClient.close", new=AsyncMock()) as mock_close,
        ):
            await run_service(config, detector=no_runtime)

        served_config, pool = mock_serve.await_args.args
        assert served_config is config
        assert pool.size == 3
        assert pool.failure_sink is not None
        mock_close.assert_awaited_once()
