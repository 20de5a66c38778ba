"""Request service: accepts GenerateSBOM calls over TCP or a unix socket."""

import asyncio
import logging
import signal
from dataclasses import asdict

from aiohttp import web
from pydantic import ValidationError

from sbomscan.consts import SCAN_STARTED_MESSAGE
from sbomscan.exceptions import ConfigurationError
from sbomscan.models.model_request import GenerateSbomPayload, ScanRequest, ServiceConfig
from sbomscan.publisher.console_client import ConsoleClient
from sbomscan.publisher.scan_publisher import ScanPublisher
from sbomscan.scanner.target_classifier import resolve_request
from sbomscan.service.worker_pool import FailureSink, ScanWorkerPool

logger = logging.getLogger(__name__)

GENERATE_SBOM_ROUTE = "/v1/sbom/generate"
PLUGIN_NAME_ROUTE = "/v1/plugin/name"
JOBS_STATUS_ROUTE = "/v1/jobs/status"


def request_from_payload(payload: GenerateSbomPayload) -> ScanRequest:
    """Map a service call onto a classified, quiet, vulnerability-enabled ScanRequest."""
    request = ScanRequest(
        source=payload.source,
        node_type=payload.node_type,
        scan_type=payload.scan_type,
        scan_id=payload.scan_id,
        host_name=payload.host_name,
        image_id=payload.image_id,
        container_name=payload.container_name,
        container_id=payload.container_id,
        kubernetes_cluster_name=payload.kubernetes_cluster_name,
        registry_id=payload.registry_id,
        quiet=True,
        vulnerability_scan=True,
    )
    return resolve_request(request)


def console_failure_sink(client: ConsoleClient) -> FailureSink:
    """Failure sink that marks the scan as failed on the console."""

    async def sink(request: ScanRequest, message: str) -> None:
        await ScanPublisher(client, request).publish_scan_error(message)

    return sink


class SbomService:
    """HTTP/JSON endpoints in front of a ScanWorkerPool."""

    def __init__(self, config: ServiceConfig, pool: ScanWorkerPool):
        self.config = config
        self.pool = pool

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(GENERATE_SBOM_ROUTE, self.generate_sbom)
        app.router.add_get(PLUGIN_NAME_ROUTE, self.plugin_name)
        app.router.add_get(JOBS_STATUS_ROUTE, self.jobs_status)
        return app

    async def generate_sbom(self, http_request: web.Request) -> web.Response:
        """Queue an SBOM generation and acknowledge immediately.

        Fire-and-forget: the response only confirms the request was queued.
        There is no completion signal; callers poll the console for the scan
        status.
        """
        try:
            payload = GenerateSbomPayload.model_validate(await http_request.json())
        except (ValueError, ValidationError) as e:
            return web.json_response({"error": f"invalid request: {e}"}, status=400)

        request = request_from_payload(payload)
        try:
            self.pool.submit(request)
        except RuntimeError as e:
            return web.json_response({"error": str(e)}, status=503)

        logger.info(f"Accepted scan {request.scan_id} for {request.source} ({request.node_type.value})")
        return web.json_response({"sbom": SCAN_STARTED_MESSAGE})

    async def plugin_name(self, http_request: web.Request) -> web.Response:
        return web.json_response({"name": self.config.plugin_name})

    async def jobs_status(self, http_request: web.Request) -> web.Response:
        return web.json_response(asdict(self.pool.stats))


def _site_for(runner: web.AppRunner, config: ServiceConfig) -> web.BaseSite:
    if config.port:
        try:
            port = int(config.port)
        except ValueError as e:
            raise ConfigurationError(f"Invalid port {config.port!r}") from e
        return web.TCPSite(runner, "0.0.0.0", port)
    if config.socket_path:
        return web.UnixSite(runner, config.socket_path)
    raise ConfigurationError("service mode requires either socket-path or port to be set")


async def serve(
    config: ServiceConfig,
    pool: ScanWorkerPool,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Run the service until SIGINT/SIGTERM (or stop_event) then shut down in order.

    Raises:
        ConfigurationError: If neither port nor socket path is configured
    """
    service = SbomService(config, pool)
    runner = web.AppRunner(service.build_app())
    await runner.setup()
    try:
        site = _site_for(runner, config)
        await site.start()
    except BaseException:
        await runner.cleanup()
        raise

    await pool.start()
    address = site.name
    print(address)
    logger.info(f"main: server listening at {address}")

    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal handler for {sig.name} not supported here")

    try:
        await stop_event.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
        logger.info("main: stopping server")
        await runner.cleanup()
        await pool.shutdown()
        logger.info("main: exiting gracefully")
