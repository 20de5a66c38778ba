"""Syft CLI wrapper that turns an ExecutionPlan into SBOM bytes."""

import logging
import os
import shutil
from contextlib import AsyncExitStack

from sbomscan.consts import SYFT_PATH
from sbomscan.exceptions import ArtifactIOError, PublisherError, ToolExecutionError
from sbomscan.models.model_request import NodeType
from sbomscan.models.model_scanner import ExecutionPlan
from sbomscan.process import run_command
from sbomscan.publisher.registry import RegistryClient
from sbomscan.publisher.scan_publisher import ScanPublisher

logger = logging.getLogger(__name__)


class SyftScanner:
    """Runs syft for a prepared plan and returns the JSON SBOM."""

    def __init__(self, syft_path: str = SYFT_PATH, registry: RegistryClient | None = None):
        """Initialize SyftScanner.

        Args:
            syft_path: Path to syft executable (default: "syft")
            registry: Source of registry credentials for image scans (default: None)
        """
        self.syft_path = syft_path
        self.registry = registry

    def is_syft_installed(self) -> bool:
        """Check if syft is installed and accessible."""
        return shutil.which(self.syft_path) is not None

    async def generate(
        self,
        plan: ExecutionPlan,
        registry_id: str = "",
        node_type: NodeType | str = NodeType.IMAGE,
        publisher: ScanPublisher | None = None,
    ) -> bytes:
        """Run syft and read the SBOM it wrote.

        Args:
            plan: Arguments, output path and env overrides
            registry_id: Registry to fetch credentials for (image scans only)
            node_type: Node type of the target
            publisher: Notified with the tool output when syft fails

        Returns:
            Raw SBOM bytes

        Raises:
            ToolExecutionError: If syft exits non-zero
            ArtifactIOError: If the output file cannot be read
        """
        async with AsyncExitStack() as stack:
            stack.callback(plan.output_path.unlink, missing_ok=True)

            env = os.environ.copy()
            env.update(plan.env)

            if registry_id and node_type == NodeType.IMAGE and self.registry is not None:
                config_dir = await stack.enter_async_context(self.registry.auth_config(registry_id))
                if config_dir is not None:
                    env["DOCKER_CONFIG"] = str(config_dir)

            cmd = [self.syft_path, *plan.args]
            result = await run_command(cmd, env=env)

            if not result.ok:
                logger.error(f"error from syft command for syftArgs: {' '.join(plan.args)}")
                logger.error(f"output: {result.output} (exit code {result.returncode})")
                error = ToolExecutionError(
                    f"syft failed with exit code {result.returncode}",
                    output=result.output,
                    returncode=result.returncode,
                )
                if publisher is not None:
                    try:
                        await publisher.publish_scan_error(
                            f"{result.output} exit status {result.returncode}"
                        )
                        error.reported = True
                    except PublisherError as e:
                        logger.warning(f"Failed to report syft error to console: {e}")
                raise error

            try:
                sbom = plan.output_path.read_bytes()
            except OSError as e:
                logger.error(f"error reading internal file {plan.output_path}: {e}")
                raise ArtifactIOError(f"Failed to read syft output {plan.output_path}: {e}") from e

            logger.debug(f"syft wrote {len(sbom)} bytes for {plan.locator}")
            return sbom
