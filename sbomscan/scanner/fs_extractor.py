"""Exports a running container's filesystem into a temporary directory."""

import logging
import shutil
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sbomscan.consts import DEFAULT_CONTAINER_NAMESPACE, SYFT_TEMP_PREFIX
from sbomscan.exceptions import ArtifactIOError, ExtractionError
from sbomscan.models.model_request import ScanRequest
from sbomscan.process import run_command
from sbomscan.runtime.detector import RuntimeDetector

logger = logging.getLogger(__name__)


def container_key(request: ScanRequest) -> tuple[str, str]:
    """Pick the extraction key and namespace for a container request.

    Cluster workloads are addressed by container ID with an empty namespace,
    everything else by container name in the "default" namespace.

    Returns:
        Tuple of (container identifier, namespace)
    """
    if request.kubernetes_cluster_name:
        return request.container_id, ""
    return request.container_name, DEFAULT_CONTAINER_NAMESPACE


def tarball_path(target_dir: Path) -> Path:
    return target_dir.with_name(target_dir.name + ".tar")


class ContainerFilesystemExtractor:
    """Exports a container with the detected runtime and unpacks it with tar."""

    def __init__(self, detector: RuntimeDetector, temp_dir: Path | str | None = None):
        """Initialize ContainerFilesystemExtractor.

        Args:
            detector: Shared runtime detector
            temp_dir: Parent for extraction directories (default: system temp)
        """
        self.detector = detector
        self.temp_dir = Path(temp_dir) if temp_dir else None

    async def extract(self, container_id: str, namespace: str, target_dir: Path) -> Path:
        """Export container_id into target_dir.

        The tarball is written next to the directory as <target_dir>.tar; the
        caller removes both.

        Raises:
            RuntimeDetectionError: If no runtime is available
            ExtractionError: If export or unpack fails
        """
        runtime = self.detector.require()
        tar_path = tarball_path(target_dir)

        await runtime.extract_filesystem(container_id, namespace, tar_path)

        result = await run_command(["tar", "-xf", str(tar_path), "-C", str(target_dir)])
        if not result.ok:
            raise ExtractionError(f"tar : {target_dir} (code {result.returncode}): {result.output}")

        logger.debug(f"Extracted {container_id} into {target_dir}")
        return target_dir

    @asynccontextmanager
    async def extracted(self, container_id: str, namespace: str) -> AsyncIterator[Path]:
        """Extract into a fresh temp dir, removing dir and tarball on exit."""
        try:
            target_dir = Path(
                tempfile.mkdtemp(prefix=SYFT_TEMP_PREFIX, dir=self.temp_dir)
            )
        except OSError as e:
            raise ArtifactIOError(f"Error creating temp directory: {e}") from e

        try:
            yield await self.extract(container_id, namespace, target_dir)
        finally:
            shutil.rmtree(target_dir, ignore_errors=True)
            tarball_path(target_dir).unlink(missing_ok=True)
