"""Abstract base class for container runtimes.

A runtime knows how to export a running container's filesystem and how to
save an image to an archive the cataloging tool can read.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from sbomscan.exceptions import ExtractionError
from sbomscan.process import run_command


class RuntimeName(str, Enum):
    """Supported container runtimes."""

    DOCKER = "docker"
    CONTAINERD = "containerd"
    CRIO = "cri-o"


class ContainerRuntime(ABC):
    """Capability interface shared by every runtime variant."""

    name: RuntimeName

    def __init__(self, endpoint: str):
        """Initialize runtime.

        Args:
            endpoint: Control endpoint, e.g. unix:///run/containerd/containerd.sock
        """
        self.endpoint = endpoint

    @property
    def socket_path(self) -> str:
        return self.endpoint.removeprefix("unix://")

    @abstractmethod
    def export_command(self, container_id: str, namespace: str, tar_path: Path) -> list[str]:
        """Command that writes a container's root filesystem to tar_path."""
        ...

    @abstractmethod
    def save_command(self, image: str, tar_path: Path) -> list[str]:
        """Command that writes an image archive to tar_path."""
        ...

    async def extract_filesystem(self, container_id: str, namespace: str, tar_path: Path) -> None:
        """Export a container filesystem tarball.

        Args:
            container_id: Container ID or name, depending on namespace
            namespace: "" for cluster workloads, "default" otherwise
            tar_path: Destination tarball

        Raises:
            ExtractionError: If the runtime export fails
        """
        cmd = self.export_command(container_id, namespace, tar_path)
        result = await run_command(cmd)
        if not result.ok:
            raise ExtractionError(
                f"{self.name.value} export of {container_id} failed "
                f"(code {result.returncode}): {result.output}"
            )

    async def save_image(self, image: str, tar_path: Path) -> Path:
        """Save an image archive.

        Args:
            image: Image reference
            tar_path: Destination archive

        Returns:
            Path to the written archive

        Raises:
            ExtractionError: If the runtime save fails
        """
        cmd = self.save_command(image, tar_path)
        result = await run_command(cmd)
        if not result.ok:
            raise ExtractionError(
                f"{self.name.value} save of {image} failed "
                f"(code {result.returncode}): {result.output}"
            )
        return tar_path

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoint={self.endpoint!r})"
