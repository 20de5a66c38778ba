"""Docker, containerd and CRI-O runtime wrappers."""

from pathlib import Path

from sbomscan.consts import CONTAINERD_K8S_NAMESPACE
from sbomscan.runtime.base import ContainerRuntime, RuntimeName


class DockerRuntime(ContainerRuntime):
    name = RuntimeName.DOCKER

    def export_command(self, container_id: str, namespace: str, tar_path: Path) -> list[str]:
        return ["docker", "export", "-o", str(tar_path), container_id]

    def save_command(self, image: str, tar_path: Path) -> list[str]:
        return ["docker", "save", "-o", str(tar_path), image]


class ContainerdRuntime(ContainerRuntime):
    """containerd through nerdctl; cluster workloads live in the k8s.io namespace."""

    name = RuntimeName.CONTAINERD

    def _base(self, namespace: str) -> list[str]:
        return [
            "nerdctl",
            "--address",
            self.socket_path,
            "--namespace",
            namespace or CONTAINERD_K8S_NAMESPACE,
        ]

    def export_command(self, container_id: str, namespace: str, tar_path: Path) -> list[str]:
        return self._base(namespace) + ["export", "-o", str(tar_path), container_id]

    def save_command(self, image: str, tar_path: Path) -> list[str]:
        return self._base(CONTAINERD_K8S_NAMESPACE) + ["save", "-o", str(tar_path), image]


class CrioRuntime(ContainerRuntime):
    """CRI-O shares containers/storage with podman."""

    name = RuntimeName.CRIO

    def export_command(self, container_id: str, namespace: str, tar_path: Path) -> list[str]:
        return ["podman", "export", "-o", str(tar_path), container_id]

    def save_command(self, image: str, tar_path: Path) -> list[str]:
        return ["podman", "save", "--format", "docker-archive", "-o", str(tar_path), image]


RUNTIME_CLASSES: dict[RuntimeName, type[ContainerRuntime]] = {
    RuntimeName.DOCKER: DockerRuntime,
    RuntimeName.CONTAINERD: ContainerdRuntime,
    RuntimeName.CRIO: CrioRuntime,
}
