"""Container runtime detection and export primitives."""

from sbomscan.runtime.base import ContainerRuntime, RuntimeName
from sbomscan.runtime.detector import RuntimeDetector
from sbomscan.runtime.runtimes import ContainerdRuntime, CrioRuntime, DockerRuntime

__all__ = [
    "ContainerRuntime",
    "ContainerdRuntime",
    "CrioRuntime",
    "DockerRuntime",
    "RuntimeDetector",
    "RuntimeName",
]
