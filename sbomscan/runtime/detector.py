"""Container runtime auto-detection."""

import logging
from pathlib import Path

from sbomscan.consts import CONTAINERD_SOCKETS, CRIO_SOCKETS, DOCKER_SOCKETS
from sbomscan.exceptions import RuntimeDetectionError
from sbomscan.runtime.base import ContainerRuntime, RuntimeName
from sbomscan.runtime.runtimes import RUNTIME_CLASSES

logger = logging.getLogger(__name__)

_NOT_DETECTED = object()


class RuntimeDetector:
    """Detects the active container runtime once and caches the result.

    Detection probes well-known control sockets in priority order
    (docker, containerd, cri-o). The first socket that exists wins.
    """

    def __init__(self, candidates: list[tuple[RuntimeName, str]] | None = None):
        """Initialize RuntimeDetector.

        Args:
            candidates: Ordered (runtime, socket path) pairs to probe
                (default: the standard docker, containerd and cri-o sockets)
        """
        if candidates is None:
            candidates = (
                [(RuntimeName.DOCKER, s) for s in DOCKER_SOCKETS]
                + [(RuntimeName.CONTAINERD, s) for s in CONTAINERD_SOCKETS]
                + [(RuntimeName.CRIO, s) for s in CRIO_SOCKETS]
            )
        self.candidates = candidates
        self._cached = _NOT_DETECTED

    def detect(self) -> ContainerRuntime | None:
        """Return the detected runtime, or None when no socket is present."""
        if self._cached is not _NOT_DETECTED:
            return self._cached

        runtime = None
        for name, socket_path in self.candidates:
            if Path(socket_path).exists():
                runtime = RUNTIME_CLASSES[name](endpoint=f"unix://{socket_path}")
                logger.info(f"Detected container runtime {name.value} at {socket_path}")
                break
        else:
            logger.info("No container runtime detected")

        self._cached = runtime
        return runtime

    def require(self) -> ContainerRuntime:
        """Return the detected runtime.

        Raises:
            RuntimeDetectionError: If no runtime is available
        """
        runtime = self.detect()
        if runtime is None:
            probed = ", ".join(path for _, path in self.candidates)
            raise RuntimeDetectionError(f"Could not detect container runtime (probed: {probed})")
        return runtime

    def invalidate(self) -> None:
        """Forget the cached runtime so the next call probes again."""
        self._cached = _NOT_DETECTED
