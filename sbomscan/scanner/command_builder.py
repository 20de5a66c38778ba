"""Builds syft invocations from scan requests.

Handles the differences between scan targets:
- Host directories: exclude runtime storage, pseudo filesystems and network mounts
- Images on containerd / CRI-O: save to an archive first, syft cannot list them
- Running containers: export the filesystem and scan it as a directory
- Insecure registries: drop the registry: scheme and relax TLS
"""

import logging
import secrets
import shutil
import subprocess
import tempfile
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import AsyncExitStack, asynccontextmanager, contextmanager
from functools import lru_cache
from pathlib import Path

from sbomscan.consts import (
    DEFAULT_TEMP_DIR,
    DIR_SCHEME,
    DOCKER_ARCHIVE_SCHEME,
    LINUX_EXCLUDE_DIRS,
    MOUNT_DISCOVERY_CMD,
    OCI_ARCHIVE_SCHEME,
    REGISTRY_SCHEME,
    SCAN_TYPE_ALL,
    SCAN_TYPE_CATALOGERS,
    SYFT_INSECURE_ENV,
    SYFT_OUTPUT_FORMAT,
    SYFT_OUTPUT_SUFFIX,
    SYFT_RANDOM_NAME_LENGTH,
    SYFT_TEMP_PREFIX,
    SYFT_VERB,
)
from sbomscan.exceptions import ArtifactIOError
from sbomscan.models.model_request import NodeType, ScanRequest
from sbomscan.models.model_scanner import ExecutionPlan
from sbomscan.runtime.base import RuntimeName
from sbomscan.runtime.detector import RuntimeDetector
from sbomscan.scanner.fs_extractor import ContainerFilesystemExtractor, container_key

logger = logging.getLogger(__name__)

ARCHIVE_SCHEMES = {
    RuntimeName.CONTAINERD: OCI_ARCHIVE_SCHEME,
    RuntimeName.CRIO: DOCKER_ARCHIVE_SCHEME,
}


@lru_cache(maxsize=1)
def discover_mount_dirs() -> tuple[str, ...]:
    """List NFS and tmpfs mount points on this host (computed once per process)."""
    try:
        completed = subprocess.run(MOUNT_DISCOVERY_CMD, capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"Mount discovery unavailable: {e}")
        return ()
    return tuple(line for line in completed.stdout.split("\n") if line.strip())


def parse_catalogers(scan_type: str) -> list[str]:
    """Expand a comma separated scan type filter into syft cataloger names.

    Unknown tags are ignored.
    """
    if not scan_type or scan_type == SCAN_TYPE_ALL:
        return []
    catalogers: list[str] = []
    for tag in scan_type.split(","):
        catalogers.extend(SCAN_TYPE_CATALOGERS.get(tag.strip(), []))
    return catalogers


def host_exclusions(source: str, mount_dirs: tuple[str, ...] | list[str]) -> list[str]:
    """Exclude arguments for a host directory scan, relative to the scan root."""
    args: list[str] = []
    for exclude_dir in LINUX_EXCLUDE_DIRS:
        args += ["--exclude", f".{exclude_dir}/**"]

    scan_dir = source.split(":", 1)[1] if source.startswith(DIR_SCHEME) else source
    scan_dir = str(Path(scan_dir).absolute())
    for exclude_dir in mount_dirs:
        exclude_dir = exclude_dir.strip()
        if scan_dir != "/" and (exclude_dir == scan_dir or exclude_dir.startswith(scan_dir + "/")):
            exclude_dir = exclude_dir[len(scan_dir):]
        args += ["--exclude", f".{exclude_dir}/**"]
    return args


def image_exclusions() -> list[str]:
    args: list[str] = []
    for exclude_dir in LINUX_EXCLUDE_DIRS:
        args += ["--exclude", exclude_dir]
    return args


class CatalogCommandBuilder:
    """Turns a ScanRequest into an ExecutionPlan."""

    def __init__(
        self,
        detector: RuntimeDetector,
        extractor: ContainerFilesystemExtractor | None = None,
        registry_insecure: Callable[[str], Awaitable[bool]] | None = None,
        mount_dirs: tuple[str, ...] | list[str] | None = None,
        temp_dir: Path | str | None = None,
    ):
        """Initialize CatalogCommandBuilder.

        Args:
            detector: Shared runtime detector
            extractor: Container filesystem extractor (default: one built on detector)
            registry_insecure: Async lookup telling whether a registry skips TLS
                (default: every registry is secure)
            mount_dirs: NFS/tmpfs mount points (default: discovered from the host)
            temp_dir: Where output files and archives are created (default: system temp)
        """
        self.temp_dir = Path(temp_dir) if temp_dir else DEFAULT_TEMP_DIR
        self.detector = detector
        self.extractor = extractor or ContainerFilesystemExtractor(detector, self.temp_dir)
        self.registry_insecure = registry_insecure
        self.mount_dirs = mount_dirs if mount_dirs is not None else discover_mount_dirs()

    def _output_path(self) -> Path:
        name = secrets.token_hex(SYFT_RANDOM_NAME_LENGTH // 2)
        return self.temp_dir / f"{name}{SYFT_OUTPUT_SUFFIX}"

    @contextmanager
    def _scratch_dir(self) -> Iterator[Path]:
        try:
            path = Path(tempfile.mkdtemp(prefix=SYFT_TEMP_PREFIX, dir=self.temp_dir))
        except OSError as e:
            logger.error(f"Error creating temp directory: {e}")
            raise ArtifactIOError(f"Error creating temp directory: {e}") from e
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)

    async def _is_insecure(self, registry_id: str) -> bool:
        if not registry_id or self.registry_insecure is None:
            return False
        return await self.registry_insecure(registry_id)

    @asynccontextmanager
    async def build(self, request: ScanRequest) -> AsyncIterator[ExecutionPlan]:
        """Build the plan for request; temp artifacts are removed when the block exits.

        Args:
            request: Classified scan request

        Yields:
            ExecutionPlan ready for SyftScanner

        Raises:
            ArtifactIOError: If a temp directory cannot be created
            ExtractionError: If an image save or container export fails
            RuntimeDetectionError: If a container scan has no runtime
        """
        output_path = self._output_path()
        args = [SYFT_VERB, request.source, "-o", SYFT_OUTPUT_FORMAT, "--file", str(output_path), "-q"]
        env: dict[str, str] = {}

        async with AsyncExitStack() as stack:
            stack.callback(output_path.unlink, missing_ok=True)

            if request.is_directory:
                args += host_exclusions(request.source, self.mount_dirs)
            else:
                is_container = request.node_type == NodeType.CONTAINER
                if not is_container:
                    args += image_exclusions()

                if not request.is_registry:
                    runtime = self.detector.detect()
                    if not is_container and runtime is not None and runtime.name in ARCHIVE_SCHEMES:
                        # syft cannot list images from containerd / CRI-O stores
                        scratch = stack.enter_context(self._scratch_dir())
                        tar_path = await runtime.save_image(request.source, scratch / "image.tar")
                        args[1] = ARCHIVE_SCHEMES[runtime.name] + str(tar_path)
                    elif is_container:
                        container_id, namespace = container_key(request)
                        rootfs = await stack.enter_async_context(
                            self.extractor.extracted(container_id, namespace)
                        )
                        args[1] = DIR_SCHEME + str(rootfs)

            if await self._is_insecure(request.registry_id):
                if args[1].startswith(REGISTRY_SCHEME):
                    args[1] = args[1].removeprefix(REGISTRY_SCHEME)
                env.update(SYFT_INSECURE_ENV)

            for cataloger in parse_catalogers(request.scan_type):
                args += ["--catalogers", cataloger]

            plan = ExecutionPlan(args=args, output_path=output_path, env=env)
            logger.debug(f"Built plan for {request.source}: {' '.join(args)}")
            yield plan
