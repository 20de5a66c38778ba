"""Registry credentials fetched from the console."""

import json
import logging
import shutil
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sbomscan.consts import CONSOLE_REGISTRY_CREDENTIALS_PATH
from sbomscan.exceptions import ArtifactIOError
from sbomscan.publisher.console_client import ConsoleClient

logger = logging.getLogger(__name__)


class RegistryClient:
    """Looks up registry auth and TLS policy by registry ID."""

    def __init__(self, client: ConsoleClient, temp_dir: Path | str | None = None):
        self.client = client
        self.temp_dir = Path(temp_dir) if temp_dir else None

    async def _credentials(self, registry_id: str) -> dict:
        path = CONSOLE_REGISTRY_CREDENTIALS_PATH.format(registry_id=registry_id)
        return await self.client.request("GET", path) or {}

    async def is_insecure(self, registry_id: str) -> bool:
        """Whether the registry is accessed without TLS verification."""
        credentials = await self._credentials(registry_id)
        return bool(credentials.get("insecure", False))

    @asynccontextmanager
    async def auth_config(self, registry_id: str) -> AsyncIterator[Path | None]:
        """Write a docker config.json for the registry into a temp directory.

        Yields:
            Directory suitable for DOCKER_CONFIG, or None when the registry
            needs no credentials. The directory is removed on exit.
        """
        credentials = await self._credentials(registry_id)
        auths = credentials.get("auths") or {}
        if not auths:
            yield None
            return

        try:
            config_dir = Path(tempfile.mkdtemp(prefix="docker-auth-", dir=self.temp_dir))
            (config_dir / "config.json").write_text(json.dumps({"auths": auths}), encoding="utf-8")
        except OSError as e:
            raise ArtifactIOError(f"Error writing registry auth config: {e}") from e

        try:
            logger.debug(f"Wrote registry auth for {registry_id} to {config_dir}")
            yield config_dir
        finally:
            shutil.rmtree(config_dir, ignore_errors=True)
