"""Public entry point: resolve one package into its list of download URLs."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple, Union

import aiohttp

from constants import Constants
from common.logging_utils import Timer, extra_context
from registry.nuget.client import NuGetRegistryClient
from versioning.frameworks import Framework
from versioning.nuget_version import NuGetVersion

from .assemble import assemble
from .graph import GraphBuilder
from .prune import bootstrap_exclusions, prune

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Resolves a package id + exact version into the .nupkg URLs to fetch."""

    def __init__(
        self,
        service_index_url: Optional[str] = None,
        target_framework: Union[str, Framework, None] = None,
        exclusions: Optional[Sequence[Tuple[str, str]]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[int] = None,
        client: Optional[NuGetRegistryClient] = None,
    ):
        """Initialize the installer.

        Args:
            service_index_url: Feed service index; defaults to Constants.
            target_framework: Framework token or Framework; defaults to Constants.
            exclusions: (id, version) pairs always removed from the result;
                defaults to Constants.BOOTSTRAP_EXCLUSIONS.
            session: Shared aiohttp session to borrow.
            timeout: Per-request timeout in seconds.
            client: Preconfigured registry client (takes precedence over the
                session/timeout/service index arguments).
        """
        self.service_index_url = service_index_url or Constants.SERVICE_INDEX_URL
        if isinstance(target_framework, Framework):
            self.target_framework = target_framework
        else:
            self.target_framework = Framework.parse(target_framework or Constants.DEFAULT_TARGET_FRAMEWORK)
        self.exclusions = bootstrap_exclusions(exclusions)
        self._session = session
        self._timeout = timeout
        self._client = client

    def _make_client(self) -> NuGetRegistryClient:
        if self._client is not None:
            return self._client
        return NuGetRegistryClient(self.service_index_url, session=self._session, timeout=self._timeout)

    async def install_package(self, package_id: str, version: str) -> List[str]:
        """Resolve ``package_id`` at the exact ``version``.

        Returns:
            Content URLs, dependencies before dependents.

        Raises:
            InvalidVersion: ``version`` is not a valid version string.
            ServiceIndexUnavailable, RegistrationUnavailable, VersionNotFound:
                first failure encountered; nothing partial is returned.
        """
        requested = NuGetVersion.parse(version)
        logger.info("Installing %s %s for %s", package_id, requested, self.target_framework)

        client = self._make_client()
        owns_client = client is not self._client
        try:
            with Timer() as t:
                base_url = await client.registration_base_url()
                builder = GraphBuilder(client, base_url, self.target_framework)
                root, graph = await builder.build(package_id, requested)
                pruned = prune(root, graph, self.exclusions)
                urls = assemble(pruned, graph)
            logger.info(
                "Selected %d of %d package(s)", len(urls), len(graph),
                extra=extra_context(event="resolved", component="installer",
                                    target=str(root), duration_ms=t.duration_ms()),
            )
            return urls
        finally:
            if owns_client:
                await client.stop()

    def install_package_sync(self, package_id: str, version: str, deadline: Optional[float] = None) -> List[str]:
        """Blocking wrapper; ``deadline`` (seconds) bounds the whole resolution."""
        coro = self.install_package(package_id, version)
        if deadline is not None:
            coro = asyncio.wait_for(coro, timeout=deadline)
        return asyncio.run(coro)


async def install_package(
    package_id: str,
    version: str,
    target_framework: Union[str, Framework, None] = None,
    **kwargs,
) -> List[str]:
    """Convenience wrapper around PackageInstaller.install_package."""
    installer = PackageInstaller(target_framework=target_framework, **kwargs)
    return await installer.install_package(package_id, version)

