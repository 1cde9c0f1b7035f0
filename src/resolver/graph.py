"""Concurrent dependency-graph builder.

Starting from a root identity, each node's registration leaf is fetched,
the dependency group nearest to the target framework is selected, and all
direct dependencies are resolved concurrently. Every identity is claimed
in the shared DependencyGraph before it is fetched, so it is fetched and
expanded at most once even when several branches (or a cycle) reach it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from common.errors import GraphInvariantError, PlatformIncompatible, VersionNotFound
from common.logging_utils import extra_context, is_debug_enabled
from registry.nuget.models import CatalogEntry, DependencyGroup, PackageDependency
from versioning.frameworks import Framework, nearest_compatible
from versioning.models import DependencyGraph, PackageDependencyInfo, PackageIdentity
from versioning.nuget_version import NuGetVersion

logger = logging.getLogger(__name__)


def select_dependency_group(
    groups: Optional[List[DependencyGroup]], target: Framework
) -> Optional[DependencyGroup]:
    """Return the group whose framework is nearest to ``target``.

    None when the package declares no groups or none is compatible.
    """
    if not groups:
        return None
    nearest = nearest_compatible(target, [g.target_framework for g in groups])
    if nearest is None:
        return None
    return next(g for g in groups if g.target_framework == nearest)


def dependency_identity(dependency: PackageDependency) -> PackageIdentity:
    """Edge target for a declared dependency: the range's lower bound.

    Upper bounds and exclusions are not consulted.
    """
    minimum = dependency.range.min_version
    if minimum is None:
        raise VersionNotFound(dependency.id, f"{dependency.range} (no lower bound)")
    return PackageIdentity(dependency.id, minimum)


class GraphBuilder:
    """Builds the superset dependency graph for one resolution."""

    def __init__(self, client, registration_base_url: str, target_framework: Framework):
        """Initialize the builder.

        Args:
            client: Object exposing ``find_leaf(base_url, id, version)``
                returning a LookupResult (see registry.nuget.client).
            registration_base_url: Base URL discovered from the service index.
            target_framework: Framework used to pick dependency groups.
        """
        self._client = client
        self._base_url = registration_base_url
        self._target = target_framework

    async def build(
        self, package_id: str, version: NuGetVersion, graph: Optional[DependencyGraph] = None
    ) -> Tuple[PackageDependencyInfo, DependencyGraph]:
        """Resolve ``package_id`` at ``version`` and everything it depends on.

        Returns:
            The root node and the populated graph.

        Raises:
            RegistrationUnavailable, VersionNotFound: first failure anywhere
                in the graph; no partial graph is returned.
        """
        graph = graph if graph is not None else DependencyGraph()
        root = PackageIdentity(package_id, version)
        await self.resolve(root, graph)
        info = graph.info(root)
        if info is None:
            raise GraphInvariantError(f"root {root} missing after resolution")
        logger.info("Resolved %d package(s) for %s", len(graph), root)
        return info, graph

    async def resolve(self, identity: PackageIdentity, graph: DependencyGraph) -> None:
        """Fetch and expand ``identity`` unless another branch already claimed it."""
        if not graph.try_claim(identity):
            if is_debug_enabled(logger):
                logger.debug(
                    "Already claimed %s", identity,
                    extra=extra_context(event="memo_hit", component="graph", target=str(identity)),
                )
            return

        result = await self._client.find_leaf(self._base_url, identity.id, identity.version)
        leaf = result.unwrap()
        entry = leaf.catalog_entry
        info = PackageDependencyInfo(entry.package_id, entry.version)
        for dependency in self._selected_dependencies(entry):
            info.add_dependency(dependency_identity(dependency))

        graph.publish(info, leaf.package_content)
        logger.info("Fetched %s", leaf.package_content)

        await self._resolve_all(info.dependencies, graph)

    def _selected_dependencies(self, entry: CatalogEntry) -> List[PackageDependency]:
        if not entry.dependency_groups:
            return []
        group = select_dependency_group(entry.dependency_groups, self._target)
        if group is None:
            condition = PlatformIncompatible(entry.package_id, str(entry.version), str(self._target))
            logger.info(
                "%s; treating it as a leaf", condition,
                extra=extra_context(event="platform_incompatible", component="graph", target=entry.package_id),
            )
            return []
        return group.dependencies

    async def _resolve_all(self, children: Iterable[PackageIdentity], graph: DependencyGraph) -> None:
        """Resolve children concurrently; on the first failure cancel the rest and re-raise."""
        tasks = [asyncio.ensure_future(self.resolve(child, graph)) for child in children]
        if not tasks:
            return
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
