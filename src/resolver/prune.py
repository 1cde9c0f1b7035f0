"""Reduce a multi-version dependency graph to one version per package id."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from constants import Constants
from common.errors import GraphInvariantError
from versioning.models import DependencyGraph, PackageDependencyInfo, PackageIdentity
from versioning.nuget_version import NuGetVersion

logger = logging.getLogger(__name__)


def bootstrap_exclusions(pairs: Optional[Sequence[Tuple[str, str]]] = None) -> Set[PackageIdentity]:
    """Identities that are always removed, from ``pairs`` or the configured defaults."""
    pairs = Constants.BOOTSTRAP_EXCLUSIONS if pairs is None else pairs
    return {PackageIdentity(pkg_id, NuGetVersion.parse(version)) for pkg_id, version in pairs}


def compute_removals(
    available: Iterable[PackageIdentity], exclusions: Iterable[PackageIdentity] = ()
) -> Set[PackageIdentity]:
    """Every version of an id except the highest, plus ``exclusions``."""
    by_id: Dict[str, List[PackageIdentity]] = defaultdict(list)
    for identity in available:
        by_id[identity.key].append(identity)

    removals: Set[PackageIdentity] = set()
    for versions in by_id.values():
        if len(versions) > 1:
            ordered = sorted(versions, key=lambda p: p.version, reverse=True)
            removals.update(ordered[1:])
    removals.update(exclusions)
    return removals


def prune(
    root: PackageIdentity,
    graph: DependencyGraph,
    exclusions: Optional[Iterable[PackageIdentity]] = None,
) -> List[PackageIdentity]:
    """Walk the graph from ``root`` and return the surviving identities.

    Dependencies come before their dependents. An edge into a removed
    node is not followed, so anything reachable only through it is
    dropped as well. Pure: the graph is not modified.
    """
    root_info = graph.info(root)
    if root_info is None:
        raise GraphInvariantError(f"root {root} was never resolved")

    exclusions = bootstrap_exclusions() if exclusions is None else set(exclusions)
    removals = compute_removals(graph.identities(), exclusions)

    result: Dict[PackageIdentity, None] = {}
    _walk(root_info, graph, removals, result, set())
    return list(result)


def _walk(
    target: PackageDependencyInfo,
    graph: DependencyGraph,
    removals: Set[PackageIdentity],
    result: Dict[PackageIdentity, None],
    visiting: Set[PackageIdentity],
) -> None:
    visiting.add(target)
    for dependency in target.dependencies:
        if dependency in removals:
            logger.debug("Skipping %s. Marked for removal.", dependency)
            continue
        if dependency in result:
            logger.debug("Skipping %s. Already added.", dependency)
            continue
        if dependency in visiting:
            continue
        info = graph.info(dependency)
        if info is None:
            logger.debug("Skipping %s. Not in graph.", dependency)
            continue
        _walk(info, graph, removals, result, visiting)
    visiting.discard(target)

    if target in removals or target in result:
        return
    result[target] = None
    logger.info("Adding %s", target)
