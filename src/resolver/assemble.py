"""Project pruned identities back onto download locations."""

from __future__ import annotations

from typing import Iterable, List

from versioning.models import DependencyGraph, PackageIdentity


def assemble(pruned: Iterable[PackageIdentity], graph: DependencyGraph) -> List[str]:
    """Content URLs for ``pruned``, in the same order, one per identity."""
    return [graph.content_url(identity) for identity in pruned]
