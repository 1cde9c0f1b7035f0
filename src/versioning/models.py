"""Data models for package identities and the dependency graph."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set

from .nuget_version import NuGetVersion


class PackageIdentity:
    """Package id plus exact version.

    Ids compare case-insensitively and versions with NuGet equality, so
    ``Foo 1.0`` and ``foo 1.0.0+build`` are the same identity.
    """

    __slots__ = ("_id", "_version")

    def __init__(self, package_id: str, version: NuGetVersion):
        self._id = package_id
        self._version = version

    @property
    def id(self) -> str:  # pylint: disable=invalid-name
        return self._id

    @property
    def version(self) -> NuGetVersion:
        return self._version

    @property
    def key(self) -> str:
        """Lower-cased id, used to group identities of the same package."""
        return self._id.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self.key == other.key and self._version == other._version

    def __hash__(self) -> int:
        return hash((self.key, self._version))

    def __str__(self) -> str:
        return f"{self._id}.{self._version}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id!r}, {str(self._version)!r})"


class PackageDependencyInfo(PackageIdentity):
    """Identity plus its direct dependency edges, in declaration order."""

    __slots__ = ("dependencies",)

    def __init__(self, package_id: str, version: NuGetVersion,
                 dependencies: Optional[List[PackageIdentity]] = None):
        super().__init__(package_id, version)
        self.dependencies: List[PackageIdentity] = list(dependencies or [])

    def add_dependency(self, dependency: PackageIdentity) -> None:
        self.dependencies.append(dependency)


@dataclass
class GraphEntry:
    """A resolved node: where to download it and what it depends on."""

    content_url: str
    info: PackageDependencyInfo


class DependencyGraph:
    """Identity -> GraphEntry map built concurrently by the graph builder.

    ``try_claim`` is the atomic insert-if-absent primitive and the only
    synchronization point: the first caller to claim an identity fetches
    and expands it, every later caller returns immediately. The claimant
    then ``publish``es the resolved entry.
    """

    def __init__(self) -> None:
        self._claimed: Set[PackageIdentity] = set()
        self._entries: Dict[PackageIdentity, GraphEntry] = {}
        self._lock = threading.Lock()

    def try_claim(self, identity: PackageIdentity) -> bool:
        """Reserve ``identity``; False when it was already claimed."""
        with self._lock:
            if identity in self._claimed:
                return False
            self._claimed.add(identity)
            return True

    def publish(self, info: PackageDependencyInfo, content_url: str) -> GraphEntry:
        """Record the resolved node; the first published entry wins."""
        with self._lock:
            self._claimed.add(info)
            entry = self._entries.get(info)
            if entry is None:
                entry = GraphEntry(content_url, info)
                self._entries[info] = entry
            return entry

    def try_add(self, info: PackageDependencyInfo, content_url: str) -> bool:
        """Claim and publish in one step; True when ``info`` was inserted."""
        if not self.try_claim(info):
            return False
        self.publish(info, content_url)
        return True

    def info(self, identity: PackageIdentity) -> Optional[PackageDependencyInfo]:
        entry = self._entries.get(identity)
        return entry.info if entry else None

    def content_url(self, identity: PackageIdentity) -> str:
        return self._entries[identity].content_url

    def identities(self) -> List[PackageDependencyInfo]:
        return [entry.info for entry in self._entries.values()]

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PackageIdentity]:
        return iter(self._entries)
