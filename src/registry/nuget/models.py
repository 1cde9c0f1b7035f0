"""Typed views over NuGet V3 service-index and registration documents.

Each class is built from decoded JSON through ``from_json``; missing
required properties raise RegistryFormatError, unknown properties are
ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.errors import RegistryFormatError
from versioning.frameworks import ANY_FRAMEWORK, Framework
from versioning.nuget_version import InvalidVersion, NuGetVersion, VersionRange


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise RegistryFormatError(f"{where}: expected an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None:
        raise RegistryFormatError(f"{where}: missing required property '{key}'")
    return value


def _version(value: Any, where: str) -> NuGetVersion:
    try:
        return NuGetVersion.parse(str(value))
    except InvalidVersion as exc:
        raise RegistryFormatError(f"{where}: {exc}") from exc


def _optional_version(value: Any, where: str) -> Optional[NuGetVersion]:
    if value in (None, ""):
        return None
    return _version(value, where)


def _int(value: Any, where: str) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RegistryFormatError(f"{where}: count is not an integer: {value!r}") from exc


@dataclass
class ServiceResource:
    """A typed endpoint listed by the service index."""

    id: str  # pylint: disable=invalid-name
    type: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ServiceResource":
        return cls(id=str(data.get("@id") or ""), type=str(data.get("@type") or ""))


@dataclass
class ServiceIndex:
    version: Optional[NuGetVersion]
    resources: List[ServiceResource] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ServiceIndex":
        if not isinstance(data, dict):
            raise RegistryFormatError("service index: expected an object")
        resources = [ServiceResource.from_json(r) for r in data.get("resources") or [] if isinstance(r, dict)]
        return cls(version=_optional_version(data.get("version"), "service index"), resources=resources)

    def find_resource(self, resource_type: str) -> Optional[ServiceResource]:
        """First resource whose type matches ``resource_type`` case-insensitively.

        An exact type match always wins; versioned types
        (``RegistrationsBaseUrl/3.6.0``) are used only when no exact entry
        is listed.
        """
        wanted = resource_type.lower()
        candidates = [r for r in self.resources if r.id]
        for resource in candidates:
            if resource.type.lower() == wanted:
                return resource
        for resource in candidates:
            if resource.type.lower().split("/", 1)[0] == wanted:
                return resource
        return None


@dataclass
class PackageDependency:
    id: str  # pylint: disable=invalid-name
    range: VersionRange
    registration: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PackageDependency":
        dep_id = str(_require(data, "id", "dependency"))
        try:
            version_range = VersionRange.parse(data.get("range"))
        except InvalidVersion as exc:
            raise RegistryFormatError(f"dependency {dep_id}: {exc}") from exc
        return cls(id=dep_id, range=version_range, registration=data.get("registration"))


@dataclass
class DependencyGroup:
    """Dependencies that apply to one target framework."""

    target_framework: Framework = ANY_FRAMEWORK
    dependencies: List[PackageDependency] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DependencyGroup":
        if not isinstance(data, dict):
            raise RegistryFormatError("dependency group: expected an object")
        return cls(
            target_framework=Framework.parse(data.get("targetFramework")),
            dependencies=[PackageDependency.from_json(d) for d in data.get("dependencies") or []],
        )


@dataclass
class CatalogEntry:
    """Package metadata carried by a registration leaf."""

    url: str
    package_id: str
    version: NuGetVersion
    dependency_groups: Optional[List[DependencyGroup]] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    title: Optional[str] = None
    listed: bool = True
    published: Optional[str] = None
    project_url: Optional[str] = None
    license_url: Optional[str] = None
    require_license_acceptance: bool = False
    min_client_version: Optional[NuGetVersion] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CatalogEntry":
        url = str(_require(data, "@id", "catalog entry"))
        package_id = str(_require(data, "id", "catalog entry"))
        where = f"catalog entry {package_id}"
        groups = data.get("dependencyGroups")
        tags = data.get("tags") or []
        if isinstance(tags, str):
            tags = [t for t in tags.split() if t]
        return cls(
            url=url,
            package_id=package_id,
            version=_version(_require(data, "version", where), where),
            dependency_groups=[DependencyGroup.from_json(g) for g in groups] if groups is not None else None,
            description=data.get("description"),
            summary=data.get("summary"),
            title=data.get("title"),
            listed=bool(data.get("listed", True)),
            published=data.get("published"),
            project_url=data.get("projectUrl"),
            license_url=data.get("licenseUrl"),
            require_license_acceptance=bool(data.get("requireLicenseAcceptance", False)),
            min_client_version=_optional_version(data.get("minClientVersion"), where),
            tags=list(tags),
        )


@dataclass
class RegistrationLeaf:
    url: str
    catalog_entry: CatalogEntry
    package_content: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RegistrationLeaf":
        url = str(_require(data, "@id", "registration leaf"))
        return cls(
            url=url,
            catalog_entry=CatalogEntry.from_json(_require(data, "catalogEntry", url)),
            package_content=str(_require(data, "packageContent", url)),
        )


@dataclass
class RegistrationPage:
    """A page of leaves; ``items`` is None when the page must be fetched separately."""

    url: str
    count: int = 0
    items: Optional[List[RegistrationLeaf]] = None
    lower: Optional[NuGetVersion] = None
    upper: Optional[NuGetVersion] = None
    parent: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RegistrationPage":
        url = str(_require(data, "@id", "registration page"))
        items = data.get("items")
        return cls(
            url=url,
            count=_int(data.get("count"), url),
            items=[RegistrationLeaf.from_json(i) for i in items] if items is not None else None,
            lower=_optional_version(data.get("lower"), url),
            upper=_optional_version(data.get("upper"), url),
            parent=data.get("parent"),
        )

    def may_contain(self, version: NuGetVersion) -> bool:
        """Bounds check used to skip fetching pages that cannot hold ``version``."""
        if self.lower is not None and version < self.lower:
            return False
        if self.upper is not None and version > self.upper:
            return False
        return True


@dataclass
class RegistrationIndex:
    count: int = 0
    items: List[RegistrationPage] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RegistrationIndex":
        if not isinstance(data, dict):
            raise RegistryFormatError("registration index: expected an object")
        return cls(
            count=_int(data.get("count"), "registration index"),
            items=[RegistrationPage.from_json(p) for p in data.get("items") or []],
        )
