"""NuGet registry package.

This package provides NuGet V3 feed access:
- models.py: typed views over service-index and registration documents
- client.py: async HTTP client for discovery and exact-version lookups
"""

from .client import LookupResult, NuGetRegistryClient
from .models import (
    CatalogEntry,
    DependencyGroup,
    PackageDependency,
    RegistrationIndex,
    RegistrationLeaf,
    RegistrationPage,
    ServiceIndex,
    ServiceResource,
)

__all__ = [
    "LookupResult",
    "NuGetRegistryClient",
    "CatalogEntry",
    "DependencyGroup",
    "PackageDependency",
    "RegistrationIndex",
    "RegistrationLeaf",
    "RegistrationPage",
    "ServiceIndex",
    "ServiceResource",
]
