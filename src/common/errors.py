"""Exception taxonomy for package resolution."""

from __future__ import annotations

from typing import Optional


class NewGetError(Exception):
    """Base class for resolution failures surfaced to callers."""


class ServiceIndexUnavailable(NewGetError):
    """The service index could not be fetched or lacks a registration resource."""


class RegistrationUnavailable(NewGetError):
    """Registration metadata for a package could not be fetched."""

    def __init__(self, package_id: str, reason: str, status: Optional[int] = None):
        self.package_id = package_id
        self.reason = reason
        self.status = status
        super().__init__(f"Registration for {package_id} unavailable: {reason}")


class VersionNotFound(NewGetError):
    """No registration leaf matches the requested exact version."""

    def __init__(self, package_id: str, version: str):
        self.package_id = package_id
        self.version = version
        super().__init__(f"Version {version} of {package_id} not found")


class RegistryFormatError(NewGetError, ValueError):
    """A registry document is missing a required field."""


class PlatformIncompatible(NewGetError):
    """No dependency group is compatible with the target framework.

    Logged rather than raised by the graph builder: the package is treated
    as a leaf.
    """

    def __init__(self, package_id: str, version: str, target: str):
        self.package_id = package_id
        self.version = version
        self.target = target
        super().__init__(f"No dependency group of {package_id} {version} is compatible with {target}")


class GraphInvariantError(AssertionError):
    """Internal invariant violated (e.g. pruning a root that was never resolved)."""
