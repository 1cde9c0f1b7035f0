"""NuGet V3 registry client: service-index discovery and registration lookups."""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.errors import (
    NewGetError,
    RegistrationUnavailable,
    RegistryFormatError,
    ServiceIndexUnavailable,
    VersionNotFound,
)
from common.logging_utils import extra_context, is_debug_enabled, Timer, safe_url
from versioning.nuget_version import NuGetVersion

from .models import RegistrationIndex, RegistrationLeaf, RegistrationPage, ServiceIndex

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


@dataclass
class LookupResult:
    """Outcome of an exact-version lookup: exactly one of ``leaf``/``error`` is set."""

    leaf: Optional[RegistrationLeaf] = None
    error: Optional[NewGetError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.leaf is not None

    @property
    def not_found(self) -> bool:
        return isinstance(self.error, VersionNotFound)

    def unwrap(self) -> RegistrationLeaf:
        """Return the leaf or raise the recorded error."""
        if self.error is not None:
            raise self.error
        assert self.leaf is not None
        return self.leaf


class NuGetRegistryClient:
    """Async client for a NuGet V3 feed.

    The aiohttp session is owned by the client when none is passed in and
    lives until ``stop()``; a borrowed session is never closed here.
    """

    def __init__(
        self,
        service_index_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[int] = None,
        max_connections: Optional[int] = None,
    ):
        """Initialize the registry client.

        Args:
            service_index_url: Feed service index; defaults to nuget.org.
            session: Externally managed session to reuse.
            timeout: Per-request timeout in seconds.
            max_connections: Connection pool limit for an owned session.
        """
        self.service_index_url = service_index_url or Constants.SERVICE_INDEX_URL
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout or Constants.REQUEST_TIMEOUT)
        self._max_connections = max_connections or Constants.MAX_CONNECTIONS
        self._registration_base: Optional[str] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=self._max_connections)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                headers={"User-Agent": Constants.USER_AGENT},
            )
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "NuGetRegistryClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def _get_json(self, url: str) -> Tuple[int, Optional[Any]]:
        """GET ``url`` and decode JSON on 200.

        Transport errors propagate as aiohttp.ClientError / asyncio.TimeoutError.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None
        safe_target = safe_url(url)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request", component="client", action="GET",
                        target=safe_target, package_manager="nuget",
                    ),
                )
            async with self._session.get(url, headers=HEADERS_JSON) as response:
                status = response.status
                data = await response.json(content_type=None) if status == 200 else None
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response",
                    extra=extra_context(
                        event="http_response", component="client", action="GET",
                        status_code=status, duration_ms=t.duration_ms(),
                        target=safe_target, package_manager="nuget",
                    ),
                )
        return status, data

    async def get_service_index(self) -> ServiceIndex:
        """Fetch and parse the service index; raises ServiceIndexUnavailable."""
        url = self.service_index_url
        try:
            status, data = await self._get_json(url)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ServiceIndexUnavailable(f"{safe_url(url)}: {exc}") from exc
        if status != 200 or data is None:
            raise ServiceIndexUnavailable(f"{safe_url(url)}: HTTP {status}")
        try:
            return ServiceIndex.from_json(data)
        except RegistryFormatError as exc:
            raise ServiceIndexUnavailable(str(exc)) from exc

    async def registration_base_url(self) -> str:
        """Resolve the registration base URL from the service index (cached)."""
        if self._registration_base is None:
            index = await self.get_service_index()
            resource = index.find_resource(Constants.REGISTRATION_RESOURCE_TYPE)
            if resource is None:
                raise ServiceIndexUnavailable(
                    f"{safe_url(self.service_index_url)}: no {Constants.REGISTRATION_RESOURCE_TYPE} resource"
                )
            self._registration_base = resource.id
            logger.debug("Registration base URL: %s", safe_url(resource.id))
        return self._registration_base

    @staticmethod
    def registration_url(base_url: str, package_id: str) -> str:
        """Registration index URL for ``package_id`` under ``base_url``."""
        encoded_id = urllib.parse.quote(package_id.lower(), safe="")
        return f"{base_url.rstrip('/')}/{encoded_id}/index.json"

    async def fetch_registration(self, base_url: str, package_id: str) -> RegistrationIndex:
        """Fetch the registration index for ``package_id``.

        Raises:
            RegistrationUnavailable: transport failure, non-200 or malformed body.
        """
        url = self.registration_url(base_url, package_id)
        data = await self._fetch_document(url, package_id)
        try:
            return RegistrationIndex.from_json(data)
        except RegistryFormatError as exc:
            raise RegistrationUnavailable(package_id, str(exc)) from exc

    async def fetch_page(self, page: RegistrationPage, package_id: str) -> RegistrationPage:
        """Fetch a registration page whose leaves were not inlined in the index."""
        data = await self._fetch_document(page.url, package_id)
        try:
            return RegistrationPage.from_json(data)
        except RegistryFormatError as exc:
            raise RegistrationUnavailable(package_id, str(exc)) from exc

    async def _fetch_document(self, url: str, package_id: str) -> Dict[str, Any]:
        try:
            status, data = await self._get_json(url)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise RegistrationUnavailable(package_id, f"{safe_url(url)}: {exc}") from exc
        if status != 200 or data is None:
            raise RegistrationUnavailable(package_id, f"{safe_url(url)}: HTTP {status}", status)
        return data

    async def find_leaf(self, base_url: str, package_id: str, version: NuGetVersion) -> LookupResult:
        """Look up the registration leaf for an exact version.

        Never raises for registry conditions; the error is carried in the
        returned LookupResult instead.
        """
        try:
            registration = await self.fetch_registration(base_url, package_id)
            for page in registration.items:
                if page.items is None:
                    if not page.may_contain(version):
                        continue
                    page = await self.fetch_page(page, package_id)
                for leaf in page.items or []:
                    if leaf.catalog_entry.version == version:
                        return LookupResult(leaf=leaf)
        except RegistrationUnavailable as exc:
            logger.warning(
                "Registration unavailable",
                extra=extra_context(
                    event="http_response", outcome="unavailable",
                    target=package_id, package_manager="nuget",
                ),
            )
            return LookupResult(error=exc)
        return LookupResult(error=VersionNotFound(package_id, str(version)))
