"""Target framework parsing and nearest-compatible framework selection.

Covers the framework families that appear in registration dependency
groups in practice: .NET Framework, .NET Standard, .NET Core / .NET 5+,
plus the "any" framework used by groups without a target. Anything else is
kept verbatim and is only compatible with an identical token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

NET_FRAMEWORK = ".NETFramework"
NET_STANDARD = ".NETStandard"
NET_CORE_APP = ".NETCoreApp"
ANY = "Any"

_FAMILY_ALIASES = {
    ".netframework": NET_FRAMEWORK,
    "netframework": NET_FRAMEWORK,
    ".netstandard": NET_STANDARD,
    "netstandard": NET_STANDARD,
    ".netcoreapp": NET_CORE_APP,
    "netcoreapp": NET_CORE_APP,
    "net": NET_FRAMEWORK,
}

_LONG_RE = re.compile(r"^(?P<name>[^,]+?)\s*,\s*Version\s*=\s*v?(?P<version>\d+(?:\.\d+)*)", re.IGNORECASE)
_SHORT_RE = re.compile(r"^(?P<name>\.?[A-Za-z]+)(?P<version>\d+(?:\.\d+)*)?(?:-[A-Za-z0-9.]+)?$")

# Highest .NET Standard version each .NET Framework release implements.
_FRAMEWORK_TO_STANDARD = [
    ((4, 6, 1, 0), (2, 0, 0, 0)),
    ((4, 6, 0, 0), (1, 3, 0, 0)),
    ((4, 5, 1, 0), (1, 2, 0, 0)),
    ((4, 5, 0, 0), (1, 1, 0, 0)),
]
_CORE_TO_STANDARD = [
    ((3, 0, 0, 0), (2, 1, 0, 0)),
    ((2, 0, 0, 0), (2, 0, 0, 0)),
    ((1, 0, 0, 0), (1, 6, 0, 0)),
]


def _version_tuple(text: Optional[str], compact: bool = False) -> Tuple[int, int, int, int]:
    if not text:
        return (0, 0, 0, 0)
    if compact and "." not in text:
        # Folder names such as net462 spell one digit per segment.
        parts = [int(ch) for ch in text]
    else:
        parts = [int(p) for p in text.split(".")]
    parts = (parts + [0, 0, 0, 0])[:4]
    return tuple(parts)  # type: ignore[return-value]


@dataclass(frozen=True)
class Framework:
    """A target framework: family identifier plus a four-part version."""

    identifier: str
    version: Tuple[int, int, int, int] = (0, 0, 0, 0)

    @classmethod
    def parse(cls, token: Optional[str]) -> "Framework":
        """Parse a long (``.NETStandard,Version=v1.6``) or short (``netstandard1.6``) name."""
        text = (token or "").strip()
        if not text or text.lower() in ("any", "agnostic"):
            return ANY_FRAMEWORK

        match = _LONG_RE.match(text)
        if match:
            family = _FAMILY_ALIASES.get(match.group("name").strip().lower(), match.group("name").strip())
            version = _version_tuple(match.group("version"))
            return cls._normalize(family, version)

        match = _SHORT_RE.match(text)
        if match:
            name = match.group("name").lower()
            family = _FAMILY_ALIASES.get(name)
            if family is not None:
                raw = match.group("version")
                compact = name == "net"
                return cls._normalize(family, _version_tuple(raw, compact=compact))

        return cls(text)

    @classmethod
    def _normalize(cls, family: str, version: Tuple[int, int, int, int]) -> "Framework":
        # net5.0 and later are .NETCoreApp under a shorter name
        if family == NET_FRAMEWORK and version[0] >= 5:
            family = NET_CORE_APP
        return cls(family, version)

    @property
    def is_any(self) -> bool:
        return self.identifier == ANY

    def short_folder_name(self) -> str:
        """Folder-style name, e.g. ``netstandard1.6`` or ``net462``."""
        if self.is_any:
            return "any"
        segments = list(self.version)
        while len(segments) > 2 and segments[-1] == 0:
            segments.pop()
        if self.identifier == NET_FRAMEWORK:
            while len(segments) > 1 and segments[-1] == 0:
                segments.pop()
            return "net" + "".join(str(s) for s in segments)
        if self.identifier == NET_STANDARD:
            return "netstandard" + ".".join(str(s) for s in segments)
        if self.identifier == NET_CORE_APP:
            prefix = "net" if self.version[0] >= 5 else "netcoreapp"
            return prefix + ".".join(str(s) for s in segments)
        return self.identifier

    def __str__(self) -> str:
        return self.short_folder_name()


ANY_FRAMEWORK = Framework(ANY)


def _max_standard_for(target: Framework) -> Optional[Tuple[int, int, int, int]]:
    """Highest .NET Standard version usable from ``target``, if any."""
    if target.identifier == NET_STANDARD:
        return target.version
    table = None
    if target.identifier == NET_FRAMEWORK:
        table = _FRAMEWORK_TO_STANDARD
    elif target.identifier == NET_CORE_APP:
        table = _CORE_TO_STANDARD
    if table is None:
        return None
    for minimum, standard in table:
        if target.version >= minimum:
            return standard
    return None


def is_compatible(target: Framework, candidate: Framework) -> bool:
    """Return True when assets built for ``candidate`` can be used from ``target``."""
    if candidate.is_any:
        return True
    if candidate.identifier.lower() == target.identifier.lower():
        return candidate.version <= target.version
    if candidate.identifier == NET_STANDARD:
        ceiling = _max_standard_for(target)
        return ceiling is not None and candidate.version <= ceiling
    return False


def nearest_compatible(target: Framework, candidates: Iterable[Framework]) -> Optional[Framework]:
    """Pick the nearest framework in ``candidates`` compatible with ``target``.

    Same family wins over .NET Standard, which wins over "any"; within a
    tier the highest version wins. Returns None when nothing is compatible.
    """
    compatible: Sequence[Framework] = [c for c in candidates if is_compatible(target, c)]
    if not compatible:
        return None

    def _rank(candidate: Framework) -> Tuple[int, Tuple[int, int, int, int]]:
        if candidate.is_any:
            return (0, candidate.version)
        if candidate.identifier.lower() == target.identifier.lower():
            return (2, candidate.version)
        return (1, candidate.version)

    return max(compatible, key=_rank)
