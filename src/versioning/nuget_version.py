"""NuGet version and version-range semantics.

NuGet versions are SemVer 2.0 with two relaxations: the release part may
carry one to four numeric segments (``1``, ``1.2``, ``1.2.3``, ``1.2.3.4``)
and prerelease labels compare case-insensitively. Build metadata never takes
part in equality or ordering.
"""

from __future__ import annotations

import functools
import re
from typing import Optional, Tuple

import semantic_version

_VERSION_RE = re.compile(
    r"^\s*v?(?P<release>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<meta>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?\s*$"
)


class InvalidVersion(ValueError):
    """Raised when a version or range string cannot be parsed."""


@functools.total_ordering
class NuGetVersion:
    """Parsed NuGet version; immutable, hashable and totally ordered."""

    __slots__ = ("_release", "_prerelease", "_metadata", "_original")

    def __init__(self, release: Tuple[int, int, int, int], prerelease: Tuple[str, ...] = (),
                 metadata: Optional[str] = None, original: Optional[str] = None):
        self._release = release
        self._prerelease = prerelease
        self._metadata = metadata
        self._original = original

    @classmethod
    def parse(cls, text: str) -> "NuGetVersion":
        """Parse ``text`` into a version; raises InvalidVersion."""
        if not isinstance(text, str):
            raise InvalidVersion(f"Version must be a string, got {type(text).__name__}")
        match = _VERSION_RE.match(text)
        if not match:
            raise InvalidVersion(f"Invalid version: {text!r}")
        parts = [int(p) for p in match.group("release").split(".")]
        parts += [0] * (4 - len(parts))
        pre = match.group("pre")
        prerelease = tuple(pre.split(".")) if pre else ()
        return cls(tuple(parts), prerelease, match.group("meta"), text.strip())  # type: ignore[arg-type]

    @property
    def major(self) -> int:
        return self._release[0]

    @property
    def minor(self) -> int:
        return self._release[1]

    @property
    def patch(self) -> int:
        return self._release[2]

    @property
    def revision(self) -> int:
        return self._release[3]

    @property
    def release(self) -> Tuple[int, int, int, int]:
        return self._release

    @property
    def prerelease(self) -> Tuple[str, ...]:
        return self._prerelease

    @property
    def metadata(self) -> Optional[str]:
        return self._metadata

    @property
    def is_prerelease(self) -> bool:
        return bool(self._prerelease)

    def _label_key(self) -> Tuple[str, ...]:
        # semantic_version rejects numeric identifiers with leading zeros
        return tuple(str(int(p)) if p.isdigit() else p.lower() for p in self._prerelease)

    def _label_precedence(self) -> semantic_version.Version:
        # Release segments are compared separately; only the label ordering
        # is delegated to SemVer precedence.
        return semantic_version.Version(major=0, minor=0, patch=0, prerelease=self._label_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._release == other._release and self._label_key() == other._label_key()

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        if self._release != other._release:
            return self._release < other._release
        return self._label_precedence() < other._label_precedence()

    def __hash__(self) -> int:
        return hash((self._release, self._label_key()))

    def normalized(self) -> str:
        """Normalized string: three segments unless a revision is present, no metadata."""
        segments = self._release if self.revision else self._release[:3]
        text = ".".join(str(s) for s in segments)
        if self._prerelease:
            text += "-" + ".".join(self._prerelease)
        return text

    def __str__(self) -> str:
        return self.normalized()

    def __repr__(self) -> str:
        return f"NuGetVersion({self._original or self.normalized()!r})"


def parse_version(text: str) -> NuGetVersion:
    """Parse a version string."""
    return NuGetVersion.parse(text)


def compare_versions(a: NuGetVersion, b: NuGetVersion) -> int:
    """Return -1, 0 or 1 following NuGet precedence."""
    if a == b:
        return 0
    return -1 if a < b else 1


def versions_equal(a: NuGetVersion, b: NuGetVersion) -> bool:
    """Equality ignoring build metadata and label case."""
    return a == b


class VersionRange:
    """NuGet version range (interval notation or a bare minimum version)."""

    DEFAULT_RANGE = "[0.0.0-alpha,)"

    def __init__(self, min_version: Optional[NuGetVersion] = None, is_min_inclusive: bool = True,
                 max_version: Optional[NuGetVersion] = None, is_max_inclusive: bool = False):
        self.min_version = min_version
        self.is_min_inclusive = is_min_inclusive
        self.max_version = max_version
        self.is_max_inclusive = is_max_inclusive

    @classmethod
    def parse(cls, text: Optional[str]) -> "VersionRange":
        """Parse NuGet range syntax; an empty value means any version.

        Examples: ``1.0`` (>= 1.0), ``[1.0]`` (== 1.0), ``[1.0,2.0)``,
        ``(,2.0]``.
        """
        value = (text or "").strip() or cls.DEFAULT_RANGE
        if value[0] not in "[(":
            return cls(NuGetVersion.parse(value), True)

        if len(value) < 3 or value[-1] not in "])":
            raise InvalidVersion(f"Invalid version range: {text!r}")
        min_inclusive = value[0] == "["
        max_inclusive = value[-1] == "]"
        inner = value[1:-1]

        if "," not in inner:
            # [1.0] is the only legal single-version interval
            if not (min_inclusive and max_inclusive):
                raise InvalidVersion(f"Invalid version range: {text!r}")
            exact = NuGetVersion.parse(inner)
            return cls(exact, True, exact, True)

        low_text, high_text = (part.strip() for part in inner.split(",", 1))
        if not low_text and not high_text:
            raise InvalidVersion(f"Invalid version range: {text!r}")
        low = NuGetVersion.parse(low_text) if low_text else None
        high = NuGetVersion.parse(high_text) if high_text else None
        if low is not None and high is not None and high < low:
            raise InvalidVersion(f"Invalid version range: {text!r}")
        return cls(low, min_inclusive if low else False, high, max_inclusive if high else False)

    def satisfies(self, version: NuGetVersion) -> bool:
        """Return True when ``version`` lies inside the range."""
        if self.min_version is not None:
            if version < self.min_version or (version == self.min_version and not self.is_min_inclusive):
                return False
        if self.max_version is not None:
            if version > self.max_version or (version == self.max_version and not self.is_max_inclusive):
                return False
        return True

    def __str__(self) -> str:
        if self.min_version is not None and self.min_version == self.max_version:
            return f"[{self.min_version}]"
        low = str(self.min_version) if self.min_version is not None else ""
        high = str(self.max_version) if self.max_version is not None else ""
        return f"{'[' if self.is_min_inclusive else '('}{low}, {high}{']' if self.is_max_inclusive else ')'}"

    def __repr__(self) -> str:
        return f"VersionRange({str(self)!r})"
