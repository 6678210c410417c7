"""Server version parsing and comparison."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any

_VERSION_RE = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:[-+.]?(.*))?$")


@total_ordering
@dataclass(frozen=True)
class Version:
    """A ``major.minor.patch[-suffix]`` version.

    Only the numeric parts take part in comparisons, so ``3.11.0-rc1``
    compares equal to ``3.11.0``.
    """

    major: int
    minor: int = 0
    patch: int = 0
    suffix: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str) -> Version:
        match = _VERSION_RE.match(value)
        if not match:
            raise ValueError(f"invalid version: {value!r}")
        major, minor, patch, suffix = match.groups()
        return cls(int(major), int(minor or 0), int(patch or 0), suffix or "")

    def _key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @staticmethod
    def _coerce(other: object) -> Version | None:
        if isinstance(other, Version):
            return other
        if isinstance(other, str):
            try:
                return Version.parse(other)
            except ValueError:
                return None
        return None

    def __lt__(self, other: object) -> bool:
        version = self._coerce(other)
        if version is None:
            return NotImplemented
        return self._key() < version._key()

    def __eq__(self, other: object) -> bool:
        # Unparsable strings such as "devel" are simply unequal.
        version = self._coerce(other)
        if version is None:
            return NotImplemented
        return self._key() == version._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.suffix}" if self.suffix else base


@dataclass
class VersionInfo:
    """Response of ``GET /_api/version``."""

    server: str
    version: Version
    license: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> VersionInfo:
        return cls(
            server=body.get("server", ""),
            version=Version.parse(body.get("version", "0.0.0")),
            license=body.get("license", ""),
            details=body.get("details") or {},
        )

    @property
    def is_enterprise(self) -> bool:
        return self.license == "enterprise"


__all__ = ["Version", "VersionInfo"]
