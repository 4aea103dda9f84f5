"""
System versions.

A version is one of three shapes:

- ``SemanticVersion``: ``major.minor.patch`` with an optional prerelease
  (``dev``, ``a``, ``b`` or ``rc`` followed by a number)
- ``DynamicVersion``: a shell command whose output is the version; only
  stored, never run
- ``CustomVersion``: any other string

No ordering is defined between versions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union


class PrereleaseKind(str, Enum):
    """Prerelease tags, from least to most mature."""

    DEV = "dev"
    ALPHA = "a"
    BETA = "b"
    RC = "rc"


@dataclass(frozen=True)
class Prerelease:
    kind: PrereleaseKind
    number: int = 1

    def __post_init__(self):
        object.__setattr__(self, "kind", PrereleaseKind(self.kind))
        if self.number < 1:
            raise ValueError(f"Prerelease number must be >= 1, got {self.number}")

    def __str__(self) -> str:
        return f"{self.kind.value}{self.number}"


@dataclass(frozen=True)
class SemanticVersion:
    major: int
    minor: int = 0
    patch: int = 0
    prerelease: Optional[Prerelease] = None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += str(self.prerelease)
        return text


@dataclass(frozen=True)
class DynamicVersion:
    command: str

    def __str__(self) -> str:
        return f"dynamic:{self.command}"


@dataclass(frozen=True)
class CustomVersion:
    value: str

    def __str__(self) -> str:
        return self.value


Version = Union[SemanticVersion, DynamicVersion, CustomVersion]

_SEMVER = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:[-.]?(?P<kind>dev|a|b|rc)(?P<number>\d+))?$"
)


def parse_version(value: Any) -> Optional[Version]:
    """
    Coerce manifest input into a version.

    Args:
        value: ``None``, a version instance, ``{"dynamic": "<command>"}``
            or a string

    Returns:
        The matching version shape, or ``None`` for ``None``

    Raises:
        ValueError: If the value has none of the accepted shapes
    """
    if value is None:
        return None
    if isinstance(value, (SemanticVersion, DynamicVersion, CustomVersion)):
        return value
    if isinstance(value, Mapping):
        command = value.get("dynamic")
        if isinstance(command, str) and command and len(value) == 1:
            return DynamicVersion(command)
        raise ValueError(f"Invalid version mapping: {dict(value)!r}")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Version string must not be empty")
        match = _SEMVER.match(text)
        if match is None:
            return CustomVersion(text)
        prerelease = None
        if match.group("kind"):
            prerelease = Prerelease(
                PrereleaseKind(match.group("kind")), int(match.group("number"))
            )
        return SemanticVersion(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            prerelease,
        )
    raise ValueError(f"Invalid version: {value!r}")
