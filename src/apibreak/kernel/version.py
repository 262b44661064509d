"""Semantic version model and the next-version rule derived from a Diagnosis."""

from __future__ import annotations

import logging
import re
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from apibreak.kernel.diagnosis import Diagnosis

logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

Bump = Literal["major", "minor", "patch"]


class Version(BaseModel):
    """major.minor.patch with optional pre-release and build metadata."""
    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    pre: Optional[str] = None
    build: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse `X.Y.Z[-pre][+build]` (a leading `v` is accepted)."""
        match = _SEMVER_RE.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid semantic version {text!r}: expected MAJOR.MINOR.PATCH")
        major, minor, patch, pre, build = match.groups()
        return cls(major=int(major), minor=int(minor), patch=int(patch), pre=pre, build=build)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        if self.build:
            text += f"+{self.build}"
        return text


def bump_for(diagnosis: Diagnosis) -> Bump:
    """Which version component a Diagnosis calls for, in strict priority order."""
    if diagnosis.is_breaking():
        return "major"
    if diagnosis.contains_additions():
        return "minor"
    # Only non-breaking modifications, or nothing detected at all
    return "patch"


def next_version(diagnosis: Diagnosis, current: Version) -> Version:
    """
    Propose the version following `current` given the changes in `diagnosis`.

    Pre-release identifiers and build metadata are not handled: they are
    dropped before bumping.
    """
    if current.pre:
        logger.warning("pre-release identifiers are not handled; dropping %r", current.pre)
    if current.build:
        logger.warning("build metadata is not handled; dropping %r", current.build)

    bump = bump_for(diagnosis)
    if bump == "major":
        return Version(major=current.major + 1, minor=0, patch=0)
    if bump == "minor":
        return Version(major=current.major, minor=current.minor + 1, patch=0)
    return Version(major=current.major, minor=current.minor, patch=current.patch + 1)
