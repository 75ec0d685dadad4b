"""Data models for cascade-publish.

These Pydantic models represent the core data structures used throughout
the publish pipeline.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class PackageInfo(BaseModel):
    """Metadata for a single package in the source tree.

    The declared name keys the dependency graph; the directory name keys
    everything that touches the disk. The two may differ.

    Attributes:
        name: Declared name from [project].name.
        dir_name: Name of the package directory under the root.
        manifest_path: Path to the package's manifest file.
        version: Declared [project].version, or None if absent. Opaque.
        local_deps: Names of discovered packages this one depends on via a
            local path. Registry dependencies are not tracked here.
    """

    name: str
    dir_name: str
    manifest_path: Path
    version: str | None = None
    local_deps: list[str] = Field(default_factory=list)


class PublishOutcome(str, Enum):
    """How a single package publish ended, for the non-fatal cases."""

    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already-published"
