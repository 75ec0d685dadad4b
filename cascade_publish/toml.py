"""Manifest reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying manifest
files. Dependency rewrites must leave everything but the edited entry
byte-for-byte as the author wrote it.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestError


def load_manifest(path: Path, dir_name: str) -> tomlkit.TOMLDocument:
    """Load and parse a package manifest.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ManifestError: If the file cannot be read or is not valid TOML.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(dir_name, f"Failed to read {path.name}") from exc
    try:
        return tomlkit.parse(content)
    except TOMLKitError as exc:
        raise ManifestError(dir_name, f"Failed to parse {path.name} ({exc})") from exc


def save_manifest(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _project_field(doc: tomlkit.TOMLDocument, key: str) -> str | None:
    project = doc.get("project")
    if not isinstance(project, dict):
        return None
    value = project.get(key)
    return str(value) if isinstance(value, str) else None


def get_project_name(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract the declared package name from [project].name."""
    return _project_field(doc, "name")


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract [project].version as an opaque string, or None if absent."""
    return _project_field(doc, "version")


def get_local_dependency_names(doc: tomlkit.TOMLDocument) -> list[str]:
    """List dependency names declared with a local path.

    Both the inline form and the sub-table form count:

        base = { path = "../src-base" }

        [dependencies.base]
        path = "../src-base"

    Plain version strings and tables without a path key are registry
    dependencies and are skipped.
    """
    deps = doc.get("dependencies")
    if not isinstance(deps, dict):
        return []
    return [
        str(name)
        for name, entry in deps.items()
        if isinstance(entry, dict) and "path" in entry
    ]
