"""Dependency rewriting after a publish.

Once a package is on the registry, dependents that still point at it by
local path are switched to a version reference. Each edited manifest is
written straight back to disk, before the next package is published.
"""

from __future__ import annotations

import tomlkit
from tomlkit.items import InlineTable, Item

from .errors import ManifestWriteError
from .models import PackageInfo
from .toml import save_manifest


def replace_path_with_version(
    doc: tomlkit.TOMLDocument, dep_name: str, version: str
) -> bool:
    """Turn a local path dependency on ``dep_name`` into a version dependency.

    Only the one entry is touched; everything else in the document keeps
    its formatting. Entries that are already plain version references, or
    that do not exist, are left alone.

    Returns:
        True if the document was modified.
    """
    deps = doc.get("dependencies")
    if not isinstance(deps, dict):
        return False
    entry = deps.get(dep_name)
    if not isinstance(entry, dict) or "path" not in entry:
        return False

    if isinstance(entry, InlineTable):
        # Fresh inline table, with version in the slot path had.
        rebuilt = tomlkit.inline_table()
        for key, value in entry.items():
            if key == "path":
                rebuilt["version"] = version
            elif key != "version":
                rebuilt[key] = value.unwrap() if isinstance(value, Item) else value
        deps[dep_name] = rebuilt
    else:
        del entry["path"]
        entry["version"] = version
    return True


def update_dependents(
    published: str,
    version: str,
    packages: dict[str, PackageInfo],
    manifests: dict[str, tomlkit.TOMLDocument],
) -> list[str]:
    """Point every dependent of a just-published package at its new version.

    Args:
        published: Declared name of the package that was just published.
        version: Version string it was published as.
        packages: Map of package name → PackageInfo.
        manifests: Map of directory name → parsed manifest. Modified in place.

    Returns:
        Names of the packages whose manifests were rewritten.

    Raises:
        ManifestWriteError: If a rewritten manifest cannot be saved.
    """
    updated: list[str] = []
    for name, info in packages.items():
        if name == published:
            continue
        doc = manifests[info.dir_name]
        if not replace_path_with_version(doc, published, version):
            continue

        print(f"  Updating dependency '{published}' in {name}'s manifest")
        try:
            save_manifest(info.manifest_path, doc)
        except OSError as exc:
            raise ManifestWriteError(name, str(exc)) from exc
        updated.append(name)

    return updated
