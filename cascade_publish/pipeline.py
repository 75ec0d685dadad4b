"""Publish pipeline: discover → resolve → sequence → publish → rewrite.

This module orchestrates a cascade-publish run:
1. Discover every package directory under the root and parse its manifest
2. Resolve which packages depend, transitively, on the seed packages,
   optionally adding packages whose version changed since a git ref
3. Order them by a topological sort of the whole dependency graph
4. Publish each one with the external tool, strictly one at a time
5. After each real publish, switch dependents from a local path to the
   published version, writing the manifests before moving on

The order is fixed before anything is published. A hard publish failure
stops the run where it is; nothing already published or rewritten is
rolled back, and a re-run picks up from there.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .config import TOKEN_ENV_VAR, Settings
from .deps import update_dependents
from .errors import ConfigError, ManifestError, PublishFailedError
from .graph import publish_order, resolve_affected
from .models import PackageInfo, PublishOutcome
from .shell import git, run, step
from .toml import (
    get_local_dependency_names,
    get_project_name,
    get_project_version,
    load_manifest,
)


def find_package_dirs(root: Path, prefix: str) -> list[Path]:
    """List the immediate subdirectories of root whose name starts with prefix."""
    return sorted(
        p for p in root.iterdir() if p.is_dir() and p.name.startswith(prefix)
    )


def discover_packages(
    settings: Settings,
) -> tuple[dict[str, PackageInfo], dict[str, tomlkit.TOMLDocument]]:
    """Scan the root directory and index every package manifest.

    Any candidate directory without a readable, parseable manifest that
    declares a name aborts discovery; there is no best-effort mode.

    Returns:
        Tuple of (packages keyed by declared name, manifests keyed by
        directory name).

    Raises:
        ManifestError: On a missing or invalid manifest, a missing name,
            or two directories declaring the same name.
        ConfigError: If the root is not a directory.
    """
    step("Discovering packages")

    if not settings.root.is_dir():
        raise ConfigError(f"Package root {settings.root} is not a directory")

    packages: dict[str, PackageInfo] = {}
    manifests: dict[str, tomlkit.TOMLDocument] = {}
    raw_deps: dict[str, list[str]] = {}

    # First pass: parse manifests and register every package
    for d in find_package_dirs(settings.root, settings.dir_prefix):
        manifest_path = d / settings.manifest_name
        doc = load_manifest(manifest_path, d.name)
        name = get_project_name(doc)
        if name is None:
            raise ManifestError(
                d.name, f"Could not get project name from {settings.manifest_name}"
            )
        if name in packages:
            other = packages[name].dir_name
            raise ManifestError(
                d.name, f"Project name '{name}' already declared by {other}"
            )

        packages[name] = PackageInfo(
            name=name,
            dir_name=d.name,
            manifest_path=manifest_path,
            version=get_project_version(doc),
        )
        manifests[d.name] = doc
        raw_deps[name] = get_local_dependency_names(doc)

    # Second pass: keep only local deps that point at discovered packages
    for name, deps in raw_deps.items():
        for dep_name in deps:
            if dep_name in packages and dep_name not in packages[name].local_deps:
                packages[name].local_deps.append(dep_name)

    for name, info in packages.items():
        deps = f" → [{', '.join(info.local_deps)}]" if info.local_deps else ""
        print(f"  {name} {info.version or '<no version>'} ({info.dir_name}){deps}")

    return packages, manifests


def _previous_version(text: str) -> str | None:
    if not text:
        return None
    try:
        return get_project_version(tomlkit.parse(text))
    except TOMLKitError:
        return None


def detect_version_changes(
    packages: dict[str, PackageInfo], settings: Settings, ref: str
) -> set[str]:
    """Find packages whose declared version differs from the one at a git ref.

    A manifest that did not exist at ``ref``, or had no version there,
    counts as changed.

    Args:
        packages: Map of package name → PackageInfo.
        settings: Run configuration; the root must be inside a git checkout.
        ref: Git revision to compare against (e.g., "HEAD^").

    Returns:
        Names of the packages whose version changed.

    Raises:
        ConfigError: If git is unavailable or ref is not a commit.
    """
    step(f"Detecting version changes since {ref}")

    root = str(settings.root)
    try:
        git("-C", root, "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
    except (subprocess.CalledProcessError, OSError) as exc:
        raise ConfigError(f"Unknown git ref '{ref}'") from exc

    changed: set[str] = set()
    for name, info in packages.items():
        blob = f"{ref}:./{info.dir_name}/{settings.manifest_name}"
        previous = _previous_version(git("-C", root, "show", blob, check=False))
        if previous != info.version:
            print(f"  {name}: {previous or '<none>'} → {info.version or '<none>'}")
            changed.add(name)

    if not changed:
        print("  <no version changes>")
    return changed


def publish_package(info: PackageInfo, settings: Settings) -> PublishOutcome:
    """Run the publish tool for one package and classify the result.

    The tool runs inside the package directory with the registry token in
    its environment. A failure whose stderr carries the "already published"
    marker is not an error.

    Raises:
        PublishFailedError: For any other failure, with the tool's stderr.
    """
    env = dict(os.environ)
    if settings.token is not None:
        env[TOKEN_ENV_VAR] = settings.token

    try:
        result = run(
            settings.tool,
            "publish",
            "--registry-url",
            settings.registry_url,
            cwd=settings.root / info.dir_name,
            env=env,
        )
    except OSError as exc:
        raise PublishFailedError(
            info.name, f"Failed to execute '{settings.tool} publish': {exc}"
        ) from exc

    if result.returncode == 0:
        return PublishOutcome.PUBLISHED
    if settings.already_published_marker in result.stderr:
        return PublishOutcome.ALREADY_PUBLISHED
    raise PublishFailedError(info.name, result.stderr)


def _require_versions(
    packages: dict[str, PackageInfo], order: list[str]
) -> dict[str, str]:
    """Map each package in order to its version; all must have one."""
    versions: dict[str, str] = {}
    for name in order:
        info = packages[name]
        if info.version is None:
            raise ManifestError(info.dir_name, "Could not find project version")
        versions[name] = info.version
    return versions


def run_publish(
    seeds: Iterable[str],
    settings: Settings,
    *,
    dry_run: bool = False,
    changed_since: str | None = None,
) -> dict[str, PublishOutcome]:
    """Execute a full publish run.

    Args:
        seeds: Names of the packages that changed.
        settings: Run configuration, including the registry token.
        dry_run: Stop after printing the publish order.
        changed_since: Git ref; packages whose version differs from it are
            added to the seeds.

    Returns:
        Outcome per package, in publish order. Empty when there was nothing
        to publish or on a dry run.

    Raises:
        PublishError: On any fatal condition. Packages published and
            manifests rewritten before the failure stay as they are.
    """
    seed_set = set(seeds)
    if not seed_set and changed_since is None:
        print("No packages specified for publishing. Exiting.")
        return {}

    # Phase 1: Plan. Nothing below has side effects until the order is fixed.
    packages, manifests = discover_packages(settings)
    if changed_since is not None:
        seed_set |= detect_version_changes(packages, settings, changed_since)
        if not seed_set:
            print(f"No version changes since {changed_since}. Exiting.")
            return {}

    step("Resolving affected packages")
    affected = resolve_affected(packages, seed_set)
    if not affected:
        print("No packages to publish after analyzing dependencies.")
        return {}

    order = publish_order(packages, affected)
    if not order:
        print("No packages to publish after filtering and sorting.")
        return {}
    versions = _require_versions(packages, order)

    print("Publishing order determined:")
    print(f" -> {' -> '.join(order)}")
    if dry_run:
        return {}

    # Phase 2: Publish, rewriting dependents after each real publish
    step(f"Publishing {len(order)} packages")
    outcomes: dict[str, PublishOutcome] = {}
    for name in order:
        info = packages[name]
        print(f"Publishing {name}...")
        outcome = publish_package(info, settings)
        outcomes[name] = outcome

        if outcome is PublishOutcome.ALREADY_PUBLISHED:
            print(f"{name} version already published, skipping.")
            continue

        print(f"Successfully published {name}")
        update_dependents(name, versions[name], packages, manifests)

    print(f"\n{'=' * 60}\nAll packages published successfully!\n{'=' * 60}")
    return outcomes
