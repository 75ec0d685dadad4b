"""Dependency graph utilities.

Edges run from a dependency to its dependent and exist only for local
path dependencies between discovered packages. Packages must be published
in dependency order so that when package A depends on package B, B is
published first.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import CycleError
from .models import PackageInfo
from .shell import warn


def build_dependents(packages: dict[str, PackageInfo]) -> dict[str, list[str]]:
    """Build the forward adjacency map: package name → its direct dependents.

    Local deps naming something outside ``packages`` are ignored.
    """
    dependents: dict[str, list[str]] = {n: [] for n in packages}
    for name, info in packages.items():
        for dep in info.local_deps:
            if dep in dependents and name not in dependents[dep]:
                dependents[dep].append(name)
    for names in dependents.values():
        names.sort()
    return dependents


def resolve_affected(
    packages: dict[str, PackageInfo], seeds: Iterable[str]
) -> set[str]:
    """Collect every package reachable from the seeds, seeds included.

    Unknown seeds are reported with a warning and skipped. The result is the
    union of the per-seed reachable sets, so it may be empty.
    """
    dependents = build_dependents(packages)
    affected: set[str] = set()

    for seed in sorted(set(seeds)):
        if seed not in packages:
            warn(f"Specified package '{seed}' not found. Skipping.")
            continue
        stack = [seed]
        while stack:
            node = stack.pop()
            if node in affected:
                continue
            affected.add(node)
            stack.extend(dependents[node])

    return affected


def topo_sort(packages: dict[str, PackageInfo]) -> list[str]:
    """Topologically sort all packages by their local dependencies.

    Uses Kahn's algorithm to produce an order where dependencies come before
    dependents. Ties are broken alphabetically for deterministic output.

    Args:
        packages: Map of package name → PackageInfo with local_deps.

    Returns:
        List of package names in publish order (dependencies first).

    Raises:
        CycleError: If a dependency cycle is detected. The error names a
            package that lies on the cycle.

    Example:
        If A depends on B, and B depends on C:
        topo_sort({A, B, C}) → [C, B, A]
    """
    dependents = build_dependents(packages)
    in_degree = {n: 0 for n in packages}
    for deps in dependents.values():
        for dependent in deps:
            in_degree[dependent] += 1

    queue = sorted(n for n, d in in_degree.items() if d == 0)
    order: list[str] = []

    while queue:
        node = queue.pop(0)
        order.append(node)
        for dependent in dependents[node]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)
        queue.sort()

    if len(order) != len(packages):
        remaining = {n for n in packages if n not in set(order)}
        raise CycleError(_find_cycle(packages, remaining))

    return order


def _find_cycle(packages: dict[str, PackageInfo], remaining: set[str]) -> list[str]:
    """Return one cycle among the packages Kahn's algorithm could not place.

    Every unplaced package still has an unplaced dependency, so walking from
    any of them through unplaced dependencies must revisit a node. The walk
    from that node back to itself is the cycle, listed in dependency order.
    """
    node = min(remaining)
    seen: list[str] = []
    while node not in seen:
        seen.append(node)
        node = min(d for d in packages[node].local_deps if d in remaining)
    cycle = seen[seen.index(node) :]
    cycle.reverse()
    return [*cycle, cycle[0]]


def publish_order(packages: dict[str, PackageInfo], affected: set[str]) -> list[str]:
    """Order the affected packages by a topological sort of the whole graph."""
    return [name for name in topo_sort(packages) if name in affected]
