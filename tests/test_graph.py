"""Tests for cascade_publish.graph."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from cascade_publish.errors import CycleError
from cascade_publish.graph import (
    build_dependents,
    publish_order,
    resolve_affected,
    topo_sort,
)
from cascade_publish.models import PackageInfo


def _pkg(name: str, *deps: str) -> PackageInfo:
    return PackageInfo(
        name=name,
        dir_name=f"src-{name}",
        manifest_path=Path(f"src-{name}/Forc.toml"),
        version="1.0.0",
        local_deps=list(deps),
    )


def _graph(*pkgs: PackageInfo) -> dict[str, PackageInfo]:
    return {p.name: p for p in pkgs}


@pytest.fixture
def chain() -> dict[str, PackageInfo]:
    """base ← mid ← top, plus an unrelated leaf."""
    return _graph(_pkg("base"), _pkg("mid", "base"), _pkg("top", "mid"), _pkg("solo"))


@pytest.fixture
def diamond() -> dict[str, PackageInfo]:
    return _graph(
        _pkg("top", "left", "right"),
        _pkg("left", "bottom"),
        _pkg("right", "bottom"),
        _pkg("bottom"),
    )


class TestBuildDependents:
    def test_edges_point_at_dependents(self, chain: dict[str, PackageInfo]) -> None:
        assert build_dependents(chain) == {
            "base": ["mid"],
            "mid": ["top"],
            "top": [],
            "solo": [],
        }

    def test_unknown_local_deps_ignored(self) -> None:
        packages = _graph(_pkg("a", "not-discovered"))
        assert build_dependents(packages) == {"a": []}


class TestResolveAffected:
    def test_seed_reaches_all_dependents(self, chain: dict[str, PackageInfo]) -> None:
        assert resolve_affected(chain, ["base"]) == {"base", "mid", "top"}

    def test_seed_is_always_included(self, chain: dict[str, PackageInfo]) -> None:
        assert resolve_affected(chain, ["top"]) == {"top"}
        assert resolve_affected(chain, ["solo"]) == {"solo"}

    def test_union_of_seeds(self, diamond: dict[str, PackageInfo]) -> None:
        left = resolve_affected(diamond, ["left"])
        right = resolve_affected(diamond, ["right"])
        assert resolve_affected(diamond, ["left", "right"]) == left | right
        assert left == {"left", "top"}

    def test_diamond_visits_shared_dependent_once(
        self, diamond: dict[str, PackageInfo]
    ) -> None:
        assert resolve_affected(diamond, ["bottom"]) == set(diamond)

    def test_unknown_seed_warns_and_is_skipped(
        self, chain: dict[str, PackageInfo], capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert resolve_affected(chain, ["nope", "mid"]) == {"mid", "top"}
        err = capsys.readouterr().err
        assert "Warning: Specified package 'nope' not found. Skipping." in err

    def test_only_unknown_seeds_gives_empty_set(
        self, chain: dict[str, PackageInfo]
    ) -> None:
        assert resolve_affected(chain, ["nope"]) == set()

    def test_no_seeds_gives_empty_set(self, chain: dict[str, PackageInfo]) -> None:
        assert resolve_affected(chain, []) == set()


class TestTopoSort:
    def test_no_deps_alphabetical(self) -> None:
        assert topo_sort(_graph(_pkg("c"), _pkg("a"), _pkg("b"))) == ["a", "b", "c"]

    def test_linear_deps(self) -> None:
        result = topo_sort(_graph(_pkg("a", "b"), _pkg("b", "c"), _pkg("c")))
        assert result == ["c", "b", "a"]

    def test_every_edge_respected(self, diamond: dict[str, PackageInfo]) -> None:
        result = topo_sort(diamond)
        for name, info in diamond.items():
            for dep in info.local_deps:
                assert result.index(dep) < result.index(name)

    @pytest.mark.parametrize("seed", range(10))
    def test_every_edge_respected_in_layered_graphs(self, seed: int) -> None:
        rng = random.Random(seed)
        layers: list[list[str]] = []
        pkgs: list[PackageInfo] = []
        for depth in range(rng.randint(2, 5)):
            layer = [f"l{depth}-{i}" for i in range(rng.randint(1, 4))]
            earlier = [name for lower in layers for name in lower]
            for name in layer:
                k = rng.randint(0, min(3, len(earlier)))
                pkgs.append(_pkg(name, *rng.sample(earlier, k)))
            layers.append(layer)
        rng.shuffle(pkgs)
        packages = _graph(*pkgs)

        result = topo_sort(packages)

        assert sorted(result) == sorted(packages)
        for name, info in packages.items():
            for dep in info.local_deps:
                assert result.index(dep) < result.index(name)

    def test_empty_packages(self) -> None:
        assert topo_sort({}) == []

    def test_cycle_names_member(self) -> None:
        packages = _graph(_pkg("a", "b"), _pkg("b", "a"))
        with pytest.raises(CycleError, match="cycle") as excinfo:
            topo_sort(packages)
        assert excinfo.value.node in {"a", "b"}
        assert excinfo.value.cycle in (["a", "b", "a"], ["b", "a", "b"])

    def test_cycle_node_excludes_downstream_packages(self) -> None:
        # "after" is blocked by the cycle but is not part of it.
        packages = _graph(
            _pkg("after", "x"), _pkg("x", "z"), _pkg("y", "x"), _pkg("z", "y")
        )
        with pytest.raises(CycleError) as excinfo:
            topo_sort(packages)
        assert excinfo.value.node in {"x", "y", "z"}
        assert set(excinfo.value.cycle) == {"x", "y", "z"}

    def test_self_dependency_is_a_cycle(self) -> None:
        with pytest.raises(CycleError) as excinfo:
            topo_sort(_graph(_pkg("a", "a")))
        assert excinfo.value.cycle == ["a", "a"]


class TestPublishOrder:
    def test_filters_full_order(self, chain: dict[str, PackageInfo]) -> None:
        assert publish_order(chain, {"base", "mid", "top"}) == ["base", "mid", "top"]

    def test_relative_order_kept_across_unaffected_packages(
        self, chain: dict[str, PackageInfo]
    ) -> None:
        assert publish_order(chain, {"top", "base"}) == ["base", "top"]

    def test_cycle_outside_affected_set_is_still_fatal(self) -> None:
        packages = _graph(_pkg("ok"), _pkg("a", "b"), _pkg("b", "a"))
        with pytest.raises(CycleError):
            publish_order(packages, {"ok"})
