"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

from cascade_publish.config import Settings

BASE_MANIFEST = """\
[project]
authors = ["Fuel Labs <contact@fuel.sh>"]
entry = "lib.sw"
license = "Apache-2.0"
name = "base"
version = "1.2.0"

[dependencies]
"""

MID_MANIFEST = """\
[project]
authors = ["Fuel Labs <contact@fuel.sh>"]
entry = "lib.sw"
license = "Apache-2.0"
name = "mid"
version = "0.3.0"

# Shared helpers
[dependencies]
base = { path = "../src-base" }
standards = { git = "https://github.com/FuelLabs/sway-standards", tag = "v0.6.0" }
"""

TOP_MANIFEST = """\
[project]
authors = ["Fuel Labs <contact@fuel.sh>"]
entry = "main.sw"
license = "Apache-2.0"
name = "top"
version = "0.1.0"

[dependencies]
mid = { path = "../src-mid" }
"""


def _write_package(root: Path, dir_name: str, content: str) -> Path:
    """Create a package directory holding a Forc.toml with the given content."""
    pkg_dir = root / dir_name
    pkg_dir.mkdir(parents=True)
    manifest = pkg_dir / "Forc.toml"
    manifest.write_text(content)
    return manifest


@pytest.fixture
def standards(tmp_path: Path) -> Path:
    """A root with base ← mid ← top chained by local path dependencies."""
    root = tmp_path / "standards"
    _write_package(root, "src-base", BASE_MANIFEST)
    _write_package(root, "src-mid", MID_MANIFEST)
    _write_package(root, "src-top", TOP_MANIFEST)
    return root


@pytest.fixture
def settings(standards: Path) -> Settings:
    return Settings(root=standards, token="secret-token")


@pytest.fixture
def mid_doc() -> tomlkit.TOMLDocument:
    return tomlkit.parse(MID_MANIFEST)


@pytest.fixture
def add_package(standards: Path) -> Callable[[str, str], Path]:
    """Factory adding another package directory under the standards root."""

    def _add(dir_name: str, content: str) -> Path:
        return _write_package(standards, dir_name, content)

    return _add
