"""Run configuration.

The registry token is read from the environment exactly once, here, and
carried on the Settings object to the publish step.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import ConfigError

TOKEN_ENV_VAR = "FORC_PUB_TOKEN"


class Settings(BaseModel):
    """Settings for a single publish run.

    Attributes:
        root: Directory holding one subdirectory per package.
        manifest_name: Manifest filename inside each package directory.
        dir_prefix: Only subdirectories starting with this are packages.
        tool: Executable invoked as ``<tool> publish``.
        registry_url: Passed to the tool as ``--registry-url``.
        already_published_marker: Text in the tool's stderr meaning the
            version already exists on the registry.
        token: Registry credential forwarded to the tool.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Path("standards")
    manifest_name: str = "Forc.toml"
    dir_prefix: str = "src"
    tool: str = "forc"
    registry_url: str = "http://localhost:8080"
    already_published_marker: str = "already exists"
    token: str | None = None


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    require_token: bool = True,
    **overrides: object,
) -> Settings:
    """Build Settings from the environment plus explicit overrides.

    Overrides set to None are ignored so CLI options left unset fall back
    to the model defaults.

    Raises:
        ConfigError: If require_token is set and FORC_PUB_TOKEN is unset or empty.
    """
    env = os.environ if environ is None else environ
    token = env.get(TOKEN_ENV_VAR) or None
    if require_token and token is None:
        raise ConfigError(f"{TOKEN_ENV_VAR} environment variable is not set.")

    values = {k: v for k, v in overrides.items() if v is not None}
    return Settings(token=token, **values)
