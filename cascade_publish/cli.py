"""CLI entry point for cascade-publish."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from cascade_publish.config import load_settings
from cascade_publish.errors import PublishError
from cascade_publish.pipeline import run_publish


def _workspace_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by publish and plan."""
    options = [
        click.argument("seeds", nargs=-1),
        click.option(
            "--root",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Directory holding the package directories. [default: standards]",
        ),
        click.option(
            "--manifest-name",
            default=None,
            help="Manifest filename in each package. [default: Forc.toml]",
        ),
        click.option(
            "--dir-prefix",
            default=None,
            help="Only directories starting with this are packages. [default: src]",
        ),
        click.option(
            "--tool",
            default=None,
            help="Publish tool, run as '<tool> publish'. [default: forc]",
        ),
        click.option(
            "--registry-url",
            envvar="CASCADE_PUBLISH_REGISTRY_URL",
            default=None,
            help="Registry passed to the publish tool. [default: http://localhost:8080]",
        ),
        click.option(
            "--already-published-marker",
            default=None,
            help="Tool stderr text meaning the version already exists. "
            "[default: already exists]",
        ),
        click.option(
            "--changed-since",
            metavar="REF",
            default=None,
            help="Also treat packages whose version differs from REF as seeds.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run(
    seeds: tuple[str, ...],
    *,
    dry_run: bool,
    changed_since: str | None,
    **options: Any,
) -> None:
    try:
        settings = load_settings(require_token=not dry_run, **options)
        run_publish(seeds, settings, dry_run=dry_run, changed_since=changed_since)
    except PublishError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="cascade-publish")
def cli() -> None:
    """Publish changed packages and everything that depends on them, in order."""


@cli.command()
@_workspace_options
def publish(seeds: tuple[str, ...], **options: Any) -> None:
    """Publish SEEDS and their dependents (needs FORC_PUB_TOKEN)."""
    _run(seeds, dry_run=False, **options)


@cli.command()
@_workspace_options
def plan(seeds: tuple[str, ...], **options: Any) -> None:
    """Print the publish order for SEEDS without publishing anything."""
    _run(seeds, dry_run=True, **options)
