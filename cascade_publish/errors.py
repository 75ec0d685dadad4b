"""Error types raised by the publish pipeline.

Library code raises these; the CLI turns any of them into a non-zero exit
with the message printed to stderr.
"""

from __future__ import annotations


class PublishError(RuntimeError):
    """Base class for every fatal condition in a publish run."""


class ConfigError(PublishError):
    """Required configuration (e.g. the registry token) is missing."""


class ManifestError(PublishError):
    """A package manifest is missing, unparseable, or incomplete."""

    def __init__(self, dir_name: str, reason: str) -> None:
        super().__init__(f"{reason} for {dir_name}")
        self.dir_name = dir_name


class CycleError(PublishError):
    """The local dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        self.node = cycle[0]
        super().__init__(
            f"A cycle was detected in the dependency graph involving "
            f"'{self.node}' ({' -> '.join(cycle)})"
        )


class PublishFailedError(PublishError):
    """The external publish tool failed for a reason other than a re-publish."""

    def __init__(self, package: str, stderr: str) -> None:
        self.package = package
        self.stderr = stderr
        message = f"Failed to publish {package}"
        if stderr.strip():
            message += f":\n{stderr.rstrip()}"
        super().__init__(message)


class ManifestWriteError(PublishError):
    """An updated manifest could not be written back to disk."""

    def __init__(self, package: str, reason: str) -> None:
        super().__init__(f"Failed to write updated manifest for {package}: {reason}")
        self.package = package
