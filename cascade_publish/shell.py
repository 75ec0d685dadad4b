"""Process and console utilities.

Provides a thin wrapper around subprocess for running the publish tool,
plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path


def run(
    *args: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command and capture its output.

    stdout and stderr are captured separately as text. A non-zero exit is
    not raised; callers inspect returncode themselves. There is no timeout.

    Args:
        *args: Command and arguments (e.g., "forc", "publish").
        cwd: Working directory for the command.
        env: Full environment for the child process. Inherits ours if None.

    Returns:
        CompletedProcess with returncode, stdout and stderr.
    """
    return subprocess.run(
        args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the publish run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr."""
    print(f"Warning: {msg}", file=sys.stderr)


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "-C", "standards", "show", ...).
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., a file that
               did not exist at an older ref).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()
