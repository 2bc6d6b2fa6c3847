"""
Shared helper for the developer entry points in this package.

Each wrapper builds an argv list and hands it to `run`, which replaces the
wrapper's exit status with the child's.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence


def run(cmd: Sequence[str], env: Mapping[str, str] | None = None) -> None:
    """
    Run a command and exit with its return code.

    Args:
        cmd: Command and arguments to execute
        env: Full environment for the child (inherits ours when omitted)

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"])
    """
    result = subprocess.run(cmd, env=dict(env) if env is not None else None)
    raise SystemExit(result.returncode)
