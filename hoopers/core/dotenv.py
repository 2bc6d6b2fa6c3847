"""
Minimal KEY=value env file reader, used only when ENV_FILE is set.

Usage:
    from hoopers.core.dotenv import load_env_file

    load_env_file(".env.local")
"""

from __future__ import annotations

import os
import re
from pathlib import Path

_QUOTES = ("'", '"')
_INLINE_COMMENT = re.compile(r"\s#")


def _parse_line(line: str) -> tuple[str, str] | None:
    """`KEY=value` -> (key, value); None for blanks, comments and junk."""
    line = line.strip()
    if line.startswith("#"):
        return None
    key, sep, value = line.partition("=")
    key, value = key.strip(), value.strip()
    if not sep or not key:
        return None

    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return key, value[1:-1]
    match = _INLINE_COMMENT.search(value)
    return key, value[: match.start()] if match else value


def load_env_file(path: str | Path = ".env", overwrite: bool = False) -> dict[str, str]:
    """Copy variables from an env file into os.environ.

    Variables already present in the environment win unless `overwrite`.
    A missing file is not an error.

    Returns:
        The variables that were written
    """
    path = Path(path)
    if not path.is_file():
        return {}

    entries = filter(None, map(_parse_line, path.read_text(encoding="utf-8").splitlines()))
    applied = {key: value for key, value in entries if overwrite or key not in os.environ}
    os.environ.update(applied)
    return applied
