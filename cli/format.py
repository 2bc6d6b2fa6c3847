"""CLI wrapper: Format code with ruff."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run([sys.executable, "-m", "ruff", "format", "hoopers", "cli", "tests", *sys.argv[1:]])
