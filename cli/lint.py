"""CLI wrapper: Run ruff over the package and its tests."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run([sys.executable, "-m", "ruff", "check", "hoopers", "cli", "tests", *sys.argv[1:]])
