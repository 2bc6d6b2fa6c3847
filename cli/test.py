"""CLI wrapper: Run the test suite."""

from __future__ import annotations

import os
import sys

from cli._runner import run


def main() -> None:
    env = {**os.environ, "APP_ENV": "test"}
    run([sys.executable, "-m", "pytest", "-q", *sys.argv[1:]], env=env)
